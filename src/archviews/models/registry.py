"""ID registry for one build of an architecture model.

The registry is an explicit arena owned by a single model build. It mints
IDs, resolves them back to elements and relationships, and iterates in
registration order so that every scan over it is deterministic.
"""

import hashlib
import logging
import uuid
from collections.abc import Iterator

from ..config import IdStrategy
from .elements import Element, Relationship

logger = logging.getLogger(__name__)


class ModelError(Exception):
    """Raised when the model is built or queried out of order."""
    pass


class Registry:
    """Arena of the elements and relationships of one model build."""

    def __init__(self, id_strategy: IdStrategy | str = IdStrategy.RANDOM):
        self.id_strategy = IdStrategy(id_strategy)
        self._objects: dict[str, Element | Relationship] = {}
        self._elements: list[Element] = []
        self._relationships: list[Relationship] = []
        self.frozen = False

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._objects
        if isinstance(item, (Element, Relationship)):
            return self._objects.get(item.id) is item
        return False

    def mint_id(self, moniker: str) -> str:
        """Create a new unique ID.

        Random IDs change with every build. Content IDs are derived from the
        moniker (the structural path of the object) and are stable across
        builds of the same design; a suffix is appended on collision.
        """
        if self.id_strategy == IdStrategy.CONTENT:
            base = hashlib.sha256(moniker.encode("utf-8")).hexdigest()[:16]
            candidate = base
            suffix = 1
            while candidate in self._objects:
                suffix += 1
                candidate = f"{base}-{suffix}"
            return candidate

        candidate = uuid.uuid4().hex[:20]
        while candidate in self._objects:
            candidate = uuid.uuid4().hex[:20]
        return candidate

    def register(self, obj: Element | Relationship, moniker: str) -> str:
        """Register an element or relationship, minting its ID if it has none."""
        if self.frozen:
            raise ModelError(f"cannot register {obj}: model is finalized")
        if not obj.id:
            obj.id = self.mint_id(moniker)
        elif obj.id in self._objects:
            raise ModelError(f"duplicate ID {obj.id!r} for {obj}")

        self._objects[obj.id] = obj
        if isinstance(obj, Relationship):
            self._relationships.append(obj)
        else:
            self._elements.append(obj)
        logger.debug(f"Registered {obj} as {obj.id}")
        return obj.id

    def freeze(self) -> None:
        """Make the registry read-only for the rest of the build."""
        self.frozen = True

    def element(self, element_id: str) -> Element | None:
        obj = self._objects.get(element_id)
        return obj if isinstance(obj, Element) else None

    def relationship(self, relationship_id: str) -> Relationship | None:
        obj = self._objects.get(relationship_id)
        return obj if isinstance(obj, Relationship) else None

    def elements(self) -> Iterator[Element]:
        """Iterate elements in registration order."""
        return iter(list(self._elements))

    def relationships(self) -> Iterator[Relationship]:
        """Iterate relationships in registration order."""
        return iter(list(self._relationships))
