"""Persisted layout models.

A workspace layout is keyed by view key and addresses elements and
relationships by ID. Entry order inside a view is not meaningful: consumers
index entries by ID.
"""

from pydantic import BaseModel, ConfigDict, Field, RootModel

from .views import RoutingKind


class VertexLayout(BaseModel):
    """A routing point of a relationship line."""
    x: int
    y: int


class ElementLayout(BaseModel):
    """Saved position of an element in a view."""
    id: str
    x: int = 0
    y: int = 0


class RelationshipLayout(BaseModel):
    """Saved routing of a relationship in a view."""
    id: str
    vertices: list[VertexLayout] = Field(default_factory=list)
    routing: RoutingKind = RoutingKind.UNDEFINED
    position: int | None = None

    model_config = ConfigDict(use_enum_values=True)


class ViewLayout(BaseModel):
    """Saved layout of one view."""
    elements: list[ElementLayout] = Field(default_factory=list)
    relationships: list[RelationshipLayout] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.elements and not self.relationships


class WorkspaceLayout(RootModel[dict[str, ViewLayout]]):
    """Saved layouts of all views, keyed by view key."""
    root: dict[str, ViewLayout] = Field(default_factory=dict)

    def __getitem__(self, key: str) -> ViewLayout:
        return self.root[key]

    def __contains__(self, key: str) -> bool:
        return key in self.root

    def __len__(self) -> int:
        return len(self.root)

    def get(self, key: str) -> ViewLayout | None:
        return self.root.get(key)

    def items(self):
        return self.root.items()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return self.model_dump(mode="json", exclude_none=True)
