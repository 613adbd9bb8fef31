"""View population engine.

Turns the directives recorded on a view (explicit includes, AddAll,
AddDefault, neighbors, influencers, links and the removal directives) into
the element and relationship views handed to the renderer.
"""

import logging

from ..graph.reachability import (
    related,
    related_containers,
    related_people,
    related_software_systems,
    tagged,
    unreachable,
    unrelated,
)
from ..models.elements import DEPLOYMENT_KINDS, Element, ElementKind, Relationship
from ..models.model import Model
from ..models.registry import ModelError
from ..models.views import (
    ElementInclude,
    ElementView,
    RelationshipLink,
    RelationshipView,
    RoutingKind,
    View,
    ViewKind,
)
from .animation import build_animation_steps, infer_animation_relationships

logger = logging.getLogger(__name__)


class ViewError(Exception):
    """Raised when a directive does not apply to the kind of view it targets."""
    pass


NEIGHBOR_KINDS: dict[ViewKind, tuple[ElementKind, ...]] = {
    ViewKind.SYSTEM_LANDSCAPE: (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM),
    ViewKind.SYSTEM_CONTEXT: (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM),
    ViewKind.CONTAINER: (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM, ElementKind.CONTAINER),
    ViewKind.COMPONENT: (
        ElementKind.PERSON,
        ElementKind.SOFTWARE_SYSTEM,
        ElementKind.CONTAINER,
        ElementKind.COMPONENT,
    ),
    ViewKind.DEPLOYMENT: (ElementKind.INFRASTRUCTURE_NODE, ElementKind.CONTAINER_INSTANCE),
}

REQUIRED_SCOPE: dict[ViewKind, str] = {
    ViewKind.SYSTEM_CONTEXT: "software_system",
    ViewKind.CONTAINER: "software_system",
    ViewKind.COMPONENT: "container",
}


def deployment_root(element: Element) -> Element | None:
    """Top-level deployment node holding a deployment element, None otherwise."""
    if element.kind == ElementKind.DEPLOYMENT_NODE:
        return element.root()
    if element.kind in (ElementKind.INFRASTRUCTURE_NODE, ElementKind.CONTAINER_INSTANCE):
        return element.node.root()
    return None


class ViewPopulator:
    """Populates views from a finalized model."""

    def __init__(self, model: Model):
        if not model.finalized:
            raise ModelError("model must be finalized before views are populated")
        self.model = model

    def populate(self, view: View) -> View:
        """Recompute the content of a view from its directives."""
        scope_attr = REQUIRED_SCOPE.get(view.kind)
        if scope_attr and getattr(view, scope_attr) is None:
            raise ViewError(f"{view.kind.value} view {view.key!r} requires a {scope_attr.replace('_', ' ')}")

        view.element_views = []
        view.relationship_views = []
        view.animation_steps = []
        view.suppressed = set()

        for include in view.includes:
            self.include(view, include)
        if view.add_all:
            self.add_all(view)
        if view.add_default:
            self.add_default(view)
        for element in view.add_neighbors:
            self.add_neighbors(view, element)
        if view.add_influencers:
            self.add_influencers(view)
        for link in view.links:
            self.link(view, link)

        self.remove_elements(view, *view.exclude)
        for tag in view.exclude_tags:
            self.remove_tagged(view, tag)
        for relationship in view.unlinks:
            self.unlink(view, relationship)
        for root in view.remove_unreachable:
            self.remove_unreachable(view, root)
        if view.remove_unrelated:
            self.remove_unrelated(view)
        self._prune_no_relationship(view)

        view.animation_steps = build_animation_steps(view)
        infer_animation_relationships(view)

        logger.info(
            f"Populated view {view.key}: {len(view.element_views)} elements, "
            f"{len(view.relationship_views)} relationships"
        )
        return view

    # Additions

    def add_elements(self, view: View, *elements: Element) -> list[ElementView]:
        """Add elements to the view and complete the relationships between them.

        Deployment nodes bring their nested elements; infrastructure nodes and
        container instances bring the nodes they are deployed on. Elements
        already in the view are left untouched.

        Raises:
            ViewError: if an element kind is not allowed in the view
        """
        added = []
        for element in elements:
            self._check_kind(view, element)
            for member in self._expand(view, element):
                element_view = self._add_element_view(view, member)
                if element_view is not None:
                    added.append(element_view)
        if added:
            self.complete_relationships(view)
        return added

    def include(self, view: View, include: ElementInclude) -> ElementView:
        """Apply an explicit Add, including its position and relationship flag."""
        self._check_kind(view, include.element)
        for member in self._expand(view, include.element):
            self._add_element_view(view, member)
        element_view = view.element_view(include.element.id)
        if include.x is not None:
            element_view.x = include.x
        if include.y is not None:
            element_view.y = include.y
        if include.no_relationship:
            element_view.no_relationship = True
        self.complete_relationships(view)
        return element_view

    def add_all(self, view: View) -> None:
        """Add every element relevant to the kind of view."""
        model = self.model
        if view.kind in (ViewKind.SYSTEM_LANDSCAPE, ViewKind.SYSTEM_CONTEXT):
            self.add_elements(view, *model.people, *model.software_systems)
        elif view.kind == ViewKind.CONTAINER:
            system = view.software_system
            others = [s for s in model.software_systems if s is not system]
            self.add_elements(view, *model.people, *others, *system.containers)
        elif view.kind == ViewKind.COMPONENT:
            container = view.container
            self.add_elements(view, *model.people, *model.software_systems,
                              *container.system.containers, *container.components)
        elif view.kind == ViewKind.DEPLOYMENT:
            nodes = [
                n for n in model.deployment_nodes
                if not view.environment or not n.environment or n.environment == view.environment
            ]
            self.add_elements(view, *nodes)
        elif view.kind == ViewKind.DYNAMIC:
            raise ViewError(f"dynamic view {view.key!r} does not support AddAll")
        else:
            raise ViewError(f"unknown view kind {view.kind!r}")

    def add_default(self, view: View) -> None:
        """Add the default starting set of elements for the kind of view."""
        model = self.model
        if view.kind in (ViewKind.SYSTEM_LANDSCAPE, ViewKind.DEPLOYMENT):
            self.add_all(view)
        elif view.kind == ViewKind.SYSTEM_CONTEXT:
            system = view.software_system
            self.add_elements(view, system)
            self.add_neighbors(view, system)
        elif view.kind == ViewKind.CONTAINER:
            system = view.software_system
            self.add_elements(view, *system.containers)
            for container in system.containers:
                self.add_elements(view, *related_software_systems(model, container))
                self.add_elements(view, *related_people(model, container))
        elif view.kind == ViewKind.COMPONENT:
            container = view.container
            self.add_elements(view, *container.components)
            for component in container.components:
                self.add_elements(view, *related_containers(model, component))
                self.add_elements(view, *related_software_systems(model, component))
                self.add_elements(view, *related_people(model, component))
        elif view.kind == ViewKind.DYNAMIC:
            raise ViewError(f"dynamic view {view.key!r} does not support AddDefault")
        else:
            raise ViewError(f"unknown view kind {view.kind!r}")

    def add_neighbors(self, view: View, element: Element) -> None:
        """Add the elements directly related to element, not element itself."""
        kinds = NEIGHBOR_KINDS.get(view.kind)
        if kinds is None:
            raise ViewError(f"{view.kind.value} view {view.key!r} does not support AddNeighbors")
        self.add_elements(view, *related(self.model, element, *kinds))

    def add_influencers(self, view: View) -> None:
        """Add people and systems related to any element of the view's system.

        Relationship views with neither endpoint inside the system are pruned
        afterwards and kept out of later relationship completion.
        """
        if view.kind != ViewKind.CONTAINER:
            raise ViewError(f"{view.kind.value} view {view.key!r} does not support AddInfluencers")
        system = view.software_system
        internal = _system_members(system)
        internal_ids = {id(e) for e in internal}

        influencers: list[Element] = []
        for relationship in self.model.relationships():
            source_in = id(relationship.source) in internal_ids
            destination_in = id(relationship.destination) in internal_ids
            if source_in == destination_in:
                continue
            other = relationship.destination if source_in else relationship.source
            if other.kind in (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM) \
                    and other not in influencers:
                influencers.append(other)
        self.add_elements(view, *influencers)

        kept = []
        for rv in view.relationship_views:
            if id(rv.relationship.source) in internal_ids \
                    or id(rv.relationship.destination) in internal_ids:
                kept.append(rv)
            else:
                view.suppressed.add(rv.relationship.id)
        if len(kept) != len(view.relationship_views):
            logger.debug(
                f"View {view.key}: pruned {len(view.relationship_views) - len(kept)} "
                f"relationships between influencers"
            )
        view.relationship_views = kept

    def link(self, view: View, link: RelationshipLink) -> RelationshipView:
        """Add a relationship explicitly, along with both of its endpoints."""
        relationship = link.relationship
        view.suppressed.discard(relationship.id)
        for endpoint in (relationship.source, relationship.destination):
            self._check_kind(view, endpoint)
            for member in [*_ancestor_nodes(endpoint), endpoint]:
                self._add_element_view(view, member)

        existing = view.relationship_view(relationship.id)
        if existing is None or view.kind == ViewKind.DYNAMIC:
            existing = RelationshipView(relationship=relationship)
            view.relationship_views.append(existing)
            if view.kind == ViewKind.DYNAMIC and not link.order:
                existing.order = str(len(view.relationship_views))
        if link.description:
            existing.description = link.description
        if link.order:
            existing.order = link.order
        if link.vertices:
            existing.vertices = list(link.vertices)
        if link.routing != RoutingKind.UNDEFINED:
            existing.routing = link.routing
        if link.position is not None:
            existing.position = link.position

        self.complete_relationships(view)
        return existing

    def complete_relationships(self, view: View) -> None:
        """Add every model relationship whose endpoints are both in the view.

        Relationships already present, suppressed ones, relationships touching
        an element shown without relationships and, in deployment views,
        relationships crossing top-level deployment nodes are skipped. Dynamic
        views only show explicit links.
        """
        if view.kind == ViewKind.DYNAMIC:
            return
        present = {id(ev.element): ev for ev in view.element_views}
        recorded = {rv.relationship.id for rv in view.relationship_views}
        for relationship in self.model.relationships():
            if relationship.id in recorded or relationship.id in view.suppressed:
                continue
            source = present.get(id(relationship.source))
            destination = present.get(id(relationship.destination))
            if source is None or destination is None:
                continue
            if source.no_relationship or destination.no_relationship:
                continue
            if deployment_root(relationship.source) is not deployment_root(relationship.destination):
                continue
            view.relationship_views.append(RelationshipView(relationship=relationship))
            recorded.add(relationship.id)

    # Removals

    def remove_elements(self, view: View, *elements: Element) -> None:
        """Remove elements and every relationship view touching them."""
        removed = {id(e) for e in elements}
        if not removed:
            return
        view.element_views = [ev for ev in view.element_views if id(ev.element) not in removed]
        view.relationship_views = [
            rv for rv in view.relationship_views
            if id(rv.relationship.source) not in removed
            and id(rv.relationship.destination) not in removed
        ]

    def remove_tagged(self, view: View, tag: str) -> None:
        """Remove elements carrying the tag along with their relationship views."""
        self.remove_elements(view, *tagged(view, tag))

    def unlink(self, view: View, relationship: Relationship) -> None:
        """Remove a relationship view and keep it out of later completion."""
        view.relationship_views = [
            rv for rv in view.relationship_views if rv.relationship is not relationship
        ]
        view.suppressed.add(relationship.id)

    def remove_unreachable(self, view: View, root: Element) -> None:
        """Remove elements not transitively connected to root in the whole model."""
        elements = unreachable(self.model, view, root)
        if elements:
            logger.debug(f"View {view.key}: removing {len(elements)} elements unreachable from {root}")
        self.remove_elements(view, *elements)

    def remove_unrelated(self, view: View) -> None:
        """Remove elements with no relationship view in this view."""
        self.remove_elements(view, *unrelated(view))

    # Helpers

    def _check_kind(self, view: View, element: Element) -> None:
        if element.kind not in view.allowed_kinds:
            raise ViewError(
                f"{element} cannot be added to {view.kind.value} view {view.key!r}"
            )

    def _add_element_view(self, view: View, element: Element) -> ElementView | None:
        if view.has_element(element):
            return None
        element_view = ElementView(element=element)
        view.element_views.append(element_view)
        return element_view

    def _expand(self, view: View, element: Element) -> list[Element]:
        """Elements that come along with element when it is added to a view."""
        if element.kind not in DEPLOYMENT_KINDS:
            return [element]
        if element.kind == ElementKind.DEPLOYMENT_NODE:
            members = []
            for member in element.walk():
                if member.kind == ElementKind.CONTAINER_INSTANCE and view.software_system is not None \
                        and member.container.system is not view.software_system:
                    continue
                members.append(member)
            return members
        return _ancestor_nodes(element) + [element]

    def _prune_no_relationship(self, view: View) -> None:
        flagged = {id(ev.element) for ev in view.element_views if ev.no_relationship}
        if not flagged:
            return
        linked = {link.relationship.id for link in view.links}
        view.relationship_views = [
            rv for rv in view.relationship_views
            if rv.relationship.id in linked
            or (id(rv.relationship.source) not in flagged
                and id(rv.relationship.destination) not in flagged)
        ]


def _ancestor_nodes(element: Element) -> list[Element]:
    """Deployment nodes holding a deployment element, outermost first."""
    if element.kind not in DEPLOYMENT_KINDS:
        return []
    ancestors = []
    node = element.node
    while node is not None:
        ancestors.insert(0, node)
        node = node.node
    return ancestors


def _system_members(system: Element) -> list[Element]:
    members = [system]
    for container in system.containers:
        members.append(container)
        members.extend(container.components)
    return members


def populate_views(model: Model, views: list[View]) -> list[View]:
    """Populate every view against the same finalized model."""
    populator = ViewPopulator(model)
    return [populator.populate(view) for view in views]
