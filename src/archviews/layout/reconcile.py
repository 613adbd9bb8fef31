"""Layout reconciliation between independent builds of the same design.

Every build mints new IDs, so a layout saved against one build cannot be
looked up directly in another. Elements are matched instead by a structural
key derived from names and parents, relationships by their remapped
endpoints plus description, and views by their user-assigned key.

Matching is best effort: when several elements share a structural key the
first one wins, and entries that match nothing are dropped.
"""

import logging

from ..models.elements import Element, ElementKind
from ..models.layout import (
    ElementLayout,
    RelationshipLayout,
    VertexLayout,
    ViewLayout,
    WorkspaceLayout,
)
from ..models.model import Model
from ..models.views import RoutingKind, Vertex, View
from ..models.workspace import Workspace

logger = logging.getLogger(__name__)

StructuralKey = tuple[str, ...]


def structural_key(element: Element) -> StructuralKey:
    """Name-derived identity of an element, stable across builds.

    People and software systems are keyed by name, containers by system and
    name, components by container key and name. Deployment elements are
    keyed by environment and the path of nested node names, and container
    instances add the key of their container and their instance number.
    """
    kind = element.kind
    if kind in (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM):
        return (kind.value, element.name)
    if kind == ElementKind.CONTAINER:
        return (kind.value, element.system.name, element.name)
    if kind == ElementKind.COMPONENT:
        return (kind.value, *structural_key(element.container)[1:], element.name)
    if kind == ElementKind.DEPLOYMENT_NODE:
        return (kind.value, element.environment, *_node_path(element))
    if kind == ElementKind.INFRASTRUCTURE_NODE:
        return (kind.value, element.environment, *_node_path(element.node), element.name)
    if kind == ElementKind.CONTAINER_INSTANCE:
        return (
            kind.value,
            element.environment,
            *_node_path(element.node),
            *structural_key(element.container),
            str(element.instance_id),
        )
    raise ValueError(f"unknown element kind {kind!r}")


def _node_path(node: Element) -> list[str]:
    names = []
    while node is not None:
        names.insert(0, node.name)
        node = node.node
    return names


def build_id_map(remote: Model, local: Model) -> dict[str, str]:
    """Map the IDs of a remote build onto the IDs of the local build.

    Elements map when their structural keys are equal; relationships map when
    their remapped source, remapped destination and description are equal.
    When the local build holds several candidates the first one wins.
    """
    local_elements: dict[StructuralKey, Element] = {}
    for element in local.elements():
        local_elements.setdefault(structural_key(element), element)

    id_map: dict[str, str] = {}
    for element in remote.elements():
        match = local_elements.get(structural_key(element))
        if match is not None:
            id_map[element.id] = match.id
        else:
            logger.debug(f"No local match for {element}")

    local_relationships: dict[tuple[str, str, str], str] = {}
    for relationship in local.relationships():
        key = (relationship.source.id, relationship.destination.id, relationship.description)
        local_relationships.setdefault(key, relationship.id)

    for relationship in remote.relationships():
        source = id_map.get(relationship.source.id)
        destination = id_map.get(relationship.destination.id)
        if source is None or destination is None:
            continue
        match = local_relationships.get((source, destination, relationship.description))
        if match is not None:
            id_map[relationship.id] = match
        else:
            logger.debug(f"No local match for relationship {relationship}")

    logger.info(f"Matched {len(id_map)} of {len(remote.registry)} remote elements and relationships")
    return id_map


def extract_view_layout(view: View) -> ViewLayout:
    """Layout of a view, keeping only entries that differ from the defaults."""
    layout = ViewLayout()
    for ev in view.element_views:
        x, y = ev.x or 0, ev.y or 0
        if x != 0 or y != 0:
            layout.elements.append(ElementLayout(id=ev.id, x=x, y=y))

    seen: set[str] = set()
    for rv in view.relationship_views:
        if rv.id in seen:
            continue
        if rv.position is None and rv.routing == RoutingKind.UNDEFINED and not rv.vertices:
            continue
        seen.add(rv.id)
        layout.relationships.append(RelationshipLayout(
            id=rv.id,
            vertices=[VertexLayout(x=v.x, y=v.y) for v in rv.vertices],
            routing=rv.routing,
            position=rv.position,
        ))
    return layout


def extract_layout(views: list[View]) -> WorkspaceLayout:
    """Layout of all views keyed by view key; views without layout are omitted."""
    layouts = {}
    for view in views:
        layout = extract_view_layout(view)
        if not layout.is_empty():
            layouts[view.key] = layout
    return WorkspaceLayout(layouts)


def remap_layout(layout: WorkspaceLayout, id_map: dict[str, str]) -> WorkspaceLayout:
    """Translate the IDs of a layout, dropping entries with no mapping."""
    remapped = {}
    for key, view_layout in layout.items():
        elements = [
            ElementLayout(id=id_map[e.id], x=e.x, y=e.y)
            for e in view_layout.elements if e.id in id_map
        ]
        relationships = [
            r.model_copy(update={"id": id_map[r.id]})
            for r in view_layout.relationships if r.id in id_map
        ]
        dropped = len(view_layout.elements) + len(view_layout.relationships) \
            - len(elements) - len(relationships)
        if dropped:
            logger.debug(f"View {key}: dropped {dropped} layout entries with no match")
        remapped[key] = ViewLayout(elements=elements, relationships=relationships)
    return WorkspaceLayout(remapped)


def apply_layout(views: list[View], layout: WorkspaceLayout) -> None:
    """Copy positions and routing from a layout onto populated views.

    Views are matched by key; within a view, entries are matched by ID.
    Elements and relationships absent from the layout keep their state.
    """
    for view in views:
        view_layout = layout.get(view.key)
        if view_layout is None:
            continue
        for entry in view_layout.elements:
            element_view = view.element_view(entry.id)
            if element_view is None:
                continue
            element_view.x = entry.x
            element_view.y = entry.y
        for entry in view_layout.relationships:
            for rv in view.relationship_views:
                if rv.id != entry.id:
                    continue
                rv.vertices = [Vertex(x=v.x, y=v.y) for v in entry.vertices]
                rv.routing = RoutingKind(entry.routing)
                rv.position = entry.position


def reconcile_layout(local: Workspace, remote: Workspace,
                     layout: WorkspaceLayout) -> dict[str, str]:
    """Apply a layout whose IDs belong to the remote build onto the local views.

    Returns:
        The remote to local ID map used for the transfer
    """
    id_map = build_id_map(remote.model, local.model)
    apply_layout(local.views.all(), remap_layout(layout, id_map))
    return id_map
