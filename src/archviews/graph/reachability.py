"""Graph traversal utilities over a finalized model.

All scans walk relationships in registry order, so results are deterministic
for identical input regardless of the IDs minted for a build.
"""

from ..models.elements import Element, ElementKind
from ..models.model import Model
from ..models.views import View


def related(model: Model, element: Element, *kinds: ElementKind) -> list[Element]:
    """Distinct elements of the given kinds linked to element in either direction.

    Results are ordered by first encounter during a single scan of the
    model's relationships.
    """
    result: list[Element] = []
    seen: set[int] = set()
    for relationship in model.relationships():
        if not relationship.connects(element):
            continue
        other = relationship.other_end(element)
        if other is element or other.kind not in kinds or id(other) in seen:
            continue
        seen.add(id(other))
        result.append(other)
    return result


def related_people(model: Model, element: Element) -> list[Element]:
    return related(model, element, ElementKind.PERSON)


def related_software_systems(model: Model, element: Element) -> list[Element]:
    return related(model, element, ElementKind.SOFTWARE_SYSTEM)


def related_containers(model: Model, element: Element) -> list[Element]:
    return related(model, element, ElementKind.CONTAINER)


def reachable(model: Model, root: Element) -> list[Element]:
    """Elements transitively connected to root through relationships.

    Relationships are followed in both directions with no hop limit. The
    result includes root and is ordered by discovery.
    """
    adjacency: dict[int, list[Element]] = {}
    for relationship in model.relationships():
        adjacency.setdefault(id(relationship.source), []).append(relationship.destination)
        adjacency.setdefault(id(relationship.destination), []).append(relationship.source)

    visited: set[int] = set()
    order: list[Element] = []

    def visit(element: Element) -> None:
        if id(element) in visited:
            return
        visited.add(id(element))
        order.append(element)
        for neighbor in adjacency.get(id(element), []):
            visit(neighbor)

    visit(root)
    return order


def unreachable(model: Model, view: View, root: Element) -> list[Element]:
    """Elements of the view that cannot be reached from root in the whole model.

    Nothing is unreachable from a root that is not itself in the view.
    """
    if not view.has_element(root):
        return []
    reached = {id(e) for e in reachable(model, root)}
    return [ev.element for ev in view.element_views if id(ev.element) not in reached]


def unrelated(view: View) -> list[Element]:
    """Elements of the view with no relationship view touching them."""
    connected: set[int] = set()
    for rv in view.relationship_views:
        connected.add(id(rv.relationship.source))
        connected.add(id(rv.relationship.destination))
    return [ev.element for ev in view.element_views if id(ev.element) not in connected]


def tagged(view: View, tag: str) -> list[Element]:
    """Elements of the view carrying the tag."""
    return [ev.element for ev in view.element_views if ev.element.has_tag(tag)]
