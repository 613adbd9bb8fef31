"""View data models: element and relationship views, directives and layout settings."""

from dataclasses import dataclass, field
from enum import Enum

from .elements import Element, ElementKind, Relationship


class ViewKind(str, Enum):
    """Kinds of views."""
    SYSTEM_LANDSCAPE = "SystemLandscape"
    SYSTEM_CONTEXT = "SystemContext"
    CONTAINER = "Container"
    COMPONENT = "Component"
    DYNAMIC = "Dynamic"
    DEPLOYMENT = "Deployment"


class RoutingKind(str, Enum):
    """Routing of relationship lines; UNDEFINED leaves it to the renderer."""
    UNDEFINED = ""
    DIRECT = "Direct"
    CURVED = "Curved"
    ORTHOGONAL = "Orthogonal"


class RankDirection(str, Enum):
    """Auto layout rank directions."""
    TOP_BOTTOM = "TopBottom"
    BOTTOM_TOP = "BottomTop"
    LEFT_RIGHT = "LeftRight"
    RIGHT_LEFT = "RightLeft"


_STATIC_KINDS = frozenset({ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM})

ALLOWED_KINDS: dict[ViewKind, frozenset[ElementKind]] = {
    ViewKind.SYSTEM_LANDSCAPE: _STATIC_KINDS,
    ViewKind.SYSTEM_CONTEXT: _STATIC_KINDS,
    ViewKind.CONTAINER: _STATIC_KINDS | {ElementKind.CONTAINER},
    ViewKind.COMPONENT: _STATIC_KINDS | {ElementKind.CONTAINER, ElementKind.COMPONENT},
    ViewKind.DYNAMIC: _STATIC_KINDS | {ElementKind.CONTAINER, ElementKind.COMPONENT},
    ViewKind.DEPLOYMENT: frozenset({
        ElementKind.DEPLOYMENT_NODE,
        ElementKind.INFRASTRUCTURE_NODE,
        ElementKind.CONTAINER_INSTANCE,
    }),
}


@dataclass
class Vertex:
    """A point a relationship line is routed through."""
    x: int
    y: int


@dataclass
class ElementView:
    """An element rendered in a view, with its optional position."""
    element: Element
    x: int | None = None
    y: int | None = None
    no_relationship: bool = False

    @property
    def id(self) -> str:
        return self.element.id


@dataclass
class RelationshipView:
    """A relationship rendered in a view, with its optional routing."""
    relationship: Relationship
    description: str = ""
    order: str = ""
    vertices: list[Vertex] = field(default_factory=list)
    routing: RoutingKind = RoutingKind.UNDEFINED
    position: int | None = None

    @property
    def id(self) -> str:
        return self.relationship.id


@dataclass
class AutoLayout:
    """Automatic layout settings handed to the renderer."""
    rank_direction: RankDirection = RankDirection.TOP_BOTTOM
    rank_separation: int = 300
    node_separation: int = 600
    edge_separation: int = 200
    vertices: bool = False


@dataclass
class AnimationStep:
    """An ordered reveal step and the relationships it introduces."""
    order: int
    elements: list[Element] = field(default_factory=list)
    relationship_ids: list[str] = field(default_factory=list)


@dataclass
class ElementInclude:
    """Explicit request to add an element to a view."""
    element: Element
    x: int | None = None
    y: int | None = None
    no_relationship: bool = False


@dataclass
class RelationshipLink:
    """Explicit request to add a relationship to a view."""
    relationship: Relationship
    description: str = ""
    order: str = ""
    vertices: list[Vertex] = field(default_factory=list)
    routing: RoutingKind = RoutingKind.UNDEFINED
    position: int | None = None


@dataclass(eq=False)
class View:
    """A named, filtered subgraph of the model intended for one diagram.

    The directive fields record what the design asks for; the population
    engine turns them into element_views and relationship_views.
    """
    key: str
    kind: ViewKind
    title: str = ""
    description: str = ""
    software_system: Element | None = None
    container: Element | None = None
    environment: str = ""
    auto_layout: AutoLayout | None = None
    paper_size: str = ""

    # Directives
    includes: list[ElementInclude] = field(default_factory=list)
    links: list[RelationshipLink] = field(default_factory=list)
    add_all: bool = False
    add_default: bool = False
    add_neighbors: list[Element] = field(default_factory=list)
    add_influencers: bool = False
    exclude: list[Element] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    unlinks: list[Relationship] = field(default_factory=list)
    remove_unreachable: list[Element] = field(default_factory=list)
    remove_unrelated: bool = False
    animation: list[list[Element]] = field(default_factory=list)

    # Populated content
    element_views: list[ElementView] = field(default_factory=list)
    relationship_views: list[RelationshipView] = field(default_factory=list)
    animation_steps: list[AnimationStep] = field(default_factory=list)
    suppressed: set[str] = field(default_factory=set, repr=False)

    @property
    def scope(self) -> Element | None:
        """Element the view is about: its container when it has one, else its system."""
        if self.container is not None:
            return self.container
        return self.software_system

    @property
    def allowed_kinds(self) -> frozenset[ElementKind]:
        return ALLOWED_KINDS[self.kind]

    def element_view(self, element_id: str) -> ElementView | None:
        return next((ev for ev in self.element_views if ev.element.id == element_id), None)

    def relationship_view(self, relationship_id: str) -> RelationshipView | None:
        return next(
            (rv for rv in self.relationship_views if rv.relationship.id == relationship_id), None
        )

    def has_element(self, element: Element) -> bool:
        return any(ev.element is element for ev in self.element_views)

    def has_relationship(self, relationship: Relationship) -> bool:
        return any(rv.relationship is relationship for rv in self.relationship_views)

    def elements(self) -> list[Element]:
        return [ev.element for ev in self.element_views]

    def relationships(self) -> list[Relationship]:
        return [rv.relationship for rv in self.relationship_views]


class FilterMode(str, Enum):
    """Whether a filtered view keeps or drops the tagged elements."""
    INCLUDE = "Include"
    EXCLUDE = "Exclude"


@dataclass
class FilteredView:
    """A view derived from a static view by keeping or dropping tagged items."""
    key: str
    base_key: str
    mode: FilterMode = FilterMode.INCLUDE
    tags: list[str] = field(default_factory=list)
    title: str = ""
    description: str = ""
    element_views: list[ElementView] = field(default_factory=list)
    relationship_views: list[RelationshipView] = field(default_factory=list)


@dataclass
class Views:
    """All views of a workspace."""
    views: list[View] = field(default_factory=list)
    filtered_views: list[FilteredView] = field(default_factory=list)

    def add(self, view: View) -> View:
        self.views.append(view)
        return view

    def get(self, key: str) -> View | None:
        return next((v for v in self.views if v.key == key), None)

    def all(self) -> list[View]:
        return list(self.views)

    def filtered(self, key: str) -> FilteredView | None:
        return next((f for f in self.filtered_views if f.key == key), None)
