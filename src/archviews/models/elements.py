"""Element and relationship data models for the architecture graph."""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class ElementKind(str, Enum):
    """Closed set of element kinds in an architecture model."""
    PERSON = "Person"
    SOFTWARE_SYSTEM = "SoftwareSystem"
    CONTAINER = "Container"
    COMPONENT = "Component"
    DEPLOYMENT_NODE = "DeploymentNode"
    INFRASTRUCTURE_NODE = "InfrastructureNode"
    CONTAINER_INSTANCE = "ContainerInstance"


DEPLOYMENT_KINDS = frozenset({
    ElementKind.DEPLOYMENT_NODE,
    ElementKind.INFRASTRUCTURE_NODE,
    ElementKind.CONTAINER_INSTANCE,
})


class LocationKind(str, Enum):
    """Location of a person or software system relative to the enterprise."""
    UNDEFINED = "Undefined"
    INTERNAL = "Internal"
    EXTERNAL = "External"


class InteractionStyle(str, Enum):
    """Interaction style of a relationship."""
    UNDEFINED = "Undefined"
    SYNCHRONOUS = "Synchronous"
    ASYNCHRONOUS = "Asynchronous"


def split_tags(*values: str) -> list[str]:
    """Split comma-joined tag strings into a list of trimmed, non-empty tags."""
    tags = []
    for value in values:
        for tag in value.split(","):
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tags


class Tagged:
    """Mixin for model objects carrying an ordered, duplicate-free tag list."""

    tags: list[str]

    @property
    def tag_string(self) -> str:
        """Tags as the comma-joined string exchanged with external tools."""
        return ",".join(self.tags)

    def has_tag(self, tag: str) -> bool:
        return tag.strip() in self.tags

    def merge_tags(self, *values: str) -> None:
        """Add tags (plain or comma-joined) not already present."""
        for tag in split_tags(*values):
            if tag not in self.tags:
                self.tags.append(tag)


@dataclass(eq=False)
class Element(Tagged):
    """Base class of all architecture elements.

    Elements compare and hash by identity: two builds of the same design
    produce distinct objects even when their names match.
    """
    name: str
    description: str = ""
    technology: str = ""
    tags: list[str] = field(default_factory=list)
    url: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    id: str = ""
    relationships: list["Relationship"] = field(default_factory=list, repr=False)

    kind: ClassVar[ElementKind]
    default_tags: ClassVar[tuple[str, ...]] = ("Element",)

    def __post_init__(self) -> None:
        self.tags = split_tags(*self.default_tags, *self.tags)

    @property
    def parent(self) -> "Element | None":
        """Structural parent of the element, None for top-level elements."""
        return None

    @property
    def path(self) -> str:
        """Slash separated name path from the top-level ancestor."""
        parent = self.parent
        if parent is None:
            return self.name
        return f"{parent.path}/{self.name}"

    def __str__(self) -> str:
        return f"{self.kind.value} {self.path!r}"


@dataclass(eq=False, repr=False)
class Person(Element):
    """A user of the software systems."""
    location: LocationKind = LocationKind.UNDEFINED

    kind = ElementKind.PERSON
    default_tags = ("Element", "Person")


@dataclass(eq=False, repr=False)
class SoftwareSystem(Element):
    """A software system and the containers that make it up."""
    location: LocationKind = LocationKind.UNDEFINED
    containers: list["Container"] = field(default_factory=list)

    kind = ElementKind.SOFTWARE_SYSTEM
    default_tags = ("Element", "Software System")


@dataclass(eq=False, repr=False)
class Container(Element):
    """A container (application, data store) inside a software system."""
    system: SoftwareSystem | None = None
    components: list["Component"] = field(default_factory=list)

    kind = ElementKind.CONTAINER
    default_tags = ("Element", "Container")

    @property
    def parent(self) -> Element | None:
        return self.system


@dataclass(eq=False, repr=False)
class Component(Element):
    """A component inside a container."""
    container: Container | None = None

    kind = ElementKind.COMPONENT
    default_tags = ("Element", "Component")

    @property
    def parent(self) -> Element | None:
        return self.container

    @property
    def system(self) -> SoftwareSystem | None:
        return self.container.system if self.container else None


@dataclass(eq=False, repr=False)
class DeploymentNode(Element):
    """A node of deployment infrastructure, possibly nested in another."""
    environment: str = ""
    instances: int = 1
    node: "DeploymentNode | None" = None
    children: list["DeploymentNode"] = field(default_factory=list)
    infrastructure_nodes: list["InfrastructureNode"] = field(default_factory=list)
    container_instances: list["ContainerInstance"] = field(default_factory=list)

    kind = ElementKind.DEPLOYMENT_NODE
    default_tags = ("Element", "Deployment Node")

    @property
    def parent(self) -> Element | None:
        return self.node

    def root(self) -> "DeploymentNode":
        """Top-level deployment node of the subtree holding this node."""
        current = self
        while current.node is not None:
            current = current.node
        return current

    def walk(self):
        """Yield this node and all nested deployment elements, depth first."""
        yield self
        for infra in self.infrastructure_nodes:
            yield infra
        for instance in self.container_instances:
            yield instance
        for child in self.children:
            yield from child.walk()


@dataclass(eq=False, repr=False)
class InfrastructureNode(Element):
    """Infrastructure (load balancer, firewall, DNS) hosted by a deployment node."""
    environment: str = ""
    node: DeploymentNode | None = None

    kind = ElementKind.INFRASTRUCTURE_NODE
    default_tags = ("Element", "Infrastructure Node")

    @property
    def parent(self) -> Element | None:
        return self.node


@dataclass(eq=False, repr=False)
class ContainerInstance(Element):
    """An instance of a container deployed on a deployment node."""
    environment: str = ""
    node: DeploymentNode | None = None
    container: Container | None = None
    instance_id: int = 1

    kind = ElementKind.CONTAINER_INSTANCE
    default_tags = ("Container Instance",)

    @property
    def parent(self) -> Element | None:
        return self.node

    @property
    def path(self) -> str:
        base = self.node.path if self.node else ""
        container = self.container.path if self.container else self.name
        return f"{base}/{container}#{self.instance_id}"


@dataclass(eq=False)
class Relationship(Tagged):
    """A directed relationship between two elements.

    Several relationships may connect the same pair of elements; only the
    description tells them apart.
    """
    source: Element
    destination: Element
    description: str = ""
    technology: str = ""
    tags: list[str] = field(default_factory=list)
    interaction_style: InteractionStyle = InteractionStyle.UNDEFINED
    url: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    id: str = ""

    def __post_init__(self) -> None:
        defaults = ["Relationship"]
        if self.interaction_style == InteractionStyle.ASYNCHRONOUS:
            defaults.append("Asynchronous")
        self.tags = split_tags(*defaults, *self.tags)

    def connects(self, element: Element) -> bool:
        """Whether the element is either endpoint."""
        return self.source is element or self.destination is element

    def other_end(self, element: Element) -> Element:
        return self.destination if self.source is element else self.source

    def __repr__(self) -> str:
        return (
            f"Relationship(id={self.id!r}, source={self.source.name!r}, "
            f"destination={self.destination.name!r}, description={self.description!r})"
        )

    def __str__(self) -> str:
        return f"{self.source.path} -> {self.destination.path} ({self.description!r})"
