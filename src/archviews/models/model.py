"""Architecture model builder and lookups."""

import logging

from ..config import IdStrategy
from .elements import (
    Component,
    Container,
    ContainerInstance,
    DeploymentNode,
    Element,
    ElementKind,
    InfrastructureNode,
    Person,
    Relationship,
    SoftwareSystem,
)
from .registry import ModelError, Registry

logger = logging.getLogger(__name__)


class RelationshipResolutionError(ModelError):
    """Raised when a relationship reference does not match exactly one relationship."""
    pass


class Model:
    """Builder for one build of an architecture model.

    Elements must be added before any relationship referencing them, and the
    model must be finalized before views are populated from it. Finalizing
    freezes the registry: the model is read-only afterwards.
    """

    def __init__(
        self,
        id_strategy: IdStrategy | str = IdStrategy.RANDOM,
        add_implied_relationships: bool = True,
    ):
        self.registry = Registry(id_strategy)
        self.add_implied_relationships = add_implied_relationships
        self.people: list[Person] = []
        self.software_systems: list[SoftwareSystem] = []
        self.deployment_nodes: list[DeploymentNode] = []

    @property
    def finalized(self) -> bool:
        return self.registry.frozen

    def _register(self, element: Element, moniker: str) -> None:
        self.registry.register(element, f"{element.kind.value}:{moniker}")

    def _require(self, element: Element, role: str) -> None:
        if element not in self.registry:
            raise ModelError(f"{role} {element} is not registered in this model")

    def add_person(self, name: str, description: str = "", **attributes) -> Person:
        person = Person(name=name, description=description, **attributes)
        self._register(person, name)
        self.people.append(person)
        return person

    def add_software_system(self, name: str, description: str = "", **attributes) -> SoftwareSystem:
        system = SoftwareSystem(name=name, description=description, **attributes)
        self._register(system, name)
        self.software_systems.append(system)
        return system

    def add_container(self, system: SoftwareSystem, name: str, description: str = "",
                      **attributes) -> Container:
        self._require(system, "software system")
        container = Container(name=name, description=description, system=system, **attributes)
        self._register(container, f"{system.name}/{name}")
        system.containers.append(container)
        return container

    def add_component(self, container: Container, name: str, description: str = "",
                      **attributes) -> Component:
        self._require(container, "container")
        component = Component(name=name, description=description, container=container, **attributes)
        self._register(component, f"{container.path}/{name}")
        container.components.append(component)
        return component

    def add_deployment_node(self, name: str, description: str = "", *, environment: str = "",
                            parent: DeploymentNode | None = None, **attributes) -> DeploymentNode:
        if parent is not None:
            self._require(parent, "deployment node")
            environment = environment or parent.environment
        node = DeploymentNode(name=name, description=description, environment=environment,
                              node=parent, **attributes)
        self._register(node, f"{environment}/{node.path}")
        if parent is None:
            self.deployment_nodes.append(node)
        else:
            parent.children.append(node)
        return node

    def add_infrastructure_node(self, node: DeploymentNode, name: str, description: str = "",
                                **attributes) -> InfrastructureNode:
        self._require(node, "deployment node")
        infra = InfrastructureNode(name=name, description=description,
                                   environment=node.environment, node=node, **attributes)
        self._register(infra, f"{node.environment}/{infra.path}")
        node.infrastructure_nodes.append(infra)
        return infra

    def add_container_instance(self, node: DeploymentNode, container: Container,
                               instance_id: int = 1, **attributes) -> ContainerInstance:
        self._require(node, "deployment node")
        self._require(container, "container")
        instance = ContainerInstance(name=container.name, environment=node.environment, node=node,
                                     container=container, instance_id=instance_id, **attributes)
        self._register(instance, f"{node.environment}/{instance.path}")
        node.container_instances.append(instance)
        return instance

    def uses(self, source: Element, destination: Element, description: str = "",
             **attributes) -> Relationship:
        """Add a relationship between two registered elements."""
        self._require(source, "relationship source")
        self._require(destination, "relationship destination")
        relationship = Relationship(source=source, destination=destination,
                                    description=description, **attributes)
        self.registry.register(
            relationship, f"Relationship:{source.id}->{destination.id}:{description}"
        )
        source.relationships.append(relationship)
        return relationship

    def finalize(self) -> None:
        """Add implied relationships if enabled and freeze the model."""
        if self.finalized:
            return
        if self.add_implied_relationships:
            count = len(self.registry)
            for relationship in self.registry.relationships():
                source = relationship.source
                if source.kind == ElementKind.CONTAINER:
                    self._add_missing(source.system, relationship.destination, relationship)
                elif source.kind == ElementKind.COMPONENT:
                    self._add_missing(source.container, relationship.destination, relationship)
                    self._add_missing(source.system, relationship.destination, relationship)
            logger.debug(f"Added {len(self.registry) - count} implied relationships")
        self.registry.freeze()
        logger.info(
            f"Finalized model with {len(self.elements())} elements "
            f"and {len(self.relationships())} relationships"
        )

    def _add_missing(self, source: Element | None, destination: Element,
                     existing: Relationship) -> None:
        """Replicate a relationship onto a parent and onto the destination's parents."""
        if source is None or source is destination or _is_ancestor(source, destination) \
                or _is_ancestor(destination, source):
            return
        for relationship in source.relationships:
            if relationship.destination is destination \
                    and relationship.description == existing.description:
                return
        self.uses(source, destination, existing.description, technology=existing.technology,
                  tags=list(existing.tags), interaction_style=existing.interaction_style,
                  url=existing.url, properties=dict(existing.properties))
        if destination.kind == ElementKind.CONTAINER:
            self._add_missing(source, destination.system, existing)
        elif destination.kind == ElementKind.COMPONENT:
            self._add_missing(source, destination.container, existing)
            self._add_missing(source, destination.system, existing)

    def element(self, element_id: str) -> Element | None:
        return self.registry.element(element_id)

    def relationship(self, relationship_id: str) -> Relationship | None:
        return self.registry.relationship(relationship_id)

    def elements(self) -> list[Element]:
        return list(self.registry.elements())

    def relationships(self) -> list[Relationship]:
        return list(self.registry.relationships())

    def containers(self) -> list[Container]:
        return [c for s in self.software_systems for c in s.containers]

    def components(self) -> list[Component]:
        return [cm for c in self.containers() for cm in c.components]

    def person(self, name: str) -> Person | None:
        return next((p for p in self.people if p.name == name), None)

    def software_system(self, name: str) -> SoftwareSystem | None:
        return next((s for s in self.software_systems if s.name == name), None)

    def find_element(self, path: str, scope: Element | None = None) -> Element | None:
        """Find a person, system, container or component by name path.

        Paths are "Name", "System/Container" or "System/Container/Component".
        A bare name is first looked up among the children of the scope (the
        containers of a system or the components of a container) and then
        among people and software systems. A leading slash ("/Payments")
        skips the scope and names a top-level person or software system.
        """
        path = path.strip()
        absolute = path.startswith("/")
        parts = [p.strip() for p in path.lstrip("/").split("/")]
        if len(parts) == 1:
            name = parts[0]
            if scope is not None and not absolute:
                children = []
                if scope.kind == ElementKind.SOFTWARE_SYSTEM:
                    children = scope.containers
                elif scope.kind == ElementKind.CONTAINER:
                    children = scope.components + scope.system.containers
                elif scope.kind == ElementKind.COMPONENT:
                    children = scope.container.components + scope.system.containers
                found = next((c for c in children if c.name == name), None)
                if found is not None:
                    return found
            return self.person(name) or self.software_system(name)

        system = self.software_system(parts[0])
        if system is None:
            return None
        container = next((c for c in system.containers if c.name == parts[1]), None)
        if container is None or len(parts) == 2:
            return container
        if len(parts) == 3:
            return next((c for c in container.components if c.name == parts[2]), None)
        return None

    def find_deployment_element(self, path: str, environment: str | None = None) -> Element | None:
        """Find a deployment node, infrastructure node or container instance by path.

        Paths start at a top-level deployment node and name nested nodes
        separated by slashes. The last segment names a child node, an
        infrastructure node or the container of a container instance,
        optionally followed by the instance number ("Node/API/2").
        """
        parts = [p.strip() for p in path.split("/")]
        instance_id = 1
        if len(parts) > 2 and parts[-1].isdigit():
            instance_id = int(parts[-1])
            parts = parts[:-1]

        named = [n for n in self.deployment_nodes if n.name == parts[0]]
        if environment is not None:
            named = [n for n in named if n.environment == environment] \
                or [n for n in named if not n.environment]
        if not named:
            return None
        node = named[0]
        if len(parts) == 1:
            return node
        for name in parts[1:-1]:
            node = next((c for c in node.children if c.name == name), None)
            if node is None:
                return None
        name = parts[-1]
        for child in node.children:
            if child.name == name:
                return child
        for infra in node.infrastructure_nodes:
            if infra.name == name:
                return infra
        for instance in node.container_instances:
            if instance.name == name and instance.instance_id == instance_id:
                return instance
        return None

    def find_relationships(self, source: Element, destination: Element,
                           description: str | None = None) -> list[Relationship]:
        """Relationships from source to destination, optionally with a description."""
        return [
            r for r in source.relationships
            if r.destination is destination
            and (description is None or r.description == description)
        ]

    def resolve_relationship(self, source: Element, destination: Element,
                             description: str | None = None) -> Relationship:
        """Resolve a relationship reference to exactly one relationship.

        Raises:
            RelationshipResolutionError: when no relationship or more than one matches
        """
        matches = self.find_relationships(source, destination, description)
        if len(matches) == 1:
            return matches[0]
        label = f"{source.path} -> {destination.path}"
        if description is not None:
            label += f" ({description!r})"
        if not matches:
            raise RelationshipResolutionError(f"no relationship {label}")
        raise RelationshipResolutionError(
            f"{len(matches)} relationships match {label}, add a description to disambiguate"
        )


def _is_ancestor(ancestor: Element, element: Element) -> bool:
    parent = element.parent
    while parent is not None:
        if parent is ancestor:
            return True
        parent = parent.parent
    return False
