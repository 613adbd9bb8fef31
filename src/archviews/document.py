"""Workspace documents: JSON descriptions of a design and its views.

A document names elements by path ("System", "System/Container",
"System/Container/Component", or "Node/Child/Name[/instance]" inside
deployment views) and is turned into a finalized workspace by
build_workspace. Reference problems are collected into a ValidationResult
instead of aborting the build.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import ArchviewsConfig, create_default_config
from .models.elements import (
    Container,
    ContainerInstance,
    DeploymentNode,
    Element,
    ElementKind,
    InteractionStyle,
    LocationKind,
    Relationship,
    SoftwareSystem,
    split_tags,
)
from .models.layout import VertexLayout, WorkspaceLayout
from .models.model import Model, RelationshipResolutionError
from .models.registry import ModelError
from .models.views import (
    AutoLayout,
    ElementInclude,
    FilteredView,
    FilterMode,
    RankDirection,
    RelationshipLink,
    RoutingKind,
    Vertex,
    View,
    ViewKind,
)
from .models.workspace import Workspace
from .validation.framework import ValidationResult, ValidationStatus
from .views.population import ViewError

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Raised when a workspace document cannot be read or built."""

    def __init__(self, message: str, result: ValidationResult | None = None):
        super().__init__(message)
        self.result = result


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class RelationshipDoc(_Document):
    """Outgoing relationship of an element."""
    destination: str
    description: str = ""
    technology: str = ""
    tags: list[str] = Field(default_factory=list)
    interaction_style: InteractionStyle = Field(alias="interactionStyle",
                                                default=InteractionStyle.UNDEFINED)
    url: str = ""
    properties: dict[str, str] = Field(default_factory=dict)
    id: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, v):
        return split_tags(v) if isinstance(v, str) else v


class ElementDoc(_Document):
    """Fields shared by all named elements."""
    name: str
    description: str = ""
    technology: str = ""
    tags: list[str] = Field(default_factory=list)
    url: str = ""
    properties: dict[str, str] = Field(default_factory=dict)
    id: str | None = None
    uses: list[RelationshipDoc] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, v):
        return split_tags(v) if isinstance(v, str) else v

    def attributes(self) -> dict:
        """Keyword arguments for the model builder."""
        attributes = {
            "technology": self.technology,
            "tags": list(self.tags),
            "url": self.url,
            "properties": dict(self.properties),
        }
        if self.id:
            attributes["id"] = self.id
        return attributes


class PersonDoc(ElementDoc):
    location: LocationKind = LocationKind.UNDEFINED


class ComponentDoc(ElementDoc):
    pass


class ContainerDoc(ElementDoc):
    components: list[ComponentDoc] = Field(default_factory=list)


class SoftwareSystemDoc(ElementDoc):
    location: LocationKind = LocationKind.UNDEFINED
    containers: list[ContainerDoc] = Field(default_factory=list)


class InfrastructureNodeDoc(ElementDoc):
    pass


class ContainerInstanceDoc(_Document):
    """Instance of a container, referenced by its "System/Container" path."""
    container: str
    instance_id: int = Field(alias="instanceId", default=1)
    tags: list[str] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)
    id: str | None = None
    uses: list[RelationshipDoc] = Field(default_factory=list)

    @field_validator("instance_id")
    @classmethod
    def validate_instance_id(cls, v):
        if v < 1:
            raise ValueError("instanceId must be >= 1")
        return v


class DeploymentNodeDoc(ElementDoc):
    environment: str = ""
    instances: int = 1
    children: list["DeploymentNodeDoc"] = Field(default_factory=list)
    infrastructure_nodes: list[InfrastructureNodeDoc] = Field(alias="infrastructureNodes",
                                                              default_factory=list)
    container_instances: list[ContainerInstanceDoc] = Field(alias="containerInstances",
                                                            default_factory=list)


class ModelDoc(_Document):
    people: list[PersonDoc] = Field(default_factory=list)
    software_systems: list[SoftwareSystemDoc] = Field(alias="softwareSystems", default_factory=list)
    deployment_nodes: list[DeploymentNodeDoc] = Field(alias="deploymentNodes", default_factory=list)
    add_implied_relationships: bool | None = Field(alias="addImpliedRelationships", default=None)


class ElementRefDoc(_Document):
    """Element added to a view, with an optional position."""
    element: str
    x: int | None = None
    y: int | None = None
    no_relationship: bool = Field(alias="noRelationship", default=False)


class RelationshipRefDoc(_Document):
    """Relationship referenced from a view by endpoints and description."""
    source: str
    destination: str
    description: str | None = None
    order: str = ""
    vertices: list[VertexLayout] = Field(default_factory=list)
    routing: RoutingKind = RoutingKind.UNDEFINED
    position: int | None = None


class AutoLayoutDoc(_Document):
    rank_direction: RankDirection = Field(alias="rankDirection", default=RankDirection.TOP_BOTTOM)
    rank_separation: int = Field(alias="rankSeparation", default=300)
    node_separation: int = Field(alias="nodeSeparation", default=600)
    edge_separation: int = Field(alias="edgeSeparation", default=200)
    vertices: bool = False


class ViewDoc(_Document):
    key: str
    kind: ViewKind
    title: str = ""
    description: str = ""
    software_system: str | None = Field(alias="softwareSystem", default=None)
    container: str | None = None
    environment: str = ""
    auto_layout: AutoLayoutDoc | None = Field(alias="autoLayout", default=None)
    paper_size: str = Field(alias="paperSize", default="")
    add: list[ElementRefDoc] = Field(default_factory=list)
    add_all: bool = Field(alias="addAll", default=False)
    add_default: bool = Field(alias="addDefault", default=False)
    add_neighbors: list[str] = Field(alias="addNeighbors", default_factory=list)
    add_influencers: bool = Field(alias="addInfluencers", default=False)
    links: list[RelationshipRefDoc] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)
    remove_tagged: list[str] = Field(alias="removeTagged", default_factory=list)
    unlink: list[RelationshipRefDoc] = Field(default_factory=list)
    remove_unreachable: list[str] = Field(alias="removeUnreachable", default_factory=list)
    remove_unrelated: bool = Field(alias="removeUnrelated", default=False)
    animation_steps: list[list[str]] = Field(alias="animationSteps", default_factory=list)

    @field_validator("add", mode="before")
    @classmethod
    def expand_element_names(cls, v):
        return [{"element": item} if isinstance(item, str) else item for item in v]


class FilteredViewDoc(_Document):
    key: str
    base_key: str = Field(alias="baseKey")
    mode: FilterMode = FilterMode.INCLUDE
    tags: list[str] = Field(default_factory=list)
    title: str = ""
    description: str = ""


class WorkspaceDocument(_Document):
    """A complete design: model, views and optionally a saved layout."""
    name: str
    description: str = ""
    version: str = ""
    model: ModelDoc = Field(default_factory=ModelDoc)
    views: list[ViewDoc] = Field(default_factory=list)
    filtered_views: list[FilteredViewDoc] = Field(alias="filteredViews", default_factory=list)
    layout: WorkspaceLayout | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_document(path: str | Path) -> WorkspaceDocument:
    """Read a workspace document from a JSON file.

    Raises:
        DocumentError: If the file is not valid JSON or not a valid document
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return WorkspaceDocument.model_validate(data)
    except OSError as e:
        raise DocumentError(f"Cannot read workspace document {path}: {e}")
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON in workspace document {path}: {e}")
    except ValidationError as e:
        raise DocumentError(f"Invalid workspace document {path}: {e}")


class WorkspaceBuilder:
    """Builds a finalized workspace from a document.

    All elements are registered before any relationship, and the model is
    finalized before views are resolved against it.
    """

    def __init__(self, document: WorkspaceDocument, config: ArchviewsConfig | None = None):
        self.document = document
        self.config = config or create_default_config()
        implied = document.model.add_implied_relationships
        if implied is None:
            implied = self.config.model.add_implied_relationships
        self.model = Model(id_strategy=self.config.model.id_strategy,
                           add_implied_relationships=implied)
        self.result = ValidationResult()
        self._pending: list[tuple[Element, list[RelationshipDoc]]] = []

    def build(self) -> tuple[Workspace, ValidationResult]:
        model_doc = self.document.model
        for person_doc in model_doc.people:
            person = self.model.add_person(person_doc.name, person_doc.description,
                                           location=person_doc.location, **person_doc.attributes())
            self._pending.append((person, person_doc.uses))
        for system_doc in model_doc.software_systems:
            self._add_system(system_doc)
        for node_doc in model_doc.deployment_nodes:
            self._add_deployment_node(node_doc, None)

        for source, uses in self._pending:
            for rel_doc in uses:
                self._add_relationship(source, rel_doc)
        self.model.finalize()

        workspace = Workspace(name=self.document.name, model=self.model,
                              description=self.document.description, version=self.document.version)
        for view_doc in self.document.views:
            view = self._build_view(view_doc)
            if view is not None:
                workspace.views.add(view)
        for filtered_doc in self.document.filtered_views:
            workspace.views.filtered_views.append(FilteredView(
                key=filtered_doc.key,
                base_key=filtered_doc.base_key,
                mode=filtered_doc.mode,
                tags=list(filtered_doc.tags),
                title=filtered_doc.title,
                description=filtered_doc.description,
            ))

        try:
            workspace.finalize()
        except ViewError as e:
            self.result.add_issue("view_population", ValidationStatus.FAIL, str(e))
            return workspace, self.result

        if self.document.layout is not None:
            workspace.apply_layout(self.document.layout)

        self.result.increment_counter("views_built", len(workspace.views.views))
        return workspace, self.result

    # Model

    def _add_system(self, system_doc: SoftwareSystemDoc) -> None:
        system = self.model.add_software_system(system_doc.name, system_doc.description,
                                                location=system_doc.location,
                                                **system_doc.attributes())
        self._pending.append((system, system_doc.uses))
        for container_doc in system_doc.containers:
            container = self.model.add_container(system, container_doc.name,
                                                 container_doc.description,
                                                 **container_doc.attributes())
            self._pending.append((container, container_doc.uses))
            for component_doc in container_doc.components:
                component = self.model.add_component(container, component_doc.name,
                                                     component_doc.description,
                                                     **component_doc.attributes())
                self._pending.append((component, component_doc.uses))

    def _add_deployment_node(self, node_doc: DeploymentNodeDoc, parent: DeploymentNode | None) -> None:
        node = self.model.add_deployment_node(node_doc.name, node_doc.description,
                                              environment=node_doc.environment, parent=parent,
                                              instances=node_doc.instances, **node_doc.attributes())
        self._pending.append((node, node_doc.uses))
        for infra_doc in node_doc.infrastructure_nodes:
            infra = self.model.add_infrastructure_node(node, infra_doc.name, infra_doc.description,
                                                       **infra_doc.attributes())
            self._pending.append((infra, infra_doc.uses))
        for instance_doc in node_doc.container_instances:
            container = self.model.find_element(instance_doc.container)
            if container is None or container.kind != ElementKind.CONTAINER:
                self.result.add_issue(
                    "element_reference",
                    ValidationStatus.FAIL,
                    f"No container {instance_doc.container!r} to deploy",
                    path=node.path
                )
                continue
            attributes = {"tags": list(instance_doc.tags), "properties": dict(instance_doc.properties)}
            if instance_doc.id:
                attributes["id"] = instance_doc.id
            instance = self.model.add_container_instance(node, container, instance_doc.instance_id,
                                                         **attributes)
            self._pending.append((instance, instance_doc.uses))
        for child_doc in node_doc.children:
            self._add_deployment_node(child_doc, node)

    def _add_relationship(self, source: Element, rel_doc: RelationshipDoc) -> None:
        if source.kind in (ElementKind.DEPLOYMENT_NODE, ElementKind.INFRASTRUCTURE_NODE,
                           ElementKind.CONTAINER_INSTANCE):
            destination = self.model.find_deployment_element(rel_doc.destination, source.environment)
        else:
            destination = self.model.find_element(rel_doc.destination, scope=source)
        if destination is None:
            self.result.add_issue(
                "element_reference",
                ValidationStatus.FAIL,
                f"Relationship destination {rel_doc.destination!r} not found",
                path=source.path
            )
            return
        attributes = {
            "technology": rel_doc.technology,
            "tags": list(rel_doc.tags),
            "interaction_style": rel_doc.interaction_style,
            "url": rel_doc.url,
            "properties": dict(rel_doc.properties),
        }
        if rel_doc.id:
            attributes["id"] = rel_doc.id
        self.model.uses(source, destination, rel_doc.description, **attributes)

    # Views

    def _build_view(self, view_doc: ViewDoc) -> View | None:
        view = View(key=view_doc.key, kind=view_doc.kind, title=view_doc.title,
                    description=view_doc.description, environment=view_doc.environment,
                    paper_size=view_doc.paper_size)
        if view_doc.auto_layout is not None:
            view.auto_layout = AutoLayout(**view_doc.auto_layout.model_dump())

        if view_doc.software_system is not None:
            system = self.model.find_element(view_doc.software_system)
            if system is None or system.kind != ElementKind.SOFTWARE_SYSTEM:
                self._unresolved(view, view_doc.software_system, "software system")
                return None
            view.software_system = system
        if view_doc.container is not None:
            container = self.model.find_element(view_doc.container)
            if container is None or container.kind != ElementKind.CONTAINER:
                self._unresolved(view, view_doc.container, "container")
                return None
            view.container = container
            if view.software_system is None:
                view.software_system = container.system

        for ref in view_doc.add:
            element = self._view_element(view, ref.element)
            if element is not None:
                view.includes.append(ElementInclude(element=element, x=ref.x, y=ref.y,
                                                    no_relationship=ref.no_relationship))
        view.add_all = view_doc.add_all
        view.add_default = view_doc.add_default
        view.add_influencers = view_doc.add_influencers
        view.add_neighbors = self._view_elements(view, view_doc.add_neighbors)
        for ref in view_doc.links:
            relationship = self._view_relationship(view, ref)
            if relationship is not None:
                view.links.append(RelationshipLink(
                    relationship=relationship,
                    description=ref.description or "",
                    order=ref.order,
                    vertices=[Vertex(x=v.x, y=v.y) for v in ref.vertices],
                    routing=ref.routing,
                    position=ref.position,
                ))
        view.exclude = self._view_elements(view, view_doc.remove)
        view.exclude_tags = list(view_doc.remove_tagged)
        for ref in view_doc.unlink:
            relationship = self._view_relationship(view, ref)
            if relationship is not None:
                view.unlinks.append(relationship)
        view.remove_unreachable = self._view_elements(view, view_doc.remove_unreachable)
        view.remove_unrelated = view_doc.remove_unrelated
        view.animation = [self._view_elements(view, step) for step in view_doc.animation_steps]
        return view

    def _view_element(self, view: View, path: str) -> Element | None:
        if view.kind == ViewKind.DEPLOYMENT:
            element = self.model.find_deployment_element(path, view.environment or None)
        else:
            element = self.model.find_element(path, scope=view.scope)
        if element is None:
            self._unresolved(view, path, "element")
            return None
        if element.kind not in view.allowed_kinds:
            self.result.add_issue(
                "element_reference",
                ValidationStatus.FAIL,
                f"{element} cannot be shown in a {view.kind.value} view",
                view=view.key,
                path=path
            )
            return None
        return element

    def _view_elements(self, view: View, paths: list[str]) -> list[Element]:
        elements = []
        for path in paths:
            element = self._view_element(view, path)
            if element is not None:
                elements.append(element)
        return elements

    def _view_relationship(self, view: View, ref: RelationshipRefDoc) -> Relationship | None:
        source = self._view_element(view, ref.source)
        destination = self._view_element(view, ref.destination)
        if source is None or destination is None:
            return None
        try:
            return self.model.resolve_relationship(source, destination, ref.description)
        except RelationshipResolutionError as e:
            self.result.add_issue(
                "relationship_reference",
                ValidationStatus.FAIL,
                str(e),
                view=view.key
            )
            return None

    def _unresolved(self, view: View, path: str, what: str) -> None:
        self.result.add_issue(
            "element_reference",
            ValidationStatus.FAIL,
            f"No {what} {path!r}",
            view=view.key,
            path=path
        )


def build_workspace(document: WorkspaceDocument,
                    config: ArchviewsConfig | None = None) -> tuple[Workspace, ValidationResult]:
    """Build and finalize a workspace, collecting reference problems.

    Returns:
        The workspace with populated views and the validation result of the build
    """
    builder = WorkspaceBuilder(document, config)
    try:
        workspace, result = builder.build()
    except ModelError as e:
        raise DocumentError(f"Workspace document {document.name!r} cannot be built: {e}")
    logger.info(
        f"Built workspace {workspace.name!r}: {len(workspace.model.elements())} elements, "
        f"{len(workspace.views.views)} views, status {result.status.value}"
    )
    return workspace, result


def reference(element: Element) -> str:
    """Path used to refer to an element from a document.

    People and software systems get an absolute path so a container or
    component of the same name never shadows them on reload.
    """
    if element.kind == ElementKind.CONTAINER_INSTANCE:
        return f"{element.node.path}/{element.container.name}/{element.instance_id}"
    if element.kind in (ElementKind.PERSON, ElementKind.SOFTWARE_SYSTEM):
        return f"/{element.path}"
    return element.path


def to_document(workspace: Workspace) -> WorkspaceDocument:
    """Snapshot of a workspace carrying IDs and the current layout.

    Implied relationships are written out as regular ones, so the snapshot
    turns implied relationship generation off.
    """
    model = workspace.model

    def uses(element: Element) -> list[RelationshipDoc]:
        return [
            RelationshipDoc(
                destination=reference(r.destination),
                description=r.description,
                technology=r.technology,
                tags=list(r.tags),
                interaction_style=r.interaction_style,
                url=r.url,
                properties=dict(r.properties),
                id=r.id,
            )
            for r in element.relationships
        ]

    def common(element: Element) -> dict:
        return {
            "name": element.name,
            "description": element.description,
            "technology": element.technology,
            "tags": list(element.tags),
            "url": element.url,
            "properties": dict(element.properties),
            "id": element.id,
            "uses": uses(element),
        }

    def container_doc(container: Container) -> ContainerDoc:
        return ContainerDoc(
            **common(container),
            components=[ComponentDoc(**common(c)) for c in container.components],
        )

    def system_doc(system: SoftwareSystem) -> SoftwareSystemDoc:
        return SoftwareSystemDoc(
            **common(system),
            location=system.location,
            containers=[container_doc(c) for c in system.containers],
        )

    def instance_doc(instance: ContainerInstance) -> ContainerInstanceDoc:
        return ContainerInstanceDoc(
            container=instance.container.path,
            instance_id=instance.instance_id,
            tags=list(instance.tags),
            properties=dict(instance.properties),
            id=instance.id,
            uses=uses(instance),
        )

    def node_doc(node: DeploymentNode) -> DeploymentNodeDoc:
        return DeploymentNodeDoc(
            **common(node),
            environment=node.environment,
            instances=node.instances,
            children=[node_doc(c) for c in node.children],
            infrastructure_nodes=[InfrastructureNodeDoc(**common(i)) for i in node.infrastructure_nodes],
            container_instances=[instance_doc(i) for i in node.container_instances],
        )

    def relationship_ref(relationship: Relationship, **layout) -> RelationshipRefDoc:
        return RelationshipRefDoc(
            source=reference(relationship.source),
            destination=reference(relationship.destination),
            description=relationship.description,
            **layout,
        )

    view_docs = []
    for view in workspace.views.all():
        view_docs.append(ViewDoc(
            key=view.key,
            kind=view.kind,
            title=view.title,
            description=view.description,
            software_system=reference(view.software_system)
            if view.software_system is not None and view.container is None else None,
            container=reference(view.container) if view.container is not None else None,
            environment=view.environment,
            auto_layout=AutoLayoutDoc(**vars(view.auto_layout)) if view.auto_layout else None,
            paper_size=view.paper_size,
            add=[
                ElementRefDoc(element=reference(i.element), x=i.x, y=i.y,
                              no_relationship=i.no_relationship)
                for i in view.includes
            ],
            add_all=view.add_all,
            add_default=view.add_default,
            add_neighbors=[reference(e) for e in view.add_neighbors],
            add_influencers=view.add_influencers,
            links=[
                relationship_ref(
                    link.relationship,
                    order=link.order,
                    vertices=[VertexLayout(x=v.x, y=v.y) for v in link.vertices],
                    routing=link.routing,
                    position=link.position,
                )
                for link in view.links
            ],
            remove=[reference(e) for e in view.exclude],
            remove_tagged=list(view.exclude_tags),
            unlink=[relationship_ref(r) for r in view.unlinks],
            remove_unreachable=[reference(e) for e in view.remove_unreachable],
            remove_unrelated=view.remove_unrelated,
            animation_steps=[[reference(e) for e in step] for step in view.animation],
        ))

    return WorkspaceDocument(
        name=workspace.name,
        description=workspace.description,
        version=workspace.version,
        model=ModelDoc(
            people=[
                PersonDoc(**common(p), location=p.location) for p in model.people
            ],
            software_systems=[system_doc(s) for s in model.software_systems],
            deployment_nodes=[node_doc(n) for n in model.deployment_nodes],
            add_implied_relationships=False,
        ),
        views=view_docs,
        filtered_views=[
            FilteredViewDoc(key=f.key, base_key=f.base_key, mode=f.mode, tags=list(f.tags),
                            title=f.title, description=f.description)
            for f in workspace.views.filtered_views
        ],
        layout=workspace.layout(),
    )


def open_workspace(path: str | Path,
                   config: ArchviewsConfig | None = None) -> tuple[Workspace, ValidationResult]:
    """Load and build a workspace, refusing designs with failing references.

    Raises:
        DocumentError: If the document is invalid or the build reports failures
    """
    workspace, result = build_workspace(load_document(path), config)
    if result.failed:
        raise DocumentError(
            f"Workspace document {path} has {len(result.issues)} unresolved problems",
            result=result,
        )
    return workspace, result
