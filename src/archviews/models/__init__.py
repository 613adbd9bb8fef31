"""Architecture model, view and layout data structures for archviews."""

from archviews.models.elements import (
    Component,
    Container,
    ContainerInstance,
    DeploymentNode,
    Element,
    ElementKind,
    InfrastructureNode,
    InteractionStyle,
    LocationKind,
    Person,
    Relationship,
    SoftwareSystem,
)
from archviews.models.layout import ElementLayout, RelationshipLayout, ViewLayout, WorkspaceLayout
from archviews.models.model import Model, RelationshipResolutionError
from archviews.models.registry import ModelError, Registry
from archviews.models.views import FilteredView, RoutingKind, View, ViewKind, Views
from archviews.models.workspace import Workspace

__all__ = [
    "Element",
    "ElementKind",
    "Person",
    "SoftwareSystem",
    "Container",
    "Component",
    "DeploymentNode",
    "InfrastructureNode",
    "ContainerInstance",
    "Relationship",
    "LocationKind",
    "InteractionStyle",
    "Registry",
    "Model",
    "ModelError",
    "RelationshipResolutionError",
    "View",
    "ViewKind",
    "Views",
    "FilteredView",
    "RoutingKind",
    "WorkspaceLayout",
    "ViewLayout",
    "ElementLayout",
    "RelationshipLayout",
    "Workspace",
]
