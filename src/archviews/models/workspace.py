"""Workspace: one build of a design, its model and its views."""

import logging
from dataclasses import dataclass, field

from .layout import WorkspaceLayout
from .model import Model
from .views import Views

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Workspace:
    """A model build together with the views defined on it."""
    name: str
    model: Model
    description: str = ""
    version: str = ""
    views: Views = field(default_factory=Views)

    def finalize(self) -> None:
        """Finalize the model, then populate every view from it."""
        from ..views.filtered import apply_filters
        from ..views.population import populate_views

        self.model.finalize()
        populate_views(self.model, self.views.all())
        apply_filters(self.views)
        logger.info(f"Workspace {self.name!r} finalized with {len(self.views.views)} views")

    def layout(self) -> WorkspaceLayout:
        """Layout currently held by the views, keyed by view key."""
        from ..layout.reconcile import extract_layout

        return extract_layout(self.views.all())

    def apply_layout(self, layout: WorkspaceLayout) -> None:
        """Apply a layout whose IDs belong to this build."""
        from ..layout.reconcile import apply_layout

        apply_layout(self.views.all(), layout)

    def merge_layout(self, remote: "Workspace") -> dict[str, str]:
        """Carry the layout of another build of the same design onto this one.

        Returns:
            The remote to local ID map used for the transfer
        """
        from ..layout.reconcile import reconcile_layout

        return reconcile_layout(self, remote, remote.layout())
