"""View population for archviews.

Computes the elements and relationships of each view from its directives,
infers animation step relationships and fills filtered views.
"""

from .animation import infer_animation_relationships
from .filtered import apply_filter, apply_filters
from .population import ViewError, ViewPopulator, populate_views

__all__ = [
    "ViewPopulator",
    "ViewError",
    "populate_views",
    "infer_animation_relationships",
    "apply_filter",
    "apply_filters",
]
