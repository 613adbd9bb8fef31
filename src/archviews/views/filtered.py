"""Filtered views: tag based subsets of populated static views."""

import logging

from ..models.views import FilteredView, FilterMode, View, ViewKind, Views
from .population import ViewError

logger = logging.getLogger(__name__)

STATIC_VIEW_KINDS = frozenset({
    ViewKind.SYSTEM_LANDSCAPE,
    ViewKind.SYSTEM_CONTEXT,
    ViewKind.CONTAINER,
    ViewKind.COMPONENT,
})


def apply_filter(filtered: FilteredView, base: View) -> FilteredView:
    """Fill a filtered view from its populated base view.

    In include mode only elements carrying one of the tags are kept; in
    exclude mode those elements, and relationships carrying one of the tags,
    are dropped. Relationships are kept only when both endpoints are kept.
    """
    if base.kind not in STATIC_VIEW_KINDS:
        raise ViewError(f"filtered view {filtered.key!r} must be based on a static view, "
                        f"{base.key!r} is a {base.kind.value} view")

    def matches(item) -> bool:
        return any(item.has_tag(tag) for tag in filtered.tags)

    if filtered.mode == FilterMode.INCLUDE:
        element_views = [ev for ev in base.element_views if matches(ev.element)]
    else:
        element_views = [ev for ev in base.element_views if not matches(ev.element)]

    kept = {id(ev.element) for ev in element_views}
    relationship_views = [
        rv for rv in base.relationship_views
        if id(rv.relationship.source) in kept and id(rv.relationship.destination) in kept
        and not (filtered.mode == FilterMode.EXCLUDE and matches(rv.relationship))
    ]

    filtered.element_views = element_views
    filtered.relationship_views = relationship_views
    return filtered


def apply_filters(views: Views) -> None:
    """Fill every filtered view of a workspace from its base view."""
    for filtered in views.filtered_views:
        base = views.get(filtered.base_key)
        if base is None:
            raise ViewError(f"filtered view {filtered.key!r} refers to unknown view {filtered.base_key!r}")
        apply_filter(filtered, base)
        logger.debug(
            f"Filtered view {filtered.key}: kept {len(filtered.element_views)} "
            f"of {len(base.element_views)} elements"
        )
