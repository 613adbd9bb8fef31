"""Animation step inference for populated views."""

import logging

from ..models.views import AnimationStep, View

logger = logging.getLogger(__name__)


def build_animation_steps(view: View) -> list[AnimationStep]:
    """Create animation steps numbered from 1, skipping empty reveal directives."""
    steps = [elements for elements in view.animation if elements]
    return [
        AnimationStep(order=index + 1, elements=list(elements))
        for index, elements in enumerate(steps)
    ]


def infer_animation_relationships(view: View) -> None:
    """Attach each relationship of the view to the step that first shows it.

    A relationship belongs to step i when one of its endpoints is revealed
    in step i and the other endpoint is revealed in step i or in an earlier
    step. Each relationship is attached to at most one step, and
    relationships whose endpoints are never both revealed stay unattached.
    """
    for step in view.animation_steps:
        step.relationship_ids = []

    revealed: list[set[int]] = []
    seen: set[int] = set()
    for step in view.animation_steps:
        current = {id(e) for e in step.elements}
        seen = seen | current
        revealed.append(seen)

    for rv in view.relationship_views:
        source = id(rv.relationship.source)
        destination = id(rv.relationship.destination)
        for index, step in enumerate(view.animation_steps):
            current = {id(e) for e in step.elements}
            shown = revealed[index]
            if (source in current and destination in shown) or \
                    (destination in current and source in shown):
                step.relationship_ids.append(rv.relationship.id)
                logger.debug(
                    f"View {view.key}: relationship {rv.relationship} revealed in step {step.order}"
                )
                break
