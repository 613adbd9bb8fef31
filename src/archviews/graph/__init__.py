"""Reachability and pruning queries over a finalized model."""

from .reachability import reachable, related, tagged, unreachable, unrelated

__all__ = [
    "related",
    "reachable",
    "unreachable",
    "unrelated",
    "tagged",
]
