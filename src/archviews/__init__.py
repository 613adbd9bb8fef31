"""archviews - View population and layout reconciliation for architecture models.

archviews takes a C4-style architecture model (people, software systems,
containers, components and deployment nodes), populates named views from
inclusion and exclusion directives, and carries hand-placed diagram layout
across independent rebuilds of the same design.
"""

__version__ = "0.1.0"
__author__ = "archviews contributors"
__description__ = "View population and layout reconciliation for architecture models"

from archviews.config import ArchviewsConfig

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "ArchviewsConfig",
]
