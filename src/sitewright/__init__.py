"""sitewright - static site build orchestrator."""

from .build import BuildResult, Site, SiteFactory, create_site
from .config import SiteOptions
from .events import Event, EventType
from .url_resolver import SourceNotFoundError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Site",
    "SiteFactory",
    "SiteOptions",
    "BuildResult",
    "create_site",
    "Event",
    "EventType",
    "SourceNotFoundError",
]
