"""Configuration modules for sitewright."""

from .ini_parser import CONFIG_FILENAME, SiteConfigFile
from .site_options import MetricsMode, ServerOptions, SiteOptions, SiteOptionsError

__all__ = [
    "CONFIG_FILENAME",
    "SiteConfigFile",
    "SiteOptions",
    "ServerOptions",
    "MetricsMode",
    "SiteOptionsError",
]
