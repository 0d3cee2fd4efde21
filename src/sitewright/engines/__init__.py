"""Template engine adapters for sitewright."""

from .engine import Engine, Helper, HelperOptions
from .jinja import JinjaEngine

__all__ = [
    "Engine",
    "Helper",
    "HelperOptions",
    "JinjaEngine",
]
