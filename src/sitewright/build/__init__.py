"""
Build system components for sitewright.

This module provides the build pipeline including:
- Source scanning and loading
- Page rendering
- Output emission (concurrent saves)
- Incremental update classification
- Build orchestration
"""

from .concurrent import EmissionError, concurrent
from .emitter import EmitterError, SiteEmitter
from .loaders import (
    LoaderError,
    binary_loader,
    front_matter_loader,
    json_loader,
    text_loader,
    yaml_loader,
)
from .orchestrator import BuildResult, Site
from .renderer import RenderError, SiteRenderer
from .site_factory import SiteFactory, create_site
from .source_scanner import SiteSource, SourceError, normalize_path
from .update_classifier import ChangeKind, FileChange, UpdateClassifier

__all__ = [
    "Site",
    "BuildResult",
    "SiteFactory",
    "create_site",
    "SiteSource",
    "SourceError",
    "normalize_path",
    "SiteRenderer",
    "RenderError",
    "SiteEmitter",
    "EmitterError",
    "concurrent",
    "EmissionError",
    "UpdateClassifier",
    "ChangeKind",
    "FileChange",
    "LoaderError",
    "text_loader",
    "binary_loader",
    "json_loader",
    "yaml_loader",
    "front_matter_loader",
]
