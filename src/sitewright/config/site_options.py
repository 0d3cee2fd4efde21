"""
Site options.

This module defines the immutable options object every site is built from.
Options are produced by overlaying user-supplied values onto documented
defaults; every field and its default is listed on the dataclasses below.

Override rules:
- A user-supplied key replaces the default value
- The ``server`` mapping is merged key by key over the server defaults
- Unknown keys are rejected
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit


class SiteOptionsError(Exception):
    """Exception raised for invalid site options."""

    pass


class MetricsMode(Enum):
    """What to do with the collected metrics once a build finishes."""

    OFF = "off"
    PRINT = "print"
    SAVE = "save"


@dataclass(frozen=True)
class ServerOptions:
    """Development server settings.

    Attributes:
        port: Port the development server listens on
        open: Open a browser once the server starts
        page404: Page served for missing urls
    """

    port: int = 3000
    open: bool = False
    page404: str = "/404.html"


@dataclass(frozen=True)
class SiteOptions:
    """
    Options for a site, frozen after creation.

    Attributes:
        cwd: Working directory all other paths are relative to
        src: Source root, relative to cwd
        dest: Destination root, relative to cwd
        includes: Name of the includes directory (layouts, partials)
        location: Public base URL (origin + base path)
        metrics: False (off), True (print) or a path to save them to
        quiet: Suppress per-file output
        dev: Development mode
        pretty_urls: Emit ``/page/index.html`` instead of ``/page.html``
        flags: Arbitrary string flags available to plugins
        server: Development server settings
    """

    cwd: Path = field(default_factory=Path.cwd)
    src: str = "./"
    dest: str = "./_site"
    includes: str = "_includes"
    location: str = "http://localhost"
    metrics: Union[bool, str] = False
    quiet: bool = False
    dev: bool = False
    pretty_urls: bool = True
    flags: Tuple[str, ...] = ()
    server: ServerOptions = field(default_factory=ServerOptions)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cwd", Path(self.cwd).resolve())
        object.__setattr__(self, "flags", tuple(self.flags))
        self._validate()

    def _validate(self) -> None:
        parsed = urlsplit(self.location)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise SiteOptionsError(
                f"Invalid location '{self.location}': expected an http(s) URL"
            )

        if isinstance(self.metrics, str) and not self.metrics.strip():
            raise SiteOptionsError("Metrics path must not be empty")

        if not isinstance(self.metrics, (bool, str)):
            raise SiteOptionsError(
                f"Invalid metrics value {self.metrics!r}: expected a bool or a path"
            )

        for flag in self.flags:
            if not isinstance(flag, str):
                raise SiteOptionsError(f"Invalid flag {flag!r}: flags must be strings")

        if not 0 < self.server.port < 65536:
            raise SiteOptionsError(f"Invalid server port: {self.server.port}")

        if not self.includes or "/" in self.includes.strip("/"):
            raise SiteOptionsError(
                f"Invalid includes directory '{self.includes}': expected a single name"
            )

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]] = None) -> "SiteOptions":
        """
        Build options from a mapping of user overrides.

        Args:
            overrides: Field names mapped to their values. ``server`` may be a
                mapping, merged over the server defaults.

        Returns:
            SiteOptions with every field not overridden left at its default

        Raises:
            SiteOptionsError: If a key is unknown or a value is invalid
        """
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise SiteOptionsError(f"Unknown site options: {', '.join(sorted(unknown))}")

        server = overrides.pop("server", None)
        if server is not None and not isinstance(server, ServerOptions):
            overrides["server"] = _merge_server(server)
        elif server is not None:
            overrides["server"] = server

        try:
            return cls(**overrides)
        except TypeError as e:
            raise SiteOptionsError(f"Invalid site options: {e}") from e

    def with_overrides(self, **overrides: Any) -> "SiteOptions":
        """Return a copy of these options with some fields replaced."""
        if "server" in overrides and not isinstance(overrides["server"], ServerOptions):
            overrides["server"] = _merge_server(overrides["server"], self.server)
        return replace(self, **overrides)

    @property
    def metrics_mode(self) -> MetricsMode:
        if isinstance(self.metrics, str):
            return MetricsMode.SAVE
        return MetricsMode.PRINT if self.metrics else MetricsMode.OFF

    @property
    def location_origin(self) -> str:
        """Scheme and host of the location, e.g. ``https://example.com``."""
        parsed = urlsplit(self.location)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def location_path(self) -> str:
        """Base path of the location, always starting and ending with ``/``."""
        path = urlsplit(self.location).path or "/"
        if not path.endswith("/"):
            path += "/"
        return path

    @property
    def src_path(self) -> Path:
        return (self.cwd / self.src).resolve()

    @property
    def dest_path(self) -> Path:
        return (self.cwd / self.dest).resolve()


def _merge_server(
    values: Mapping[str, Any], base: Optional[ServerOptions] = None
) -> ServerOptions:
    """Merge a server mapping over the server defaults."""
    base = base or ServerOptions()
    known = {f.name for f in fields(ServerOptions)}
    unknown = set(values) - known
    if unknown:
        raise SiteOptionsError(f"Unknown server options: {', '.join(sorted(unknown))}")

    merged: Dict[str, Any] = {f.name: getattr(base, f.name) for f in fields(ServerOptions)}
    merged.update(values)
    return ServerOptions(**merged)
