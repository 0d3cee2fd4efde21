"""
sitewright.ini configuration parser.

This module parses the optional ``sitewright.ini`` file found in a project
directory and turns it into site options plus the registrations a site needs
before it can build (static mappings, ignored paths, named scripts).

Example sitewright.ini:
    [site]
    src = pages
    dest = out
    location = https://example.com/blog/
    metrics = metrics.json
    flags = drafts search

    [server]
    port = 8000

    [copy]
    /assets = /static

    [ignore]
    drafts
    README.md

    [scripts]
    deploy = rsync -a out/ host:/var/www
    check =
        echo checking
        test -f out/index.html
"""

import configparser
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .site_options import SiteOptions, SiteOptionsError

CONFIG_FILENAME = "sitewright.ini"

BOOLEAN_KEYS = {"quiet", "dev", "pretty_urls"}
STRING_KEYS = {"src", "dest", "includes", "location"}


class SiteConfigFile:
    """
    Parser for sitewright.ini configuration files.

    Usage:
        config = SiteConfigFile(Path("sitewright.ini"))
        options = config.get_options(cwd=Path("."))
        for from_, to in config.get_static_files():
            site.copy(from_, to)
    """

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a sitewright.ini file.

        Args:
            ini_path: Path to the sitewright.ini file

        Raises:
            SiteOptionsError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise SiteOptionsError(f"Configuration file not found: {ini_path}")

        # No interpolation: script commands may contain shell $VARIABLES
        self.config = configparser.ConfigParser(allow_no_value=True, interpolation=None)
        # Keys are paths in [copy] and [ignore]; keep their case
        self.config.optionxform = str  # type: ignore[assignment, method-assign]

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise SiteOptionsError(f"Failed to parse {ini_path}: {e}") from e

    @classmethod
    def find(cls, project_dir: Path) -> Optional["SiteConfigFile"]:
        """Return the parsed config of a project, or None if it has none."""
        ini_path = project_dir / CONFIG_FILENAME
        if not ini_path.exists():
            return None
        return cls(ini_path)

    def get_overrides(self) -> Dict[str, Any]:
        """
        Get the option overrides declared in [site] and [server].

        Returns:
            Dictionary suitable for SiteOptions.from_overrides()

        Raises:
            SiteOptionsError: If a key is unknown or a value has the wrong type
        """
        overrides: Dict[str, Any] = {}

        if "site" in self.config:
            section = self.config["site"]
            for key in section:
                try:
                    if key in BOOLEAN_KEYS:
                        # A bare key turns the switch on
                        overrides[key] = section[key] is None or section.getboolean(key)
                    elif key in STRING_KEYS:
                        if not section[key]:
                            raise ValueError("a value is required")
                        overrides[key] = section[key].strip()
                    elif key == "flags":
                        overrides[key] = tuple((section[key] or "").split())
                    elif key == "metrics":
                        overrides[key] = self._parse_metrics(section[key])
                    else:
                        raise SiteOptionsError(
                            f"Unknown key '{key}' in [site] section of {self.ini_path}"
                        )
                except ValueError as e:
                    raise SiteOptionsError(
                        f"Invalid value for '{key}' in {self.ini_path}: {e}"
                    ) from e

        if "server" in self.config:
            section = self.config["server"]
            server: Dict[str, Any] = {}
            for key in section:
                try:
                    if key != "open" and not section[key]:
                        raise ValueError("a value is required")
                    if key == "port":
                        server[key] = section.getint(key)
                    elif key == "open":
                        server[key] = section[key] is None or section.getboolean(key)
                    elif key == "page404":
                        server[key] = section[key].strip()
                    else:
                        raise SiteOptionsError(
                            f"Unknown key '{key}' in [server] section of {self.ini_path}"
                        )
                except ValueError as e:
                    raise SiteOptionsError(
                        f"Invalid value for '{key}' in {self.ini_path}: {e}"
                    ) from e
            overrides["server"] = server

        return overrides

    def get_options(self, cwd: Path, **extra: Any) -> SiteOptions:
        """
        Build site options from this file.

        Args:
            cwd: Project directory the file was found in
            **extra: Overrides applied on top of the file (e.g. from the CLI)

        Returns:
            SiteOptions
        """
        overrides = self.get_overrides()
        overrides["cwd"] = cwd
        overrides.update(extra)
        return SiteOptions.from_overrides(overrides)

    def get_static_files(self) -> List[Tuple[str, str]]:
        """
        Get the static mappings from [copy], in file order.

        A key without a value copies to the same path.
        """
        if "copy" not in self.config:
            return []
        return [
            (from_, (to or from_).strip())
            for from_, to in self.config["copy"].items()
        ]

    def get_ignored_paths(self) -> List[str]:
        """Get the paths listed in [ignore]."""
        if "ignore" not in self.config:
            return []
        return list(self.config["ignore"].keys())

    def get_scripts(self) -> Dict[str, List[str]]:
        """
        Get the named scripts from [scripts].

        Multi-line values become several commands run in order.

        Example:
            For check = (newline) echo a (newline) echo b
            Returns: {'check': ['echo a', 'echo b']}
        """
        if "scripts" not in self.config:
            return {}

        scripts = {}
        for name, value in self.config["scripts"].items():
            commands = [line.strip() for line in (value or "").splitlines()]
            scripts[name] = [c for c in commands if c]
        return scripts

    @staticmethod
    def _parse_metrics(value: Optional[str]) -> Any:
        if value is None:
            return True
        lowered = value.strip().lower()
        if lowered in ("", "false", "no", "off", "0"):
            return False
        if lowered in ("true", "yes", "on", "1", "print"):
            return True
        return value.strip()
