"""
Site factory for sitewright.

This module creates sites with the default loaders, engine and helpers, and
applies the registrations declared in a project's sitewright.ini.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

from ..config import SiteConfigFile, SiteOptions
from ..engines import JinjaEngine
from .loaders import front_matter_loader, json_loader, text_loader, yaml_loader
from .orchestrator import Site

DATA_EXTENSIONS = [".json"]
YAML_EXTENSIONS = [".yml", ".yaml"]
PAGE_EXTENSIONS = [".html", ".j2", ".jinja"]
ASSET_EXTENSIONS = [".css", ".js", ".svg", ".txt", ".xml"]


class SiteFactory:
    """
    Creates fully wired sites.

    Example usage:
        site = SiteFactory.create_site(SiteOptions.from_overrides({"src": "pages"}))
        site = SiteFactory.from_project(Path("my-site"), dest="public")
    """

    @staticmethod
    def create_site(options: Optional[SiteOptions] = None) -> Site:
        """
        Create a site with the default setup.

        Registers:
        - JSON and YAML data loaders
        - HTML/Jinja pages (YAML front matter) rendered with Jinja2
        - Plain text assets (css, js, svg, txt, xml)
        - The ``url`` filter, resolving paths through the site

        Args:
            options: Site options (defaults if omitted)

        Returns:
            Configured Site instance
        """
        site = Site(options)
        engine = JinjaEngine(site.renderer.includes_dir)

        site.load_data(DATA_EXTENSIONS, json_loader)
        site.load_data(YAML_EXTENSIONS, yaml_loader)
        site.load_pages(PAGE_EXTENSIONS, front_matter_loader, engine)
        site.load_assets(ASSET_EXTENSIONS, text_loader)
        site.filter("url", site.url)
        return site

    @staticmethod
    def from_project(project_dir: Path, **overrides: Any) -> Site:
        """
        Create a site for a project directory.

        Reads ``sitewright.ini`` if the project has one; ``overrides`` (e.g.
        from the command line) win over the file.

        Args:
            project_dir: Project root
            **overrides: Option overrides

        Returns:
            Configured Site instance with static files, ignored paths and
            scripts from the config file registered
        """
        project_dir = Path(project_dir).resolve()
        config = SiteConfigFile.find(project_dir)

        if config is None:
            options = SiteOptions.from_overrides({**overrides, "cwd": project_dir})
            return SiteFactory.create_site(options)

        site = SiteFactory.create_site(config.get_options(project_dir, **overrides))
        for from_, to in config.get_static_files():
            site.copy(from_, to)
        site.ignore(*config.get_ignored_paths())
        for name, commands in config.get_scripts().items():
            site.script(name, *commands)
        return site


def create_site(options: Optional[Mapping[str, Any]] = None) -> Site:
    """Create a default site from a mapping of option overrides."""
    return SiteFactory.create_site(SiteOptions.from_overrides(options))
