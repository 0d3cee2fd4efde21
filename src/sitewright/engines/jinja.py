"""
Jinja2 template engine.

Templates are compiled once per filename and compiled again when their
content changes (e.g. after an update). Rendering is async so async filters
can be awaited. ``{% include %}`` and ``{% extends %}`` resolve against the
includes directory.
"""

from pathlib import Path
from typing import Any, Dict, Tuple

from jinja2 import Environment, FileSystemLoader, Template

from .engine import Engine, Helper, HelperOptions


class JinjaEngine(Engine):
    """Engine adapter for Jinja2."""

    def __init__(self, includes_dir: Path):
        self.environment = Environment(
            loader=FileSystemLoader(str(includes_dir)),
            enable_async=True,
            autoescape=False,
        )
        self._templates: Dict[str, Tuple[str, Template]] = {}

    async def render(self, content: Any, data: Dict[str, Any], filename: str) -> str:
        source = content if isinstance(content, str) else str(content or "")
        cached = self._templates.get(filename)
        if cached is None or cached[0] != source:
            cached = (source, self.environment.from_string(source))
            self._templates[filename] = cached
        return await cached[1].render_async(data)

    def add_helper(self, name: str, fn: Helper, options: HelperOptions) -> None:
        if options.type == "filter":
            self.environment.filters[name] = fn
        elif options.type == "tag":
            self.environment.globals[name] = fn
