"""
Page rendering pipeline.

Rendering runs over the whole page collection in three fixed steps:
1. Preprocess: processors keyed by source extension
2. Render: the engine registered for the source extension, then the chain of
   layouts named by the ``layout`` key, looked up in the includes directory
3. Process: processors keyed by destination extension

Before step 1 every page gets its data recomposed (site data, directory
data, page data) and its destination and url computed, so that url lookups
made while rendering see the final url of every page.
"""

import inspect
import logging
import posixpath
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import SiteOptions
from ..engines import Engine, Helper, HelperOptions
from ..page import Page, PageDest
from .loaders import front_matter_loader
from .source_scanner import SiteSource, normalize_path

Processor = Callable[[Page], Any]


class RenderError(Exception):
    """Raised when a page references a layout that cannot be rendered."""

    pass


class SiteRenderer:
    """
    Renders pages and computes their destinations and urls.

    Example usage:
        renderer = SiteRenderer(options, source)
        renderer.add_engine([".html", ".j2"], JinjaEngine(includes_dir))
        renderer.add_processor([".html"], minify)
        await renderer.build_pages(source.pages)
    """

    def __init__(self, options: SiteOptions, source: SiteSource):
        self.options = options
        self.source = source
        self.engines: Dict[str, Engine] = {}
        self.preprocessors: List[Tuple[Tuple[str, ...], Processor]] = []
        self.processors: List[Tuple[Tuple[str, ...], Processor]] = []
        self.helpers: Dict[str, Tuple[Helper, HelperOptions]] = {}
        self.extra_data: Dict[str, Any] = {}

    @property
    def includes_dir(self) -> Path:
        return self.options.src_path / self.options.includes

    def add_engine(self, extensions: Sequence[str], engine: Engine) -> None:
        for ext in extensions:
            self.engines[ext] = engine
        for name, (fn, options) in self.helpers.items():
            engine.add_helper(name, fn, options)

    def add_preprocessor(self, extensions: Sequence[str], fn: Processor) -> None:
        self.preprocessors.append((tuple(extensions), fn))

    def add_processor(self, extensions: Sequence[str], fn: Processor) -> None:
        self.processors.append((tuple(extensions), fn))

    def add_helper(self, name: str, fn: Helper, options: HelperOptions) -> None:
        self.helpers[name] = (fn, options)
        for engine in self._unique_engines():
            engine.add_helper(name, fn, options)

    def add_data(self, name: str, value: Any) -> None:
        self.extra_data[name] = value

    async def build_pages(self, pages: Sequence[Page]) -> None:
        """
        Preprocess, render and process pages in place.

        Args:
            pages: Pages to render; content, data, dest and url are updated
        """
        for page in pages:
            self._prepare(page)

        for extensions, fn in self.preprocessors:
            for page in pages:
                if page.src.ext in extensions:
                    await _call(fn, page)

        for page in pages:
            if not page.is_asset:
                page.content = await self._render_page(page)

        for extensions, fn in self.processors:
            for page in pages:
                if page.dest.ext in extensions:
                    await _call(fn, page)

    def _prepare(self, page: Page) -> None:
        page.data = {
            **self.extra_data,
            **self.source.directory_data(page),
            **page.source_data,
        }
        page.content = page.source_data.get("content")
        page.dest = self._dest_for(page)
        page.data["url"] = _url_for(page.dest)

    def _dest_for(self, page: Page) -> PageDest:
        explicit = page.data.get("url")
        if isinstance(explicit, str) and explicit:
            url = normalize_path(explicit)
            if url.endswith("/"):
                return PageDest(url + "index", ".html")
            path, ext = posixpath.splitext(url)
            return PageDest(path, ext or ".html")

        if page.is_asset:
            return PageDest(page.src.path, page.src.ext)

        path = page.src.path
        if self.options.pretty_urls and posixpath.basename(path) != "index":
            path += "/index"
        return PageDest(path, ".html")

    async def _render_page(self, page: Page) -> Any:
        content = page.content
        engine = self.engines.get(page.src.ext)
        try:
            if engine:
                content = await engine.render(content, page.data, page.src.filename)
            return await self._render_layouts(page, content)
        except Exception:
            logging.error(f"Failed to render {page.src.filename}")
            raise

    async def _render_layouts(self, page: Page, content: Any) -> Any:
        layout = page.data.get("layout")
        data = page.data
        seen = set()

        while layout:
            if layout in seen:
                raise RenderError(f"Layout loop in {page.src.filename}: '{layout}' used twice")
            seen.add(layout)

            engine = self._engine_for(layout)
            if engine is None:
                raise RenderError(f"No engine registered for layout '{layout}'")

            layout_file = self.includes_dir / layout
            if not layout_file.is_file():
                raise RenderError(f"Layout not found: {layout_file}")

            layout_data = await self.source.load(layout_file, front_matter_loader)
            data = {**layout_data, **data, "content": content}
            content = await engine.render(
                layout_data.get("content", ""),
                data,
                posixpath.join("/", self.options.includes, layout),
            )
            layout = layout_data.get("layout")

        return content

    def _engine_for(self, filename: str) -> Optional[Engine]:
        for ext in sorted(self.engines, key=len, reverse=True):
            if filename.endswith(ext):
                return self.engines[ext]
        return None

    def _unique_engines(self) -> List[Engine]:
        unique: List[Engine] = []
        for engine in self.engines.values():
            if not any(engine is e for e in unique):
                unique.append(engine)
        return unique


def _url_for(dest: PageDest) -> str:
    if dest.filename.endswith("/index.html"):
        return dest.path[: -len("index")]
    return dest.filename


async def _call(fn: Processor, page: Page) -> None:
    result = fn(page)
    if inspect.isawaitable(result):
        await result
