"""
Build orchestration for sitewright sites.

This module coordinates full builds and incremental updates. The Site owns
its collaborators (source, renderer, emitter, script runner, metrics) and
its event bus, and only talks to them through their public methods.

Full build:
    beforeBuild -> clear -> copy static -> load all -> render all
    -> beforeSave -> save all (concurrent) -> afterBuild -> metrics

Update:
    beforeUpdate -> classify and act per file -> render all
    -> beforeSave -> save all (concurrent) -> afterUpdate

A listener returning False on a ``before*`` event halts the run; the result
reports which event was vetoed. Exceptions from listeners or collaborators
are never caught here: they abort the run and reach the caller.
"""

import logging
import posixpath
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ..config import MetricsMode, SiteOptions
from ..engines import Engine, Helper, HelperOptions
from ..events import Event, EventBus, EventType, Listener
from ..metrics import PerformanceMetrics
from ..page import Content, Page
from ..scripts import Command, CommandOptions, ScriptRunner
from ..url_resolver import UrlResolver
from .concurrent import concurrent
from .emitter import SiteEmitter
from .loaders import Loader, binary_loader, text_loader
from .renderer import Processor, SiteRenderer
from .source_scanner import SiteSource
from .update_classifier import ChangeKind, FileChange, UpdateClassifier

Plugin = Callable[["Site"], Any]


@dataclass
class BuildResult:
    """Result of a build or an update.

    Attributes:
        success: False if a ``before*`` listener halted the run
        pages: Number of pages in the collection at the end of the run
        build_time: Elapsed seconds
        message: Human readable summary
        vetoed_by: Event whose listener returned False, if any
        changes: Classified files (updates only)
    """

    success: bool
    pages: int
    build_time: float
    message: str
    vetoed_by: Optional[EventType] = None
    changes: List[FileChange] = field(default_factory=list)


class Site:
    """
    A site: its options, collaborators, listeners and pages.

    Example usage:
        site = Site(SiteOptions.from_overrides({"src": "pages", "dest": "out"}))
        site.copy("assets")
        site.load_pages([".html"], engine=JinjaEngine(site.src("_includes")))
        result = asyncio.run(site.build())
        result = asyncio.run(site.update({"/index.html"}))
    """

    def __init__(self, options: Optional[SiteOptions] = None):
        """
        Initialize a site.

        Args:
            options: Site options (defaults for every field if omitted)
        """
        self.options = options or SiteOptions()
        self.source = SiteSource(self.options.src_path)
        self.scripts = ScriptRunner(self.options.cwd, quiet=self.options.quiet)
        self.metrics = PerformanceMetrics()
        self.renderer = SiteRenderer(self.options, self.source)
        self.emitter = SiteEmitter(self.options)
        self.events = EventBus(self.run)
        self.resolver = UrlResolver(self.options, lambda: self.pages, self.source.is_static)
        self.classifier = UpdateClassifier(self.source)

        # Never load our own output
        dest, src = self.options.dest_path, self.options.src_path
        if dest != src and dest.is_relative_to(src):
            self.ignore(dest.relative_to(src).as_posix())

    @property
    def pages(self) -> List[Page]:
        return self.source.pages

    @property
    def flags(self) -> Tuple[str, ...]:
        return self.options.flags

    def src(self, *path: str) -> Path:
        return self.options.src_path.joinpath(*path)

    def dest(self, *path: str) -> Path:
        return self.options.dest_path.joinpath(*path)

    # Registration

    def use(self, plugin: Plugin) -> "Site":
        plugin(self)
        return self

    def add_event_listener(
        self, type: Union[EventType, str], listener: Union[Listener, str, Callable[[Event], Any]]
    ) -> "Site":
        self.events.register(type, listener)
        return self

    def script(self, name: str, *commands: Command) -> "Site":
        self.scripts.set(name, *commands)
        return self

    def load_data(self, extensions: Sequence[str], loader: Loader) -> "Site":
        self.source.add_data_loader(extensions, loader)
        return self

    def load_pages(
        self,
        extensions: Sequence[str],
        loader: Optional[Loader] = None,
        engine: Optional[Engine] = None,
    ) -> "Site":
        self.source.add_page_loader(extensions, loader or text_loader, is_asset=False)
        if engine:
            self.renderer.add_engine(extensions, engine)
        return self

    def load_assets(self, extensions: Sequence[str], loader: Optional[Loader] = None) -> "Site":
        self.source.add_page_loader(extensions, loader or text_loader, is_asset=True)
        return self

    def preprocess(self, extensions: Sequence[str], fn: Processor) -> "Site":
        self.renderer.add_preprocessor(extensions, fn)
        return self

    def process(self, extensions: Sequence[str], fn: Processor) -> "Site":
        self.renderer.add_processor(extensions, fn)
        return self

    def filter(self, name: str, fn: Helper, is_async: bool = False) -> "Site":
        return self.helper(name, fn, HelperOptions(type="filter", is_async=is_async))

    def helper(self, name: str, fn: Helper, options: HelperOptions) -> "Site":
        self.renderer.add_helper(name, fn, options)
        return self

    def data(self, name: str, value: Any) -> "Site":
        self.renderer.add_data(name, value)
        return self

    def copy(self, from_: str, to: Optional[str] = None) -> "Site":
        """Copy a file or directory verbatim, to the same path unless ``to`` is given."""
        self.source.add_static_file(_site_path(from_), _site_path(to or from_))
        return self

    def ignore(self, *paths: str) -> "Site":
        for path in paths:
            self.source.add_ignored_path(_site_path(path))
        return self

    # Lifecycle

    async def dispatch_event(self, event: Event) -> bool:
        return await self.events.dispatch(event)

    async def run(self, name: Command, options: Optional[CommandOptions] = None) -> bool:
        return await self.scripts.run(name, options)

    async def clear(self) -> None:
        await self.emitter.clear()

    async def build(self) -> BuildResult:
        """
        Build the entire site.

        Returns:
            BuildResult; ``success`` is False if a before* listener vetoed

        Raises:
            Any exception raised by a listener or collaborator
        """
        start_time = time.time()
        build_metric = self.metrics.start("Build (entire site)")
        logging.info(f"Building {self.options.src_path} -> {self.options.dest_path}")

        result = await self._build_phases(start_time)

        build_metric.stop()
        self._flush_metrics()
        return result

    async def _build_phases(self, start_time: float) -> BuildResult:
        if not await self.dispatch_event(Event(EventType.BEFORE_BUILD)):
            return self._vetoed(EventType.BEFORE_BUILD, start_time)

        metric = self.metrics.start("Clear (destination)")
        await self.clear()
        metric.stop()

        metric = self.metrics.start("Copy (all files)")
        for from_, to in self.source.static_files:
            await self.emitter.copy_file(from_, to)
        metric.stop()

        metric = self.metrics.start("Load (all pages)")
        await self.source.load_directory()
        metric.stop()

        metric = self.metrics.start("Preprocess + render + process (all pages)")
        await self.renderer.build_pages(self.pages)
        metric.stop()

        if not await self.dispatch_event(Event(EventType.BEFORE_SAVE)):
            return self._vetoed(EventType.BEFORE_SAVE, start_time)

        metric = self.metrics.start("Save (all pages)")
        await self._save_pages()
        metric.stop()

        vetoed_by = None
        if not await self.dispatch_event(Event(EventType.AFTER_BUILD)):
            vetoed_by = EventType.AFTER_BUILD

        build_time = time.time() - start_time
        logging.info(f"Built {len(self.pages)} pages in {build_time:.2f}s")
        return BuildResult(
            success=True,
            pages=len(self.pages),
            build_time=build_time,
            message="Build successful",
            vetoed_by=vetoed_by,
        )

    async def update(self, files: Iterable[str]) -> BuildResult:
        """
        Rebuild after some source files changed.

        Each file is classified and handled on its own (copied, reloaded or
        skipped); then every page is rendered and saved again, since pages
        can depend on files the classifier cannot see (layouts, data).

        Args:
            files: Changed paths, relative to the source root

        Returns:
            BuildResult listing the classified changes

        Raises:
            Any exception raised by a listener or collaborator
        """
        start_time = time.time()
        changed = frozenset(files)

        if not await self.dispatch_event(Event(EventType.BEFORE_UPDATE, changed)):
            return self._vetoed(EventType.BEFORE_UPDATE, start_time)

        metric = self.metrics.start("Update (changed files)")
        changes = self.classifier.classify_all(changed)
        for change in changes:
            await self._apply_change(change)
        metric.stop()

        metric = self.metrics.start("Preprocess + render + process (all pages)")
        await self.renderer.build_pages(self.pages)
        metric.stop()

        if not await self.dispatch_event(Event(EventType.BEFORE_SAVE)):
            result = self._vetoed(EventType.BEFORE_SAVE, start_time)
            result.changes = changes
            return result

        metric = self.metrics.start("Save (all pages)")
        await self._save_pages()
        metric.stop()

        vetoed_by = None
        if not await self.dispatch_event(Event(EventType.AFTER_UPDATE, changed)):
            vetoed_by = EventType.AFTER_UPDATE

        build_time = time.time() - start_time
        logging.info(f"Updated {len(changes)} file(s) in {build_time:.2f}s")
        return BuildResult(
            success=True,
            pages=len(self.pages),
            build_time=build_time,
            message="Update successful",
            vetoed_by=vetoed_by,
            changes=changes,
        )

    async def _apply_change(self, change: FileChange) -> None:
        logging.debug(f"{change.kind.value}: {change.path}")

        if change.kind is ChangeKind.STATIC:
            await self.emitter.copy_file(change.path, change.static_target or change.path)
        elif change.kind in (ChangeKind.DATA_RELOAD, ChangeKind.GENERIC_RELOAD):
            await self.source.load_file(change.path)
        elif change.kind is ChangeKind.HIDDEN_SKIP:
            # Not loaded, but layouts read through the cache must see the new content
            self.source.invalidate(self.src(change.path.lstrip("/")))

    async def _save_pages(self) -> None:
        await concurrent(self.pages, self.emitter.save_page)

    def _vetoed(self, event_type: EventType, start_time: float) -> BuildResult:
        logging.warning(f"Halted: a {event_type.value} listener returned False")
        return BuildResult(
            success=False,
            pages=len(self.pages),
            build_time=time.time() - start_time,
            message=f"Cancelled by a {event_type.value} listener",
            vetoed_by=event_type,
        )

    def _flush_metrics(self) -> None:
        mode = self.options.metrics_mode
        if mode is MetricsMode.SAVE:
            self.metrics.save(self.options.cwd / str(self.options.metrics))
        elif mode is MetricsMode.PRINT:
            self.metrics.print()

    # Urls and content

    def url(self, path: str, absolute: bool = False) -> str:
        """Resolve a path to a public URL (see UrlResolver)."""
        return self.resolver.resolve(path, absolute)

    async def get_file_content(self, url: str) -> Content:
        """
        Return the content served at a url.

        Looks at loaded pages first, then static mappings, then the raw
        source file.

        Raises:
            FileNotFoundError: If nothing exists at the url
        """
        for page in self.pages:
            if page.url == url and page.content is not None:
                return page.content

        for from_, to in self.source.static_files:
            if url.startswith(to):
                file = self.src(from_.lstrip("/"), url[len(to):].lstrip("/"))
                loaded = await self.source.load(file, binary_loader)
                return loaded["content"]

        loaded = await self.source.load(self.src(url.lstrip("/")), binary_loader)
        return loaded["content"]


def _site_path(path: str) -> str:
    """``assets`` and ``./assets/`` both become ``/assets``."""
    normalized = posixpath.normpath(posixpath.join("/", path.replace("\\", "/")))
    return "/" + normalized.lstrip("/")
