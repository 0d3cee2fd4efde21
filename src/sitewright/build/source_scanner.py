"""
Source directory scanning and loading.

This module handles:
- Scanning the source directory for pages and data files
- Loading single entries again when they change
- Tracking static mappings (copied, never loaded) and ignored paths
- Caching loader results per file

Conventions:
- ``_data.<ext>`` files and ``_data/`` directories hold data for the
  directory they live in (and, through inheritance, its subdirectories)
- Other entries starting with ``_`` or ``.`` are includes, partials or hidden
  files, never loaded as pages
- Paths are site-relative, ``/``-separated and start with ``/``
"""

import asyncio
import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from ..page import Page
from .loaders import Loader

DATA_PATTERN = re.compile(r"/_data(?:\.\w+$|/)")
HIDDEN_PREFIXES = ("_", ".")


class SourceError(Exception):
    """Raised when the source directory cannot be scanned."""

    pass


def normalize_path(path: str) -> str:
    """Turn a path into a ``/``-rooted, ``/``-separated site path.

    ``.``, ``..`` and repeated separators are collapsed. A trailing ``/`` is kept.
    """
    path = path.replace("\\", "/")
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    if path.endswith("/") and normalized != "/":
        normalized += "/"
    return normalized


class SiteSource:
    """
    Loads pages and data from the source directory.

    Example usage:
        source = SiteSource(Path("src"))
        source.add_page_loader([".html"], text_loader)
        source.add_data_loader([".yml"], yaml_loader)
        source.add_static_file("/assets", "/assets")
        await source.load_directory()
        for page in source.pages:
            print(page.src.filename)
    """

    def __init__(self, root: Path):
        """
        Initialize the source.

        Args:
            root: Absolute path of the source directory
        """
        self.root = Path(root)
        self.pages: List[Page] = []
        self.data: Dict[str, Dict[str, Any]] = {}
        self.static_files: List[Tuple[str, str]] = []
        self.ignored: List[str] = []
        self.page_loaders: Dict[str, Tuple[Loader, bool]] = {}
        self.data_loaders: Dict[str, Loader] = {}
        self._cache: Dict[Tuple[Path, Hashable], Any] = {}

    def add_page_loader(self, extensions: Sequence[str], loader: Loader, is_asset: bool) -> None:
        for ext in extensions:
            self.page_loaders[ext] = (loader, is_asset)

    def add_data_loader(self, extensions: Sequence[str], loader: Loader) -> None:
        for ext in extensions:
            self.data_loaders[ext] = loader

    def add_static_file(self, from_: str, to: str) -> None:
        self.static_files.append((from_, to))

    def add_ignored_path(self, path: str) -> None:
        if path not in self.ignored:
            self.ignored.append(path)

    def is_static(self, path: str) -> Optional[Tuple[str, str]]:
        """Return the first static mapping whose source prefix matches path."""
        for from_, to in self.static_files:
            if path.startswith(from_):
                return from_, to
        return None

    def is_ignored(self, path: str) -> bool:
        for ignored in self.ignored:
            if path == ignored or path.startswith(ignored.rstrip("/") + "/"):
                return True
        return False

    def directory_data(self, page: Page) -> Dict[str, Any]:
        """
        Merge the data of every directory containing a page, root first.

        Args:
            page: Page whose ancestors' data to merge

        Returns:
            New dictionary; deeper directories override shallower ones
        """
        merged: Dict[str, Any] = {}
        directory = posixpath.dirname(page.src.path) or "/"
        ancestors = []
        while True:
            ancestors.append(directory)
            if directory == "/":
                break
            directory = posixpath.dirname(directory)

        for directory in reversed(ancestors):
            merged.update(self.data.get(directory, {}))
        return merged

    async def load(self, path: Path, loader: Loader) -> Any:
        """
        Load a file with a loader, caching the result.

        Args:
            path: Absolute file path
            loader: Loader function

        Returns:
            Whatever the loader returned
        """
        key = (Path(path), loader)
        if key not in self._cache:
            self._cache[key] = await asyncio.to_thread(loader, Path(path))
        return self._cache[key]

    def invalidate(self, path: Path) -> None:
        """Drop cached loader results for a file or everything below a directory."""
        path = Path(path)
        for key in list(self._cache):
            cached = key[0]
            if cached == path or path in cached.parents:
                del self._cache[key]

    async def load_directory(self) -> None:
        """
        Scan the whole source directory, replacing pages and data.

        Raises:
            SourceError: If the source directory does not exist
        """
        if not self.root.is_dir():
            raise SourceError(f"Source directory not found: {self.root}")

        self.pages = []
        self.data = {}
        self._cache.clear()
        await self._load_directory(self.root, "/")
        logging.info(f"Loaded {len(self.pages)} pages from {self.root}")

    async def load_file(self, path: str) -> None:
        """
        Load a single entry again after it changed.

        A data entry reloads its directory's data. A page file replaces the
        page with the same source path, or removes it if the file is gone. A
        directory is scanned as a whole.

        Args:
            path: Site-relative path of the changed entry
        """
        path = normalize_path(path)
        if self.is_ignored(path):
            return

        file = self.root / path.lstrip("/")
        self.invalidate(file)

        match = DATA_PATTERN.search(path)
        if match:
            directory = path[: match.start()] or "/"
            await self._reload_directory_data(directory)
            logging.debug(f"Reloaded data of {directory}")
            return

        prefix = path.rstrip("/") + "/"
        self.pages = [
            page for page in self.pages
            if page.src.filename != path and not page.src.filename.startswith(prefix)
        ]

        if not file.exists():
            logging.debug(f"Removed {path}")
            return

        if file.is_dir():
            await self._load_directory(file, path)
        else:
            page = await self._load_page(file, path)
            if page:
                self.pages.append(page)
        logging.debug(f"Reloaded {path}")

    async def _load_directory(self, directory: Path, path: str) -> None:
        for entry in sorted(directory.iterdir()):
            entry_path = posixpath.join(path, entry.name)
            # Static files are copied by the emitter, not loaded
            if self.is_ignored(entry_path) or self.is_static(entry_path):
                continue

            if entry.name == "_data" and entry.is_dir():
                data = self.data.setdefault(path, {})
                data.update(await self._load_data_directory(entry))
            elif entry.name.startswith("_data.") and entry.is_file():
                data = self.data.setdefault(path, {})
                data.update(await self._load_data_file(entry))
            elif entry.name.startswith(HIDDEN_PREFIXES):
                continue
            elif entry.is_dir():
                await self._load_directory(entry, entry_path)
            else:
                page = await self._load_page(entry, entry_path)
                if page:
                    self.pages.append(page)

    async def _load_page(self, file: Path, path: str) -> Optional[Page]:
        ext = self._match_extension(path, self.page_loaders)
        if ext is None:
            return None

        loader, is_asset = self.page_loaders[ext]
        source_data = await self.load(file, loader)
        return Page.from_file(path[: -len(ext)], ext, dict(source_data), is_asset)

    async def _reload_directory_data(self, path: str) -> None:
        directory = self.root / path.lstrip("/")
        data: Dict[str, Any] = {}
        if directory.is_dir():
            for entry in sorted(directory.iterdir()):
                if entry.name == "_data" and entry.is_dir():
                    data.update(await self._load_data_directory(entry))
                elif entry.name.startswith("_data.") and entry.is_file():
                    data.update(await self._load_data_file(entry))
        self.data[path] = data

    async def _load_data_file(self, file: Path) -> Dict[str, Any]:
        ext = self._match_extension(file.name, self.data_loaders)
        if ext is None:
            return {}

        data = await self.load(file, self.data_loaders[ext])
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SourceError(f"Data file {file} must contain a mapping")
        return data

    async def _load_data_directory(self, directory: Path) -> Dict[str, Any]:
        """Load a _data directory as a tree keyed by file stem."""
        data: Dict[str, Any] = {}
        for entry in sorted(directory.iterdir()):
            if entry.name.startswith(HIDDEN_PREFIXES):
                continue
            if entry.is_dir():
                data[entry.name] = await self._load_data_directory(entry)
                continue

            ext = self._match_extension(entry.name, self.data_loaders)
            if ext is not None:
                data[entry.name[: -len(ext)]] = await self.load(entry, self.data_loaders[ext])
        return data

    @staticmethod
    def _match_extension(filename: str, loaders: Dict[str, Any]) -> Optional[str]:
        # Longest match first so ".tmpl.html" wins over ".html"
        for ext in sorted(loaders, key=len, reverse=True):
            if filename.endswith(ext) and len(filename) > len(ext):
                return ext
        return None
