"""
Source-to-URL resolution.

Content can reference other files by their source location using the ``~/``
marker (``~/blog/post.md``). The resolver binds these references late, to
the url the renderer computed for that page, so authored links don't depend
on the output layout (pretty urls, extension changes).

Resolution rules, in order:
1. Relative (``./``, ``../``), query (``?``), fragment (``#``) and
   protocol-relative (``//``) references are returned unchanged
2. ``~/`` references resolve to a loaded page, then to a static mapping,
   and fail with SourceNotFoundError otherwise
3. Absolute URLs are returned in normalized form
4. Anything else is prefixed with the base path of the site location
"""

import posixpath
import re
from typing import Callable, Iterable, Optional, Tuple
from urllib.parse import unquote, urlsplit, urlunsplit

from .config import SiteOptions
from .page import Page

SOURCE_MARKER = "~/"
PASSTHROUGH_PREFIXES = ("./", "../", "?", "#", "//")

# Single-letter schemes would be Windows drive letters
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]+:")

StaticLookup = Callable[[str], Optional[Tuple[str, str]]]


class SourceNotFoundError(Exception):
    """Raised when a ``~/`` reference matches no page and no static file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Source file not found: {path}")


class UrlResolver:
    """
    Maps source-relative or special-prefixed paths to public URLs.

    Example usage:
        resolver = UrlResolver(options, lambda: site.pages, source.is_static)
        resolver.resolve("~/blog/post.md")          # "/blog/post/"
        resolver.resolve("about/", absolute=True)   # "http://localhost/about/"
    """

    def __init__(
        self,
        options: SiteOptions,
        pages: Callable[[], Iterable[Page]],
        is_static: StaticLookup,
    ):
        """
        Initialize URL resolver.

        Args:
            options: Site options (for the location)
            pages: Returns the currently loaded pages
            is_static: Returns the (from, to) mapping matching a path, or None
        """
        self.options = options
        self.pages = pages
        self.is_static = is_static

    def resolve(self, path: str, absolute: bool = False) -> str:
        """
        Resolve a path to a public URL.

        Args:
            path: Path or URL as written in content
            absolute: Return the origin-qualified URL instead of the path

        Returns:
            Resolved URL

        Raises:
            SourceNotFoundError: If a ``~/`` reference cannot be matched
        """
        if path.startswith(PASSTHROUGH_PREFIXES):
            return path

        if path.startswith(SOURCE_MARKER):
            path = self._resolve_source(path)
        else:
            url = self._normalize_absolute_url(path)
            if url is not None:
                return url

        base = self.options.location_path
        if not path.startswith(base):
            path = base.rstrip("/") + "/" + path.lstrip("/")

        return self.options.location_origin + path if absolute else path

    def _resolve_source(self, path: str) -> str:
        relative = unquote(path[len(SOURCE_MARKER):].replace("\\", "/"))
        filename = "/" + relative.lstrip("/")

        for page in self.pages():
            if page.src.filename == filename and page.url is not None:
                return page.url

        entry = self.is_static(filename)
        if entry:
            from_, to = entry
            rest = filename[len(from_):].lstrip("/")
            return posixpath.normpath(to.rstrip("/") + "/" + rest)

        raise SourceNotFoundError(relative.lstrip("/"))

    @staticmethod
    def _normalize_absolute_url(path: str) -> Optional[str]:
        if not _SCHEME.match(path):
            return None

        try:
            parts = urlsplit(path)
            url_path = parts.path
            if parts.scheme.lower() in ("http", "https") and not url_path:
                url_path = "/"
            return urlunsplit(
                (parts.scheme.lower(), parts.netloc.lower(), url_path, parts.query, parts.fragment)
            )
        except ValueError:
            # Unparseable URLs are treated as plain paths
            return None
