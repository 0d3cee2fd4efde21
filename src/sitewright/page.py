"""Page model shared by the loader, renderer, emitter and URL resolver."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

Content = Union[str, bytes]


@dataclass
class PageSource:
    """Where a page comes from.

    Attributes:
        path: Site-relative path without extension (e.g. ``/blog/post``)
        ext: Extension including the dot (e.g. ``.md``)
    """

    path: str
    ext: str

    @property
    def filename(self) -> str:
        return self.path + self.ext


@dataclass
class PageDest:
    """Where a page is emitted, relative to the destination root."""

    path: str
    ext: str

    @property
    def filename(self) -> str:
        return self.path + self.ext


@dataclass
class Page:
    """
    One unit of source content plus its rendered output and resolved url.

    ``source_data`` is what the loader returned for the file. ``data`` is
    recomposed by the renderer on every render (site data, directory data,
    then ``source_data``) and holds the resolved ``url`` afterwards.
    """

    src: PageSource
    dest: PageDest
    source_data: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    content: Optional[Content] = None
    is_asset: bool = False

    @classmethod
    def from_file(cls, path: str, ext: str, source_data: Dict[str, Any], is_asset: bool = False) -> "Page":
        """Create a page for a loaded file; dest starts out equal to src."""
        return cls(
            src=PageSource(path, ext),
            dest=PageDest(path, ext),
            source_data=source_data,
            data=dict(source_data),
            content=source_data.get("content"),
            is_asset=is_asset,
        )

    @property
    def url(self) -> Optional[str]:
        return self.data.get("url")

    def __repr__(self) -> str:
        return f"Page({self.src.filename!r}, url={self.url!r})"
