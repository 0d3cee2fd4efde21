"""
Changed-file classification for incremental updates.

Each changed path gets exactly one handling class. The checks run in a fixed
order and the first match wins:
1. STATIC: under a static mapping; copied, never loaded
2. IGNORED: under an ignored path; nothing to do
3. DATA_RELOAD: a ``_data`` file or something inside a ``_data`` directory
4. HIDDEN_SKIP: a path segment starts with ``_`` or ``.`` (includes,
   partials); not loaded, picked up when the pages using it are re-rendered
5. GENERIC_RELOAD: anything else; the single file is loaded again
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .source_scanner import DATA_PATTERN, SiteSource, normalize_path


class ChangeKind(Enum):
    STATIC = "static"
    IGNORED = "ignored"
    DATA_RELOAD = "data_reload"
    HIDDEN_SKIP = "hidden_skip"
    GENERIC_RELOAD = "generic_reload"


@dataclass(frozen=True)
class FileChange:
    """A classified changed file.

    Attributes:
        path: Normalized site-relative path
        kind: Handling class
        mapping: The matching (from, to) static mapping, for STATIC only
    """

    path: str
    kind: ChangeKind
    mapping: Optional[Tuple[str, str]] = None

    @property
    def static_target(self) -> Optional[str]:
        """Destination path of a STATIC change."""
        if self.mapping is None:
            return None
        from_, to = self.mapping
        rest = self.path[len(from_):].lstrip("/")
        return to.rstrip("/") + "/" + rest if rest else to


class UpdateClassifier:
    """Decides how each changed file of an update is handled."""

    def __init__(self, source: SiteSource):
        self.source = source

    def classify(self, path: str) -> FileChange:
        path = normalize_path(path)

        mapping = self.source.is_static(path)
        if mapping:
            return FileChange(path, ChangeKind.STATIC, mapping)

        if self.source.is_ignored(path):
            return FileChange(path, ChangeKind.IGNORED)

        if DATA_PATTERN.search(path):
            return FileChange(path, ChangeKind.DATA_RELOAD)

        if "/_" in path or "/." in path:
            return FileChange(path, ChangeKind.HIDDEN_SKIP)

        return FileChange(path, ChangeKind.GENERIC_RELOAD)

    def classify_all(self, paths: Iterable[str]) -> List[FileChange]:
        """Classify paths, sorted so the result doesn't depend on set order."""
        return [self.classify(path) for path in sorted(paths)]
