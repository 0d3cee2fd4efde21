"""
Output emitter.

Writes rendered pages and copies static files into the destination
directory. Every operation runs its file I/O in a worker thread so several
saves can be in flight at once. Saves are independent of each other: each
one touches only its own destination file.
"""

import asyncio
import hashlib
import logging
import shutil
from pathlib import Path
from typing import Dict

from ..config import SiteOptions
from ..page import Content, Page


class EmitterError(Exception):
    """Raised when output cannot be written."""

    pass


class SiteEmitter:
    """
    Emits the site into the destination directory.

    Example usage:
        emitter = SiteEmitter(options)
        await emitter.clear()
        await emitter.copy_file("/assets", "/assets")
        await emitter.save_page(page)
    """

    def __init__(self, options: SiteOptions):
        self.options = options
        self._hashes: Dict[Path, str] = {}

    def src(self, path: str) -> Path:
        return self.options.src_path / path.lstrip("/")

    def dest(self, path: str) -> Path:
        return self.options.dest_path / path.lstrip("/")

    async def clear(self) -> None:
        """Remove the destination directory. Does nothing if it doesn't exist."""
        self._hashes.clear()
        dest = self.options.dest_path
        if dest.exists():
            await asyncio.to_thread(shutil.rmtree, dest)
            logging.debug(f"Cleared {dest}")

    async def copy_file(self, from_: str, to: str) -> None:
        """
        Copy a static file or directory tree.

        A directory is merged into an existing destination. If the source no
        longer exists, the stale destination is removed.

        Args:
            from_: Site-relative source path
            to: Destination-relative target path
        """
        source = self.src(from_)
        target = self.dest(to)
        await asyncio.to_thread(self._copy, source, target)
        if not self.options.quiet:
            logging.info(f"Copied {from_} -> {to}")

    async def save_page(self, page: Page) -> None:
        """
        Write a page's content to its destination.

        Pages without content are skipped, and so are pages whose content is
        unchanged since the last save.
        """
        if page.content is None:
            return

        target = self.dest(page.dest.filename)
        digest = _digest(page.content)
        if self._hashes.get(target) == digest and target.exists():
            return

        await asyncio.to_thread(_write, target, page.content)
        self._hashes[target] = digest
        if not self.options.quiet:
            logging.info(f"Saved {page.url} <- {page.src.filename}")

    @staticmethod
    def _copy(source: Path, target: Path) -> None:
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        elif source.is_file():
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        elif target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()


def _digest(content: Content) -> str:
    data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
    return hashlib.sha256(data).hexdigest()


def _write(target: Path, content: Content) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            target.write_text(content, encoding="utf-8")
        else:
            target.write_bytes(content)
    except OSError as e:
        raise EmitterError(f"Failed to write {target}: {e}") from e
