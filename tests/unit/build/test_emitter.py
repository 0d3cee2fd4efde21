"""
Unit tests for the output emitter.
"""

import asyncio
from unittest.mock import patch

import pytest

from sitewright.build.emitter import EmitterError, SiteEmitter
from sitewright.config import SiteOptions
from sitewright.page import Page, PageDest


@pytest.fixture
def options(tmp_path):
    (tmp_path / "src").mkdir()
    return SiteOptions(cwd=tmp_path, src="src", dest="out", quiet=True)


@pytest.fixture
def emitter(options):
    return SiteEmitter(options)


def make_page(dest, content):
    page = Page.from_file("/index", ".html", {"content": content})
    page.dest = PageDest(*dest)
    page.content = content
    return page


class TestClear:
    def test_clear_removes_destination(self, emitter, options):
        (options.dest_path / "old").mkdir(parents=True)
        (options.dest_path / "old" / "page.html").write_text("stale")

        asyncio.run(emitter.clear())

        assert not options.dest_path.exists()

    def test_clear_missing_destination(self, emitter, options):
        asyncio.run(emitter.clear())
        asyncio.run(emitter.clear())
        assert not options.dest_path.exists()


class TestCopyFile:
    def test_copy_directory(self, emitter, options):
        assets = options.src_path / "assets" / "img"
        assets.mkdir(parents=True)
        (assets / "logo.png").write_bytes(b"\x89PNG")

        asyncio.run(emitter.copy_file("/assets", "/static"))

        assert (options.dest_path / "static" / "img" / "logo.png").read_bytes() == b"\x89PNG"

    def test_copy_file(self, emitter, options):
        (options.src_path / "favicon.ico").write_bytes(b"ico")

        asyncio.run(emitter.copy_file("/favicon.ico", "/favicon.ico"))

        assert (options.dest_path / "favicon.ico").read_bytes() == b"ico"

    def test_copy_twice_is_idempotent(self, emitter, options):
        assets = options.src_path / "assets"
        assets.mkdir()
        (assets / "app.css").write_text("body {}")

        asyncio.run(emitter.copy_file("/assets", "/assets"))
        asyncio.run(emitter.copy_file("/assets", "/assets"))

        copied = sorted(p.name for p in (options.dest_path / "assets").iterdir())
        assert copied == ["app.css"]

    def test_removed_source_removes_target(self, emitter, options):
        target = options.dest_path / "assets" / "old.css"
        target.parent.mkdir(parents=True)
        target.write_text("old")

        asyncio.run(emitter.copy_file("/assets/old.css", "/assets/old.css"))

        assert not target.exists()


class TestSavePage:
    def test_save_text(self, emitter, options):
        page = make_page(("/blog/post/index", ".html"), "<p>Hi</p>")

        asyncio.run(emitter.save_page(page))

        assert (options.dest_path / "blog" / "post" / "index.html").read_text() == "<p>Hi</p>"

    def test_save_bytes(self, emitter, options):
        page = make_page(("/logo", ".png"), b"\x89PNG")

        asyncio.run(emitter.save_page(page))

        assert (options.dest_path / "logo.png").read_bytes() == b"\x89PNG"

    def test_page_without_content_skipped(self, emitter, options):
        page = make_page(("/index", ".html"), None)

        asyncio.run(emitter.save_page(page))

        assert not options.dest_path.exists()

    def test_unchanged_page_not_written_again(self, emitter):
        page = make_page(("/index", ".html"), "same")

        with patch("sitewright.build.emitter._write") as write:
            asyncio.run(emitter.save_page(page))
            write.assert_called_once()

        # _write was mocked, so the target does not exist and is written again
        asyncio.run(emitter.save_page(page))
        with patch("sitewright.build.emitter._write") as write:
            asyncio.run(emitter.save_page(page))
            write.assert_not_called()

    def test_changed_page_written(self, emitter, options):
        page = make_page(("/index", ".html"), "one")
        asyncio.run(emitter.save_page(page))
        page.content = "two"
        asyncio.run(emitter.save_page(page))

        assert (options.dest_path / "index.html").read_text() == "two"

    def test_write_error(self, emitter, options):
        options.dest_path.mkdir()
        (options.dest_path / "blog").write_text("a file, not a directory")
        page = make_page(("/blog/post", ".html"), "x")

        with pytest.raises(EmitterError, match="Failed to write"):
            asyncio.run(emitter.save_page(page))

    def test_saved_page_logged(self, tmp_path, caplog):
        (tmp_path / "src").mkdir()
        emitter = SiteEmitter(SiteOptions(cwd=tmp_path, src="src", dest="out"))
        page = make_page(("/index", ".html"), "x")
        page.data["url"] = "/"

        with caplog.at_level("INFO"):
            asyncio.run(emitter.save_page(page))

        assert "Saved / <- /index.html" in caplog.text
