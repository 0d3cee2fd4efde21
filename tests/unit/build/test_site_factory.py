"""
Unit tests for SiteFactory: default sites built end to end on disk.
"""

import asyncio
import os

import pytest

from sitewright import SourceNotFoundError, create_site
from sitewright.build import SiteFactory
from sitewright.config import SiteOptions, SiteOptionsError


@pytest.fixture
def project(tmp_path):
    """Create a small project using layouts, partials, data and assets."""
    src = tmp_path / "src"
    (src / "_includes").mkdir(parents=True)
    (src / "_data").mkdir()
    (src / "blog").mkdir()
    (src / "assets").mkdir()

    (src / "_includes" / "base.html").write_text(
        "<html><title>{{ title }}</title>{% include 'header.html' %}{{ content }}</html>"
    )
    (src / "_includes" / "header.html").write_text("<header>{{ colors.primary }}</header>")
    (src / "_data" / "colors.yml").write_text("primary: red\n")
    (src / "index.html").write_text(
        "---\ntitle: Home\nlayout: base.html\n---\n"
        "<a href=\"{{ '~/blog/post.html' | url }}\">post</a>"
    )
    (src / "blog" / "post.html").write_text("---\ntitle: Post\nlayout: base.html\n---\n<p>Post</p>")
    (src / "style.css").write_text("body { color: red }")
    (src / "assets" / "logo.png").write_bytes(b"\x89PNG")
    return tmp_path


@pytest.fixture
def site(project):
    options = SiteOptions(cwd=project, src="src", dest="out", quiet=True)
    return SiteFactory.create_site(options).copy("assets")


def read(project, path):
    return (project / "out" / path).read_text()


def edit(file, text):
    """Rewrite a file with a modification time clearly after the previous one."""
    stat = file.stat()
    file.write_text(text)
    later = stat.st_mtime_ns + 1_000_000_000
    os.utime(file, ns=(later, later))


class TestCreateSite:
    """Test suite for the default site setup."""

    def test_build(self, site, project):
        result = asyncio.run(site.build())

        assert result.success is True
        assert result.pages == 3
        assert read(project, "index.html") == (
            '<html><title>Home</title><header>red</header><a href="/blog/post/">post</a></html>'
        )
        assert read(project, "blog/post/index.html") == (
            "<html><title>Post</title><header>red</header><p>Post</p></html>"
        )
        assert read(project, "style.css") == "body { color: red }"
        assert (project / "out" / "assets" / "logo.png").read_bytes() == b"\x89PNG"

    def test_url_round_trip(self, site):
        asyncio.run(site.build())

        for page in site.pages:
            assert site.url("~" + page.src.filename) == page.url

    def test_build_clears_old_output(self, site, project):
        stale = project / "out" / "stale.html"
        stale.parent.mkdir()
        stale.write_text("old")

        asyncio.run(site.build())

        assert not stale.exists()

    def test_update_partial(self, site, project):
        """Changing a partial re-renders the pages that include it."""
        asyncio.run(site.build())
        edit(project / "src" / "_includes" / "header.html", "<header>new</header>")

        result = asyncio.run(site.update({"/_includes/header.html"}))

        assert result.success is True
        assert "<header>new</header>" in read(project, "index.html")
        assert "<header>new</header>" in read(project, "blog/post/index.html")

    def test_update_layout(self, site, project):
        asyncio.run(site.build())
        edit(project / "src" / "_includes" / "base.html", "<main>{{ content }}</main>")

        asyncio.run(site.update({"/_includes/base.html"}))

        assert read(project, "blog/post/index.html") == "<main><p>Post</p></main>"

    def test_update_data(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "_data" / "colors.yml").write_text("primary: blue\n")

        asyncio.run(site.update({"/_data/colors.yml"}))

        assert "<header>blue</header>" in read(project, "index.html")

    def test_update_page(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "blog" / "post.html").write_text("---\ntitle: Post\n---\nv2")

        asyncio.run(site.update({"/blog/post.html"}))

        assert read(project, "blog/post/index.html") == "v2"

    def test_update_page_with_dot_segments(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "blog" / "post.html").write_text("---\ntitle: Post\n---\nv2")

        asyncio.run(site.update({"./blog//post.html"}))

        assert read(project, "blog/post/index.html") == "v2"

    def test_update_new_page(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "about.html").write_text("About")

        result = asyncio.run(site.update({"/about.html"}))

        assert result.pages == 4
        assert read(project, "about/index.html") == "About"

    def test_update_static_file(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "assets" / "logo.png").write_bytes(b"new")

        asyncio.run(site.update({"/assets/logo.png"}))

        assert (project / "out" / "assets" / "logo.png").read_bytes() == b"new"
        assert len(site.pages) == 3

    def test_update_static_file_relative_path(self, site, project):
        asyncio.run(site.build())
        (project / "src" / "assets" / "logo.png").write_bytes(b"new")

        asyncio.run(site.update({"./assets/logo.png"}))

        assert (project / "out" / "assets" / "logo.png").read_bytes() == b"new"

    def test_missing_source_reference(self, site, project):
        (project / "src" / "broken.html").write_text("{{ '~/blog/missing.md' | url }}")

        with pytest.raises(SourceNotFoundError) as exc_info:
            asyncio.run(site.build())
        assert exc_info.value.path == "blog/missing.md"


class TestFromProject:
    """Test suite for projects configured with sitewright.ini."""

    def test_without_config(self, project):
        site = SiteFactory.from_project(project, src="src", dest="out")
        assert site.options.src_path == (project / "src").resolve()
        assert site.source.static_files == []

    def test_with_config(self, project):
        (project / "sitewright.ini").write_text(
            "[site]\nsrc = src\ndest = out\n\n"
            "[copy]\n/assets = /static\n\n"
            "[ignore]\ndrafts\n\n"
            "[scripts]\ndeploy = echo deploying\n"
        )

        site = SiteFactory.from_project(project, dest="public")

        assert site.options.dest_path == (project / "public").resolve()
        assert site.source.static_files == [("/assets", "/static")]
        assert site.source.is_ignored("/drafts/x.html")
        assert site.scripts.scripts == {"deploy": ["echo deploying"]}

    def test_invalid_config(self, project):
        (project / "sitewright.ini").write_text("[site]\nlocation = nowhere\n")
        with pytest.raises(SiteOptionsError):
            SiteFactory.from_project(project)


class TestCreateSiteFunction:
    def test_from_mapping(self, project):
        site = create_site({"cwd": project, "src": "src", "dest": "out", "quiet": True})
        asyncio.run(site.build())
        assert (project / "out" / "index.html").exists()

    def test_unknown_option(self):
        with pytest.raises(SiteOptionsError):
            create_site({"destination": "out"})
