"""
Integration test for the sitewright CLI.

Builds a real project configured with sitewright.ini, then updates it and
runs one of its scripts, each through a separate CLI process.
"""

import json
import subprocess
import sys

import pytest


def sitewright(*args, cwd):
    return subprocess.run(
        [sys.executable, "-m", "sitewright.cli", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=120,
    )


@pytest.fixture
def project(tmp_path):
    """Create a project with layouts, data, static files and scripts."""
    (tmp_path / "sitewright.ini").write_text(
        "[site]\n"
        "src = src\n"
        "dest = public\n"
        "location = https://example.com/docs/\n"
        "metrics = metrics.json\n"
        "\n"
        "[copy]\n"
        "/assets = /static\n"
        "\n"
        "[ignore]\n"
        "drafts\n"
        "\n"
        "[scripts]\n"
        "stamp = echo deployed > deployed.txt\n"
    )
    src = tmp_path / "src"
    (src / "_includes").mkdir(parents=True)
    (src / "assets").mkdir()
    (src / "drafts").mkdir()
    (src / "guide").mkdir()

    (src / "_includes" / "base.html").write_text("<h1>{{ title }}</h1>{{ content }}")
    (src / "_data.yml").write_text("title: Docs\n")
    (src / "index.html").write_text(
        "---\nlayout: base.html\n---\n"
        "<a href=\"{{ '~/guide/start.html' | url }}\">start</a>"
        "<img src=\"{{ '~/assets/logo.svg' | url }}\">"
    )
    (src / "guide" / "start.html").write_text("---\ntitle: Start\n---\nStart here")
    (src / "assets" / "logo.svg").write_text("<svg/>")
    (src / "drafts" / "wip.html").write_text("WIP")
    return tmp_path


@pytest.mark.integration
class TestCLIProject:
    """CLI integration test class."""

    def test_help(self, project):
        result = sitewright("--help", cwd=project)
        assert result.returncode == 0
        assert "build" in result.stdout

    def test_build_update_run(self, project):
        result = sitewright("build", cwd=project)
        assert result.returncode == 0, result.stdout + result.stderr

        public = project / "public"
        assert (public / "index.html").read_text() == (
            '<h1>Docs</h1><a href="/docs/guide/start/">start</a>'
            '<img src="/docs/static/logo.svg">'
        )
        assert (public / "guide" / "start" / "index.html").read_text() == "Start here"
        assert (public / "static" / "logo.svg").read_text() == "<svg/>"
        assert not (public / "drafts").exists()

        metrics = json.loads((project / "metrics.json").read_text())
        assert metrics[0]["label"] == "Build (entire site)"

        (project / "src" / "_data.yml").write_text("title: Manual\n")
        result = sitewright("update", ".", "_data.yml", cwd=project)
        assert result.returncode == 0, result.stdout + result.stderr
        assert "data_reload" in result.stdout
        assert (public / "index.html").read_text().startswith("<h1>Manual</h1>")

        result = sitewright("run", ".", "stamp", cwd=project)
        assert result.returncode == 0, result.stdout + result.stderr
        assert (project / "deployed.txt").read_text().strip() == "deployed"

    def test_build_with_invalid_config(self, project):
        (project / "sitewright.ini").write_text("[site]\nlocation = nowhere\n")

        result = sitewright("build", cwd=project)

        assert result.returncode == 1
        assert "Invalid location" in result.stdout
