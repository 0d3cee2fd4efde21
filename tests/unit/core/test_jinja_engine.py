"""Tests for the Jinja2 engine adapter."""

import asyncio

import pytest

from sitewright.engines import HelperOptions, JinjaEngine


@pytest.fixture
def engine(tmp_path):
    return JinjaEngine(tmp_path)


class TestJinjaEngine:
    def test_render(self, engine):
        result = asyncio.run(engine.render("Hi {{ name }}", {"name": "Ada"}, "/index.html"))
        assert result == "Hi Ada"

    def test_no_autoescape(self, engine):
        result = asyncio.run(engine.render("{{ html }}", {"html": "<b>x</b>"}, "/a.html"))
        assert result == "<b>x</b>"

    def test_template_recompiled_when_content_changes(self, engine):
        asyncio.run(engine.render("one", {}, "/a.html"))
        assert asyncio.run(engine.render("two", {}, "/a.html")) == "two"

    def test_template_cached_per_filename(self, engine):
        asyncio.run(engine.render("one", {}, "/a.html"))
        first = engine._templates["/a.html"][1]
        asyncio.run(engine.render("one", {}, "/a.html"))
        assert engine._templates["/a.html"][1] is first

    def test_filter_helper(self, engine):
        engine.add_helper("shout", lambda value: value.upper(), HelperOptions(type="filter"))
        result = asyncio.run(engine.render("{{ 'hi' | shout }}", {}, "/a.html"))
        assert result == "HI"

    def test_async_filter_helper(self, engine):
        async def later(value):
            await asyncio.sleep(0)
            return value + "!"

        engine.add_helper("later", later, HelperOptions(type="filter", is_async=True))
        result = asyncio.run(engine.render("{{ 'hi' | later }}", {}, "/a.html"))
        assert result == "hi!"

    def test_tag_helper(self, engine):
        engine.add_helper("year", lambda: 2024, HelperOptions(type="tag"))
        result = asyncio.run(engine.render("{{ year() }}", {}, "/a.html"))
        assert result == "2024"

    def test_include(self, engine, tmp_path):
        (tmp_path / "footer.html").write_text("<footer>{{ name }}</footer>")
        result = asyncio.run(engine.render('{% include "footer.html" %}', {"name": "Ada"}, "/a.html"))
        assert result == "<footer>Ada</footer>"
