"""Unit tests for route prerendering, SEO documents, and the static emitter."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from dory_site.config import SiteConfig
from dory_site.content.models import RenderedRoute
from dory_site.generator import (
    SeoRenderer,
    StaticEmitter,
    encode_json,
    inject_site_metadata,
    prerender_routes,
    route_file,
)

BASE_HTML = """<!doctype html>
<html>
  <head>
    <title>Placeholder</title>
    <meta name="description" content="Placeholder" />
    <meta property="og:title" content="Placeholder" />
    <meta property="og:description" content="Placeholder" />
    <meta property="og:url" content="https://placeholder.test" />
    <meta property="og:site_name" content="Placeholder" />
    <meta property="og:image" content="placeholder.png" />
    <meta name="twitter:title" content="Placeholder" />
    <meta name="twitter:description" content="Placeholder" />
    <meta name="twitter:image" content="placeholder.png" />
    <link rel="canonical" href="https://placeholder.test" />
  </head>
  <body><div id="app"></div></body>
</html>
"""


@pytest.fixture
def site() -> SiteConfig:
    return SiteConfig(
        name="Acme Docs",
        url="https://docs.acme.test",
        description="Everything about Acme",
        image="https://docs.acme.test/og.png",
        navigation_order=["intro", "guide/setup"],
    )


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    assert tag is not None
    return str(tag["content"])


def test_prerender_substitutes_page_metadata(site: SiteConfig) -> None:
    metadata = [
        {"title": "Root", "path": "/"},
        {"title": "Setup & Install", "description": "Get going", "path": "/guide/setup"},
        {"path": "/misc", "robots": "noindex"},
    ]

    routes = prerender_routes(BASE_HTML, metadata, site)

    assert [route.route_path for route in routes] == ["/guide/setup", "/misc"]
    soup = BeautifulSoup(routes[0].html, "html.parser")
    assert soup.title is not None
    assert soup.title.string == "Setup & Install"
    assert _meta(soup, name="description") == "Get going"
    assert _meta(soup, property="og:title") == "Setup & Install"
    assert _meta(soup, property="og:url") == "https://docs.acme.test/guide/setup"
    assert _meta(soup, name="twitter:description") == "Get going"
    canonical = soup.find("link", rel="canonical")
    assert canonical is not None
    assert canonical["href"] == "https://docs.acme.test/guide/setup"
    assert soup.find("meta", attrs={"name": "robots"}) is None

    script = soup.find("script", type="application/ld+json")
    assert script is not None
    graph = json.loads(script.string or "")["@graph"]
    assert graph[0]["@type"] == "Article"
    assert graph[0]["headline"] == "Setup & Install"
    assert graph[1]["itemListElement"][0]["item"] == "https://docs.acme.test"


def test_prerender_defaults_title_and_description(site: SiteConfig) -> None:
    (route,) = prerender_routes(BASE_HTML, [{"path": "/misc", "robots": "noindex"}], site)
    soup = BeautifulSoup(route.html, "html.parser")
    assert soup.title is not None
    assert soup.title.string == "Acme Docs"
    assert _meta(soup, name="description") == "Acme Docs - Acme Docs"
    assert _meta(soup, name="robots") == "noindex"


def test_prerender_leaves_template_without_tags_intact(site: SiteConfig) -> None:
    base = "<html><head></head><body></body></html>"
    (route,) = prerender_routes(base, [{"title": "T", "path": "/t"}], site)
    assert "<title>" not in route.html
    assert 'type="application/ld+json"' in route.html


def test_inject_site_metadata_applies_defaults(site: SiteConfig) -> None:
    soup = BeautifulSoup(inject_site_metadata(BASE_HTML, site), "html.parser")
    assert soup.title is not None
    assert soup.title.string == "Acme Docs"
    assert _meta(soup, name="description") == "Everything about Acme"
    assert _meta(soup, property="og:site_name") == "Acme Docs"
    assert _meta(soup, property="og:image") == "https://docs.acme.test/og.png"
    assert _meta(soup, property="og:url") == "https://docs.acme.test"


def test_sitemap_lists_navigation_entries(site: SiteConfig) -> None:
    xml = SeoRenderer().sitemap(site, lastmod=dt.date(2024, 5, 1))
    soup = BeautifulSoup(xml, "html.parser")
    assert [loc.string for loc in soup.find_all("loc")] == [
        "https://docs.acme.test/intro",
        "https://docs.acme.test/guide/setup",
    ]
    assert {lastmod.string for lastmod in soup.find_all("lastmod")} == {"2024-05-01"}
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')


def test_sitemap_escapes_locations() -> None:
    site = SiteConfig(url="https://x.test", navigation_order=["a&b"])
    assert "https://x.test/a&amp;b" in SeoRenderer().sitemap(site)


def test_robots_references_sitemap_only_with_url(site: SiteConfig) -> None:
    renderer = SeoRenderer()
    assert renderer.robots(site) == (
        "User-agent: *\nAllow: /\n\nSitemap: https://docs.acme.test/sitemap.xml\n"
    )
    assert renderer.robots(SiteConfig()) == "User-agent: *\nAllow: /\n"


@pytest.mark.parametrize(
    ("route", "expected"),
    [("/", "index.html"), ("/intro", "intro/index.html"), ("/guide/", "guide/index.html")],
)
def test_route_file(route: str, expected: str) -> None:
    assert route_file(route) == expected


def test_emitter_writes_routes_and_json(tmp_path: Path) -> None:
    emitter = StaticEmitter(tmp_path / "out")

    route_path = emitter.write_route(RenderedRoute("/guide/setup", "<p>hi</p>"))
    json_path = emitter.write_bytes(
        "search-content.json", encode_json([{"title": "T", "path": "/t"}])
    )
    pretty = emitter.write_bytes("pretty.json", encode_json({"b": 1, "a": 2}, indent=2))

    assert route_path == (tmp_path / "out" / "guide" / "setup" / "index.html").resolve()
    assert route_path.read_text(encoding="utf-8") == "<p>hi</p>"
    assert json_path.read_bytes() == b'[{"title":"T","path":"/t"}]'
    assert pretty.read_text(encoding="utf-8") == '{\n  "b": 1,\n  "a": 2\n}'
    assert emitter.written == [route_path, json_path, pretty]


def test_emitter_is_idempotent(tmp_path: Path) -> None:
    emitter = StaticEmitter(tmp_path)
    first = emitter.write_text("robots.txt", "User-agent: *\n").read_bytes()
    second = emitter.write_text("robots.txt", "User-agent: *\n").read_bytes()
    assert first == second


def test_emitter_rejects_paths_outside_output(tmp_path: Path) -> None:
    emitter = StaticEmitter(tmp_path / "out")
    with pytest.raises(ValueError, match="outside"):
        emitter.write_text("../escape.txt", "nope")
    assert not (tmp_path / "escape.txt").exists()
