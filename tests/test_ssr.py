"""Unit tests for loading render bundles and injecting rendered markup."""

from __future__ import annotations

import json
from pathlib import Path
from textwrap import dedent

import pytest
from bs4 import BeautifulSoup

from dory_site._constants import NOSCRIPT_REQUIRED
from dory_site.generator.emitter import route_file
from dory_site.generator.ssr import (
    RenderBundleError,
    call_render,
    inject_rendered_markup,
    load_render_function,
    render_routes,
)

TEMPLATE = (
    "<html><head><title>x</title></head><body>"
    f'<div id="app"></div>{NOSCRIPT_REQUIRED}</body></html>'
)

METADATA = [
    {"title": "Intro", "path": "/intro"},
    {"title": "Setup", "path": "/guide/setup"},
    {"title": "Broken", "path": "/broken"},
]


def _write_routes(output_dir: Path, routes: list[str]) -> None:
    for route in routes:
        target = output_dir / route_file(route)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(TEMPLATE, encoding="utf-8")


def test_inject_rendered_markup_fills_mount_point() -> None:
    html = inject_rendered_markup(TEMPLATE, "<h1>Intro</h1>", "/intro", METADATA[:1])
    soup = BeautifulSoup(html, "html.parser")

    app = soup.find("div", id="app")
    assert app is not None
    assert app.h1 is not None
    assert app.h1.string == "Intro"
    assert soup.noscript is not None
    assert "enhances" in (soup.noscript.string or "")
    script = soup.head.find("script") if soup.head else None
    assert script is not None
    assert "window.__DORY_FRONTMATTER__=" in (script.string or "")
    assert 'window.__DORY_ROUTE__="/intro"' in (script.string or "")


def test_inline_metadata_cannot_close_the_script() -> None:
    metadata = [{"title": "</script><script>alert(1)</script>", "path": "/x"}]
    html = inject_rendered_markup(TEMPLATE, "<p>x</p>", "/x", metadata)
    assert "</script><script>alert(1)" not in html
    payload = html.split("window.__DORY_FRONTMATTER__=", 1)[1].split(";window", 1)[0]
    assert json.loads(payload.replace("<\\/", "</")) == metadata


def test_render_routes_counts_failures_and_renders_root(tmp_path: Path) -> None:
    _write_routes(tmp_path, ["/", "/intro", "/guide/setup", "/broken"])
    calls: list[str] = []

    def render(route_path: str, metadata: list[dict[str, str]]) -> str:
        calls.append(route_path)
        if route_path == "/broken":
            raise RuntimeError("component exploded")
        return f"<main>{route_path} of {len(metadata)}</main>"

    report = render_routes(render, tmp_path, METADATA, workers=3)

    assert report.failed == 1
    assert report.failures == ["/broken"]
    assert [route.route_path for route in report.routes] == ["/intro", "/guide/setup", "/"]
    root = report.routes[-1]
    assert "<main>/intro of 3</main>" in root.html
    assert sorted(calls) == sorted(["/intro", "/guide/setup", "/broken", "/intro"])


def test_render_routes_skips_missing_html_and_empty_fragments(tmp_path: Path) -> None:
    _write_routes(tmp_path, ["/", "/intro"])

    def render(route_path: str, _metadata: list[dict[str, str]]) -> str:
        return "" if route_path == "/intro" else "<p/>"

    report = render_routes(render, tmp_path, METADATA)

    assert report.failed == 0
    assert report.rendered == 0


def test_async_render_functions_are_awaited() -> None:
    async def render(route_path: str, _metadata: list[dict[str, str]]) -> str:
        return f"<p>{route_path}</p>"

    assert call_render(render, "/a", []) == "<p>/a</p>"


def test_load_render_function_missing_bundle(tmp_path: Path) -> None:
    assert load_render_function(tmp_path / "entry_server.py") is None


def test_load_render_function_from_module(tmp_path: Path) -> None:
    bundle = tmp_path / "entry_server.py"
    bundle.write_text(
        dedent(
            """
            def render(route_path, metadata):
                return f"<p>{route_path}</p>"
            """
        ),
        encoding="utf-8",
    )
    render = load_render_function(bundle)
    assert render is not None
    assert call_render(render, "/b", []) == "<p>/b</p>"


@pytest.mark.parametrize(
    "source", ["render = 'not callable'\n", "raise ImportError('missing dependency')\n"]
)
def test_load_render_function_rejects_bad_bundles(tmp_path: Path, source: str) -> None:
    bundle = tmp_path / "entry_server.py"
    bundle.write_text(source, encoding="utf-8")
    with pytest.raises(RenderBundleError):
        load_render_function(bundle)
