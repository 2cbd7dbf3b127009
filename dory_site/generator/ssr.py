"""Inject server-rendered markup into prerendered route documents.

The rendering runtime is built separately into a Python module (by default
``dist-ssr/entry_server.py``) that exposes ``render(route_path, metadata)``.
The function may be synchronous or a coroutine function and returns an HTML
fragment, or an empty value when it has nothing to render for a route.

Routes render independently on a thread pool. A route whose render raises is
logged, counted, and left as prerendered; the remaining routes continue.

Example
-------
>>> from pathlib import Path
>>> render = load_render_function(Path("dist-ssr/entry_server.py"))  # doctest: +SKIP
>>> report = render_routes(render, Path("dist"), metadata, workers=4)  # doctest: +SKIP
>>> report.rendered, report.failed  # doctest: +SKIP
(12, 0)
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import importlib.util
import inspect
import logging
import typing as typ
from concurrent.futures import ThreadPoolExecutor

import msgspec

from dory_site._constants import APP_MOUNT, NOSCRIPT_ENHANCED, NOSCRIPT_REQUIRED
from dory_site.content.models import RenderedRoute
from dory_site.generator.emitter import route_file

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

RenderFunction = typ.Callable[
    [str, list[dict[str, str]]], "str | None | typ.Awaitable[str | None]"
]


class RenderBundleError(RuntimeError):
    """Raised when a render bundle exists but does not expose ``render``."""


@dc.dataclass(slots=True)
class SsrReport:
    """Rendered routes plus the success and failure counts."""

    routes: list[RenderedRoute] = dc.field(default_factory=list)
    failed: int = 0
    failures: list[str] = dc.field(default_factory=list)

    @property
    def rendered(self) -> int:
        return len(self.routes)


def load_render_function(bundle: Path) -> RenderFunction | None:
    """Import ``bundle`` and return its ``render`` callable.

    Returns
    -------
    RenderFunction or None
        ``None`` when ``bundle`` does not exist, which disables the stage.

    Raises
    ------
    RenderBundleError
        If the module cannot be loaded or has no callable ``render``.
    """
    if not bundle.is_file():
        return None
    spec = importlib.util.spec_from_file_location("dory_ssr_entry", bundle)
    if spec is None or spec.loader is None:
        msg = f"Unable to load render bundle {bundle}"
        raise RenderBundleError(msg)
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:  # noqa: BLE001 - bundle code is arbitrary
        msg = f"Render bundle {bundle} failed to import: {exc}"
        raise RenderBundleError(msg) from exc
    render = getattr(module, "render", None)
    if not callable(render):
        msg = f"Render bundle {bundle} does not define a callable 'render'"
        raise RenderBundleError(msg)
    return typ.cast("RenderFunction", render)


def call_render(
    render: RenderFunction, route_path: str, metadata: list[dict[str, str]]
) -> str:
    """Invoke ``render`` and return its fragment, awaiting coroutines."""
    result = render(route_path, metadata)
    if inspect.isawaitable(result):
        result = asyncio.run(_await(result))
    return result or ""


async def _await(awaitable: typ.Awaitable[str | None]) -> str | None:
    return await awaitable


def _inline_json(value: object) -> str:
    return msgspec.json.encode(value).decode("utf-8").replace("</", "<\\/")


def inject_rendered_markup(
    html: str, fragment: str, route_path: str, metadata: list[dict[str, str]]
) -> str:
    """Splice ``fragment`` into the mount point of ``html``.

    The "JavaScript required" notice becomes an inert note, and the metadata
    array and current route are inlined before ``</head>`` so the client can
    hydrate without fetching them.
    """
    html = html.replace(APP_MOUNT, f'<div id="app">{fragment}</div>', 1)
    bootstrap = (
        f"<script>window.__DORY_FRONTMATTER__={_inline_json(metadata)};"
        f"window.__DORY_ROUTE__={_inline_json(route_path)};</script>\n</head>"
    )
    html = html.replace("</head>", bootstrap, 1)
    return html.replace(NOSCRIPT_REQUIRED, NOSCRIPT_ENHANCED, 1)


def _render_one(
    render: RenderFunction,
    output_dir: Path,
    target_route: str,
    content_route: str,
    metadata: list[dict[str, str]],
) -> RenderedRoute | None:
    html_path = output_dir / route_file(target_route)
    if not html_path.exists():
        return None
    fragment = call_render(render, content_route, metadata)
    if not fragment:
        return None
    html = html_path.read_text(encoding="utf-8")
    return RenderedRoute(
        route_path=target_route,
        html=inject_rendered_markup(html, fragment, content_route, metadata),
    )


def render_routes(
    render: RenderFunction,
    output_dir: Path,
    metadata: list[dict[str, str]],
    *,
    workers: int = 1,
) -> SsrReport:
    """Render every metadata route plus the root document.

    Parameters
    ----------
    render : RenderFunction
        Function returned by :func:`load_render_function`.
    output_dir : Path
        Directory holding the prerendered ``<route>/index.html`` files.
    metadata : list[dict[str, str]]
        Sequenced page metadata; also passed through to ``render``.
    workers : int, optional
        Thread pool size.

    Returns
    -------
    SsrReport
        Rendered routes in metadata order (root last) and failure counts.
        Routes whose HTML file is missing or whose render is empty are
        skipped without counting as failures.
    """
    jobs = [
        (page["path"], page["path"])
        for page in metadata
        if page.get("path") and page["path"] != "/"
    ]
    if metadata and metadata[0].get("path"):
        jobs.append(("/", metadata[0]["path"]))

    report = SsrReport()
    if not jobs:
        return report

    def _job(job: tuple[str, str]) -> RenderedRoute | None:
        return _render_one(render, output_dir, job[0], job[1], metadata)

    pool_size = max(1, min(workers, len(jobs)))
    with ThreadPoolExecutor(max_workers=pool_size) as executor:
        futures = [executor.submit(_job, job) for job in jobs]
        for (target, _content), future in zip(jobs, futures, strict=True):
            try:
                rendered = future.result()
            except Exception as exc:  # noqa: BLE001 - failures are isolated per route
                label = "root" if target == "/" else target
                logger.warning("SSR failed for %s: %s", label, exc)
                report.failed += 1
                report.failures.append(target)
                continue
            if rendered is not None:
                report.routes.append(rendered)
    return report


__all__ = [
    "RenderBundleError",
    "RenderFunction",
    "SsrReport",
    "call_render",
    "inject_rendered_markup",
    "load_render_function",
    "render_routes",
]
