"""Route rendering and artefact emission for dory builds."""

from .emitter import StaticEmitter, encode_json, route_file
from .prerender import inject_site_metadata, prerender_page, prerender_routes
from .seo import SeoRenderer
from .ssr import (
    RenderBundleError,
    SsrReport,
    inject_rendered_markup,
    load_render_function,
    render_routes,
)

__all__ = [
    "RenderBundleError",
    "SeoRenderer",
    "SsrReport",
    "StaticEmitter",
    "encode_json",
    "inject_rendered_markup",
    "inject_site_metadata",
    "load_render_function",
    "prerender_page",
    "prerender_routes",
    "render_routes",
    "route_file",
]
