"""Produce per-route HTML with page-specific metadata tags.

Prerendering copies the compiled root document once per route and swaps the
title, description, canonical link, Open Graph and Twitter tags for the page's
own values, then appends JSON-LD structured data. Tags are located by exact
text match against the markup the compile step emits; a tag that is not
present is simply left out.

Example
-------
>>> from dory_site.config import SiteConfig
>>> site = SiteConfig(name="Docs", url="https://example.com")
>>> base = "<html><head><title>x</title></head><body></body></html>"
>>> [route.route_path for route in prerender_routes(base, [{"path": "/a"}], site)]
['/a']
"""

from __future__ import annotations

import logging
import re
import typing as typ
from html import escape

import msgspec

from dory_site.content.models import RenderedRoute

if typ.TYPE_CHECKING:
    from dory_site.config import SiteConfig

logger = logging.getLogger(__name__)

TITLE_TAG = re.compile(r"<title>.*?</title>")


def _meta_pattern(attribute: str, name: str) -> re.Pattern[str]:
    return re.compile(rf'<meta {attribute}="{re.escape(name)}" content=".*?" />')


DESCRIPTION_META = _meta_pattern("name", "description")
OG_TITLE_META = _meta_pattern("property", "og:title")
OG_DESCRIPTION_META = _meta_pattern("property", "og:description")
OG_URL_META = _meta_pattern("property", "og:url")
OG_SITE_NAME_META = _meta_pattern("property", "og:site_name")
OG_IMAGE_META = _meta_pattern("property", "og:image")
TWITTER_TITLE_META = _meta_pattern("name", "twitter:title")
TWITTER_DESCRIPTION_META = _meta_pattern("name", "twitter:description")
TWITTER_IMAGE_META = _meta_pattern("name", "twitter:image")
CANONICAL_LINK = re.compile(r'<link rel="canonical" href=".*?" />')


def _replace(pattern: re.Pattern[str], html: str, tag: str) -> str:
    return pattern.sub(lambda _match: tag, html, count=1)


def _meta_tag(attribute: str, name: str, content: str) -> str:
    return f'<meta {attribute}="{name}" content="{escape(content, quote=True)}" />'


def _inject_head(html: str, snippet: str) -> str:
    return html.replace("</head>", f"  {snippet}\n  </head>", 1)


def inject_site_metadata(html: str, site: SiteConfig) -> str:
    """Apply site-wide default metadata from ``dory.json`` to the root page."""
    title = site.default_title
    description = site.default_description
    html = _replace(TITLE_TAG, html, f"<title>{escape(title, quote=False)}</title>")
    replacements = [
        (DESCRIPTION_META, _meta_tag("name", "description", description)),
        (OG_TITLE_META, _meta_tag("property", "og:title", title)),
        (OG_DESCRIPTION_META, _meta_tag("property", "og:description", description)),
        (OG_SITE_NAME_META, _meta_tag("property", "og:site_name", site.name)),
        (OG_IMAGE_META, _meta_tag("property", "og:image", site.image)),
        (TWITTER_TITLE_META, _meta_tag("name", "twitter:title", title)),
        (TWITTER_DESCRIPTION_META, _meta_tag("name", "twitter:description", description)),
        (TWITTER_IMAGE_META, _meta_tag("name", "twitter:image", site.image)),
    ]
    if site.url:
        replacements.append((OG_URL_META, _meta_tag("property", "og:url", site.url)))
    for pattern, tag in replacements:
        html = _replace(pattern, html, tag)
    return html


def structured_data(title: str, description: str, full_url: str, base_url: str) -> str:
    """Return the JSON-LD ``Article``/``BreadcrumbList`` graph for a page."""
    article: dict[str, str] = {
        "@type": "Article",
        "headline": title,
        "description": description,
    }
    if full_url:
        article["url"] = full_url
    home: dict[str, typ.Any] = {"@type": "ListItem", "position": 1, "name": "Home"}
    if base_url:
        home["item"] = base_url
    page: dict[str, typ.Any] = {"@type": "ListItem", "position": 2, "name": title}
    if full_url:
        page["item"] = full_url
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            article,
            {"@type": "BreadcrumbList", "itemListElement": [home, page]},
        ],
    }
    return msgspec.json.encode(graph).decode("utf-8").replace("</", "<\\/")


def prerender_page(base_html: str, page: typ.Mapping[str, str], site: SiteConfig) -> str:
    """Return ``base_html`` carrying the metadata of ``page``."""
    route_path = page["path"]
    title = page.get("title") or site.name
    description = page.get("description") or f"{site.name} - {title}"
    full_url = f"{site.url}{route_path}"

    html = _replace(TITLE_TAG, base_html, f"<title>{escape(title, quote=False)}</title>")
    for pattern, tag in (
        (DESCRIPTION_META, _meta_tag("name", "description", description)),
        (OG_TITLE_META, _meta_tag("property", "og:title", title)),
        (OG_DESCRIPTION_META, _meta_tag("property", "og:description", description)),
        (OG_URL_META, _meta_tag("property", "og:url", full_url)),
        (TWITTER_TITLE_META, _meta_tag("name", "twitter:title", title)),
        (TWITTER_DESCRIPTION_META, _meta_tag("name", "twitter:description", description)),
        (CANONICAL_LINK, f'<link rel="canonical" href="{escape(full_url, quote=True)}" />'),
    ):
        html = _replace(pattern, html, tag)

    robots = page.get("robots")
    if robots:
        html = _inject_head(html, _meta_tag("name", "robots", robots))
    json_ld = structured_data(title, description, full_url, site.url)
    return _inject_head(html, f'<script type="application/ld+json">{json_ld}</script>')


def prerender_routes(
    base_html: str, metadata: typ.Iterable[typ.Mapping[str, str]], site: SiteConfig
) -> list[RenderedRoute]:
    """Return a :class:`RenderedRoute` for every non-root metadata entry."""
    rendered: list[RenderedRoute] = []
    for page in metadata:
        route_path = page.get("path")
        if not route_path or route_path == "/":
            continue
        rendered.append(
            RenderedRoute(route_path=route_path, html=prerender_page(base_html, page, site))
        )
    logger.info("Prerendered %d routes with page-specific meta tags", len(rendered))
    return rendered


__all__ = [
    "inject_site_metadata",
    "prerender_page",
    "prerender_routes",
    "structured_data",
]
