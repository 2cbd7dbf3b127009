"""Render ``sitemap.xml`` and ``robots.txt`` from the site configuration.

The sitemap lists one URL per navigation entry, prefixed with the site
``url`` from ``dory.json``. ``robots.txt`` allows everything and points at the
sitemap when a public URL is configured.
"""

from __future__ import annotations

import datetime as dt
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from dory_site._constants import SITEMAP_XML

if typ.TYPE_CHECKING:
    from dory_site.config import SiteConfig


class SeoRenderer:
    """Render crawler-facing text documents with shared Jinja templates."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).resolve().parents[1] / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "xml.jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def sitemap(
        self,
        site: SiteConfig,
        nav_order: typ.Iterable[str] | None = None,
        *,
        lastmod: dt.date | None = None,
    ) -> str:
        """Return ``sitemap.xml`` content for the navigation entries.

        Parameters
        ----------
        site : SiteConfig
            Supplies the base URL and, by default, the navigation order.
        nav_order : Iterable[str], optional
            Page keys to list; defaults to ``site.navigation_order``.
        lastmod : date, optional
            Date recorded for every URL; defaults to today (UTC).
        """
        pages = site.navigation_order if nav_order is None else list(nav_order)
        stamp = (lastmod or dt.datetime.now(dt.UTC).date()).isoformat()
        template = self.env.get_template("sitemap.xml.jinja")
        return template.render(
            locations=[f"{site.url}/{page}" for page in pages], lastmod=stamp
        )

    def robots(self, site: SiteConfig) -> str:
        """Return ``robots.txt`` content, referencing the sitemap if possible."""
        sitemap_url = f"{site.url}/{SITEMAP_XML}" if site.url else None
        template = self.env.get_template("robots.txt.jinja")
        return template.render(sitemap_url=sitemap_url)


__all__ = ["SeoRenderer"]
