"""Shared dataclasses used by the content discovery pipeline."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


@dc.dataclass(slots=True, frozen=True)
class ContentDocument:
    """A single content document discovered under the content root.

    Attributes
    ----------
    key : str
        Relative POSIX path without the content suffix, case preserved; this
        is what navigation entries are matched against.
    route : str
        Normalized route key (lower-case, ``index`` collapsed to ``/``).
    source : Path
        Absolute path of the file on disk.
    raw : bytes
        File content as read during discovery.
    metadata : dict[str, str]
        Parsed frontmatter fields.
    body : str
        Document text without the frontmatter block.
    plain_text : str
        Body reduced to plain text for the search index.
    """

    key: str
    route: str
    source: Path
    raw: bytes
    metadata: dict[str, str]
    body: str
    plain_text: str

    @property
    def title(self) -> str:
        return self.metadata.get("title", "")

    def page_metadata(self) -> dict[str, str]:
        """Return frontmatter fields with ``path`` set to the route."""
        entry = dict(self.metadata)
        entry["path"] = self.route
        return entry


@dc.dataclass(slots=True, frozen=True)
class SearchDocument:
    """Plain-text search record for one page."""

    path: str
    title: str
    content: str


@dc.dataclass(slots=True, frozen=True)
class RenderedRoute:
    """HTML produced for one route, written by the emitter."""

    route_path: str
    html: str


__all__ = ["ContentDocument", "RenderedRoute", "SearchDocument"]
