"""Reduce content markup to plain text and hold the per-build search index.

:func:`reduce_markup` strips declarations, code fences, tags, link targets
and markdown punctuation from a document body. Every substitution shortens the
text, so repeating the passes until nothing changes always terminates and
makes the reduction idempotent.

:class:`SearchIndex` is built once per build from the sequenced documents
and handed to the stages that need it; there is no module-level index.

Example
-------
>>> reduce_markup("import X from 'x'\\n# Title\\n\\nSee [docs](/docs).")
'Title\\n\\nSee docs.'
"""

from __future__ import annotations

import re
import typing as typ

from .models import ContentDocument, SearchDocument

_REDUCTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^import\s+.*$", re.MULTILINE), ""),
    (re.compile(r"^export\s+.*$", re.MULTILINE), ""),
    (re.compile(r"```.*?```", re.DOTALL), ""),
    (re.compile(r"<[^>]+>"), ""),
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"[#*_~`>|]"), ""),
    (re.compile(r"\n{3,}"), "\n\n"),
)


def _reduce_once(text: str) -> str:
    for pattern, replacement in _REDUCTIONS:
        text = pattern.sub(replacement, text)
    return text.strip()


def reduce_markup(body: str) -> str:
    """Return the plain-text form of a document body for search indexing."""
    current = body
    while True:
        reduced = _reduce_once(current)
        if reduced == current:
            return reduced
        current = reduced


class SearchIndex:
    """Ordered collection of :class:`SearchDocument` records for one build."""

    def __init__(self, documents: typ.Iterable[SearchDocument]) -> None:
        self._documents = list(documents)

    @classmethod
    def from_documents(cls, documents: typ.Iterable[ContentDocument]) -> SearchIndex:
        """Build the index from sequenced documents, preserving their order."""
        return cls(
            SearchDocument(path=doc.route, title=doc.title, content=doc.plain_text)
            for doc in documents
        )

    @property
    def documents(self) -> list[SearchDocument]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def to_builtins(self) -> list[dict[str, str]]:
        """Return the records as plain dicts in ``path, title, content`` order."""
        return [
            {"path": doc.path, "title": doc.title, "content": doc.content}
            for doc in self._documents
        ]

    def search(self, query: str, *, limit: int = 10) -> list[SearchDocument]:
        """Return documents matching every term of ``query``.

        Matching is case-insensitive. Title hits rank above body hits; ties
        keep index order. The build only serializes the index; this is the
        in-process query entry point for tools that load it.
        """
        terms = [term for term in query.lower().split() if term]
        if not terms:
            return []
        scored: list[tuple[int, int, SearchDocument]] = []
        for position, doc in enumerate(self._documents):
            title = doc.title.lower()
            content = doc.content.lower()
            score = 0
            for term in terms:
                if term in title:
                    score += 2
                elif term in content:
                    score += 1
                else:
                    break
            else:
                scored.append((-score, position, doc))
        scored.sort(key=lambda item: (item[0], item[1]))
        return [doc for _score, _position, doc in scored[:limit]]


__all__ = ["SearchIndex", "reduce_markup"]
