"""Order content documents by navigation manifest, then by key.

Navigation entries resolve to a document by exact key, or by the key with an
``/index`` suffix so directory-style routes map onto their index document.
Documents the manifest does not reference are appended in lexicographic key
order. Every document appears exactly once.

Example
-------
>>> sequence_keys(["intro", "guide"], {"guide/index", "intro", "misc"})
['intro', 'guide/index', 'misc']
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .models import ContentDocument


def resolve_nav_key(nav_key: str, available: typ.Container[str]) -> str | None:
    """Return the document key ``nav_key`` refers to, or ``None``."""
    if nav_key in available:
        return nav_key
    index_key = f"{nav_key}/index"
    if index_key in available:
        return index_key
    return None


def sequence_keys(
    nav_order: typ.Iterable[str], available: typ.Collection[str]
) -> list[str]:
    """Return document keys in navigation order followed by sorted orphans."""
    ordered: list[str] = []
    used: set[str] = set()
    for nav_key in nav_order:
        key = resolve_nav_key(nav_key, available)
        if key is None or key in used:
            continue
        used.add(key)
        ordered.append(key)
    ordered.extend(sorted(key for key in available if key not in used))
    return ordered


def sequence_documents(
    documents: typ.Mapping[str, ContentDocument], nav_order: typ.Iterable[str]
) -> list[ContentDocument]:
    """Return ``documents`` ordered for navigation and search output."""
    return [documents[key] for key in sequence_keys(nav_order, documents.keys())]


def sequence_metadata(
    documents: typ.Mapping[str, ContentDocument], nav_order: typ.Iterable[str]
) -> list[dict[str, str]]:
    """Return the page metadata array in sequence order.

    Each entry is the document's frontmatter with ``path`` set to its route.
    """
    return [doc.page_metadata() for doc in sequence_documents(documents, nav_order)]


__all__ = ["resolve_nav_key", "sequence_documents", "sequence_keys", "sequence_metadata"]
