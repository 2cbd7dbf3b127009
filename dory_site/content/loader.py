"""Read, parse, and reduce content documents in parallel.

Documents are independent of one another, so reading bytes, splitting the
frontmatter, and reducing the body run on a thread pool. Navigation ordering
is applied afterwards by :mod:`dory_site.content.sequencer`.
"""

from __future__ import annotations

import typing as typ
from concurrent.futures import ThreadPoolExecutor

from .crawler import route_for_key
from .frontmatter import decode_document, parse_frontmatter
from .models import ContentDocument
from .search import reduce_markup

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_document(key: str, path: Path) -> ContentDocument:
    """Read ``path`` and return the parsed :class:`ContentDocument`."""
    raw = path.read_bytes()
    parsed = parse_frontmatter(decode_document(raw))
    return ContentDocument(
        key=key,
        route=route_for_key(key),
        source=path,
        raw=raw,
        metadata=parsed.metadata,
        body=parsed.body,
        plain_text=reduce_markup(parsed.body),
    )


def load_documents(
    paths: typ.Mapping[str, Path], *, workers: int = 1
) -> dict[str, ContentDocument]:
    """Load every document in ``paths``, keyed like the input mapping.

    Read errors propagate; content is required for the build to proceed.
    """
    items = sorted(paths.items())
    pool_size = min(workers, len(items)) if items else 1
    if pool_size > 1:
        with ThreadPoolExecutor(max_workers=pool_size) as executor:
            loaded = list(executor.map(lambda item: load_document(*item), items))
    else:
        loaded = [load_document(key, path) for key, path in items]
    return {doc.key: doc for doc in loaded}


__all__ = ["load_document", "load_documents"]
