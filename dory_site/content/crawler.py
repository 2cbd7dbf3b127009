"""Discover content documents under a content root.

The walk uses an explicit stack so deeply nested trees cannot exhaust the
interpreter's recursion limit, and visits directory entries in sorted order so
the resulting mapping is identical across runs for an unchanged tree.

Example
-------
>>> from pathlib import Path
>>> documents = discover_documents(Path("docs"))  # doctest: +SKIP
>>> sorted(documents)  # doctest: +SKIP
['guide/index', 'guide/setup', 'index', 'intro']
>>> route_for_key("guide/index")
'/guide/'
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from dory_site._constants import CONTENT_SUFFIX

INDEX_SEGMENT_PATTERN = re.compile(r"(?:^|/)index$")


def discover_documents(root: Path, *, suffix: str = CONTENT_SUFFIX) -> dict[str, Path]:
    """Return a mapping of document key to absolute path for ``root``.

    Parameters
    ----------
    root : Path
        Content root to walk.
    suffix : str, optional
        File extension identifying content documents. Defaults to ``.mdx``.

    Returns
    -------
    dict[str, Path]
        Keys are POSIX paths relative to ``root`` with ``suffix`` removed.

    Raises
    ------
    OSError
        If ``root`` is missing or a directory cannot be listed.
    """
    root = root.resolve()
    documents: dict[str, Path] = {}
    pending = [root]
    while pending:
        directory = pending.pop()
        with os.scandir(directory) as entries:
            ordered = sorted(entries, key=lambda entry: entry.name)
        subdirs: list[Path] = []
        for entry in ordered:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(Path(entry.path))
            elif entry.is_file() and entry.name.endswith(suffix):
                path = Path(entry.path)
                documents[document_key(path, root, suffix)] = path
        pending.extend(reversed(subdirs))
    return documents


def document_key(path: Path, root: Path, suffix: str = CONTENT_SUFFIX) -> str:
    """Return the relative, suffix-less POSIX key of ``path`` under ``root``."""
    rel = path.relative_to(root).as_posix()
    return rel[: -len(suffix)] if rel.endswith(suffix) else rel


def route_for_key(key: str) -> str:
    """Normalize a document key into its route key.

    ``index`` documents collapse to a trailing slash, the result is
    lower-cased and always starts with ``/``.
    """
    normalized = INDEX_SEGMENT_PATTERN.sub("/", key.replace("\\", "/"))
    route = f"/{normalized}".replace("//", "/")
    return route.lower()


__all__ = ["discover_documents", "document_key", "route_for_key"]
