"""Flatten the ``navigation`` manifest of ``dory.json`` into page keys.

The manifest nests ``tabs -> groups -> pages``; a page entry is either a bare
page key or an object carrying its own ``pages`` list. Flattening is a
depth-first walk that yields keys in display order.

Examples
--------
>>> flatten_navigation(
...     {"navigation": {"tabs": [{"tab": "Docs", "groups": [
...         {"group": "G", "pages": ["intro", {"pages": ["a", "b"]}]}
...     ]}]}}
... )
['intro', 'a', 'b']
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import msgspec

logger = logging.getLogger(__name__)


def _walk_pages(pages: list[typ.Any], order: list[str]) -> None:
    for entry in pages:
        match entry:
            case str():
                order.append(entry)
            case {"pages": list() as nested}:
                _walk_pages(nested, order)
            case _:
                continue


def flatten_navigation(config: typ.Mapping[str, typ.Any]) -> list[str]:
    """Return page keys from ``config['navigation']`` in depth-first order.

    Parameters
    ----------
    config : Mapping[str, Any]
        Decoded ``dory.json`` document.

    Returns
    -------
    list[str]
        Page keys in manifest order. Missing or malformed ``navigation``,
        ``tabs``, ``groups`` or ``pages`` members contribute nothing.
    """
    order: list[str] = []
    navigation = config.get("navigation")
    if not isinstance(navigation, dict):
        return order
    tabs = navigation.get("tabs")
    if not isinstance(tabs, list):
        return order
    for tab in tabs:
        groups = tab.get("groups") if isinstance(tab, dict) else None
        if not isinstance(groups, list):
            continue
        for group in groups:
            pages = group.get("pages") if isinstance(group, dict) else None
            if isinstance(pages, list):
                _walk_pages(pages, order)
    return order


def read_navigation_order(path: Path) -> list[str]:
    """Read ``path`` and return its flattened navigation order.

    A missing file yields an empty list so callers fall back to lexicographic
    ordering. A file that cannot be decoded is logged and also yields an empty
    list.
    """
    if not path.exists():
        return []
    try:
        document = msgspec.json.decode(path.read_bytes())
    except (OSError, msgspec.DecodeError) as exc:
        logger.error("Failed to parse %s: %s", path, exc)
        return []
    if not isinstance(document, dict):
        logger.error("Failed to parse %s: top-level JSON value must be an object", path)
        return []
    return flatten_navigation(document)


__all__ = ["flatten_navigation", "read_navigation_order"]
