r"""Minimal line-oriented frontmatter parser for content documents.

A metadata block is recognised only when a document starts with a ``---``
line and a later ``---`` line closes it. Each line in between is split at its
first colon into ``key: value``; a single surrounding quote on either side of
the value is dropped. Values spanning several lines are not supported: each
line is read on its own and lines without a colon are ignored.

Example
-------
>>> fm = parse_frontmatter('---\ntitle: "Intro"\n---\nHello')
>>> fm.metadata
{'title': 'Intro'}
>>> fm.body
'\nHello'
"""

from __future__ import annotations

import dataclasses as dc
import re

from dory_site._constants import FRONTMATTER_DELIMITER

FRONTMATTER_PATTERN = re.compile(
    rf"\A{FRONTMATTER_DELIMITER}\n(.*?)\n{FRONTMATTER_DELIMITER}", re.DOTALL
)
QUOTE_PATTERN = re.compile(r"^[\"']|[\"']$")


@dc.dataclass(slots=True, frozen=True)
class Frontmatter:
    """Parsed metadata block and the remaining document body."""

    metadata: dict[str, str]
    body: str


def parse_frontmatter(text: str) -> Frontmatter:
    """Split ``text`` into its metadata map and body.

    Parameters
    ----------
    text : str
        Full document text.

    Returns
    -------
    Frontmatter
        ``metadata`` is empty and ``body`` is ``text`` unchanged when the
        document does not open with a well-formed block.
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return Frontmatter(metadata={}, body=text)

    metadata: dict[str, str] = {}
    for line in match.group(1).split("\n"):
        key, sep, value = line.partition(":")
        if not key or not sep:
            continue
        metadata[key.strip()] = QUOTE_PATTERN.sub("", value.strip())
    return Frontmatter(metadata=metadata, body=text[match.end() :])


def decode_document(raw: bytes) -> str:
    """Decode document bytes as UTF-8, dropping a byte-order mark."""
    return raw.decode("utf-8-sig")


__all__ = ["FRONTMATTER_PATTERN", "Frontmatter", "decode_document", "parse_frontmatter"]
