"""Aggregate content documents into a single ``llms.txt`` digest.

Unlike the search reduction, the digest keeps code fences and markdown so a
language model sees the documentation much as a reader would; only component
tags, fence language labels, and HTML comments are removed.
"""

from __future__ import annotations

import re
import typing as typ

from dory_site._constants import CONTENT_SUFFIX

if typ.TYPE_CHECKING:
    from .models import ContentDocument

_OPEN_TAG = re.compile(r"<(\w+)([^>]*?)>")
_CLOSE_TAG = re.compile(r"</\w+>")
_FENCE_LABEL = re.compile(r"```(\w+)")
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_BLANK_RUN = re.compile(r"\n\s*\n\s*\n")


def clean_for_llm(body: str) -> str:
    """Strip component markup from ``body`` while keeping its text."""
    cleaned = _OPEN_TAG.sub("", body)
    cleaned = _CLOSE_TAG.sub("", cleaned)
    cleaned = _FENCE_LABEL.sub("```", cleaned)
    cleaned = _HTML_COMMENT.sub("", cleaned)
    cleaned = _BLANK_RUN.sub("\n\n", cleaned)
    return cleaned.strip()


def build_llm_text(documents: typ.Iterable[ContentDocument]) -> str:
    """Return the digest for ``documents`` in the order given."""
    chunks: list[str] = []
    for doc in documents:
        parts = [f"# {doc.key}{CONTENT_SUFFIX}\n"]
        if doc.metadata.get("title"):
            parts.append(f"## {doc.metadata['title']}\n\n")
        if doc.metadata.get("description"):
            parts.append(f"{doc.metadata['description']}\n\n")
        parts.append(clean_for_llm(doc.body) + "\n\n")
        parts.append("---\n\n")
        chunks.append("".join(parts))
    return "\n".join(chunks).strip()


__all__ = ["build_llm_text", "clean_for_llm"]
