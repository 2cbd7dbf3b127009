"""Content discovery: crawling, frontmatter, sequencing, and search text."""

from .crawler import discover_documents, route_for_key
from .frontmatter import Frontmatter, parse_frontmatter
from .llm_text import build_llm_text
from .loader import load_document, load_documents
from .models import ContentDocument, RenderedRoute, SearchDocument
from .search import SearchIndex, reduce_markup
from .sequencer import sequence_documents, sequence_metadata

__all__ = [
    "ContentDocument",
    "Frontmatter",
    "RenderedRoute",
    "SearchDocument",
    "SearchIndex",
    "build_llm_text",
    "discover_documents",
    "load_document",
    "load_documents",
    "parse_frontmatter",
    "reduce_markup",
    "route_for_key",
    "sequence_documents",
    "sequence_metadata",
]
