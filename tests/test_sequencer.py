"""Unit tests for navigation-ordered page metadata."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec

from dory_site.config import flatten_navigation
from dory_site.content.loader import load_document, load_documents
from dory_site.content.sequencer import sequence_keys, sequence_metadata

if typ.TYPE_CHECKING:
    from dory_site.content.models import ContentDocument


def _write(root: Path, key: str, text: str) -> Path:
    path = root / f"{key}.mdx"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _load(root: Path, files: dict[str, str]) -> dict[str, ContentDocument]:
    paths = {key: _write(root, key, text) for key, text in files.items()}
    return load_documents(paths, workers=2)


def test_navigation_entries_precede_sorted_orphans(tmp_path: Path) -> None:
    config = {
        "navigation": {
            "tabs": [
                {"tab": "Docs", "groups": [{"group": "G", "pages": ["intro", "guide/setup"]}]}
            ]
        }
    }
    documents = _load(
        tmp_path,
        {
            "intro": "---\ntitle: Intro\n---\nHi",
            "guide/setup": "---\ntitle: Setup\n---\nSteps",
            "misc": "No metadata",
        },
    )

    metadata = sequence_metadata(documents, flatten_navigation(config))

    assert metadata == [
        {"title": "Intro", "path": "/intro"},
        {"title": "Setup", "path": "/guide/setup"},
        {"path": "/misc"},
    ]


def test_bare_key_is_preferred_over_index_fallback() -> None:
    assert sequence_keys(["guide"], {"guide", "guide/index"}) == ["guide", "guide/index"]
    assert sequence_keys(["guide"], {"guide/index"}) == ["guide/index"]


def test_unresolved_and_repeated_nav_keys_are_skipped() -> None:
    keys = sequence_keys(["b", "missing", "b", "a"], {"a", "b", "c", "Z"})
    assert keys == ["b", "a", "Z", "c"]


def test_route_overrides_frontmatter_path(tmp_path: Path) -> None:
    path = _write(tmp_path, "page", "---\npath: /override\ntitle: T\n---\n")
    entry = load_document("page", path).page_metadata()
    assert list(entry) == ["path", "title"]
    assert entry["path"] == "/page"


def test_metadata_json_is_byte_identical_across_runs(tmp_path: Path) -> None:
    files = {
        f"section{i}/page{j}": f"---\ntitle: P{i}{j}\n---\n"
        for i in range(3)
        for j in range(4)
    }
    nav = ["section2/page1", "section0"]
    first = msgspec.json.encode(sequence_metadata(_load(tmp_path / "one", files), nav))
    second = msgspec.json.encode(sequence_metadata(_load(tmp_path / "two", files), nav))
    assert first == second
