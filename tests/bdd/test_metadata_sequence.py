"""Behaviour tests for navigation-ordered page metadata.

These scenarios load real ``.mdx`` files from a temporary content tree, read
the navigation manifest from ``dory.json``, and check the ordering contract
shared by ``frontmatter.json`` and ``search-content.json``.

Usage
-----
Run ``pytest tests/bdd/test_metadata_sequence.py -v``.
"""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path

import msgspec
import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from dory_site.config import read_navigation_order
from dory_site.content import (
    SearchIndex,
    discover_documents,
    load_documents,
    sequence_documents,
)

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "metadata_sequence.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {}


def _write(root: Path, key: str, text: str) -> None:
    path = root / f"{key}.mdx"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _write_config(root: Path, pages: list[str]) -> None:
    config = {
        "name": "Docs",
        "navigation": {"tabs": [{"tab": "Docs", "groups": [{"group": "G", "pages": pages}]}]},
    }
    (root / "dory.json").write_text(json.dumps(config), encoding="utf-8")


def _sequence(root: Path) -> tuple[list[dict[str, str]], SearchIndex]:
    loaded = load_documents(discover_documents(root / "content"), workers=2)
    documents = sequence_documents(loaded, read_navigation_order(root / "dory.json"))
    return [doc.page_metadata() for doc in documents], SearchIndex.from_documents(documents)


@given("a content tree with intro, guide setup, and an orphan page")
def given_content_tree(tmp_path: Path, scenario_state: ScenarioState) -> None:
    content = tmp_path / "content"
    _write(content, "intro", "---\ntitle: Intro\n---\nWelcome")
    _write(content, "guide/setup", '---\ntitle: "Setup"\n---\nInstall')
    _write(content, "misc", "No metadata here")
    scenario_state["root"] = tmp_path


@given("a content tree with a guide index document")
def given_guide_index(tmp_path: Path, scenario_state: ScenarioState) -> None:
    content = tmp_path / "content"
    _write(content, "guide/index", "---\ntitle: Guide\n---\nOverview")
    _write(content, "about", "---\ntitle: About\n---\nUs")
    scenario_state["root"] = tmp_path


@given("a site config listing intro then guide/setup")
def given_config_intro_setup(scenario_state: ScenarioState) -> None:
    _write_config(scenario_state["root"], ["intro", "guide/setup"])


@given("a site config listing guide")
def given_config_guide(scenario_state: ScenarioState) -> None:
    _write_config(scenario_state["root"], ["guide"])


@when("the metadata sequence is built")
def when_sequence_built(scenario_state: ScenarioState) -> None:
    metadata, index = _sequence(scenario_state["root"])
    scenario_state["metadata"] = metadata
    scenario_state["index"] = index


@when("the metadata sequence is built twice")
def when_sequence_built_twice(scenario_state: ScenarioState) -> None:
    scenario_state["encodings"] = [
        msgspec.json.encode(_sequence(scenario_state["root"])[0]) for _ in range(2)
    ]


@then("the sequence lists Intro, Setup, then the orphan path")
def then_sequence_order(scenario_state: ScenarioState) -> None:
    assert scenario_state["metadata"] == [
        {"title": "Intro", "path": "/intro"},
        {"title": "Setup", "path": "/guide/setup"},
        {"path": "/misc"},
    ]


@then("the search documents share the same order")
def then_search_order(scenario_state: ScenarioState) -> None:
    index: SearchIndex = scenario_state["index"]
    assert [doc.path for doc in index.documents] == [
        entry["path"] for entry in scenario_state["metadata"]
    ]


@then(parsers.parse('the first entry has the path "{path}"'))
def then_first_path(scenario_state: ScenarioState, path: str) -> None:
    assert scenario_state["metadata"][0]["path"] == path


@then("both encodings are identical")
def then_encodings_identical(scenario_state: ScenarioState) -> None:
    first, second = scenario_state["encodings"]
    assert first == second
