"""Unit tests for the ``llms.txt`` digest."""

from __future__ import annotations

from pathlib import Path

from dory_site.content.llm_text import build_llm_text, clean_for_llm
from dory_site.content.loader import load_document


def test_clean_for_llm_keeps_text_and_code() -> None:
    body = (
        "<Callout type=\"info\">Read this</Callout>\n\n\n\n"
        "<!-- hidden -->```bash\nnpm install\n```"
    )
    assert clean_for_llm(body) == "Read this\n\n```\nnpm install\n```"


def test_build_llm_text_follows_document_order(tmp_path: Path) -> None:
    intro = tmp_path / "intro.mdx"
    intro.write_text("---\ntitle: Intro\ndescription: Start here\n---\nHello", encoding="utf-8")
    misc = tmp_path / "misc.mdx"
    misc.write_text("Loose notes", encoding="utf-8")

    text = build_llm_text([load_document("intro", intro), load_document("misc", misc)])

    assert text == (
        "# intro.mdx\n## Intro\n\nStart here\n\nHello\n\n---\n\n"
        "\n# misc.mdx\nLoose notes\n\n---"
    )


def test_build_llm_text_of_nothing_is_empty() -> None:
    assert build_llm_text([]) == ""
