"""Tests for govsections.dedup: citation deduplication."""
from __future__ import annotations

from govsections.dedup import deduplicate_sections
from govsections.diagnostics import DUPLICATE_CITATION, Diagnostics
from govsections.parsing_types import Section


def _section(sid: str, citation: str, order: int, *, parent: str | None = None,
             depth: int = 0, text: str = "", title: str = "", body: str = "") -> Section:
    return Section(
        id=sid,
        citation=citation,
        level_type="section" if parent else "article",
        depth=depth,
        parent_id=parent,
        document_order=order,
        text=text,
        title=title,
        body=body,
    )


def _toc_noise() -> list[Section]:
    return [
        _section("sec-0001", "Article I", 0, text="Article I"),
        _section("sec-0002", "Article II", 1, text="Article II"),
        _section("sec-0003", "Article I", 2, text="Article I\nName is Acme.", title="Name"),
        _section("sec-0004", "Article I, Section 1", 3, parent="sec-0003", depth=1,
                 text="Section 1. Offices"),
        _section("sec-0005", "Article II", 4, text="Article II\nMembers."),
    ]


class TestDeduplicate:
    def test_duplicates_merged_into_first(self) -> None:
        diag = Diagnostics()
        out = deduplicate_sections(_toc_noise(), diag)
        assert [s.citation for s in out] == ["Article I", "Article II", "Article I, Section 1"]
        assert out[0].text == "Article I\n\nArticle I\nName is Acme."
        assert out[0].title == "Name"
        assert diag.count(DUPLICATE_CITATION) == 2

    def test_children_reparented_to_canonical(self) -> None:
        out = deduplicate_sections(_toc_noise())
        assert out[2].parent_id == "sec-0001"
        assert out[2].depth == 1

    def test_document_order_dense(self) -> None:
        out = deduplicate_sections(_toc_noise())
        assert [s.document_order for s in out] == [0, 1, 2]

    def test_identical_and_empty_text_not_appended(self) -> None:
        sections = [
            _section("a", "Article I", 0, text="Article I\nBody"),
            _section("b", "Article I", 1, text="Article I\nBody"),
            _section("c", "Article I", 2, text=""),
        ]
        (only,) = deduplicate_sections(sections)
        assert only.text == "Article I\nBody"

    def test_empty_canonical_takes_duplicate_text(self) -> None:
        sections = [
            _section("a", "Article I", 0, text=""),
            _section("b", "Article I", 1, text="Article I\nBody"),
        ]
        (only,) = deduplicate_sections(sections)
        assert only.text == "Article I\nBody"

    def test_body_merged_without_header_lines(self) -> None:
        sections = [
            _section("a", "Article I", 0, text="Article I"),
            _section("b", "Article I", 1, text="Article I\nName is Acme.", body="Name is Acme."),
        ]
        (only,) = deduplicate_sections(sections)
        assert only.body == "Name is Acme."

    def test_idempotent(self) -> None:
        once = deduplicate_sections(_toc_noise())
        assert deduplicate_sections(once) == once

    def test_input_not_mutated(self) -> None:
        sections = _toc_noise()
        before = list(sections)
        deduplicate_sections(sections)
        assert sections == before
