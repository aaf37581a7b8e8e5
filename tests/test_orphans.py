"""Tests for govsections.orphans: preamble, reattachment, unnumbered fallback."""
from __future__ import annotations

from govsections.detector import detect_headers
from govsections.diagnostics import ORPHAN_CONTENT, Diagnostics
from govsections.hierarchy import DEFAULT_SCHEMA
from govsections.orphans import PREAMBLE_CITATION, capture_orphans, find_unclaimed_spans
from govsections.parsing_types import PREAMBLE, UNNUMBERED
from govsections.section_builder import build_raw_sections
from govsections.text_utils import split_lines


def _pipeline(text: str, suppressed: frozenset[int] = frozenset(), diag: Diagnostics | None = None):
    lines = split_lines(text)
    occ = detect_headers(text, DEFAULT_SCHEMA)
    raw = build_raw_sections(lines, occ, suppressed, diag)
    return capture_orphans(lines, raw, occ, diag)


class TestFindUnclaimedSpans:
    def test_spans_split_by_claimed_lines(self) -> None:
        lines = ["", "a", "b", "X", "", "c", ""]
        spans = find_unclaimed_spans(lines, {3})
        assert [(s.start, s.end) for s in spans] == [(1, 2), (5, 6)]

    def test_blank_only_runs_ignored(self) -> None:
        assert find_unclaimed_spans(["", "  ", ""], set()) == []


class TestCaptureOrphans:
    def test_preamble_created(self) -> None:
        diag = Diagnostics()
        sections = _pipeline("Acme Association\nAdopted 2020\n\nArticle I\nBody", diag=diag)
        assert sections[0].level_type == PREAMBLE
        assert sections[0].is_synthetic
        assert sections[0].citation_hint == PREAMBLE_CITATION
        assert sections[0].text == "Acme Association\nAdopted 2020"
        assert sections[1].level_type == "article"
        assert diag.count(ORPHAN_CONTENT) == 1

    def test_suppressed_lines_merge_into_preceding_section(self) -> None:
        text = "Article I\nfirst\nstray line\nsecond"
        diag = Diagnostics()
        (article,) = _pipeline(text, frozenset({2}), diag)
        assert article.text == "Article I\nfirst\nstray line\nsecond"
        (event,) = diag.of_kind(ORPHAN_CONTENT)
        assert event.line_number == 2
        assert event.matched_text == "stray line"

    def test_no_headers_becomes_unnumbered(self) -> None:
        diag = Diagnostics()
        (section,) = _pipeline("Just a memo.\n\nWith two paragraphs.", diag=diag)
        assert section.level_type == UNNUMBERED
        assert section.citation_hint == "Unnumbered Section 1"
        assert section.text == "Just a memo.\n\nWith two paragraphs."
        assert "no headers detected" in diag.events[0].message

    def test_empty_document(self) -> None:
        assert _pipeline("") == []
        assert _pipeline("\n\n   \n") == []

    def test_fully_claimed_document_unchanged(self) -> None:
        sections = _pipeline("Article I\nSection 1. A\nSection 2. B")
        assert [s.level_type for s in sections] == ["article", "section", "section"]
