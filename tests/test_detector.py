"""Tests for govsections.detector: header occurrence detection and merge sweep."""
from __future__ import annotations

import pytest

from govsections.detector import detect_headers
from govsections.diagnostics import HIERARCHY_CONFLICT, Diagnostics
from govsections.errors import SchemaMissingError
from govsections.hierarchy import DEFAULT_SCHEMA, HierarchySchema, get_template


def _schema(*levels: tuple[str, str, str]) -> HierarchySchema:
    return HierarchySchema.from_levels([
        {"type": t, "prefix": p, "numbering": n} for t, p, n in levels
    ])


class TestDetectHeaders:
    def test_basic_article_section(self) -> None:
        text = "Article I\nSection 1. Text\nSection 2. More"
        occ = detect_headers(text, DEFAULT_SCHEMA)
        assert [(o.level_type, o.number) for o in occ] == [
            ("article", "I"), ("section", "1"), ("section", "2"),
        ]
        assert [o.char_offset for o in occ] == sorted(o.char_offset for o in occ)

    def test_offsets_and_matched_text(self) -> None:
        text = "Intro\n  ARTICLE iv\n"
        schema = _schema(("article", "Article ", "roman_lower"))
        (occ,) = detect_headers(text, schema)
        assert occ.matched_text == "ARTICLE iv"
        assert text[occ.char_offset:occ.end_offset] == "ARTICLE iv"
        assert occ.raw_number == "iv"
        assert occ.schema_index == 0

    def test_mid_line_mentions_ignored(self) -> None:
        text = "Article I\nAs provided in Section 3, members vote.\n"
        occ = detect_headers(text, DEFAULT_SCHEMA)
        assert [o.level_type for o in occ] == ["article"]

    def test_invalid_roman_rejected(self) -> None:
        occ = detect_headers("Article IIII\nArticle IV\n", DEFAULT_SCHEMA)
        assert [o.number for o in occ] == ["IV"]

    def test_prefix_word_boundary(self) -> None:
        occ = detect_headers("Articles I\nSectional 2\n", DEFAULT_SCHEMA)
        assert occ == []

    def test_dotted_numeric_section(self) -> None:
        occ = detect_headers("Section 1.01 Definitions\n", DEFAULT_SCHEMA)
        assert occ[0].number == "1.01"

    def test_empty_schema_raises(self) -> None:
        with pytest.raises(SchemaMissingError):
            detect_headers("Article I", HierarchySchema())

    def test_empty_text(self) -> None:
        assert detect_headers("", DEFAULT_SCHEMA) == []


class TestConflictResolution:
    def test_longer_prefix_wins_same_offset(self) -> None:
        # "(i)" is a valid token for both levels; the "(" prefix is longer
        # than the empty prefix, so the paragraph level claims it.
        schema = _schema(
            ("item", "", "roman_lower"),
            ("paragraph", "(", "alpha_lower"),
        )
        diag = Diagnostics()
        occ = detect_headers("(i) first\n", schema, diag)
        assert [o.level_type for o in occ] == ["paragraph"]
        events = diag.of_kind(HIERARCHY_CONFLICT)
        assert len(events) == 1
        assert events[0].line_number == 0
        assert events[0].matched_text == "(i)"

    def test_tie_goes_to_coarser_level(self) -> None:
        schema = get_template("standard-bylaws")
        diag = Diagnostics()
        occ = detect_headers("Section 1\n(i) text\n", schema, diag)
        assert [o.level_type for o in occ] == ["section", "paragraph"]
        assert diag.count(HIERARCHY_CONFLICT) == 1
        assert diag.of_kind(HIERARCHY_CONFLICT)[0].line_number == 1

    def test_deterministic(self) -> None:
        schema = get_template("standard-bylaws")
        text = "Article I\nSection 1\n1. One\n(a) alpha\n(ii) roman\n" * 3
        first = detect_headers(text, schema)
        second = detect_headers(text, schema)
        assert first == second
        offsets = [o.char_offset for o in first]
        assert offsets == sorted(offsets)
        for a, b in zip(first, first[1:]):
            assert b.char_offset >= a.end_offset
