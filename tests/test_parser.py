"""End-to-end tests for govsections.parser."""
from __future__ import annotations

import re
from pathlib import Path

from govsections.dedup import deduplicate_sections
from govsections.diagnostics import DUPLICATE_CITATION, ORPHAN_CONTENT
from govsections.hierarchy import DEFAULT_SCHEMA, HierarchySchema, get_template
from govsections.parser import ParseOptions, parse_document, parse_sections, parse_text
from govsections.parsing_types import PREAMBLE, Section
from govsections.toc_filter import TocFilterConfig

BYLAWS = """\
Riverside Neighborhood Association
Bylaws

TABLE OF CONTENTS
Article I - Name ........ 1
Article II - Members ........ 2
Section 1. Eligibility ........ 2
Section 2. Dues ........ 3

Article I - Name
The name of this association is Riverside Neighborhood Association.

Article II - Members
Section 1. Eligibility: Any resident of the neighborhood may join.
Residents must register with the secretary.

Section 2. Dues
Annual dues are set by the board.
(a) Dues are payable in January.
"""


def _ws(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _assert_depth_invariant(sections: list[Section] | tuple[Section, ...]) -> None:
    by_id = {s.id: s for s in sections}
    for s in sections:
        if s.parent_id is None:
            assert s.depth == 0
        else:
            assert s.depth == by_id[s.parent_id].depth + 1


class TestParseText:
    def test_article_section_scenario(self) -> None:
        result = parse_text("Article I\nSection 1. Text\nSection 2. More", DEFAULT_SCHEMA)
        assert result.success
        sections = result.sections
        assert len(sections) == 3
        article, s1, s2 = sections
        assert (article.citation, article.depth, article.parent_id) == ("Article I", 0, None)
        assert (s1.citation, s1.depth, s1.parent_id) == ("Article I, Section 1", 1, article.id)
        assert (s2.citation, s2.depth, s2.parent_id) == ("Article I, Section 2", 1, article.id)
        assert result.metadata.section_count == 3
        assert result.metadata.source == "text"

    def test_bylaws_with_toc(self) -> None:
        result = parse_text(BYLAWS, DEFAULT_SCHEMA, file_name="bylaws.txt")
        assert result.success
        assert [s.citation for s in result.sections] == [
            "Preamble",
            "Article I",
            "Article II",
            "Article II, Section 1",
            "Article II, Section 2",
        ]
        preamble = result.sections[0]
        assert preamble.level_type == PREAMBLE
        assert "TABLE OF CONTENTS" in preamble.text
        assert [s.title for s in result.sections[1:]] == ["Name", "Members", "Eligibility", "Dues"]
        _assert_depth_invariant(result.sections)
        assert not any(e.kind == DUPLICATE_CITATION for e in result.events)

    def test_no_loss(self) -> None:
        result = parse_text(BYLAWS, DEFAULT_SCHEMA)
        combined = _ws("\n".join(s.text for s in result.sections))
        for line in BYLAWS.splitlines():
            if line.strip():
                assert _ws(line) in combined, line

    def test_toc_filter_disabled_dedupes(self) -> None:
        options = ParseOptions(toc=TocFilterConfig(enabled=False))
        result = parse_text(BYLAWS, DEFAULT_SCHEMA, options=options)
        citations = [s.citation for s in result.sections]
        assert len(citations) == len(set(citations))
        assert sum(e.kind == DUPLICATE_CITATION for e in result.events) == 4
        article_one = next(s for s in result.sections if s.citation == "Article I")
        assert "The name of this association" in article_one.text
        _assert_depth_invariant(result.sections)
        assert [s.document_order for s in result.sections] == list(range(len(result.sections)))

    def test_dedupe_idempotent_on_parse_output(self) -> None:
        options = ParseOptions(toc=TocFilterConfig(enabled=False))
        sections = list(parse_text(BYLAWS, DEFAULT_SCHEMA, options=options).sections)
        assert deduplicate_sections(sections) == sections

    def test_unstructured_document(self) -> None:
        result = parse_text("Minutes of the March meeting.\nAll present.", DEFAULT_SCHEMA)
        assert result.success
        (section,) = result.sections
        assert section.citation == "Unnumbered Section 1"
        assert section.is_synthetic
        assert any(e.kind == ORPHAN_CONTENT for e in result.events)

    def test_deterministic(self) -> None:
        schema = get_template("standard-bylaws")
        first = parse_text(BYLAWS, schema)
        second = parse_text(BYLAWS, schema)
        assert first.sections == second.sections

    def test_crlf_input(self) -> None:
        result = parse_text("Article I\r\nSection 1. Text\r\n", DEFAULT_SCHEMA)
        assert [s.citation for s in result.sections] == ["Article I", "Article I, Section 1"]

    def test_empty_schema_is_schema_missing(self) -> None:
        result = parse_text("Article I", HierarchySchema(), file_name="x.txt")
        assert not result.success
        assert result.error_code == "schema_missing"
        assert result.sections == ()
        data = result.to_dict()
        assert data["errorCode"] == "schema_missing"
        assert data["metadata"]["fileName"] == "x.txt"
        assert data["metadata"]["sectionCount"] == 0

    def test_success_envelope_has_no_error_keys(self) -> None:
        data = parse_text("Article I", DEFAULT_SCHEMA).to_dict()
        assert data["success"] is True
        assert "error" not in data
        assert data["metadata"]["parsedAt"]


class TestParseSections:
    def test_standard_bylaws_nesting(self) -> None:
        text = (
            "Article I\n"
            "Section 1. Board\n"
            "1. Composition\n"
            "(a) Seven directors.\n"
            "(b) Two officers.\n"
            "2. Terms\n"
        )
        sections = parse_sections(text, get_template("standard-bylaws"))
        assert [(s.citation, s.depth) for s in sections] == [
            ("Article I", 0),
            ("Article I, Section 1", 1),
            ("Article I, Section 1, 1", 2),
            ("Article I, Section 1, 1, (a)", 3),
            ("Article I, Section 1, 1, (b)", 3),
            ("Article I, Section 1, 2", 2),
        ]


class TestParseDocument:
    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.txt"
        path.write_text(BYLAWS, encoding="utf-8")
        result = parse_document(path, DEFAULT_SCHEMA)
        assert result.success
        assert result.metadata.file_name == "bylaws.txt"
        assert result.metadata.section_count == 5

    def test_missing_file_is_source_unavailable(self, tmp_path: Path) -> None:
        result = parse_document(tmp_path / "nope.txt", DEFAULT_SCHEMA)
        assert not result.success
        assert result.error_code == "source_unavailable"
        assert result.sections == ()

    def test_override_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.txt"
        path.write_text("Part I\nRule 1. Scope\nRule 2. Terms\n", encoding="utf-8")
        override = HierarchySchema.from_levels([
            {"type": "part", "prefix": "Part ", "numbering": "roman"},
            {"type": "rule", "prefix": "Rule ", "numbering": "numeric"},
        ])
        result = parse_document(path, DEFAULT_SCHEMA, override=override)
        assert [s.citation for s in result.sections] == ["Part I", "Part I, Rule 1", "Part I, Rule 2"]
