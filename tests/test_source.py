"""Tests for govsections.source: text, Markdown and .docx reading."""
from __future__ import annotations

from pathlib import Path

import pytest
from docx import Document

from govsections.errors import SourceReadError
from govsections.hierarchy import DEFAULT_SCHEMA
from govsections.parser import parse_document
from govsections.source import (
    SOURCE_MARKDOWN,
    SOURCE_TEXT,
    SOURCE_WORD,
    read_source,
    strip_markdown_headers,
)


class TestStripMarkdownHeaders:
    def test_prefixed_headings_unwrapped(self) -> None:
        text = "# Article I - Name\n## Section 1. Offices\n# Introduction\nbody # not a heading"
        assert strip_markdown_headers(text, DEFAULT_SCHEMA) == (
            "Article I - Name\nSection 1. Offices\n# Introduction\nbody # not a heading"
        )

    def test_case_insensitive_and_closing_hashes(self) -> None:
        assert strip_markdown_headers("### ARTICLE II ###", DEFAULT_SCHEMA) == "ARTICLE II"


class TestReadSource:
    def test_text(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.txt"
        path.write_bytes(b"Article I\r\nBody\r\n")
        doc = read_source(path)
        assert doc.text == "Article I\nBody\n"
        assert doc.source == SOURCE_TEXT
        assert doc.file_name == "bylaws.txt"

    def test_utf8_bom_dropped(self, tmp_path: Path) -> None:
        path = tmp_path / "bom.txt"
        path.write_bytes("\ufeffArticle I".encode())
        assert read_source(path).text == "Article I"

    def test_markdown(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.md"
        path.write_text("# Article I\n## Section 1. Offices\nText\n", encoding="utf-8")
        doc = read_source(path, DEFAULT_SCHEMA)
        assert doc.source == SOURCE_MARKDOWN
        assert doc.text == "Article I\nSection 1. Offices\nText\n"

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"Article I \xff\xfe")
        with pytest.raises(SourceReadError, match="not valid UTF-8"):
            read_source(path)

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(SourceReadError):
            read_source(tmp_path / "missing.txt")

    def test_docx(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.docx"
        document = Document()
        document.add_paragraph("Article I - Name")
        document.add_paragraph("The name is Riverside.")
        document.add_paragraph("Section 1. Offices")
        document.save(str(path))

        doc = read_source(path)
        assert doc.source == SOURCE_WORD
        assert doc.text.strip() == "Article I - Name\nThe name is Riverside.\nSection 1. Offices"

    def test_corrupt_docx(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.docx"
        path.write_bytes(b"not a zip archive")
        with pytest.raises(SourceReadError, match="not a readable .docx"):
            read_source(path)


class TestParseDocumentFormats:
    def test_markdown_document(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.md"
        path.write_text("# Article I\n## Section 1. Offices\nText\n", encoding="utf-8")
        result = parse_document(path, DEFAULT_SCHEMA)
        assert result.metadata.source == "markdown"
        assert [s.citation for s in result.sections] == ["Article I", "Article I, Section 1"]

    def test_docx_document(self, tmp_path: Path) -> None:
        path = tmp_path / "bylaws.docx"
        document = Document()
        for text in ("Article I", "Section 1. Offices", "Section 2. Seal"):
            document.add_paragraph(text)
        document.save(str(path))
        result = parse_document(path, DEFAULT_SCHEMA)
        assert result.success
        assert result.metadata.source == "word"
        assert [s.citation for s in result.sections][-1] == "Article I, Section 2"

    def test_corrupt_docx_envelope(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.docx"
        path.write_bytes(b"garbage")
        result = parse_document(path, DEFAULT_SCHEMA)
        assert not result.success
        assert result.error_code == "source_unavailable"
        assert result.metadata.source == "word"
