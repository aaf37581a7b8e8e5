"""Core types shared by every parsing stage.

Type hierarchy:
  HeaderOccurrence : one header match produced by the pattern detector
  RawSection       : mutable, single-pass section under construction
  Section          : final, immutable, persisted section value
  ValidationIssue  : one structural warning or error found after parsing
  ValidationReport : all issues for one parse
  ParseMetadata    : provenance for one parse
  ParseResult      : envelope returned to every caller (never raises)

Line numbers are 0-based indexes into the normalized document lines.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from govsections.diagnostics import RecoveryEvent
from govsections.text_utils import clean_text

PREAMBLE = "preamble"
UNNUMBERED = "unnumbered"
SYNTHETIC_LEVEL_TYPES: frozenset[str] = frozenset({PREAMBLE, UNNUMBERED})


# ---------------------------------------------------------------------------
# Detector output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeaderOccurrence:
    """A header token found in the document text."""

    level_type: str
    raw_number: str      # as written: "iv", "1.01", "" for literal prefixes
    number: str          # canonical: "IV", "1.01"
    prefix: str          # schema prefix ("Article ")
    char_offset: int     # start of the header token in the text
    end_offset: int      # end of the header token (exclusive)
    matched_text: str    # header token as written: "ARTICLE IV"
    schema_index: int


# ---------------------------------------------------------------------------
# Builder state (transient)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RawSection:
    """A section under construction; lives only within one parse pass.

    ``body`` holds ``(line_number, raw_line)`` pairs so orphan capture can
    splice reclaimed lines back in document order.
    """

    level_type: str
    number: str
    prefix: str
    title: str
    line_number: int
    header_line: str
    schema_index: int = -1
    inline_text: str = ""
    body: list[tuple[int, str]] = field(default_factory=list)
    is_synthetic: bool = False
    citation_hint: str = ""   # synthetic sections carry their own citation

    def _ordered_body(self) -> list[str]:
        return [line for _, line in sorted(self.body, key=lambda p: p[0])]

    @property
    def body_text(self) -> str:
        """Cleaned body: inline text from the header line plus body lines."""
        parts = [self.inline_text] if self.inline_text else []
        parts.extend(self._ordered_body())
        return clean_text("\n".join(parts))

    @property
    def text(self) -> str:
        """Cleaned full text: header line followed by body lines."""
        parts = [self.header_line] if self.header_line else []
        parts.extend(self._ordered_body())
        return clean_text("\n".join(parts))

    @property
    def claimed_lines(self) -> set[int]:
        lines = {n for n, _ in self.body}
        if not self.is_synthetic:
            lines.add(self.line_number)
        return lines


# ---------------------------------------------------------------------------
# Final section value
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Section:
    """A finalized section.

    Invariants (enforced by the enricher and checked in tests):
        - parent_id is None  => depth == 0
        - parent_id not None => depth == parent.depth + 1
        - citation unique and document_order strictly increasing per document
    """

    id: str                  # batch-local stable id: "sec-0001"
    citation: str            # "Article I, Section 2"
    level_type: str
    depth: int
    parent_id: str | None
    document_order: int
    text: str
    title: str = ""
    number: str = ""
    line_number: int = 0
    is_synthetic: bool = False
    body: str = ""           # text without the header line

    def to_record(self) -> dict[str, Any]:
        """Row shape handed to the persistence collaborator."""
        return {
            "section_id": self.id,
            "citation": self.citation,
            "level_type": self.level_type,
            "depth": self.depth,
            "parent_id": self.parent_id,
            "document_order": self.document_order,
            "text": self.text,
            "title": self.title,
            "number": self.number,
            "line_number": self.line_number,
            "is_synthetic": self.is_synthetic,
            "body": self.body,
        }

    @classmethod
    def from_record(cls, row: dict[str, Any]) -> Section:
        return cls(
            id=str(row["section_id"]),
            citation=str(row["citation"]),
            level_type=str(row["level_type"]),
            depth=int(row["depth"]),
            parent_id=row.get("parent_id") or None,
            document_order=int(row["document_order"]),
            text=str(row.get("text") or ""),
            title=str(row.get("title") or ""),
            number=str(row.get("number") or ""),
            line_number=int(row.get("line_number") or 0),
            is_synthetic=bool(row.get("is_synthetic")),
            body=str(row.get("body") or ""),
        )


# ---------------------------------------------------------------------------
# Validation report
# ---------------------------------------------------------------------------

SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    severity: str            # "warning" | "error"
    kind: str                # "empty_section", "depth_jump", ...
    message: str
    citations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "citations": list(self.citations),
        }


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Warnings never fail a parse; errors mark the structure as invalid."""

    issues: tuple[ValidationIssue, ...] = ()

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == SEVERITY_WARNING)

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.severity == SEVERITY_ERROR)

    @property
    def valid(self) -> bool:
        return not self.errors

    def of_kind(self, kind: str) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.kind == kind)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "warnings": [i.to_dict() for i in self.warnings],
            "errors": [i.to_dict() for i in self.errors],
        }


# ---------------------------------------------------------------------------
# Parse envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseMetadata:
    source: str              # "text" | "markdown" | "word"
    file_name: str
    parsed_at: str           # ISO-8601 UTC
    section_count: int


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Result envelope; ``sections`` is empty whenever ``success`` is False."""

    success: bool
    sections: tuple[Section, ...]
    metadata: ParseMetadata
    error: str | None = None
    error_code: str | None = None
    events: tuple[RecoveryEvent, ...] = ()
    validation: ValidationReport = ValidationReport()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "sections": [s.to_record() for s in self.sections],
            "metadata": {
                "source": self.metadata.source,
                "fileName": self.metadata.file_name,
                "parsedAt": self.metadata.parsed_at,
                "sectionCount": self.metadata.section_count,
            },
            "events": [e.to_dict() for e in self.events],
            "validation": self.validation.to_dict(),
        }
        if not self.success:
            out["error"] = self.error
            out["errorCode"] = self.error_code
        return out
