"""Structural validation and summaries over finalized sections.

Checks run after deduplication and never change the sections:

  empty_section      warning  leaf section with no body text
  duplicate_citation error    citation repeated within the list
  depth_jump         warning  depth rises by more than one from the previous section
  depth_exceeded     error    depth deeper than the schema has levels
  unknown_level      error    level_type with no definition in the schema
  number_format      error    number not well-formed for the level's numbering style
  numbering_gap      warning  sibling number does not follow its predecessor

Synthetic sections (preamble, unnumbered) are exempt from every level and
numbering check.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import Any

from govsections import numbering
from govsections.hierarchy import HierarchySchema
from govsections.parsing_types import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    Section,
    ValidationIssue,
    ValidationReport,
)

EMPTY_SECTION = "empty_section"
DUPLICATE_CITATION = "duplicate_citation"
DEPTH_JUMP = "depth_jump"
DEPTH_EXCEEDED = "depth_exceeded"
UNKNOWN_LEVEL = "unknown_level"
NUMBER_FORMAT = "number_format"
NUMBERING_GAP = "numbering_gap"

PREVIEW_CHARS = 100


# ---------------------------------------------------------------------------
# Section checks
# ---------------------------------------------------------------------------

def _empty_sections(sections: Sequence[Section]) -> list[ValidationIssue]:
    parents = {s.parent_id for s in sections if s.parent_id is not None}
    empty = [
        s.citation for s in sections
        if not s.body.strip() and s.id not in parents and not s.is_synthetic
    ]
    if not empty:
        return []
    return [ValidationIssue(
        SEVERITY_WARNING, EMPTY_SECTION,
        f"{len(empty)} sections have no content", tuple(empty),
    )]


def _duplicate_citations(sections: Sequence[Section]) -> list[ValidationIssue]:
    counts = Counter(s.citation for s in sections)
    repeated = tuple(c for c, n in counts.items() if n > 1)
    if not repeated:
        return []
    return [ValidationIssue(
        SEVERITY_ERROR, DUPLICATE_CITATION, "Duplicate section citations found", repeated,
    )]


def validate_number_format(number: str, style: str) -> bool:
    """True when ``number`` is well-formed for ``style`` (unknown styles pass)."""
    style = numbering.normalize_style(style)
    if style not in numbering.NUMBERING_STYLES:
        return True
    return numbering.is_valid_number(number.strip(), style)


# ---------------------------------------------------------------------------
# Hierarchy checks
# ---------------------------------------------------------------------------

def validate_hierarchy(
    sections: Sequence[Section],
    schema: HierarchySchema,
) -> list[ValidationIssue]:
    """Depth progression, level definitions, number format and sequence."""
    issues: list[ValidationIssue] = []
    max_depth = len(schema) - 1
    prev_depth = -1
    last_ordinal: dict[tuple[str | None, str], tuple[int, str]] = {}

    for s in sections:
        if prev_depth >= 0 and s.depth > prev_depth + 1:
            issues.append(ValidationIssue(
                SEVERITY_WARNING, DEPTH_JUMP,
                f"Depth jumped from {prev_depth} to {s.depth}", (s.citation,),
            ))
        prev_depth = s.depth
        if s.is_synthetic:
            continue

        if s.depth > max_depth:
            issues.append(ValidationIssue(
                SEVERITY_ERROR, DEPTH_EXCEEDED,
                f"Depth {s.depth} exceeds maximum of {max_depth}", (s.citation,),
            ))

        level = schema.level(s.level_type)
        if level is None:
            issues.append(ValidationIssue(
                SEVERITY_ERROR, UNKNOWN_LEVEL,
                f"No level definition found for {s.level_type!r}", (s.citation,),
            ))
            continue

        if not validate_number_format(s.number, level.numbering):
            issues.append(ValidationIssue(
                SEVERITY_ERROR, NUMBER_FORMAT,
                f"Number {s.number!r} doesn't match expected format {level.numbering!r}",
                (s.citation,),
            ))
            continue

        # dotted numerics ("1.01") restart their minor part; not sequence-checked
        if "." in s.number:
            continue
        ordinal = numbering.parse_number(s.number, level.numbering)
        if ordinal <= 0:
            continue
        key = (s.parent_id, s.level_type)
        prev = last_ordinal.get(key)
        if prev is not None and ordinal != prev[0] + 1:
            expected = level.render_label(numbering.format_number(prev[0] + 1, level.numbering))
            issues.append(ValidationIssue(
                SEVERITY_WARNING, NUMBERING_GAP,
                f"{level.render_label(s.number)} follows {level.render_label(prev[1])}; "
                f"expected {expected}",
                (s.citation,),
            ))
        last_ordinal[key] = (ordinal, s.number)

    return issues


def validate_sections(
    sections: Sequence[Section],
    schema: HierarchySchema,
) -> ValidationReport:
    """Run every check and collect the issues in check order."""
    issues = [
        *_empty_sections(sections),
        *_duplicate_citations(sections),
        *validate_hierarchy(sections, schema),
    ]
    return ValidationReport(issues=tuple(issues))


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def depth_distribution(sections: Sequence[Section]) -> dict[int, int]:
    """Section count per depth, shallowest first."""
    counts = Counter(s.depth for s in sections)
    return {depth: counts[depth] for depth in sorted(counts)}


def generate_preview(sections: Sequence[Section], max_sections: int = 5) -> dict[str, Any]:
    preview = []
    for s in sections[:max_sections]:
        body = s.body
        if not body:
            text_preview = "(Empty)"
        elif len(body) > PREVIEW_CHARS:
            text_preview = body[:PREVIEW_CHARS] + "..."
        else:
            text_preview = body
        preview.append({
            "citation": s.citation,
            "title": s.title,
            "type": s.level_type,
            "depth": s.depth,
            "textPreview": text_preview,
        })
    return {"totalSections": len(sections), "preview": preview}
