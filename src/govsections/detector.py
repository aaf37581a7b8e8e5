"""Pattern detector: find header occurrences for a hierarchy schema.

Each schema level is compiled into a :class:`~govsections.hierarchy.LevelMatcher`
and scanned independently. The per-level streams are then merged into a
single offset-ordered, non-overlapping stream:

    1. sort by (char_offset, -len(prefix literal), schema_index)
    2. sweep: keep a match only if it starts at or after the end of the
       last kept match

So when two levels claim the same offset, the literal-longer prefix wins and
ties go to the coarser level. The result never depends on dict or set
iteration order.
"""
from __future__ import annotations

from govsections.diagnostics import HIERARCHY_CONFLICT, Diagnostics
from govsections.errors import SchemaMissingError
from govsections.hierarchy import HierarchySchema, LevelMatcher, compile_schema
from govsections.parsing_types import HeaderOccurrence
from govsections.text_utils import compute_line_starts, line_index


def _scan_level(text: str, matcher: LevelMatcher) -> list[HeaderOccurrence]:
    """All matches of one level, in offset order."""
    level = matcher.level
    found: list[HeaderOccurrence] = []
    for pattern in matcher.patterns:
        for m in pattern.finditer(text):
            raw_number = m.group("number") if "number" in pattern.groupindex else ""
            raw_number = raw_number or ""
            if not matcher.accepts(raw_number):
                continue
            found.append(HeaderOccurrence(
                level_type=level.level_type,
                raw_number=raw_number,
                number=level.normalize_number(raw_number),
                prefix=level.prefix,
                char_offset=m.start("head"),
                end_offset=m.end("head"),
                matched_text=m.group("head"),
                schema_index=level.schema_index,
            ))
    found.sort(key=lambda o: o.char_offset)
    return found


def _merge_key(occ: HeaderOccurrence, prefix_len: dict[int, int]) -> tuple[int, int, int]:
    return (occ.char_offset, -prefix_len[occ.schema_index], occ.schema_index)


def detect_headers(
    text: str,
    schema: HierarchySchema,
    diagnostics: Diagnostics | None = None,
) -> list[HeaderOccurrence]:
    """Return header occurrences sorted by offset, none overlapping.

    Raises:
        SchemaMissingError: the schema has no levels.
    """
    if schema.is_empty:
        raise SchemaMissingError("No hierarchy levels configured")
    if not text:
        return []

    matchers = compile_schema(schema)
    prefix_len = {m.level.schema_index: len(m.level.prefix_literal) for m in matchers}

    candidates: list[HeaderOccurrence] = []
    for matcher in matchers:
        candidates.extend(_scan_level(text, matcher))
    candidates.sort(key=lambda o: _merge_key(o, prefix_len))

    line_starts = compute_line_starts(text) if diagnostics is not None else []
    kept: list[HeaderOccurrence] = []
    for occ in candidates:
        if kept and occ.char_offset < kept[-1].end_offset:
            winner = kept[-1]
            if diagnostics is not None and occ.char_offset == winner.char_offset:
                diagnostics.record(
                    HIERARCHY_CONFLICT,
                    f"{occ.level_type} match yields to {winner.level_type}",
                    line_number=line_index(line_starts, occ.char_offset),
                    matched_text=occ.matched_text,
                )
            continue
        kept.append(occ)
    return kept
