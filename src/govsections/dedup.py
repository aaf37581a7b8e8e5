"""Citation deduplication.

Residual TOC noise (or a genuinely repeated header) produces two sections
with the same citation. The first in document order is canonical; a later
duplicate's text and body are appended to it (blank-line separated, skipped
when identical), its children are re-parented onto the canonical section, and
the duplicate is discarded. ``document_order`` is renumbered densely.

Running the deduplicator on its own output is a no-op.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from govsections.diagnostics import DUPLICATE_CITATION, Diagnostics
from govsections.parsing_types import Section

MERGE_SEPARATOR = "\n\n"


def _merge_text(canonical: str, duplicate: str) -> str:
    if not duplicate or duplicate == canonical:
        return canonical
    if not canonical:
        return duplicate
    return f"{canonical}{MERGE_SEPARATOR}{duplicate}"


def deduplicate_sections(
    sections: Sequence[Section],
    diagnostics: Diagnostics | None = None,
) -> list[Section]:
    """Return sections with unique citations, duplicates merged into the first."""
    kept: list[Section] = []
    index_by_citation: dict[str, int] = {}
    redirect: dict[str, str] = {}   # discarded id -> canonical id

    for section in sections:
        if section.parent_id is not None and section.parent_id in redirect:
            section = replace(section, parent_id=redirect[section.parent_id])

        idx = index_by_citation.get(section.citation)
        if idx is None:
            index_by_citation[section.citation] = len(kept)
            kept.append(section)
            continue

        canonical = kept[idx]
        kept[idx] = replace(
            canonical,
            text=_merge_text(canonical.text, section.text),
            body=_merge_text(canonical.body, section.body),
            title=canonical.title or section.title,
        )
        redirect[section.id] = canonical.id
        if diagnostics is not None:
            diagnostics.record(
                DUPLICATE_CITATION,
                f"duplicate of {canonical.id} merged and discarded",
                line_number=section.line_number,
                matched_text=section.citation,
            )

    return [
        s if s.document_order == order else replace(s, document_order=order)
        for order, s in enumerate(kept)
    ]
