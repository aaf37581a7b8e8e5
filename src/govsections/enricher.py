"""Depth/context enrichment and citation building.

A single pass over the raw sections in document order maintains an explicit
ancestor stack. For each section::

    pop while stack top is not strictly coarser (schema_index >= current)
    parent = stack top (or None)
    depth  = len(stack)
    push (schema_index, section_id, label)

Depth therefore comes from schema coarseness alone: a Section directly under
an Article is depth 1 even when the schema defines an intermediate level, and
two consecutive same-level sections are siblings. The same stack yields the
citation: ancestor labels joined root-to-self, e.g. "Article I, Section 2".

Synthetic sections (preamble, unnumbered) are roots and reset the stack
without being pushed, so they never adopt children.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from govsections.hierarchy import HierarchySchema
from govsections.parsing_types import RawSection, Section

CITATION_SEPARATOR = ", "


@dataclass(frozen=True, slots=True)
class _Frame:
    """Transient ancestor entry: ids and labels only, never section payloads."""

    schema_index: int
    section_id: str
    label: str


def section_id_for(order: int) -> str:
    """Batch-local stable id derived from document order."""
    return f"sec-{order + 1:04d}"


def build_citation(ancestor_labels: Sequence[str], label: str) -> str:
    """Join ancestor labels and the section's own label, root first."""
    return CITATION_SEPARATOR.join([*ancestor_labels, label])


def enrich_sections(
    raw_sections: Sequence[RawSection],
    schema: HierarchySchema,
) -> list[Section]:
    """Assign ids, depth, parent links and citations."""
    stack: list[_Frame] = []
    finest = len(schema)
    out: list[Section] = []

    for order, raw in enumerate(raw_sections):
        sid = section_id_for(order)
        if raw.is_synthetic:
            stack.clear()
            out.append(Section(
                id=sid,
                citation=raw.citation_hint or raw.level_type.title(),
                level_type=raw.level_type,
                depth=0,
                parent_id=None,
                document_order=order,
                text=raw.text,
                title=raw.title,
                line_number=raw.line_number,
                is_synthetic=True,
                body=raw.body_text,
            ))
            continue

        level = schema.level(raw.level_type)
        if level is not None:
            index = level.schema_index
            label = level.render_label(raw.number)
        else:
            index = finest
            label = f"{raw.prefix}{raw.number}".strip() or raw.level_type

        while stack and stack[-1].schema_index >= index:
            stack.pop()
        parent = stack[-1] if stack else None

        out.append(Section(
            id=sid,
            citation=build_citation([f.label for f in stack], label),
            level_type=raw.level_type,
            depth=len(stack),
            parent_id=parent.section_id if parent is not None else None,
            document_order=order,
            text=raw.text,
            title=raw.title,
            number=raw.number,
            line_number=raw.line_number,
            body=raw.body_text,
        ))
        stack.append(_Frame(schema_index=index, section_id=sid, label=label))

    return out
