"""TOC / navigation projection over a finalized section list.

Read-side only: every function here is pure and leaves its input untouched.
Sections are expected in document order with ``depth`` and ``parent_id``
already correct (as produced by the parser or loaded from the store).

Tree construction is two flat passes over an id -> index map:

    pass 1: one TocNode per section
    pass 2: attach each node to its parent's children, or to the root list
            when the parent id does not resolve

A parent may appear before or after its child in the input. Unresolved
parents (unknown id, self reference, cycle) are demoted to roots rather
than failing the read, and the count is surfaced as ``demoted_orphans`` in
the metadata so a clean looking tree cannot hide a lost parent.
"""
from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from typing import Any

from govsections.parsing_types import Section

log = logging.getLogger(__name__)

ANCHOR_PREFIX = "section-"


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class NumberedSection:
    """A section with its 1-based display number and anchor id."""

    section: Section
    number: int
    anchor_id: str

    @property
    def id(self) -> str:
        return self.section.id

    @property
    def parent_id(self) -> str | None:
        return self.section.parent_id

    @property
    def depth(self) -> int:
        return self.section.depth

    @property
    def citation(self) -> str:
        return self.section.citation or f"Section {self.number}"

    @property
    def has_content(self) -> bool:
        return bool(self.section.body)

    @property
    def content_length(self) -> int:
        return len(self.section.body)

    def to_dict(self) -> dict[str, Any]:
        return {**self.section.to_record(), "number": self.number, "anchorId": self.anchor_id}


@dataclass(slots=True)
class TocNode:
    section_id: str
    number: int
    anchor_id: str
    citation: str
    title: str
    depth: int
    parent_id: str | None
    has_content: bool
    content_length: int
    is_locked: bool
    children: list[TocNode] = field(default_factory=list)

    @property
    def subsection_count(self) -> int:
        """Immediate children only."""
        return len(self.children)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.section_id,
            "number": self.number,
            "anchorId": self.anchor_id,
            "citation": self.citation,
            "title": self.title,
            "depth": self.depth,
            "parentId": self.parent_id,
            "hasContent": self.has_content,
            "contentLength": self.content_length,
            "isLocked": self.is_locked,
            "subsectionCount": self.subsection_count,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True, slots=True)
class FlatTocEntry:
    section_id: str
    number: int
    anchor_id: str
    citation: str
    title: str
    depth: int
    indent_level: int
    has_content: bool
    is_locked: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.section_id,
            "number": self.number,
            "anchorId": self.anchor_id,
            "citation": self.citation,
            "title": self.title,
            "depth": self.depth,
            "indentLevel": self.indent_level,
            "hasContent": self.has_content,
            "isLocked": self.is_locked,
        }


@dataclass(frozen=True, slots=True)
class NavLink:
    number: int
    anchor_id: str
    citation: str

    def to_dict(self) -> dict[str, Any]:
        return {"number": self.number, "anchorId": self.anchor_id, "citation": self.citation}


@dataclass(frozen=True, slots=True)
class Navigation:
    prev: NavLink | None = None
    next: NavLink | None = None
    parent: NavLink | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "prev": self.prev.to_dict() if self.prev else None,
            "next": self.next.to_dict() if self.next else None,
            "parent": self.parent.to_dict() if self.parent else None,
        }


@dataclass(frozen=True, slots=True)
class TocMetadata:
    total_sections: int = 0
    max_depth: int = 0
    root_sections: int = 0
    sections_with_content: int = 0
    locked_sections: int = 0
    demoted_orphans: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalSections": self.total_sections,
            "maxDepth": self.max_depth,
            "rootSections": self.root_sections,
            "sectionsWithContent": self.sections_with_content,
            "lockedSections": self.locked_sections,
            "demotedOrphans": self.demoted_orphans,
        }


@dataclass(frozen=True, slots=True)
class TocResult:
    sections: tuple[NumberedSection, ...] = ()
    hierarchical_toc: tuple[TocNode, ...] = ()
    flat_toc: tuple[FlatTocEntry, ...] = ()
    metadata: TocMetadata = TocMetadata()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "hierarchicalTOC": [n.to_dict() for n in self.hierarchical_toc],
            "flatTOC": [e.to_dict() for e in self.flat_toc],
            "metadata": self.metadata.to_dict(),
        }


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------

def anchor_for(number: int) -> str:
    return f"{ANCHOR_PREFIX}{number}"


def assign_section_numbers(sections: Sequence[Section]) -> list[NumberedSection]:
    """Number sections 1..n strictly by input order."""
    return [
        NumberedSection(section=s, number=n, anchor_id=anchor_for(n))
        for n, s in enumerate(sections, start=1)
    ]


def _resolved_parents(numbered: Sequence[NumberedSection]) -> list[int | None]:
    """Index of each section's parent, or None for roots and demoted orphans.

    A parent id resolves when it names any section in the list (the first
    one, if ids repeat). Self references and members of a parent cycle are
    unresolved.
    """
    index_by_id: dict[str, int] = {}
    for i, ns in enumerate(numbered):
        index_by_id.setdefault(ns.id, i)
    parents: list[int | None] = [
        index_by_id.get(ns.parent_id) if ns.parent_id is not None else None
        for ns in numbered
    ]

    in_cycle: list[int] = []
    for i in range(len(parents)):
        seen = {i}
        j = parents[i]
        while j is not None and j not in seen:
            seen.add(j)
            j = parents[j]
        if j == i:
            in_cycle.append(i)
    for i in in_cycle:
        parents[i] = None
    return parents


def _count_demoted(numbered: Sequence[NumberedSection], parents: Sequence[int | None]) -> int:
    return sum(
        1 for ns, p in zip(numbered, parents, strict=True)
        if ns.parent_id is not None and p is None
    )


def generate_hierarchical_toc(
    numbered: Sequence[NumberedSection],
    locked_ids: Collection[str] = (),
) -> list[TocNode]:
    """Root TocNodes with children attached in input order."""
    locked = frozenset(locked_ids)
    nodes = [
        TocNode(
            section_id=ns.id,
            number=ns.number,
            anchor_id=ns.anchor_id,
            citation=ns.citation,
            title=ns.section.title,
            depth=ns.depth,
            parent_id=ns.parent_id,
            has_content=ns.has_content,
            content_length=ns.content_length,
            is_locked=ns.id in locked,
        )
        for ns in numbered
    ]

    roots: list[TocNode] = []
    for node, parent in zip(nodes, _resolved_parents(numbered), strict=True):
        if parent is None:
            if node.parent_id is not None:
                log.warning("TOC: %s has unresolved parent %s; shown at root",
                            node.section_id, node.parent_id)
            roots.append(node)
        else:
            nodes[parent].children.append(node)
    return roots


def generate_flat_toc(
    numbered: Sequence[NumberedSection],
    locked_ids: Collection[str] = (),
) -> list[FlatTocEntry]:
    locked = frozenset(locked_ids)
    return [
        FlatTocEntry(
            section_id=ns.id,
            number=ns.number,
            anchor_id=ns.anchor_id,
            citation=ns.citation,
            title=ns.section.title,
            depth=ns.depth,
            indent_level=ns.depth,
            has_content=ns.has_content,
            is_locked=ns.id in locked,
        )
        for ns in numbered
    ]


def find_section_by_anchor(
    numbered: Sequence[NumberedSection],
    anchor_id: str,
) -> NumberedSection | None:
    if not anchor_id:
        return None
    return next((ns for ns in numbered if ns.anchor_id == anchor_id), None)


def _link(ns: NumberedSection | None) -> NavLink | None:
    if ns is None:
        return None
    return NavLink(number=ns.number, anchor_id=ns.anchor_id, citation=ns.citation)


def get_section_navigation(
    numbered: Sequence[NumberedSection],
    current_number: int,
) -> Navigation:
    """Prev/next by position and parent by id; unknown number gives an empty Navigation."""
    idx = next((i for i, ns in enumerate(numbered) if ns.number == current_number), None)
    if idx is None:
        return Navigation()

    current = numbered[idx]
    parent = None
    if current.parent_id is not None:
        parent = next((ns for ns in numbered if ns.id == current.parent_id), None)
    return Navigation(
        prev=_link(numbered[idx - 1]) if idx > 0 else None,
        next=_link(numbered[idx + 1]) if idx + 1 < len(numbered) else None,
        parent=_link(parent),
    )


def generate_metadata(
    numbered: Sequence[NumberedSection],
    locked_ids: Collection[str] = (),
) -> TocMetadata:
    if not numbered:
        return TocMetadata()
    locked = frozenset(locked_ids)
    return TocMetadata(
        total_sections=len(numbered),
        max_depth=max(ns.depth for ns in numbered),
        root_sections=sum(1 for ns in numbered if ns.parent_id is None),
        sections_with_content=sum(1 for ns in numbered if ns.has_content),
        locked_sections=sum(1 for ns in numbered if ns.id in locked),
        demoted_orphans=_count_demoted(numbered, _resolved_parents(numbered)),
    )


def process_for_toc(
    sections: Sequence[Section],
    locked_ids: Collection[str] = (),
) -> TocResult:
    """Numbering, hierarchical TOC, flat TOC and metadata in one call."""
    if not sections:
        return TocResult()
    locked = frozenset(locked_ids)
    numbered = assign_section_numbers(list(sections))
    return TocResult(
        sections=tuple(numbered),
        hierarchical_toc=tuple(generate_hierarchical_toc(numbered, locked)),
        flat_toc=tuple(generate_flat_toc(numbered, locked)),
        metadata=generate_metadata(numbered, locked),
    )
