"""Orphan capture: reclaim every line no header section claimed.

Guarantees that no non-blank input line is dropped:

* unclaimed text before the first header becomes a synthetic Preamble;
* unclaimed text after a header (suppressed TOC lines, for instance) is
  merged into the nearest preceding section, in line order;
* a document with no header at all becomes one synthetic unnumbered section.
"""
from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field

from govsections.diagnostics import ORPHAN_CONTENT, Diagnostics
from govsections.parsing_types import PREAMBLE, UNNUMBERED, HeaderOccurrence, RawSection

PREAMBLE_CITATION = "Preamble"


@dataclass(slots=True)
class _Span:
    start: int
    lines: list[tuple[int, str]] = field(default_factory=list)

    @property
    def end(self) -> int:
        return self.lines[-1][0]


def find_unclaimed_spans(lines: list[str], claimed: set[int]) -> list[_Span]:
    """Maximal runs of unclaimed lines that contain non-blank text."""
    spans: list[_Span] = []
    current: _Span | None = None
    for i, line in enumerate(lines):
        if i in claimed:
            current = None
            continue
        if current is None:
            if not line.strip():
                continue
            current = _Span(start=i)
            spans.append(current)
        current.lines.append((i, line))
    return spans


def _synthetic(level_type: str, citation: str, span: _Span) -> RawSection:
    return RawSection(
        level_type=level_type,
        number="",
        prefix="",
        title=citation if level_type == PREAMBLE else "Additional Content",
        line_number=span.start,
        header_line="",
        body=list(span.lines),
        is_synthetic=True,
        citation_hint=citation,
    )


def capture_orphans(
    lines: list[str],
    sections: Sequence[RawSection],
    occurrences: Sequence[HeaderOccurrence] = (),
    diagnostics: Diagnostics | None = None,
) -> list[RawSection]:
    """Return ``sections`` plus synthetic sections, with orphans reattached."""
    result = sorted(sections, key=lambda s: s.line_number)
    claimed: set[int] = set()
    for section in result:
        claimed |= section.claimed_lines

    spans = find_unclaimed_spans(lines, claimed)
    if not spans:
        return result

    if not result:
        reason = (
            f"{len(occurrences)} header occurrence(s) but none aligned"
            if occurrences else "no headers detected"
        )
        for n, span in enumerate(spans, start=1):
            citation = f"Unnumbered Section {n}"
            result.append(_synthetic(UNNUMBERED, citation, span))
            _report(diagnostics, span, f"{reason}; kept as {citation}")
        return result

    header_lines = [s.line_number for s in result]
    preamble: RawSection | None = None
    for span in spans:
        idx = bisect_left(header_lines, span.start) - 1
        if idx < 0:
            if preamble is None:
                preamble = _synthetic(PREAMBLE, PREAMBLE_CITATION, span)
            else:
                preamble.body.extend(span.lines)
            _report(diagnostics, span, "text before first header kept as preamble")
            continue
        target = result[idx]
        target.body.extend(span.lines)
        label = f"{target.level_type} {target.number}".strip()
        _report(diagnostics, span, f"merged into preceding {label}")

    if preamble is not None:
        result.insert(0, preamble)
    return result


def _report(diagnostics: Diagnostics | None, span: _Span, message: str) -> None:
    if diagnostics is None:
        return
    first = next((line.strip() for _, line in span.lines if line.strip()), "")
    diagnostics.record(
        ORPHAN_CONTENT,
        f"lines {span.start + 1}-{span.end + 1}: {message}",
        line_number=span.start,
        matched_text=first[:80],
    )
