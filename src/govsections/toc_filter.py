"""Table-of-contents noise filter.

A TOC repeats the document's headers ("Article I ........ 3"), and those
entries match the same patterns as the real headers. This filter finds an
explicit TOC heading and reads the entry lines that follow it (blank lines
allowed) within a bounded window. The block ends at the first line that is
neither blank nor an entry. If it holds enough entries it is suppressed from
header detection.

The filter is heading-gated: with no "Table of Contents" / "Contents" heading
nothing is ever suppressed, so ordinary body text cannot be misclassified.
Suppressed lines are not dropped; orphan capture reclaims their text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

# "Table of Contents", "TABLE OF CONTENTS", "Contents"
_TOC_HEADING_RE = re.compile(r"^(?:table\s+of\s+contents|contents)\s*:?$", re.IGNORECASE)

# Entry shapes: dot leader or tab leader, then a page number.
_DOT_LEADER_RE = re.compile(r"(?:\.[ ]?){3,}\s*\d{1,4}\s*$")
_TAB_LEADER_RE = re.compile(r"\t+\s*\d{1,4}\s*$")


@dataclass(frozen=True, slots=True)
class TocFilterConfig:
    """TOC detection knobs (defaults match the production heuristic)."""

    enabled: bool = True
    window: int = 100         # lines scanned after the TOC heading
    min_entries: int = 3      # TOC-like lines required to suppress


def is_toc_heading(line: str) -> bool:
    return bool(_TOC_HEADING_RE.match(line.strip()))


def is_toc_entry(line: str) -> bool:
    """True for lines ending in a leader followed by a page number."""
    if not line.strip():
        return False
    return bool(_DOT_LEADER_RE.search(line) or _TAB_LEADER_RE.search(line))


def detect_toc_lines(
    lines: list[str],
    config: TocFilterConfig | None = None,
) -> frozenset[int]:
    """Return the line numbers to suppress (empty when no TOC is found)."""
    config = config or TocFilterConfig()
    if not config.enabled:
        return frozenset()

    heading = next((i for i, line in enumerate(lines) if is_toc_heading(line)), None)
    if heading is None:
        return frozenset()

    scan_end = min(heading + 1 + config.window, len(lines))
    entries: list[int] = []
    for i in range(heading + 1, scan_end):
        if is_toc_entry(lines[i]):
            entries.append(i)
        elif lines[i].strip():
            break
    if len(entries) < config.min_entries:
        return frozenset()
    return frozenset(range(heading, entries[-1] + 1))
