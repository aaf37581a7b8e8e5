"""Small text helpers shared by the section builder and orphan capture."""
from __future__ import annotations

import re
from bisect import bisect_right

_WS_RE = re.compile(r"\s+")


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` after normalizing CRLF/CR line endings."""
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def clean_text(text: str) -> str:
    """Trim every line, collapse blank-line runs to one, trim the ends."""
    out: list[str] = []
    blank = False
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            blank = bool(out)
            continue
        if blank:
            out.append("")
            blank = False
        out.append(stripped)
    return "\n".join(out)


def normalize_for_matching(text: str) -> str:
    """Case/whitespace-insensitive key for header-to-line alignment.

    Only the first tab-delimited cell is kept, so a TOC-style
    "Section 1<TAB>4" line normalizes the same as its header text.
    """
    first_cell = text.lstrip().split("\t", 1)[0]
    return _WS_RE.sub(" ", first_cell).strip().upper()


def collapse_ws(text: str) -> str:
    """Collapse all whitespace runs to single spaces and trim."""
    return _WS_RE.sub(" ", text).strip()


def compute_line_starts(text: str) -> list[int]:
    """Char offsets at which each ``\\n``-separated line begins."""
    starts = [0]
    pos = text.find("\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return starts


def line_index(line_starts: list[int], offset: int) -> int:
    """0-based line containing char ``offset`` (O(log n))."""
    return bisect_right(line_starts, offset) - 1
