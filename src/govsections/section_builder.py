"""Line-based section builder.

Walks the document lines with a two-state machine (Preamble / InSection):

* a line aligned to a header occurrence flushes the open section and opens
  a new one, splitting the rest of the header line into title and inline
  body text;
* any other line while InSection is appended to the open section;
* lines before the first header stay unclaimed (orphan capture turns them
  into the preamble).

Occurrences are aligned to lines by text, not by char offset, because
upstream normalization (Markdown stripping, docx extraction) can shift
offsets. An occurrence that cannot be aligned is dropped and reported.
"""
from __future__ import annotations

import re
from collections.abc import Collection

from govsections.diagnostics import PATTERN_MATCH_GAP, Diagnostics
from govsections.parsing_types import HeaderOccurrence, RawSection
from govsections.text_utils import collapse_ws, line_index, normalize_for_matching

_HEADER_DELIMS_RE = re.compile(r"^[\s.:;)\-–—]+")
# Trailing "........ 12" or "\t12" left on unsuppressed TOC entries.
_PAGE_LEADER_RE = re.compile(r"(?:\s*(?:\.[ ]?){3,}|\t+)\s*\d{1,4}\s*$")

# "Title: body" or "Title - body", also with en or em dash separators
_TITLE_SEPARATOR_RE = re.compile(
    r"^(?P<title>.+?)(?:\s*:\s+|\s+-\s+|\s*[–—]\s*)(?P<body>\S.*)$"
)
_FIRST_SENTENCE_RE = re.compile(r"^(?P<title>[A-Z][^.!?]*[.!?])\s*(?P<body>.*)$")

_TITLE_ONLY_MAX = 50
_TITLE_FALLBACK_MAX = 100


# ---------------------------------------------------------------------------
# Header line helpers
# ---------------------------------------------------------------------------

def strip_header_token(line: str, matched_text: str) -> str:
    """Return the part of ``line`` after the header token.

    Comparison ignores case and whitespace differences, so "ARTICLE  IV"
    on the line still strips a detected "Article IV".
    """
    text = line.strip()
    i = 0
    for ch in matched_text:
        if ch.isspace():
            continue
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i].upper() != ch.upper():
            return text
        i += 1
    return text[i:]


def extract_title_and_content(line: str, matched_text: str) -> tuple[str, str]:
    """Split a header line into ``(title, inline_body)``.

    Supported forms after the header token::

        Article I - Name                    -> ("Name", "")
        Section 1. Purpose: The purpose...  -> ("Purpose", "The purpose...")
        Section 2 – Quorum – A majority...  -> ("Quorum", "A majority...")
        Section 3. Quorum. A majority ...   -> ("Quorum", "A majority ...")

    Trailing text after the title seeds the section body.
    """
    remainder = _PAGE_LEADER_RE.sub("", strip_header_token(line, matched_text))
    remainder = collapse_ws(_HEADER_DELIMS_RE.sub("", remainder))
    if not remainder:
        return "", ""

    sep = _TITLE_SEPARATOR_RE.match(remainder)
    if sep:
        return sep.group("title").strip(), sep.group("body").strip()

    if len(remainder) < _TITLE_ONLY_MAX and not remainder.endswith((".", "!", "?")):
        return remainder, ""

    sentence = _FIRST_SENTENCE_RE.match(remainder)
    if sentence:
        title = sentence.group("title").rstrip(".").strip()
        return title, sentence.group("body").strip()

    if len(remainder) < _TITLE_FALLBACK_MAX:
        return remainder.rstrip("."), ""
    return "", remainder


# ---------------------------------------------------------------------------
# Occurrence -> line alignment
# ---------------------------------------------------------------------------

def _starts_with_token(text: str, key: str) -> bool:
    """True when ``text`` opens with ``key`` and the token ends there.

    "ARTICLE IV" does not start with the token "ARTICLE I".
    """
    if not key or not text.startswith(key):
        return False
    if len(text) == len(key) or not key[-1].isalnum():
        return True
    return not text[len(key)].isalnum()


def _line_starts(lines: list[str]) -> list[int]:
    """Char offsets of each line in ``"\\n".join(lines)``."""
    starts: list[int] = []
    pos = 0
    for line in lines:
        starts.append(pos)
        pos += len(line) + 1
    return starts


def align_occurrences(
    lines: list[str],
    occurrences: list[HeaderOccurrence],
    suppressed: Collection[int] = frozenset(),
    diagnostics: Diagnostics | None = None,
) -> dict[int, HeaderOccurrence]:
    """Map line numbers to the header occurrence that opens a section there.

    For each occurrence (in offset order) the scan starts at the first line
    after the previously claimed header and takes the first non-suppressed
    line whose normalized text starts with the normalized match as a whole
    token. Occurrences found inside suppressed lines (TOC entries) are skipped without a report.
    """
    normalized = [normalize_for_matching(line) for line in lines]
    starts = _line_starts(lines) if suppressed else []
    by_line: dict[int, HeaderOccurrence] = {}
    cursor = 0
    for occ in occurrences:
        if suppressed and line_index(starts, occ.char_offset) in suppressed:
            continue
        key = normalize_for_matching(occ.matched_text)
        found = None
        for i in range(cursor, len(lines)):
            if i in suppressed or i in by_line:
                continue
            if _starts_with_token(normalized[i], key):
                found = i
                break
        if found is None:
            if diagnostics is not None:
                diagnostics.record(
                    PATTERN_MATCH_GAP,
                    f"{occ.level_type} occurrence at offset {occ.char_offset} "
                    "matched no remaining line; dropped",
                    matched_text=occ.matched_text,
                )
            continue
        by_line[found] = occ
        cursor = found + 1
    return by_line


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def build_raw_sections(
    lines: list[str],
    occurrences: list[HeaderOccurrence],
    suppressed: Collection[int] = frozenset(),
    diagnostics: Diagnostics | None = None,
) -> list[RawSection]:
    """Assemble raw sections from header occurrences and intervening lines."""
    headers = align_occurrences(lines, occurrences, suppressed, diagnostics)

    sections: list[RawSection] = []
    current: RawSection | None = None
    for i, line in enumerate(lines):
        if i in suppressed:
            continue
        occ = headers.get(i)
        if occ is not None:
            if current is not None:
                sections.append(current)
            title, inline = extract_title_and_content(line, occ.matched_text)
            current = RawSection(
                level_type=occ.level_type,
                number=occ.number,
                prefix=occ.prefix,
                title=title,
                line_number=i,
                header_line=line.strip(),
                schema_index=occ.schema_index,
                inline_text=inline,
            )
        elif current is not None:
            current.body.append((i, line))

    if current is not None:
        sections.append(current)
    return sections
