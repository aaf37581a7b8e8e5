"""Structured channel for recoverable parse conditions.

Every stage of the pipeline receives the same per-parse :class:`Diagnostics`
collector and reports what it recovered from. Each event is also written to
the module logger, so operators get a log line and tests get a list they can
assert on.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

# Recoverable condition kinds
PATTERN_MATCH_GAP = "pattern_match_gap"
HIERARCHY_CONFLICT = "hierarchy_conflict"
ORPHAN_CONTENT = "orphan_content"
DUPLICATE_CITATION = "duplicate_citation"

_LOG_LEVELS: dict[str, int] = {
    PATTERN_MATCH_GAP: logging.WARNING,
    HIERARCHY_CONFLICT: logging.DEBUG,
    ORPHAN_CONTENT: logging.INFO,
    DUPLICATE_CITATION: logging.INFO,
}


@dataclass(frozen=True, slots=True)
class RecoveryEvent:
    """One recovered condition, with enough context to diagnose bad input."""

    kind: str
    message: str
    line_number: int | None = None   # 0-based line index, when known
    matched_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "line_number": self.line_number,
            "matched_text": self.matched_text,
        }


class Diagnostics:
    """Per-parse collector of :class:`RecoveryEvent` records."""

    def __init__(self, *, context: str = "") -> None:
        self.context = context
        self._events: list[RecoveryEvent] = []

    def record(
        self,
        kind: str,
        message: str,
        *,
        line_number: int | None = None,
        matched_text: str = "",
    ) -> RecoveryEvent:
        event = RecoveryEvent(
            kind=kind,
            message=message,
            line_number=line_number,
            matched_text=matched_text,
        )
        self._events.append(event)
        where = f" line {line_number + 1}" if line_number is not None else ""
        prefix = f"[{self.context}] " if self.context else ""
        log.log(
            _LOG_LEVELS.get(kind, logging.INFO),
            "%s%s%s: %s%s",
            prefix,
            kind,
            where,
            message,
            f" ({matched_text!r})" if matched_text else "",
        )
        return event

    @property
    def events(self) -> tuple[RecoveryEvent, ...]:
        return tuple(self._events)

    def of_kind(self, kind: str) -> list[RecoveryEvent]:
        return [e for e in self._events if e.kind == kind]

    def count(self, kind: str) -> int:
        return sum(1 for e in self._events if e.kind == kind)

    def summary(self) -> dict[str, int]:
        """Event counts by kind, sorted by kind name."""
        counts = Counter(e.kind for e in self._events)
        return dict(sorted(counts.items()))

    def __len__(self) -> int:
        return len(self._events)
