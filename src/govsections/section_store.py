"""DuckDB store for parsed sections and per-document hierarchy overrides.

Tables:
    sections            one row per section; (doc_id, section_id) unique by construction
    hierarchy_overrides per-document schema override (JSON)
    _schema_version     schema version tracking

Write discipline: a re-parse replaces a document's whole section set inside
one transaction, so readers see either the complete prior set or the
complete new one, never a mix.
"""
from __future__ import annotations

import contextlib
import importlib
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import orjson

from govsections.errors import SchemaVersionError
from govsections.hierarchy import HierarchySchema
from govsections.parsing_types import Section

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

log = logging.getLogger(__name__)

SCHEMA_VERSION = "1.1.0"
_VERSION_KEY = "sections"


# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL
);

CREATE TABLE IF NOT EXISTS sections (
    doc_id VARCHAR NOT NULL,
    section_id VARCHAR NOT NULL,
    citation VARCHAR NOT NULL,
    level_type VARCHAR NOT NULL,
    depth INTEGER NOT NULL,
    parent_id VARCHAR,
    document_order INTEGER NOT NULL,
    text VARCHAR NOT NULL DEFAULT '',
    title VARCHAR NOT NULL DEFAULT '',
    number VARCHAR NOT NULL DEFAULT '',
    line_number INTEGER NOT NULL DEFAULT 0,
    is_synthetic BOOLEAN NOT NULL DEFAULT false,
    body VARCHAR NOT NULL DEFAULT '',
    stored_at TIMESTAMP DEFAULT current_timestamp
);

CREATE TABLE IF NOT EXISTS hierarchy_overrides (
    doc_id VARCHAR PRIMARY KEY,
    schema_json VARCHAR NOT NULL,
    updated_at TIMESTAMP DEFAULT current_timestamp
);
"""

_SECTION_COLUMNS = (
    "section_id", "citation", "level_type", "depth", "parent_id",
    "document_order", "text", "title", "number", "line_number", "is_synthetic",
    "body",
)


def _to_dict(cols: Sequence[str], row: tuple[Any, ...]) -> dict[str, Any]:
    return dict(zip(cols, row, strict=True))


class SectionStore:
    """Read/write interface to a sections DuckDB file."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        create_if_missing: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        if not self._db_path.exists() and not create_if_missing:
            raise FileNotFoundError(f"Sections database not found: {self._db_path}")
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: Any = _duckdb_mod.connect(str(self._db_path))
        self._create_schema()

    def _create_schema(self) -> None:
        for stmt in _SCHEMA_DDL.split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)

        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?", [_VERSION_KEY]
        ).fetchone()
        if row is None:
            self._conn.execute(
                "INSERT INTO _schema_version (table_name, version) VALUES (?, ?)",
                [_VERSION_KEY, SCHEMA_VERSION],
            )
        elif str(row[0]) != SCHEMA_VERSION:
            self.close()
            raise SchemaVersionError(
                f"Schema version mismatch in {self._db_path}: "
                f"expected {SCHEMA_VERSION}, got {row[0]}"
            )

    @property
    def schema_version(self) -> str:
        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?", [_VERSION_KEY]
        ).fetchone()
        return str(row[0]) if row else "unknown"

    # ── Sections ───────────────────────────────────────────────────────

    def replace_sections(self, doc_id: str, sections: Sequence[Section]) -> int:
        """Atomically replace every stored section of ``doc_id``.

        Returns the number of rows written. On any failure the prior set is
        left untouched.
        """
        records = [s.to_record() for s in sections]
        rows = [[doc_id, *(rec[c] for c in _SECTION_COLUMNS)] for rec in records]
        placeholders = ", ".join("?" for _ in range(len(_SECTION_COLUMNS) + 1))
        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._conn.execute("DELETE FROM sections WHERE doc_id = ?", [doc_id])
            ids = [rec["section_id"] for rec in records]
            if len(set(ids)) != len(ids):
                raise ValueError(f"duplicate section ids in batch for {doc_id}")
            if rows:
                self._conn.executemany(
                    f"INSERT INTO sections (doc_id, {', '.join(_SECTION_COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    rows,
                )
            self._conn.execute("COMMIT")
        except Exception:
            with contextlib.suppress(Exception):
                self._conn.execute("ROLLBACK")
            raise
        log.info("Stored %d sections for %s", len(rows), doc_id)
        return len(rows)

    def load_sections(self, doc_id: str) -> list[Section]:
        """Sections of ``doc_id`` in document order."""
        rows = self._conn.execute(
            f"SELECT {', '.join(_SECTION_COLUMNS)} FROM sections "
            "WHERE doc_id = ? ORDER BY document_order",
            [doc_id],
        ).fetchall()
        return [Section.from_record(_to_dict(_SECTION_COLUMNS, row)) for row in rows]

    def section_count(self, doc_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM sections WHERE doc_id = ?", [doc_id]
        ).fetchone()
        return int(row[0]) if row else 0

    def doc_ids(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT DISTINCT doc_id FROM sections ORDER BY doc_id"
        ).fetchall()
        return [str(r[0]) for r in rows]

    def delete_document(self, doc_id: str) -> None:
        self.replace_sections(doc_id, [])
        self._conn.execute("DELETE FROM hierarchy_overrides WHERE doc_id = ?", [doc_id])

    # ── Hierarchy overrides ────────────────────────────────────────────

    def set_hierarchy_override(self, doc_id: str, schema: HierarchySchema | None) -> None:
        """Store (or clear, with ``None``) the per-document hierarchy."""
        self._conn.execute("DELETE FROM hierarchy_overrides WHERE doc_id = ?", [doc_id])
        if schema is None or schema.is_empty:
            return
        self._conn.execute(
            "INSERT INTO hierarchy_overrides (doc_id, schema_json) VALUES (?, ?)",
            [doc_id, orjson.dumps(schema.to_dict()).decode("utf-8")],
        )

    def get_hierarchy_override(self, doc_id: str) -> HierarchySchema | None:
        row = self._conn.execute(
            "SELECT schema_json FROM hierarchy_overrides WHERE doc_id = ?", [doc_id]
        ).fetchone()
        if row is None:
            return None
        return HierarchySchema.from_dict(orjson.loads(row[0]))

    # ── Lifecycle ──────────────────────────────────────────────────────

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SectionStore:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
