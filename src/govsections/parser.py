"""Section parser: text + hierarchy schema -> finalized sections.

Pipeline (data flows strictly top to bottom):

    detect_headers       header occurrences, non-overlapping
    detect_toc_lines     TOC block lines excluded from header alignment
    build_raw_sections   line-based state machine
    capture_orphans      preamble + reattached unclaimed text
    enrich_sections      ids, depth, parent links, citations
    deduplicate_sections unique citations

:func:`parse_text` then runs :func:`~govsections.validation.validate_sections`
over the result and attaches the report to the envelope.

:func:`parse_sections` is the pure core and raises on fatal input (empty
schema). :func:`parse_text` and :func:`parse_document` wrap it in a
:class:`~govsections.parsing_types.ParseResult` and never raise.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from govsections.dedup import deduplicate_sections
from govsections.detector import detect_headers
from govsections.diagnostics import Diagnostics
from govsections.enricher import enrich_sections
from govsections.errors import GovSectionsError, SchemaMissingError
from govsections.hierarchy import HierarchySchema, merge_override
from govsections.orphans import capture_orphans
from govsections.parsing_types import ParseMetadata, ParseResult, Section
from govsections.section_builder import build_raw_sections
from govsections.source import SOURCE_TEXT, read_source, source_kind
from govsections.text_utils import split_lines
from govsections.toc_filter import TocFilterConfig, detect_toc_lines
from govsections.validation import depth_distribution, validate_sections

log = logging.getLogger(__name__)

PARSE_FAILED = "parse_failed"


@dataclass(frozen=True, slots=True)
class ParseOptions:
    toc: TocFilterConfig = field(default_factory=TocFilterConfig)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def parse_sections(
    text: str,
    schema: HierarchySchema,
    options: ParseOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> list[Section]:
    """Run the full pipeline over normalized ``text``.

    Raises:
        SchemaMissingError: the schema has no levels.
    """
    if schema.is_empty:
        raise SchemaMissingError("No hierarchy levels configured")
    options = options or ParseOptions()
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = split_lines(text)

    occurrences = detect_headers(text, schema, diagnostics)
    suppressed = detect_toc_lines(lines, options.toc)
    if suppressed:
        log.debug("TOC block suppressed: lines %d-%d", min(suppressed) + 1, max(suppressed) + 1)

    raw = build_raw_sections(lines, occurrences, suppressed, diagnostics)
    raw = capture_orphans(lines, raw, occurrences, diagnostics)
    sections = enrich_sections(raw, schema)
    return deduplicate_sections(sections, diagnostics)


def _failure(
    exc: Exception,
    code: str,
    *,
    source: str,
    file_name: str,
    diagnostics: Diagnostics,
) -> ParseResult:
    return ParseResult(
        success=False,
        sections=(),
        metadata=ParseMetadata(
            source=source, file_name=file_name, parsed_at=_now(), section_count=0,
        ),
        error=str(exc) or exc.__class__.__name__,
        error_code=code,
        events=diagnostics.events,
    )


def parse_text(
    text: str,
    schema: HierarchySchema,
    *,
    source: str = SOURCE_TEXT,
    file_name: str = "",
    options: ParseOptions | None = None,
) -> ParseResult:
    """Parse already-loaded text into a result envelope."""
    diagnostics = Diagnostics(context=file_name)
    try:
        sections = parse_sections(text, schema, options, diagnostics)
    except GovSectionsError as exc:
        log.warning("Parse of %s failed: %s", file_name or "<text>", exc)
        return _failure(exc, exc.code, source=source, file_name=file_name,
                        diagnostics=diagnostics)
    except Exception as exc:
        log.exception("Unexpected error parsing %s", file_name or "<text>")
        return _failure(exc, PARSE_FAILED, source=source, file_name=file_name,
                        diagnostics=diagnostics)

    validation = validate_sections(sections, schema)
    log.info(
        "Parsed %s: %d sections, recovery events %s, %d validation warnings, %d errors",
        file_name or "<text>", len(sections), diagnostics.summary() or "none",
        len(validation.warnings), len(validation.errors),
    )
    log.debug("Depth distribution: %s", depth_distribution(sections))
    return ParseResult(
        success=True,
        sections=tuple(sections),
        metadata=ParseMetadata(
            source=source,
            file_name=file_name,
            parsed_at=_now(),
            section_count=len(sections),
        ),
        events=diagnostics.events,
        validation=validation,
    )


def parse_document(
    path: Path,
    schema: HierarchySchema,
    *,
    override: HierarchySchema | None = None,
    options: ParseOptions | None = None,
) -> ParseResult:
    """Read ``path`` and parse it with the effective schema.

    ``override`` is a per-document hierarchy that replaces ``schema`` when
    present and non-empty.
    """
    path = Path(path)
    effective = merge_override(schema, override)
    try:
        doc = read_source(path, effective)
    except GovSectionsError as exc:
        log.warning("Cannot read %s: %s", path, exc)
        return _failure(exc, exc.code, source=source_kind(path), file_name=path.name,
                        diagnostics=Diagnostics(context=path.name))
    except Exception as exc:
        log.exception("Unexpected error reading %s", path)
        return _failure(exc, PARSE_FAILED, source=source_kind(path), file_name=path.name,
                        diagnostics=Diagnostics(context=path.name))
    return parse_text(
        doc.text,
        effective,
        source=doc.source,
        file_name=doc.file_name,
        options=options,
    )
