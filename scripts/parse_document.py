#!/usr/bin/env python3
"""Parse a governance document into hierarchical sections.

Prints the parse envelope as JSON. Optionally persists the sections to a
DuckDB section store (atomic full replace) and/or prints the TOC projection.

Usage:
    # Parse with the default Article/Section hierarchy
    python3 scripts/parse_document.py bylaws.txt

    # Use a built-in template and store the result
    python3 scripts/parse_document.py bylaws.docx --template standard-bylaws \
      --db corpus_index/sections.duckdb --doc-id acme-bylaws

    # Use an organization schema file and print the TOC instead
    python3 scripts/parse_document.py policy.md --schema org_schema.json --toc

    # Quick look: first 10 sections, depth distribution and validation report
    python3 scripts/parse_document.py bylaws.txt --preview 10
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from govsections.errors import GovSectionsError
from govsections.hierarchy import get_template, load_schema
from govsections.io_utils import dumps_pretty
from govsections.parser import ParseOptions, parse_document
from govsections.section_store import SectionStore
from govsections.toc import process_for_toc
from govsections.toc_filter import TocFilterConfig
from govsections.validation import depth_distribution, generate_preview

log = logging.getLogger("parse_document")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse a governance document into hierarchical sections."
    )
    parser.add_argument("path", type=Path, help="Document (.txt, .md, .docx)")
    schema_group = parser.add_mutually_exclusive_group()
    schema_group.add_argument(
        "--template", default="default",
        help="Built-in hierarchy template (default, standard-bylaws, "
             "legal-document, policy-manual)",
    )
    schema_group.add_argument(
        "--schema", type=Path, default=None,
        help="JSON hierarchy schema file ({\"levels\": [...]})",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Section store to write to (created if missing)",
    )
    parser.add_argument(
        "--doc-id", default=None,
        help="Document id in the store (default: file stem)",
    )
    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--toc", action="store_true",
        help="Print the TOC projection instead of the parse envelope",
    )
    output_group.add_argument(
        "--preview", type=int, default=None, metavar="N",
        help="Print a preview of the first N sections with the validation report",
    )
    parser.add_argument(
        "--no-toc-filter", action="store_true",
        help="Disable table-of-contents noise suppression",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        schema = load_schema(args.schema) if args.schema else get_template(args.template)
    except (GovSectionsError, OSError, ValueError) as exc:
        print(f"Error: cannot load hierarchy schema: {exc}", file=sys.stderr)
        return 2

    doc_id = args.doc_id or args.path.stem
    override = None
    if args.db is not None and args.db.exists():
        with SectionStore(args.db) as store:
            override = store.get_hierarchy_override(doc_id)
        if override is not None:
            log.info("Using stored hierarchy override for %s", doc_id)

    options = ParseOptions(toc=TocFilterConfig(enabled=not args.no_toc_filter))
    result = parse_document(args.path, schema, override=override, options=options)

    if result.success and args.db is not None:
        with SectionStore(args.db, create_if_missing=True) as store:
            store.replace_sections(doc_id, result.sections)

    if args.toc and result.success:
        payload = process_for_toc(result.sections).to_dict()
    elif args.preview is not None and result.success:
        payload = generate_preview(result.sections, args.preview)
        payload["depthDistribution"] = {
            str(depth): count for depth, count in depth_distribution(result.sections).items()
        }
        payload["validation"] = result.validation.to_dict()
    else:
        payload = result.to_dict()
    sys.stdout.buffer.write(dumps_pretty(payload))
    sys.stdout.flush()

    if not result.success:
        print(f"Error [{result.error_code}]: {result.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
