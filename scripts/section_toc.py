#!/usr/bin/env python3
"""Print the table of contents / navigation for a stored document.

Usage:
    # Full TOC projection (hierarchical + flat + metadata)
    python3 scripts/section_toc.py --db corpus_index/sections.duckdb --doc-id acme-bylaws

    # Navigation around section number 12, with two sections locked
    python3 scripts/section_toc.py --db corpus_index/sections.duckdb --doc-id acme-bylaws \
      --nav 12 --locked sec-0003 --locked sec-0007
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from govsections.io_utils import dumps_pretty
from govsections.section_store import SectionStore
from govsections.toc import assign_section_numbers, get_section_navigation, process_for_toc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print the TOC projection of a stored document."
    )
    parser.add_argument("--db", required=True, type=Path, help="Path to sections.duckdb")
    parser.add_argument("--doc-id", required=True, help="Document ID")
    parser.add_argument(
        "--locked", action="append", default=[], metavar="SECTION_ID",
        help="Section id to report as locked (repeatable)",
    )
    parser.add_argument(
        "--nav", type=int, default=None, metavar="NUMBER",
        help="Print prev/next/parent navigation for this 1-based section number",
    )
    parser.add_argument(
        "--flat", action="store_true",
        help="Print only the flat, indented TOC as text",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.db.exists():
        print(f"Error: database not found: {args.db}", file=sys.stderr)
        return 1

    with SectionStore(args.db) as store:
        sections = store.load_sections(args.doc_id)
    if not sections:
        print(f"Error: no sections stored for {args.doc_id}", file=sys.stderr)
        return 1

    if args.nav is not None:
        nav = get_section_navigation(assign_section_numbers(sections), args.nav)
        sys.stdout.buffer.write(dumps_pretty(nav.to_dict()))
        return 0

    result = process_for_toc(sections, locked_ids=args.locked)
    if args.flat:
        for entry in result.flat_toc:
            lock = " [locked]" if entry.is_locked else ""
            title = f" {entry.title}" if entry.title else ""
            print(f"{'  ' * entry.indent_level}{entry.number}. {entry.citation}{title}{lock}")
        return 0

    sys.stdout.buffer.write(dumps_pretty(result.to_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
