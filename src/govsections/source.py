"""Document source: turn a file on disk into normalized parse input.

Supported inputs:

    .txt                UTF-8 text
    .md / .markdown     UTF-8 text; "#" markers are stripped from headings
                        whose content starts with a configured level prefix
    .docx               paragraph text via python-docx, joined by newlines

Line endings are normalized to ``\\n``. Anything that prevents reading the
bytes raises :class:`~govsections.errors.SourceReadError`.
"""
from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from govsections.errors import SourceReadError
from govsections.hierarchy import HierarchySchema

log = logging.getLogger(__name__)

SOURCE_TEXT = "text"
SOURCE_MARKDOWN = "markdown"
SOURCE_WORD = "word"

_SOURCE_BY_SUFFIX: dict[str, str] = {
    ".txt": SOURCE_TEXT,
    ".text": SOURCE_TEXT,
    ".md": SOURCE_MARKDOWN,
    ".markdown": SOURCE_MARKDOWN,
    ".docx": SOURCE_WORD,
}

_MD_HEADING_RE = re.compile(r"^[ \t]*#{1,6}[ \t]+(?P<content>.+?)[ \t]*#*[ \t]*$")


@dataclass(frozen=True, slots=True)
class SourceDocument:
    text: str
    source: str       # "text" | "markdown" | "word"
    file_name: str


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def source_kind(path: Path) -> str:
    """Source label for ``path``; unknown suffixes are read as plain text."""
    return _SOURCE_BY_SUFFIX.get(path.suffix.lower(), SOURCE_TEXT)


def strip_markdown_headers(text: str, schema: HierarchySchema) -> str:
    """Remove ``#`` markers from headings that begin with a level prefix.

    "## Section 2 Quorum" becomes "Section 2 Quorum" when "Section" is a
    configured prefix. Other headings are left as written so their text is
    kept as body content.
    """
    prefixes = tuple(p.upper() for p in schema.prefixes())
    if not prefixes:
        return text
    out: list[str] = []
    for line in text.split("\n"):
        m = _MD_HEADING_RE.match(line)
        if m and m.group("content").upper().startswith(prefixes):
            out.append(m.group("content"))
        else:
            out.append(line)
    return "\n".join(out)


def _read_utf8(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SourceReadError(f"{path.name}: not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise SourceReadError(f"{path.name}: {exc.strerror or exc}") from exc


def _read_docx(path: Path) -> str:
    try:
        document = Document(str(path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as exc:
        raise SourceReadError(f"{path.name}: not a readable .docx package") from exc
    except OSError as exc:
        raise SourceReadError(f"{path.name}: {exc.strerror or exc}") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def read_source(path: Path, schema: HierarchySchema | None = None) -> SourceDocument:
    """Read ``path`` into a :class:`SourceDocument`.

    ``schema`` is only consulted for Markdown heading stripping.
    """
    path = Path(path)
    if not path.is_file():
        raise SourceReadError(f"{path}: no such file")

    kind = source_kind(path)
    if kind == SOURCE_WORD:
        text = _read_docx(path)
    else:
        text = _read_utf8(path)
    text = normalize_newlines(text)
    if kind == SOURCE_MARKDOWN and schema is not None:
        text = strip_markdown_headers(text, schema)

    log.debug("Read %s (%s, %d chars)", path.name, kind, len(text))
    return SourceDocument(text=text, source=kind, file_name=path.name)
