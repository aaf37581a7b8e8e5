"""Hierarchy schemas and their compiled header matchers.

A :class:`HierarchySchema` is the ordered (coarse to fine) list of structural
levels an organization expects in its documents, e.g.::

    Article I          level 0, prefix "Article ", roman
      Section 1        level 1, prefix "Section ", numeric
        (a)            level 2, prefix "(",        alpha_lower

Each level compiles once into a :class:`LevelMatcher`, a tagged variant
(``literal_prefix`` | ``roman`` | ``arabic`` | ``alpha``) that the pattern
detector interprets uniformly. Schemas are immutable for the life of a parse.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from govsections import numbering
from govsections.errors import SchemaConfigError
from govsections.io_utils import load_json

# ---------------------------------------------------------------------------
# Level definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LevelDefinition:
    """One structural level of a hierarchy schema."""

    level_type: str      # "article", "section", "subsection", ...
    prefix: str          # "Article ", "Section ", "(", "" (no prefix)
    numbering: str       # one of numbering.NUMBERING_STYLES
    schema_index: int    # 0 = coarsest
    name: str = ""       # display name ("Article")

    def __post_init__(self) -> None:
        style = numbering.normalize_style(self.numbering)
        if style != self.numbering:
            object.__setattr__(self, "numbering", style)
        if not self.level_type:
            raise SchemaConfigError(
                f"Level {self.schema_index} has an empty level_type"
            )
        if style not in numbering.NUMBERING_STYLES:
            raise SchemaConfigError(
                f"Level {self.level_type!r} has unknown numbering {self.numbering!r}"
            )
        if style == numbering.NONE and not self.prefix.strip():
            raise SchemaConfigError(
                f"Level {self.level_type!r} has neither a prefix nor a numbering style"
            )

    @property
    def prefix_literal(self) -> str:
        """Prefix with surrounding whitespace removed (used for tie-breaks)."""
        return self.prefix.strip()

    def normalize_number(self, raw: str) -> str:
        """Canonical spelling of a matched number for this level."""
        token = raw.strip()
        if self.numbering == numbering.ROMAN:
            return token.upper()
        if self.numbering == numbering.ROMAN_LOWER:
            return token.lower()
        return token

    def render_label(self, number: str) -> str:
        """Render the citation label for ``number``, e.g. "Article IV", "(b)"."""
        prefix = " ".join(self.prefix.split())
        if not prefix:
            return number
        if prefix.endswith("("):
            return f"{prefix}{number})"
        if not number:
            return prefix
        if prefix[-1].isalnum():
            return f"{prefix} {number}"
        return f"{prefix}{number}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.level_type,
            "name": self.name,
            "prefix": self.prefix,
            "numbering": self.numbering,
        }


@dataclass(frozen=True, slots=True)
class HierarchySchema:
    """Ordered, immutable list of level definitions (coarse to fine)."""

    levels: tuple[LevelDefinition, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for i, level in enumerate(self.levels):
            if level.schema_index != i:
                raise SchemaConfigError(
                    f"Level {level.level_type!r} has schema_index "
                    f"{level.schema_index}, expected {i}"
                )
            if level.level_type in seen:
                raise SchemaConfigError(
                    f"Duplicate level_type {level.level_type!r} in schema"
                )
            seen.add(level.level_type)

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[LevelDefinition]:
        return iter(self.levels)

    @property
    def is_empty(self) -> bool:
        return not self.levels

    def level(self, level_type: str) -> LevelDefinition | None:
        for lvl in self.levels:
            if lvl.level_type == level_type:
                return lvl
        return None

    def prefixes(self) -> tuple[str, ...]:
        """Non-empty prefix literals, used by Markdown header stripping."""
        return tuple(lvl.prefix_literal for lvl in self.levels if lvl.prefix_literal)

    def to_dict(self) -> dict[str, Any]:
        return {"levels": [lvl.to_dict() for lvl in self.levels]}

    @classmethod
    def from_levels(cls, levels: list[dict[str, Any]]) -> HierarchySchema:
        """Build a schema from level dicts (``type``/``prefix``/``numbering``).

        ``depth`` keys from older configuration files are accepted and used
        only to order the levels; list order wins on ties.
        """
        for position, raw in enumerate(levels):
            if not isinstance(raw, dict):
                raise SchemaConfigError(f"Level {position} is not an object: {raw!r}")
        indexed = list(enumerate(levels))
        if any("depth" in raw for raw in levels):
            indexed.sort(key=lambda pair: (int(pair[1].get("depth", pair[0])), pair[0]))
        defs: list[LevelDefinition] = []
        for position, (_, raw) in enumerate(indexed):
            name = str(raw.get("name") or "")
            level_type = str(
                raw.get("type") or raw.get("level_type") or _slug(name)
            )
            defs.append(LevelDefinition(
                level_type=level_type,
                prefix=str(raw.get("prefix") or ""),
                numbering=str(raw.get("numbering") or ""),
                schema_index=position,
                name=name or level_type.replace("_", " ").title(),
            ))
        return cls(tuple(defs))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HierarchySchema:
        """Accept ``{"levels": [...]}`` or ``{"hierarchy": {"levels": [...]}}``."""
        if "hierarchy" in data and isinstance(data["hierarchy"], dict):
            data = data["hierarchy"]
        levels = data.get("levels") or []
        if not isinstance(levels, list):
            raise SchemaConfigError("'levels' must be a list")
        return cls.from_levels(levels)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


# ---------------------------------------------------------------------------
# Compiled matchers
# ---------------------------------------------------------------------------

KIND_LITERAL_PREFIX = "literal_prefix"
KIND_ROMAN = "roman"
KIND_ARABIC = "arabic"
KIND_ALPHA = "alpha"

_STYLE_KIND: dict[str, str] = {
    numbering.NONE: KIND_LITERAL_PREFIX,
    numbering.ROMAN: KIND_ROMAN,
    numbering.ROMAN_LOWER: KIND_ROMAN,
    numbering.NUMERIC: KIND_ARABIC,
    numbering.ALPHA: KIND_ALPHA,
    numbering.ALPHA_LOWER: KIND_ALPHA,
}

# Number token classes. Roman tokens are post-validated by roman_to_int.
_NUMBER_CLASS: dict[str, str] = {
    numbering.ROMAN: r"[IVXLCDM]+",
    numbering.ROMAN_LOWER: r"[ivxlcdm]+",
    numbering.ALPHA: r"[A-Z]{1,3}",
    numbering.ALPHA_LOWER: r"[a-z]{1,3}",
}
_PREFIXED_NUMERIC = r"\d+(?:\.\d+)*"
_BARE_NUMERIC = r"\d+"

# What may follow a header token: whitespace, punctuation, dashes, or EOL.
_TERMINATOR = r"(?=[\s.:;,)\-–—]|$)"


@dataclass(frozen=True, slots=True)
class LevelMatcher:
    """Compiled header matcher for one level.

    Every pattern is MULTILINE, anchored at line start (leading blanks
    allowed), and exposes two named groups: ``head`` (the header token as
    written) and ``number`` (the numbering token, absent for literal
    prefixes).
    """

    kind: str
    level: LevelDefinition
    patterns: tuple[re.Pattern[str], ...] = field(default=())

    def accepts(self, raw_number: str) -> bool:
        """Post-validate a matched number token against the level's style."""
        if self.kind == KIND_LITERAL_PREFIX:
            return True
        return numbering.is_valid_number(raw_number, self.level.numbering)


def _prefix_regex(prefix: str) -> str:
    """Escape a prefix literal, matching it case-insensitively."""
    words = prefix.split()
    escaped = r"[ \t]+".join(re.escape(w) for w in words)
    return f"(?i:{escaped})"


def compile_level(level: LevelDefinition) -> LevelMatcher:
    """Compile the header patterns for a single level."""
    kind = _STYLE_KIND[level.numbering]
    literal = level.prefix_literal
    anchor = r"^[ \t]*"

    if kind == KIND_LITERAL_PREFIX:
        pattern = re.compile(
            anchor + f"(?P<head>{_prefix_regex(literal)})" + _TERMINATOR,
            re.MULTILINE,
        )
        return LevelMatcher(kind=kind, level=level, patterns=(pattern,))

    if not literal:
        # No prefix: "1. Text", "a) Text" or "(1) Text" at line start.
        number_class = _NUMBER_CLASS.get(level.numbering, _BARE_NUMERIC)
        dotted = re.compile(
            anchor + f"(?P<head>(?P<number>{number_class})[.)])(?=[ \\t]+\\S)",
            re.MULTILINE,
        )
        paren = re.compile(
            anchor + f"(?P<head>\\([ \\t]*(?P<number>{number_class})[ \\t]*\\))"
            + r"(?=\s|$)",
            re.MULTILINE,
        )
        return LevelMatcher(kind=kind, level=level, patterns=(dotted, paren))

    number_class = _NUMBER_CLASS.get(level.numbering, _PREFIXED_NUMERIC)
    sep = r"[ \t]+" if literal[-1].isalnum() else r"[ \t]*"
    closer = r"[ \t]*\)" if literal.endswith("(") else ""
    pattern = re.compile(
        anchor
        + f"(?P<head>{_prefix_regex(literal)}{sep}(?P<number>{number_class}){closer})"
        + _TERMINATOR,
        re.MULTILINE,
    )
    return LevelMatcher(kind=kind, level=level, patterns=(pattern,))


@lru_cache(maxsize=64)
def compile_schema(schema: HierarchySchema) -> tuple[LevelMatcher, ...]:
    """Compile every level of ``schema`` in schema order."""
    return tuple(compile_level(level) for level in schema.levels)


# ---------------------------------------------------------------------------
# Templates and configuration loading
# ---------------------------------------------------------------------------

def _template(*levels: tuple[str, str, str]) -> HierarchySchema:
    return HierarchySchema.from_levels([
        {"name": name, "prefix": prefix, "numbering": style}
        for name, prefix, style in levels
    ])


DEFAULT_SCHEMA = _template(
    ("Article", "Article ", numbering.ROMAN),
    ("Section", "Section ", numbering.NUMERIC),
)

TEMPLATES: dict[str, HierarchySchema] = {
    "default": DEFAULT_SCHEMA,
    "standard-bylaws": _template(
        ("Article", "Article ", numbering.ROMAN),
        ("Section", "Section ", numbering.NUMERIC),
        ("Subsection", "", numbering.NUMERIC),
        ("Paragraph", "(", numbering.ALPHA_LOWER),
        ("Subparagraph", "(", numbering.ROMAN_LOWER),
    ),
    "legal-document": _template(
        ("Chapter", "Chapter ", numbering.ROMAN),
        ("Section", "Section ", numbering.NUMERIC),
        ("Clause", "Clause ", numbering.NUMERIC),
        ("Paragraph", "(", numbering.ALPHA_LOWER),
        ("Item", "(", numbering.ROMAN_LOWER),
    ),
    "policy-manual": _template(
        ("Part", "Part ", numbering.ROMAN),
        ("Section", "Section ", numbering.NUMERIC),
        ("Paragraph", "", numbering.NUMERIC),
        ("Subparagraph", "(", numbering.ALPHA_LOWER),
        ("Item", "", numbering.ALPHA_LOWER),
    ),
}


def get_template(name: str) -> HierarchySchema:
    """Return a built-in schema template by name."""
    try:
        return TEMPLATES[name]
    except KeyError:
        known = ", ".join(sorted(TEMPLATES))
        raise SchemaConfigError(
            f"Unknown hierarchy template {name!r} (known: {known})"
        ) from None


def load_schema(path: Path) -> HierarchySchema:
    """Load a hierarchy schema from a JSON file."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise SchemaConfigError(f"{path}: expected a JSON object")
    return HierarchySchema.from_dict(data)


def merge_override(
    base: HierarchySchema,
    override: HierarchySchema | None,
) -> HierarchySchema:
    """Return the effective schema for one document.

    A non-empty document override replaces the organization schema wholesale.
    """
    if override is not None and not override.is_empty:
        return override
    return base
