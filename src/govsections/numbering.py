"""Numbering scheme utilities.

Converts and validates the numbering tokens used by hierarchy levels:

  numeric      1, 2, 3, ... (prefixed levels also accept dotted 1.01)
  roman        I, II, III, IV, ...
  roman_lower  i, ii, iii, iv, ...
  alpha        A, B, ..., Z, AA, AB, ...
  alpha_lower  a, b, ..., z, aa, ab, ...
  none         literal prefix only, no number
"""
from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Style names
# ---------------------------------------------------------------------------

NUMERIC = "numeric"
ROMAN = "roman"
ROMAN_LOWER = "roman_lower"
ALPHA = "alpha"
ALPHA_LOWER = "alpha_lower"
NONE = "none"

NUMBERING_STYLES: frozenset[str] = frozenset({
    NUMERIC, ROMAN, ROMAN_LOWER, ALPHA, ALPHA_LOWER, NONE,
})

# Accepted spellings from older configuration files.
_STYLE_ALIASES: dict[str, str] = {
    "arabic": NUMERIC,
    "number": NUMERIC,
    "alphaLower": ALPHA_LOWER,
    "alpha-lower": ALPHA_LOWER,
    "romanLower": ROMAN_LOWER,
    "roman-lower": ROMAN_LOWER,
    "": NONE,
}

# ---------------------------------------------------------------------------
# Roman numerals
# ---------------------------------------------------------------------------

_ROMAN_PAIRS: tuple[tuple[int, str], ...] = (
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
)

_ROMAN_DIGITS: dict[str, int] = {
    "I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000,
}

_DOTTED_NUMERIC_RE = re.compile(r"^\d+(?:\.\d+)*$")


def normalize_style(style: str) -> str:
    """Return the canonical style name, or the input unchanged if unknown."""
    return _STYLE_ALIASES.get(style, style)


def int_to_roman(n: int) -> str:
    """Convert 1..3999 to an upper-case roman numeral.

    Out-of-range values are returned as decimal strings.
    """
    if n <= 0 or n >= 4000:
        return str(n)
    out: list[str] = []
    remaining = n
    for value, numeral in _ROMAN_PAIRS:
        while remaining >= value:
            out.append(numeral)
            remaining -= value
    return "".join(out)


def roman_to_int(s: str) -> int | None:
    """Convert a roman numeral (any case) to int.

    Returns None unless ``s`` is the canonical spelling of its value, so
    "IIII" and "VX" are rejected rather than silently summed.
    """
    token = s.strip().upper()
    if not token:
        return None
    total = 0
    prev = 0
    for ch in reversed(token):
        value = _ROMAN_DIGITS.get(ch)
        if value is None:
            return None
        if value < prev:
            total -= value
        else:
            total += value
            prev = value
    if total <= 0 or int_to_roman(total) != token:
        return None
    return total


# ---------------------------------------------------------------------------
# Alphabetic numbering
# ---------------------------------------------------------------------------

def int_to_alpha(n: int, *, lowercase: bool = False) -> str:
    """Convert 1 -> A, 26 -> Z, 27 -> AA (bijective base 26)."""
    if n <= 0:
        return ""
    base = ord("a") if lowercase else ord("A")
    out: list[str] = []
    while n > 0:
        n, rem = divmod(n - 1, 26)
        out.append(chr(base + rem))
    return "".join(reversed(out))


def alpha_to_int(s: str) -> int | None:
    """Convert A -> 1, Z -> 26, AA -> 27 (case-insensitive)."""
    token = s.strip().upper()
    if not token or not token.isascii() or not token.isalpha():
        return None
    total = 0
    for ch in token:
        total = total * 26 + (ord(ch) - ord("A") + 1)
    return total


# ---------------------------------------------------------------------------
# Style-directed helpers
# ---------------------------------------------------------------------------

def is_valid_number(token: str, style: str) -> bool:
    """Check whether ``token`` is well-formed for the numbering ``style``."""
    style = normalize_style(style)
    if style == NONE:
        return token == ""
    if style == NUMERIC:
        return bool(_DOTTED_NUMERIC_RE.match(token))
    if style == ROMAN:
        return token.isupper() and roman_to_int(token) is not None
    if style == ROMAN_LOWER:
        return token.islower() and roman_to_int(token) is not None
    if style == ALPHA:
        return token.isupper() and alpha_to_int(token) is not None
    if style == ALPHA_LOWER:
        return token.islower() and alpha_to_int(token) is not None
    return False


def parse_number(token: str, style: str) -> int:
    """Return the ordinal value of ``token`` (0 when unparseable).

    Dotted numerics ("1.01") yield their first component.
    """
    style = normalize_style(style)
    if style == NUMERIC:
        head = token.split(".", 1)[0]
        return int(head) if head.isdigit() else 0
    if style in (ROMAN, ROMAN_LOWER):
        return roman_to_int(token) or 0
    if style in (ALPHA, ALPHA_LOWER):
        return alpha_to_int(token) or 0
    return 0


def format_number(n: int, style: str) -> str:
    """Render ordinal ``n`` in the given style."""
    style = normalize_style(style)
    if style == ROMAN:
        return int_to_roman(n)
    if style == ROMAN_LOWER:
        return int_to_roman(n).lower()
    if style == ALPHA:
        return int_to_alpha(n)
    if style == ALPHA_LOWER:
        return int_to_alpha(n, lowercase=True)
    if style == NONE:
        return ""
    return str(n)
