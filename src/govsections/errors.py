"""Exception taxonomy for governance document parsing.

Only fatal conditions are exceptions. Recoverable conditions (unaligned
headers, conflicting patterns, orphan text, duplicate citations) are reported
through :mod:`govsections.diagnostics` instead and never raised.
"""
from __future__ import annotations


class GovSectionsError(Exception):
    """Base class for every error raised by this package."""

    code = "parse_failed"


class SourceReadError(GovSectionsError):
    """Raised when source bytes cannot be read or decoded."""

    code = "source_unavailable"


class SchemaMissingError(GovSectionsError):
    """Raised when a parse is attempted with no hierarchy levels configured.

    Kept distinct from a generic parse failure so callers can tell
    "no structure configured" apart from "parser crashed".
    """

    code = "schema_missing"


class SchemaConfigError(GovSectionsError):
    """Raised when a level definition is malformed (unknown numbering etc.)."""

    code = "schema_invalid"


class SchemaVersionError(GovSectionsError):
    """Raised when a section store schema version does not match expected."""

    code = "store_schema_mismatch"
