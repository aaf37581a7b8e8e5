"""JSON file I/O (orjson-backed)."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    path.write_bytes(orjson.dumps(obj, option=opts))


def dumps_pretty(obj: Any) -> bytes:
    """Serialize ``obj`` as indented JSON bytes with a trailing newline."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2) + b"\n"
