"""Storage-safe filenames and object paths for uploaded files."""

from __future__ import annotations

import re
import time
from pathlib import PurePath

# Characters the admin uploader has always replaced before building a
# storage key: [ ] { } ( ) * + ? . , \ ^ $ | # and any whitespace.
_UNSAFE_CHARS = re.compile(r"[\[\]{}()*+?.,\\^$|#\s]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def sanitize_filename(filename: str) -> str:
    """Return *filename* with unsafe characters replaced by underscores.

    The extension is kept (its dot would otherwise be replaced), runs of
    underscores collapse to one and leading/trailing underscores are
    trimmed.

    >>> sanitize_filename("Voyah Courage (2024) manual.v2.pdf")
    'Voyah_Courage_2024_manual_v2.pdf'
    """
    name = PurePath(filename).name
    suffix = PurePath(name).suffix
    stem = name[: -len(suffix)] if suffix else name

    cleaned = _UNDERSCORE_RUNS.sub("_", _UNSAFE_CHARS.sub("_", stem)).strip("_")
    ext = _UNSAFE_CHARS.sub("", suffix[1:]).lower() if suffix else ""

    if not cleaned:
        cleaned = "file"
    return f"{cleaned}.{ext}" if ext else cleaned


def timestamped_path(prefix: str, filename: str, now_ms: int | None = None) -> str:
    """Build ``{prefix}/{millis}-{sanitized}``, the layout used in every bucket."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{prefix.strip('/')}/{stamp}-{sanitize_filename(filename)}"
