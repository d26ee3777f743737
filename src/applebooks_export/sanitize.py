"""Filename sanitization for path segments built from metadata."""

from loguru import logger

from .models import UNSAFE_FILENAME_CHARS

log = logger.bind(stage="sanitize")

_UNSAFE_TABLE = str.maketrans({c: "_" for c in UNSAFE_FILENAME_CHARS})


def sanitize_filename(name: str) -> str:
    """Sanitize a single path component (not a full path).

    Each unsafe char is replaced 1:1 with an underscore; everything else,
    including non-ASCII text, is kept. Outer whitespace is stripped last.
    """
    sanitized = name.translate(_UNSAFE_TABLE).strip()
    if sanitized != name:
        log.debug(f"sanitize_filename: '{name}' -> '{sanitized}'")
    return sanitized
