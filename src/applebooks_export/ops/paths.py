"""Map Books.plist paths onto the source mount and the Audiobookshelf layout.

Both sides are pure path arithmetic; nothing here touches the filesystem.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path, PurePath

from loguru import logger

from ..models import (
    AUDIOBOOKS_MARKER,
    HASH_FOLDER_PREFIX,
    UNKNOWN_AUTHOR,
    UNKNOWN_TITLE,
    Book,
    Track,
)
from ..sanitize import sanitize_filename

log = logger.bind(stage="paths")


def remap_track_path(track_path: str | PurePath, source_base: Path) -> Path:
    """Rebase a recorded track path onto the directory actually being read.

    Books.plist stores absolute paths from the machine that wrote it
    (/Users/<name>/Library/...), while the library may be read from a
    different mount or a backup copy.

    Resolution order:
      1. Everything from the first "Audiobooks/" onwards, joined to source_base.
      2. A trailing sha1-<hash>/<file> pair, joined to source_base/Audiobooks.
      3. The recorded path unchanged.
    """
    path_str = str(track_path)

    idx = path_str.find(AUDIOBOOKS_MARKER)
    if idx != -1:
        return source_base / path_str[idx:]

    parts = PurePath(path_str).parts
    if len(parts) >= 2:
        folder, filename = parts[-2], parts[-1]
        if folder.startswith(HASH_FOLDER_PREFIX):
            return source_base / "Audiobooks" / folder / filename

    log.debug(f"remap_track_path: no marker in {path_str}, using as-is")
    return Path(path_str)


def _segment(value: str, fallback: str) -> str:
    """Sanitize a folder name, falling back when nothing usable is left."""
    segment = sanitize_filename(value)
    if not segment:
        log.debug(f"Empty folder name from {value!r}, using '{fallback}'")
        return fallback
    return segment


def build_book_dir(dest: Path, book: Book) -> Path:
    """Build the Audiobookshelf folder for a book.

    Structure:
      - With narrator: Author/Title {Narrator}/
      - Without:       Author/Title/

    Names that sanitize to nothing fall back to Unknown Author/Unknown Title,
    and a blank narrator drops the {Narrator} suffix.
    """
    author_dir = _segment(book.author, UNKNOWN_AUTHOR)
    title_dir = _segment(book.title, UNKNOWN_TITLE)
    narrator = sanitize_filename(book.narrator) if book.narrator is not None else ""
    if narrator:
        title_dir = f"{title_dir} {{{narrator}}}"
    return dest / author_dir / title_dir


def track_dest_path(book_dir: Path, track: Track) -> Path:
    return book_dir / track.filename


def symlinks_supported() -> bool:
    """Whether this platform can create symlinks without special privileges."""
    return hasattr(os, "symlink") and sys.platform != "win32"
