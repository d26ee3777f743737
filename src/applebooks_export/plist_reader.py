"""Read Apple Books' Books.plist and build the audiobook catalog.

Books.plist mixes ebooks, PDFs and audiobooks in a single ``Books`` array.
Only entries whose ``BKBookType`` is ``audiobook`` are kept. Every field is
read through a soft accessor that returns None on absence or type mismatch,
so a malformed entry is skipped (or defaulted) rather than failing the run.
Only the document shape itself (root dict, ``Books`` array) and an empty
result are fatal.
"""

from __future__ import annotations

import plistlib
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from loguru import logger

from .errors import InvalidPlistError, NoAudiobooksFoundError, PlistNotFoundError
from .models import AUDIOBOOK_TYPE, UNKNOWN_AUTHOR, UNKNOWN_TITLE, Book, Track

log = logger.bind(stage="plist")


# ---------------------------------------------------------------------------
# Soft accessors
# ---------------------------------------------------------------------------


def _get_array(d: dict, key: str) -> list | None:
    value = d.get(key)
    return value if isinstance(value, list) else None


def _get_str(d: dict, key: str) -> str | None:
    value = d.get(key)
    return value if isinstance(value, str) else None


def _get_uint(d: dict, key: str) -> int | None:
    value = d.get(key)
    # plistlib decodes <true/> as bool, which is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


# ---------------------------------------------------------------------------
# Entry parsing
# ---------------------------------------------------------------------------


def _parse_track(part: dict) -> Track | None:
    """Build a Track from one BKParts element, or None if it has no path."""
    path_str = _get_str(part, "path") or ""
    if not path_str:
        return None

    track_number = _get_uint(part, "BKTrackNumber")
    disc_number = _get_uint(part, "BKDiscNumber")
    return Track.from_path(
        path_str,
        track_number=track_number if track_number is not None else 0,
        disc_number=disc_number if disc_number is not None else 0,
        title=_get_str(part, "BKTrackTitle") or "",
    )


def parse_audiobook_entry(value: Any) -> Book | None:
    """Parse a single element of the ``Books`` array.

    Returns None for anything that is not a usable audiobook: non-dict
    values, other book types, and audiobooks left with an empty title or
    no tracks.
    """
    if not isinstance(value, dict):
        return None

    book_type = _get_str(value, "BKBookType") or ""
    if book_type != AUDIOBOOK_TYPE:
        return None

    folder_id = _get_str(value, "BKGeneratedItemId") or ""
    author = _get_str(value, "artistName")
    if author is None:
        author = UNKNOWN_AUTHOR

    title: str | None = None
    narrator: str | None = None
    tracks: list[Track] = []

    for part in _get_array(value, "BKParts") or []:
        if not isinstance(part, dict):
            continue

        # Title comes from the first part only
        if title is None:
            title = _get_str(part, "itemName")
            if title is None:
                title = UNKNOWN_TITLE

        # Audiobooks store the narrator in the composer tag
        if narrator is None:
            narrator = _get_str(part, "composer") or None

        track = _parse_track(part)
        if track is not None:
            tracks.append(track)

    # sorted() is stable: equal (disc, track) keys keep plist order
    tracks = sorted(tracks, key=lambda t: t.sort_key)

    if not title or not tracks:
        log.debug(
            f"Skipping audiobook entry {folder_id or '<no id>'}: "
            f"title={title!r} tracks={len(tracks)}"
        )
        return None

    return Book(
        title=title,
        author=author,
        narrator=narrator,
        folder_id=folder_id,
        tracks=tracks,
    )


def parse_library(document: Any) -> list[Book]:
    """Build the catalog from a decoded Books.plist document.

    Raises InvalidPlistError when the root is not a dict or has no
    ``Books`` array, NoAudiobooksFoundError when nothing survives filtering.
    """
    if not isinstance(document, dict):
        raise InvalidPlistError("Root is not a dictionary")

    books_array = _get_array(document, "Books")
    if books_array is None:
        raise InvalidPlistError("Missing 'Books' array")

    books: list[Book] = []
    for entry in books_array:
        book = parse_audiobook_entry(entry)
        if book is not None:
            books.append(book)

    log.debug(f"{len(books)} audiobooks out of {len(books_array)} library entries")

    if not books:
        raise NoAudiobooksFoundError()

    return books


def load_library(plist_path: Path) -> list[Book]:
    """Read Books.plist (XML or binary) and return its audiobooks."""
    if not plist_path.exists():
        raise PlistNotFoundError(plist_path)

    log.debug(f"Loading {plist_path}")
    try:
        with open(plist_path, "rb") as fh:
            document = plistlib.load(fh)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        raise InvalidPlistError(f"Failed to parse plist at {plist_path}: {e}") from e

    books = parse_library(document)
    log.info(f"Loaded {len(books)} audiobooks from {plist_path}")
    return books
