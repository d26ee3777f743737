"""Core types and constants for the Apple Books export.

Types:
    Track       -- One audio file of an audiobook, as recorded in Books.plist.
    Book        -- A logical audiobook: author, title, narrator, ordered tracks.
    FileStatus  -- Diff classification (new, exists, source_missing).
    FileDiff    -- One track's resolved source/destination pair plus status.
    ExportStats -- Counters accumulated during a single export run.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePath

PLIST_FILENAME = "Books.plist"

# Apple Books container, relative to the user's home directory
DEFAULT_SOURCE_SUBPATH = Path(
    "Library/Containers/com.apple.BKAgentService/Data/Documents/iBooks/Books"
)

AUDIOBOOK_TYPE = "audiobook"
UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_TITLE = "Unknown Title"

# Recorded paths are rebased on the segment starting at this marker
AUDIOBOOKS_MARKER = "Audiobooks/"
HASH_FOLDER_PREFIX = "sha1-"

# Characters that are not allowed in a path segment
UNSAFE_FILENAME_CHARS = '/\\:*?"<>|'

# Dry-run report caps
ADD_DISPLAY_LIMIT = 20
SKIP_DISPLAY_LIMIT = 10


class FileStatus(StrEnum):
    NEW = "new"
    EXISTS = "exists"
    SOURCE_MISSING = "source_missing"


@dataclass(frozen=True)
class Track:
    """A single audio file belonging to a book."""

    track_number: int
    disc_number: int
    title: str
    path: Path  # as recorded by Apple Books, before remapping
    filename: str

    @classmethod
    def from_path(
        cls,
        path: str | PurePath,
        track_number: int = 0,
        disc_number: int = 0,
        title: str = "",
    ) -> "Track":
        p = Path(path)
        return cls(
            track_number=track_number,
            disc_number=disc_number,
            title=title,
            path=p,
            filename=p.name,
        )

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.disc_number, self.track_number)


@dataclass
class Book:
    """An audiobook reconstructed from one Books.plist entry."""

    title: str
    author: str = UNKNOWN_AUTHOR
    narrator: str | None = None
    folder_id: str = ""  # BKGeneratedItemId, informational only
    tracks: list[Track] = field(default_factory=list)

    @property
    def track_count(self) -> int:
        return len(self.tracks)


@dataclass(frozen=True)
class FileDiff:
    """Source/destination pair for one track and its filesystem state."""

    source_path: Path
    dest_path: Path
    status: FileStatus
    book_title: str
    author: str

    @property
    def book_key(self) -> str:
        return f"{self.author} - {self.book_title}"


@dataclass
class ExportStats:
    """Counters for one export run."""

    books_exported: int = 0
    files_copied: int = 0
    files_would_copy: int = 0
    files_already_exist: int = 0
    source_missing: int = 0
