"""Compare the Apple Books catalog against an Audiobookshelf destination.

compute_diff() classifies every track without touching anything but
existence checks. summarize_diff() groups the result per book for the
dry-run report; display caps are left to the renderer.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ..models import Book, FileDiff, FileStatus
from .paths import build_book_dir, remap_track_path, track_dest_path

log = logger.bind(stage="library-diff")


@dataclass
class DiffSummary:
    """Per-status totals and sorted book groups for a diff."""

    new_files: int = 0
    existing_files: int = 0
    missing_files: int = 0
    # (book_key, number of new files), sorted by book_key
    to_add: list[tuple[str, int]] = field(default_factory=list)
    existing_books: list[str] = field(default_factory=list)
    missing_books: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "new_files": self.new_files,
            "existing_files": self.existing_files,
            "missing_files": self.missing_files,
            "books_to_add": [
                {"book": key, "files": count} for key, count in self.to_add
            ],
            "existing_books": self.existing_books,
            "missing_books": self.missing_books,
        }


def _classify(source_path: Path, dest_path: Path) -> FileStatus:
    if not source_path.exists():
        return FileStatus.SOURCE_MISSING
    # a dangling symlink still occupies the destination name
    if dest_path.exists() or dest_path.is_symlink():
        return FileStatus.EXISTS
    return FileStatus.NEW


def compute_diff(books: list[Book], source_base: Path, dest: Path) -> list[FileDiff]:
    """Classify every track of every book, in catalog order."""
    diffs: list[FileDiff] = []

    for book in books:
        book_dir = build_book_dir(dest, book)
        for track in book.tracks:
            source_path = remap_track_path(track.path, source_base)
            dest_path = track_dest_path(book_dir, track)
            status = _classify(source_path, dest_path)
            log.debug(f"{status}: {source_path} -> {dest_path}")
            diffs.append(
                FileDiff(
                    source_path=source_path,
                    dest_path=dest_path,
                    status=status,
                    book_title=book.title,
                    author=book.author,
                )
            )

    return diffs


def summarize_diff(diffs: list[FileDiff]) -> DiffSummary:
    """Group diff entries by book for reporting."""
    books_to_add: dict[str, int] = defaultdict(int)
    existing: set[str] = set()
    missing: set[str] = set()
    summary = DiffSummary()

    for diff in diffs:
        if diff.status == FileStatus.NEW:
            summary.new_files += 1
            books_to_add[diff.book_key] += 1
        elif diff.status == FileStatus.EXISTS:
            summary.existing_files += 1
            existing.add(diff.book_key)
        else:
            summary.missing_files += 1
            missing.add(diff.book_key)

    summary.to_add = sorted(books_to_add.items())
    summary.existing_books = sorted(existing)
    summary.missing_books = sorted(missing)

    log.info(
        f"Diff complete: {summary.new_files} new, "
        f"{summary.existing_files} existing, {summary.missing_files} missing"
    )
    return summary
