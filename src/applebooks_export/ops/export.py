"""Copy (or symlink) audiobook tracks into the Audiobookshelf layout.

Existing destination files are never overwritten, so re-running an export
only fills in what is new. A missing source file is a warning; failing to
create a directory or copy a file aborts the whole run.
"""

from __future__ import annotations

import contextlib
import os
import shutil
from pathlib import Path

import click
from loguru import logger

from ..errors import ExportIOError
from ..models import Book, ExportStats
from .paths import build_book_dir, remap_track_path, track_dest_path

log = logger.bind(stage="export")


def _transfer(source_path: Path, dest_path: Path, use_symlink: bool) -> None:
    if use_symlink:
        log.debug(f"Symlink {source_path} -> {dest_path}")
        try:
            os.symlink(source_path.absolute(), dest_path)
        except OSError as e:
            raise ExportIOError("symlink", source_path, dest_path, e) from e
        return

    log.debug(f"Copy {source_path} -> {dest_path}")
    try:
        shutil.copy2(source_path, dest_path)
    except OSError as e:
        raise ExportIOError("copy", source_path, dest_path, e) from e


def _export_book(
    book: Book,
    source_base: Path,
    dest: Path,
    dry_run: bool,
    use_symlink: bool,
    stats: ExportStats,
) -> None:
    book_dir = build_book_dir(dest, book)

    if not dry_run:
        try:
            book_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportIOError("create directory", None, book_dir, e) from e

    for track in book.tracks:
        source_path = remap_track_path(track.path, source_base)
        dest_path = track_dest_path(book_dir, track)

        if dry_run:
            action = "symlink" if use_symlink else "copy"
            log.info(f"Would {action} {source_path} -> {dest_path}")
            stats.files_would_copy += 1
        elif not source_path.exists():
            log.warning(f"Source file not found: {source_path}")
            stats.source_missing += 1
        elif dest_path.exists() or dest_path.is_symlink():
            log.debug(f"Skip (already exists): {dest_path}")
            stats.files_already_exist += 1
        else:
            _transfer(source_path, dest_path, use_symlink)
            stats.files_copied += 1

    stats.books_exported += 1


def export_audiobooks(
    books: list[Book],
    source_base: Path,
    dest: Path,
    dry_run: bool = False,
    use_symlink: bool = False,
    show_progress: bool = False,
) -> ExportStats:
    """Export every book in catalog order and return the run's counters.

    use_symlink must already reflect platform support; callers resolve it
    with ops.paths.symlinks_supported().
    Raises ExportIOError on the first directory or copy/link failure.
    """
    log.info(
        f"Exporting {len(books)} audiobooks: source={source_base} dest={dest} "
        f"dry_run={dry_run} symlink={use_symlink}"
    )
    stats = ExportStats()

    if show_progress:
        bar_ctx = click.progressbar(
            books,
            label="Exporting",
            show_eta=True,
            show_pos=True,
            item_show_func=lambda b: f"{b.author} - {b.title}" if b else "",
        )
    else:
        bar_ctx = contextlib.nullcontext(books)

    with bar_ctx as bar:
        for book in bar:
            _export_book(book, source_base, dest, dry_run, use_symlink, stats)

    log.info(
        f"Export complete: {stats.books_exported} books, "
        f"{stats.files_copied} copied, {stats.files_already_exist} existing, "
        f"{stats.source_missing} missing"
    )
    return stats
