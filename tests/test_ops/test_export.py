"""Tests for ops/export.py -- copy/symlink execution and statistics."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from applebooks_export.errors import ExportIOError
from applebooks_export.models import Book, Track
from applebooks_export.ops.export import export_audiobooks

_RECORDED_ROOT = (
    "/Users/charlie/Library/Containers/com.apple.BKAgentService"
    "/Data/Documents/iBooks/Books"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _book(
    title: str,
    author: str,
    hash_id: str,
    filenames: list[str],
    narrator: str | None = None,
) -> Book:
    tracks = [
        Track.from_path(
            f"{_RECORDED_ROOT}/Audiobooks/{hash_id}/{name}", track_number=i + 1
        )
        for i, name in enumerate(filenames)
    ]
    return Book(
        title=title, author=author, narrator=narrator, folder_id=hash_id, tracks=tracks
    )


def _make_source(source: Path, hash_id: str, filenames: list[str]) -> None:
    folder = source / "Audiobooks" / hash_id
    folder.mkdir(parents=True, exist_ok=True)
    for name in filenames:
        (folder / name).write_bytes(f"audio {name}".encode())


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def dirs(tmp_path):
    source = tmp_path / "source"
    dest = tmp_path / "dest"
    source.mkdir()
    dest.mkdir()
    return source, dest


# ---------------------------------------------------------------------------
# Copy mode
# ---------------------------------------------------------------------------


class TestExportCopy:
    def test_creates_directory_structure(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-test123", ["01 Chapter 1.mp3"])
        book = _book("Test Book", "Test Author", "sha1-test123", ["01 Chapter 1.mp3"])

        stats = export_audiobooks([book], source, dest)

        assert stats.books_exported == 1
        assert stats.files_copied == 1
        copied = dest / "Test Author" / "Test Book" / "01 Chapter 1.mp3"
        assert copied.is_file()
        assert not copied.is_symlink()
        assert copied.read_bytes() == b"audio 01 Chapter 1.mp3"

    def test_narrator_folder(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-n", ["a.mp3"])
        book = _book("Title", "Author", "sha1-n", ["a.mp3"], narrator="Reader")

        export_audiobooks([book], source, dest)

        assert (dest / "Author" / "Title {Reader}" / "a.mp3").is_file()

    def test_missing_source_is_soft(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        books = [
            _book("Partial", "Author", "sha1-a", ["01.mp3", "02.mp3"]),
            _book("Gone", "Author", "sha1-gone", ["x.mp3"]),
        ]

        stats = export_audiobooks(books, source, dest)

        assert stats.books_exported == 2
        assert stats.files_copied == 1
        assert stats.source_missing == 2
        # directory is created before tracks are checked
        assert (dest / "Author" / "Gone").is_dir()

    def test_never_overwrites(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        existing = dest / "Author" / "Book" / "01.mp3"
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"keep me")

        stats = export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3"])], source, dest
        )

        assert stats.files_already_exist == 1
        assert stats.files_copied == 0
        assert existing.read_bytes() == b"keep me"

    def test_second_run_copies_nothing(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3", "02.mp3"])
        _make_source(source, "sha1-b", ["01.mp3"])
        books = [
            _book("Book A", "Author", "sha1-a", ["01.mp3", "02.mp3"]),
            _book("Book B", "Other", "sha1-b", ["01.mp3"]),
        ]

        first = export_audiobooks(books, source, dest)
        second = export_audiobooks(books, source, dest)

        assert first.files_copied == 3
        assert second.files_copied == 0
        assert second.files_already_exist == 3
        assert second.books_exported == 2

    def test_show_progress(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        stats = export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3"])],
            source,
            dest,
            show_progress=True,
        )
        assert stats.files_copied == 1


# ---------------------------------------------------------------------------
# Symlink mode
# ---------------------------------------------------------------------------


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
class TestExportSymlink:
    def test_creates_symlink(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])

        stats = export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3"])],
            source,
            dest,
            use_symlink=True,
        )

        link = dest / "Author" / "Book" / "01.mp3"
        assert stats.files_copied == 1
        assert link.is_symlink()
        assert Path(os.readlink(link)) == source / "Audiobooks" / "sha1-a" / "01.mp3"

    def test_relative_source_base_links_absolute(self, dirs, tmp_path, monkeypatch):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        monkeypatch.chdir(tmp_path)

        export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3"])],
            Path("source"),
            dest,
            use_symlink=True,
        )

        link = dest / "Author" / "Book" / "01.mp3"
        assert Path(os.readlink(link)).is_absolute()
        assert link.read_bytes() == b"audio 01.mp3"

    def test_dangling_link_is_not_replaced(self, dirs, tmp_path):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        link = dest / "Author" / "Book" / "01.mp3"
        link.parent.mkdir(parents=True)
        link.symlink_to(tmp_path / "nowhere.mp3")

        stats = export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3"])],
            source,
            dest,
            use_symlink=True,
        )

        assert stats.files_already_exist == 1
        assert stats.files_copied == 0
        assert Path(os.readlink(link)) == tmp_path / "nowhere.mp3"


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


class TestDryRun:
    def test_does_not_copy(self, dirs):
        source, dest = dirs
        book = _book("Dry Run Book", "Dry Run Author", "sha1-dryrun", ["track.mp3"])

        stats = export_audiobooks([book], source, dest, dry_run=True)

        assert stats.files_would_copy == 1
        assert stats.files_copied == 0
        assert stats.books_exported == 1
        assert not (dest / "Dry Run Author" / "Dry Run Book").exists()

    def test_leaves_destination_unchanged(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3", "02.mp3"])
        existing = dest / "Author" / "Book" / "01.mp3"
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"old")
        before = _snapshot(dest)

        stats = export_audiobooks(
            [_book("Book", "Author", "sha1-a", ["01.mp3", "02.mp3"])],
            source,
            dest,
            dry_run=True,
        )

        assert stats.files_would_copy == 2
        assert _snapshot(dest) == before


# ---------------------------------------------------------------------------
# Fatal I/O
# ---------------------------------------------------------------------------


class TestFatalErrors:
    def test_directory_creation_failure(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        # a file where the author directory should go
        (dest / "Author").write_bytes(b"")

        with pytest.raises(ExportIOError) as exc_info:
            export_audiobooks(
                [_book("Book", "Author", "sha1-a", ["01.mp3"])], source, dest
            )
        assert exc_info.value.operation == "create directory"
        assert exc_info.value.dest == dest / "Author" / "Book"

    def test_copy_failure_aborts_run(self, dirs):
        source, dest = dirs
        _make_source(source, "sha1-a", ["01.mp3"])
        _make_source(source, "sha1-b", ["01.mp3"])
        books = [
            _book("Book A", "Author", "sha1-a", ["01.mp3"]),
            _book("Book B", "Author", "sha1-b", ["01.mp3"]),
        ]

        with patch(
            "applebooks_export.ops.export.shutil.copy2",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(ExportIOError, match="Failed to copy") as exc_info:
                export_audiobooks(books, source, dest)

        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert not (dest / "Author" / "Book B").exists()
