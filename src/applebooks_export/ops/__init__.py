"""File operations for the Apple Books export.

Submodules:
    paths        -- Pure path arithmetic. remap_track_path rebases recorded
                    /Users/... paths onto the directory actually being read
                    ("Audiobooks/" suffix, then sha1-<hash>/<file> fallback).
                    build_book_dir builds Author/Title {Narrator}/.
                    symlinks_supported is the platform capability probe.
    library_diff -- compute_diff classifies each track as new, exists or
                    source_missing (existence checks only). summarize_diff
                    groups the result per book for the dry-run report.
    export       -- export_audiobooks creates book folders and copies or
                    symlinks tracks. Never overwrites; missing sources are
                    warnings, I/O failures abort with ExportIOError.
"""
