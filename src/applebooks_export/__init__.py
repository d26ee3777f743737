"""Apple Books export -- copy audiobooks into an Audiobookshelf library layout.

Core modules:
    config        -- Export configuration via pydantic-settings (.env + env vars).
                     Default source is the per-user Apple Books container,
                     resolved once when the config is built.
    cli           -- Click CLI entry point. CLI flags passed as kwargs to
                     ExportConfig (no env pollution). Dry runs print a diff report.
    plist_reader  -- Books.plist reader. Soft accessors default missing fields;
                     only the document shape and an empty catalog are fatal.
    models        -- Track, Book, FileDiff, ExportStats and shared constants
    errors        -- ExportError hierarchy
    sanitize      -- Filename sanitization for path segments

Subpackages:
    ops -- Path remapping, destination layout, diff and export execution
"""
