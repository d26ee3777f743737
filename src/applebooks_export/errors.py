"""Exception hierarchy for the Apple Books export."""

from pathlib import Path


class ExportError(Exception):
    """Base exception for all export errors."""


class PlistNotFoundError(ExportError):
    """Books.plist does not exist at the expected location."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Books.plist not found at {path}")
        self.path = path


class InvalidPlistError(ExportError):
    """Books.plist could not be decoded or has an unexpected shape."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid plist structure: {reason}")
        self.reason = reason


class NoAudiobooksFoundError(ExportError):
    """The library contains no usable audiobook entries."""

    def __init__(self) -> None:
        super().__init__("No audiobooks found in library")


class ExportIOError(ExportError):
    """A directory could not be created or a file could not be copied/linked."""

    def __init__(
        self,
        operation: str,
        source: Path | None,
        dest: Path,
        cause: OSError,
    ) -> None:
        if source is None:
            message = f"Failed to {operation} {dest}: {cause}"
        else:
            message = f"Failed to {operation} {source} -> {dest}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.source = source
        self.dest = dest
        self.cause = cause
