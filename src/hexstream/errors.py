"""Exceptions raised by the dump engine.

The message of each exception is what the command line prints after
``Error:``. A start offset past the end of the file is not an error: the
session logs a warning and dumps from offset 0 instead.
"""

from __future__ import annotations

from pathlib import Path


class HexstreamError(Exception):
    """Base class for every error the engine raises."""


class InvalidArgumentError(HexstreamError, ValueError):
    """A dump option is malformed (block size, negative start offset)."""


class FileAccessError(HexstreamError):
    """The target file cannot be used for a dump."""

    def __init__(self, path: str | Path, message: str) -> None:
        super().__init__(message)
        self.path = Path(path)


class NotFoundError(FileAccessError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(path, f"cannot open file {path}")


class PermissionDeniedError(FileAccessError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(path, f"cannot open file {path}: permission denied")


class IsDirectoryError(FileAccessError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(path, "hexstream only works on files")


class EmptyFileError(FileAccessError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(path, "empty file")


class ReadFailureError(HexstreamError):
    """Reading a chunk failed after the dump started."""

    def __init__(self, path: str | Path, offset: int, reason: str) -> None:
        super().__init__(f"read failed at offset {offset:#x} in {path}: {reason}")
        self.path = Path(path)
        self.offset = offset
