"""Windowed byte access over a file of any size.

Only one window of ``capacity`` bytes is held in memory. Lookups are by
absolute file offset; a lookup outside the window reloads it in place so
that it starts at the requested offset.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import BinaryIO, Optional

from hexstream.errors import (
    EmptyFileError,
    IsDirectoryError,
    NotFoundError,
    PermissionDeniedError,
    ReadFailureError,
)

# 512 KiB: large enough to keep syscalls rare, small enough for slow
# removable media (USB 1.x sticks).
BUFFER_LENGTH = 512 * 1024

_log = logging.getLogger("hexstream")


class WindowedByteSource:
    """Byte-addressable view of a file backed by a single reusable buffer."""

    def __init__(self, path: str | Path, capacity: int = BUFFER_LENGTH) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.path = Path(path)
        self.capacity = capacity
        self.size = 0
        self.window_start = 0
        self.refills = 0
        self._file: Optional[BinaryIO] = None
        self._buffer = bytearray(capacity)
        self._loaded = 0

    def __enter__(self) -> WindowedByteSource:
        if self._file is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Lifecycle ──────────────────────────────────────────────────

    def _stat(self) -> os.stat_result:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            raise NotFoundError(self.path) from None
        except PermissionError:
            raise PermissionDeniedError(self.path) from None
        except OSError:
            raise NotFoundError(self.path) from None

        if stat.S_ISDIR(st.st_mode):
            raise IsDirectoryError(self.path)
        if not st.st_size:
            raise EmptyFileError(self.path)
        return st

    def open(self, start_offset: int = 0) -> WindowedByteSource:
        """Stat and open the file, then load the chunk covering ``start_offset``.

        The size is recorded once here and never re-read. A start offset
        outside the file loads the first chunk instead.
        """
        st = self._stat()
        try:
            self._file = open(self.path, "rb", buffering=0)
        except PermissionError:
            raise PermissionDeniedError(self.path) from None
        except IsADirectoryError:
            raise IsDirectoryError(self.path) from None
        except OSError:
            raise NotFoundError(self.path) from None

        self.size = st.st_size
        if not 0 <= start_offset < self.size:
            start_offset = 0
        try:
            self._fill(start_offset)
        except BaseException:
            self.close()
            raise
        return self

    def close(self) -> None:
        """Release the file handle. Safe to call more than once."""
        if self._file is not None:
            self._file.close()
            self._file = None
        self._loaded = 0

    @property
    def closed(self) -> bool:
        return self._file is None

    # ── Reads ──────────────────────────────────────────────────────

    def _fill(self, offset: int) -> None:
        """Reload the window so that it starts at ``offset``."""
        if self._file is None:
            raise RuntimeError("Source not open. Call open() or use as context manager.")
        try:
            self._file.seek(offset)
            count = self._file.readinto(self._buffer) or 0
        except OSError as e:
            raise ReadFailureError(self.path, offset, e.strerror or str(e)) from e

        if count == 0:
            raise ReadFailureError(self.path, offset, "file is shorter than when it was opened")

        self.window_start = offset
        self._loaded = count
        self.refills += 1
        _log.debug("loaded %d bytes at offset %#x from %s", count, offset, self.path)

    def byte_at(self, offset: int) -> int | None:
        """Return the byte at absolute ``offset``, or None past the end of the file."""
        if offset < 0 or offset >= self.size:
            return None
        rel = offset - self.window_start
        if rel < 0 or rel >= self._loaded:
            self._fill(offset)
            rel = 0
        return self._buffer[rel]

    def read_line(self, offset: int, width: int) -> list[int | None]:
        """Return ``width`` consecutive lookups starting at ``offset``."""
        return [self.byte_at(offset + pos) for pos in range(width)]
