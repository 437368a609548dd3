"""One dump of one file: option validation, start offset policy and the line loop."""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hexstream.errors import InvalidArgumentError
from hexstream.render import BLOCK_SIZES, LineRenderer
from hexstream.source import BUFFER_LENGTH, WindowedByteSource

ASCII_ONLY_ENV = "HEXSTREAM_ASCII_ONLY"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

_log = logging.getLogger("hexstream")


def resolve_restrictive(
    environ: Mapping[str, str] | None = None, platform: str | None = None
) -> bool:
    """Decide once whether the character gloss is limited to printable ASCII.

    ``HEXSTREAM_ASCII_ONLY`` wins when set to a recognised value; otherwise
    Windows consoles get the restricted gloss.
    """
    env = os.environ if environ is None else environ
    plat = sys.platform if platform is None else platform

    raw = env.get(ASCII_ONLY_ENV)
    if raw is not None:
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        _log.warning(
            "Ignoring %s=%r: expected one of 1/0/true/false/yes/no/on/off", ASCII_ONLY_ENV, raw
        )
    return plat == "win32"


@dataclass(frozen=True)
class DumpConfig:
    show_offset: bool = True
    show_hex: bool = True
    start_offset: int = 0
    block_size: int = 8
    restrictive: bool = field(default_factory=resolve_restrictive)

    def __post_init__(self) -> None:
        if self.block_size not in BLOCK_SIZES:
            raise InvalidArgumentError(
                f"block size can only be {', '.join(str(b) for b in BLOCK_SIZES)}"
            )
        if self.start_offset < 0:
            raise InvalidArgumentError("start offset must be >= 0")


class FileSession:
    """Owns the byte source for one file and drives the dump.

    Use as a context manager so the file handle is released on every path::

        with FileSession(path, DumpConfig()) as session:
            session.run(print)
    """

    def __init__(
        self,
        path: str | Path,
        config: DumpConfig | None = None,
        capacity: int = BUFFER_LENGTH,
    ) -> None:
        self.path = Path(path)
        self.config = config or DumpConfig()
        self.source = WindowedByteSource(self.path, capacity=capacity)
        self.start_offset = self.config.start_offset
        self.renderer: Optional[LineRenderer] = None

    def __enter__(self) -> FileSession:
        if self.renderer is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> FileSession:
        self.source.open(self.config.start_offset)
        if self.config.start_offset >= self.source.size:
            _log.warning(
                "specified start offset is out of bounds, using default start offset of 0"
            )
            self.start_offset = 0
        self.renderer = LineRenderer(
            self.source,
            block_size=self.config.block_size,
            show_offset=self.config.show_offset,
            show_hex=self.config.show_hex,
            restrictive=self.config.restrictive,
        )
        return self

    def close(self) -> None:
        self.source.close()

    @property
    def size(self) -> int:
        return self.source.size

    @property
    def total_lines(self) -> int:
        if self.renderer is None:
            raise RuntimeError("Session not open.")
        return self.renderer.total_lines(self.size)

    def lines(self) -> Iterator[str]:
        """Yield every line of the dump, from the effective start offset on."""
        if self.renderer is None:
            raise RuntimeError("Session not open.")
        return self.renderer.iter_lines(self.start_offset, self.total_lines)

    def run(
        self,
        write: Callable[[str], object],
        cancel: threading.Event | None = None,
    ) -> int:
        """Write each line through ``write``; return how many were written.

        ``cancel`` is checked between lines, so a set event stops the dump
        before the next line is rendered.
        """
        lines = self.lines()
        emitted = 0
        while cancel is None or not cancel.is_set():
            line = next(lines, None)
            if line is None:
                return emitted
            write(line)
            emitted += 1
        _log.debug("dump of %s cancelled after %d lines", self.path, emitted)
        return emitted
