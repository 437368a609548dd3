"""Formatting of dump lines: offset column, grouped hex bytes, character gloss."""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from typing import Protocol

# 192-bit rows
LINE_WIDTH = 192 // 8
MAX_32BIT = 0xFFFFFFFF
BLOCK_SIZES = (8, 16, 32, 64)

# Not a displayable character on common terminals.
SOFT_HYPHEN = 0xAD

EOF_HEX = ".."
EOF_CHAR = "."
OFFSET_SEPARATOR = "   "
GROUP_SEPARATOR = "  "


class ByteSource(Protocol):
    size: int

    def byte_at(self, offset: int) -> int | None: ...


# ── Cell formatting ────────────────────────────────────────────────


def format_offset(offset: int) -> str:
    """Format a file offset as 8 hex digits, or 16 once it no longer fits in 32 bits."""
    if offset <= MAX_32BIT:
        return f"{offset:08x}"
    return f"{offset:016x}"


def format_byte_hex(value: int | None) -> str:
    if value is None:
        return EOF_HEX
    return f"{value:02x}"


def format_byte_char(value: int | None, restrictive: bool = False) -> str:
    """Return the gloss character for a byte.

    Printable ASCII always shows. Codes above 160 show too unless
    ``restrictive`` is set, for output piped into tools that mangle
    anything outside ASCII (``more`` on Windows). 0xAD never shows.
    """
    if value is None or value == SOFT_HYPHEN:
        return EOF_CHAR
    if 32 <= value < 127 or (not restrictive and value > 160):
        return chr(value)
    return EOF_CHAR


# ── Lines ──────────────────────────────────────────────────────────


class LineRenderer:
    """Renders fixed-width lines of a byte source."""

    def __init__(
        self,
        source: ByteSource,
        *,
        block_size: int = 8,
        show_offset: bool = True,
        show_hex: bool = True,
        restrictive: bool = False,
        line_width: int = LINE_WIDTH,
    ) -> None:
        if block_size not in BLOCK_SIZES:
            raise ValueError(f"block size must be one of {BLOCK_SIZES}, got {block_size}")
        self.source = source
        self.group_size = block_size // 8
        self.show_offset = show_offset
        self.show_hex = show_hex
        self.restrictive = restrictive
        self.line_width = line_width

    def render_hex(self, values: Sequence[int | None]) -> str:
        groups = [
            "".join(format_byte_hex(v) for v in values[i : i + self.group_size])
            for i in range(0, len(values), self.group_size)
        ]
        return GROUP_SEPARATOR.join(groups)

    def render_gloss(self, values: Sequence[int | None]) -> str:
        return "".join(format_byte_char(v, self.restrictive) for v in values)

    def render_line(self, line_start: int) -> str:
        values = [self.source.byte_at(line_start + pos) for pos in range(self.line_width)]
        parts: list[str] = []
        if self.show_offset:
            parts.append(format_offset(line_start) + OFFSET_SEPARATOR)
        if self.show_hex:
            parts.append(self.render_hex(values) + GROUP_SEPARATOR)
        parts.append(self.render_gloss(values))
        return "".join(parts)

    def total_lines(self, size: int) -> int:
        return math.ceil(size / self.line_width)

    def iter_lines(self, start_offset: int, total: int) -> Iterator[str]:
        """Yield ``total`` rendered lines, the first one starting at ``start_offset``.

        Lines past the end of the source render as padding.
        """
        for line in range(total):
            yield self.render_line(start_offset + line * self.line_width)
