"""Typer CLI for hexstream — hexadecimal & character dump of binary files."""

from __future__ import annotations

import contextlib
import logging
import os
import signal
import sys
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

import typer

from hexstream import __version__
from hexstream.errors import FileAccessError, InvalidArgumentError, ReadFailureError
from hexstream.render import BLOCK_SIZES
from hexstream.session import DumpConfig, FileSession, resolve_restrictive

app = typer.Typer(
    help="Prints contents of binary files as hexadecimal & ascii.",
    add_completion=False,
)


# ── Helpers ────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hexstream {__version__}")
        raise typer.Exit()


def _block_size_callback(value: int) -> int:
    if value not in BLOCK_SIZES:
        raise typer.BadParameter(
            f"block size can only be {', '.join(str(b) for b in BLOCK_SIZES)}"
        )
    return value


def _start_offset_callback(value: int) -> int:
    if value < 0:
        raise typer.BadParameter("start offset must be >= 0")
    return value


def _silence_stdout() -> None:
    """Point stdout at devnull so the interpreter's final flush cannot fail again."""
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


@contextlib.contextmanager
def _cancel_on_sigterm(cancel: threading.Event) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


# ── Command ────────────────────────────────────────────────────────


@app.command()
def dump(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="File to dump", show_default=False),
    no_offset: bool = typer.Option(False, "--no-offset", "-O", help="Do not show file offset"),
    no_hexa: bool = typer.Option(
        False, "--no-hexa", "-H", help="Do not display hexadecimal content"
    ),
    start_offset: int = typer.Option(
        0,
        "--start-offset",
        "-s",
        help="Start at specified offset",
        callback=_start_offset_callback,
    ),
    block_size: int = typer.Option(
        8,
        "--block-size",
        "-b",
        help="Size of block in bits, can be 8, 16, 32, 64",
        callback=_block_size_callback,
    ),
    ascii_only: bool = typer.Option(
        False,
        "--ascii-only",
        "-a",
        help="Only show printable ASCII in the character column",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Print FILE as hexadecimal & ascii, 24 bytes per line."""
    if file is None:
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(2)

    try:
        config = DumpConfig(
            show_offset=not no_offset,
            show_hex=not no_hexa,
            start_offset=start_offset,
            block_size=block_size,
            restrictive=ascii_only or resolve_restrictive(),
        )
    except InvalidArgumentError as e:
        raise typer.BadParameter(str(e)) from e

    cancel = threading.Event()
    try:
        with _cancel_on_sigterm(cancel), FileSession(file, config) as session:
            session.run(typer.echo, cancel=cancel)
    except (FileAccessError, ReadFailureError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except BrokenPipeError:
        # Reader went away (e.g. `hexstream big.bin | less` then `q`).
        _silence_stdout()
        raise typer.Exit(0)


def main() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    app()
