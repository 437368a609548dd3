import os

import pytest

from hexstream.errors import (
    EmptyFileError,
    FileAccessError,
    IsDirectoryError,
    NotFoundError,
    PermissionDeniedError,
    ReadFailureError,
)
from hexstream.source import BUFFER_LENGTH, WindowedByteSource


def _write(tmp_path, data: bytes, name: str = "data.bin"):
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_buffer_length():
    assert BUFFER_LENGTH == 512 * 1024
    assert WindowedByteSource("unused").capacity == BUFFER_LENGTH


def test_byte_at(tmp_path):
    data = bytes(range(256)) * 3
    with WindowedByteSource(_write(tmp_path, data)) as src:
        assert src.size == len(data)
        assert src.byte_at(0) == 0
        assert src.byte_at(255) == 255
        assert src.byte_at(256) == 0
        assert src.byte_at(len(data) - 1) == 255
        assert src.refills == 1


def test_end_of_file_sentinel(tmp_path):
    with WindowedByteSource(_write(tmp_path, b"abc")) as src:
        assert src.byte_at(3) is None
        assert src.byte_at(10_000) is None
        assert src.byte_at(-1) is None
        assert src.read_line(1, 4) == [ord("b"), ord("c"), None, None]


def test_window_refills_at_requested_offset(tmp_path):
    data = bytes(i % 251 for i in range(100))
    with WindowedByteSource(_write(tmp_path, data), capacity=16) as src:
        assert src.window_start == 0
        for offset in range(len(data)):
            assert src.byte_at(offset) == data[offset]
            assert src.window_start <= offset < src.window_start + src.capacity
        # 100 bytes through a 16 byte window, loaded in order
        assert src.refills == 7

        assert src.byte_at(5) == data[5]
        assert src.window_start == 5


def test_open_loads_chunk_at_start_offset(tmp_path):
    data = bytes(range(200))
    with WindowedByteSource(_write(tmp_path, data), capacity=32).open(150) as src:
        assert src.window_start == 150
        assert src.byte_at(160) == 160
        assert src.refills == 1


def test_open_start_offset_past_end_loads_first_chunk(tmp_path):
    src = WindowedByteSource(_write(tmp_path, b"0123456789"), capacity=4)
    src.open(500)
    try:
        assert src.window_start == 0
        assert src.byte_at(0) == ord("0")
    finally:
        src.close()


def test_missing_file(tmp_path):
    with pytest.raises(NotFoundError) as exc:
        WindowedByteSource(tmp_path / "nope.bin").open()
    assert "cannot open file" in str(exc.value)
    assert isinstance(exc.value, FileAccessError)


def test_directory(tmp_path):
    with pytest.raises(IsDirectoryError) as exc:
        WindowedByteSource(tmp_path).open()
    assert str(exc.value) == "hexstream only works on files"


def test_empty_file(tmp_path):
    src = WindowedByteSource(_write(tmp_path, b""))
    with pytest.raises(EmptyFileError):
        src.open()
    assert src.closed


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0, reason="root can read anything"
)
def test_permission_denied(tmp_path):
    path = _write(tmp_path, b"secret")
    path.chmod(0)
    try:
        with pytest.raises(PermissionDeniedError):
            WindowedByteSource(path).open()
    finally:
        path.chmod(0o600)


def test_close_is_idempotent(tmp_path):
    never_opened = WindowedByteSource(tmp_path / "nope.bin")
    never_opened.close()
    never_opened.close()

    src = WindowedByteSource(_write(tmp_path, b"abc")).open()
    assert not src.closed
    src.close()
    src.close()
    assert src.closed


def test_context_manager_closes_on_error(tmp_path):
    src = WindowedByteSource(_write(tmp_path, b"abc"))
    with pytest.raises(RuntimeError):
        with src:
            raise RuntimeError("boom")
    assert src.closed


class _FailingFile:
    def seek(self, offset):
        return offset

    def readinto(self, buffer):
        raise OSError(5, "Input/output error")

    def close(self):
        pass


def test_read_failure_during_refill(tmp_path):
    data = bytes(64)
    with WindowedByteSource(_write(tmp_path, data), capacity=8) as src:
        assert src.byte_at(0) == 0
        real, src._file = src._file, _FailingFile()
        with pytest.raises(ReadFailureError) as exc:
            src.byte_at(40)
        real.close()
        assert exc.value.offset == 40
        assert "Input/output error" in str(exc.value)


def test_file_shrunk_after_open(tmp_path):
    path = _write(tmp_path, bytes(64))
    with WindowedByteSource(path, capacity=8) as src:
        path.write_bytes(bytes(4))
        with pytest.raises(ReadFailureError):
            src.byte_at(40)


def test_large_sparse_file(tmp_path):
    path = tmp_path / "sparse.bin"
    size = 0x100000000 + 64
    with open(path, "wb") as f:
        f.truncate(size)
        f.seek(size - 1)
        f.write(b"\x7a")
    with WindowedByteSource(path, capacity=4096).open(0x100000000) as src:
        assert src.size == size
        assert src.window_start == 0x100000000
        assert src.byte_at(size - 1) == 0x7A
        assert src.byte_at(size) is None
