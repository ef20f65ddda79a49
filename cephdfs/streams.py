"""Raw I/O objects bound to backend handles.

``CephInputStream`` and ``CephOutputStream`` are ``io.RawIOBase``
implementations over an open backend handle. ``open_input_stream`` and
``open_output_stream`` wrap them in the buffered layer Python's io stack
expects, using the caller's buffer hint as the buffer size.
"""

from __future__ import annotations

import io

from .base import Backend
from .errors import backend_call


class CephInputStream(io.RawIOBase):
    """Readable, seekable stream over a backend handle of known size."""

    def __init__(self, backend: Backend, handle: int, size: int, path: str = ""):
        self._backend = backend
        self._handle = handle
        self._size = size
        self._pos = 0
        self.name = path

    @property
    def size(self) -> int:
        return self._size

    def readinto(self, b: bytearray | memoryview) -> int:  # type: ignore[override]
        self._checkClosed()
        want = min(len(b), self._size - self._pos)
        if want <= 0:
            return 0
        with backend_call(self.name):
            data = self._backend.read(self._handle, want, self._pos)
        n = len(data)
        b[:n] = data
        self._pos += n
        return n

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._checkClosed()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._pos + offset
        elif whence == io.SEEK_END:
            target = self._size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if target < 0:
            raise ValueError(f"Negative seek position {target}")
        self._pos = target
        return self._pos

    def tell(self) -> int:
        return self._pos

    def fileno(self) -> int:
        return self._handle

    def close(self) -> None:
        if not self.closed:
            super().close()
            with backend_call(self.name):
                self._backend.close(self._handle)


class CephOutputStream(io.RawIOBase):
    """Write-only stream over a backend handle.

    Writes go to the handle's current position, which is the end of the
    file for handles opened with ``APPEND``.
    """

    def __init__(self, backend: Backend, handle: int, path: str = ""):
        self._backend = backend
        self._handle = handle
        self._written = 0
        self.name = path

    def write(self, b: bytes | bytearray | memoryview) -> int:  # type: ignore[override]
        self._checkClosed()
        with backend_call(self.name):
            n = self._backend.write(self._handle, bytes(b))
        self._written += n
        return n

    def writable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._written

    def fileno(self) -> int:
        return self._handle

    def close(self) -> None:
        if not self.closed:
            super().close()
            with backend_call(self.name):
                self._backend.close(self._handle)


def _buffer_size(hint: int | None) -> int:
    if hint is None or hint <= 0:
        return io.DEFAULT_BUFFER_SIZE
    return hint


def open_input_stream(
    backend: Backend, handle: int, size: int, buffer_size: int | None = None, path: str = ""
) -> io.BufferedReader:
    """Wrap a readable handle in an ``io.BufferedReader``."""
    raw = CephInputStream(backend, handle, size, path)
    return io.BufferedReader(raw, _buffer_size(buffer_size))


def open_output_stream(
    backend: Backend, handle: int, buffer_size: int | None = None, path: str = ""
) -> io.BufferedWriter:
    """Wrap a writable handle in an ``io.BufferedWriter``."""
    raw = CephOutputStream(backend, handle, path)
    return io.BufferedWriter(raw, _buffer_size(buffer_size))
