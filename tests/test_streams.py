"""Tests for stream wrappers over backend handles."""

import io

import pytest

from cephdfs import MemoryBackend, OpenFlags
from cephdfs.streams import (
    CephInputStream,
    CephOutputStream,
    open_input_stream,
    open_output_stream,
)


@pytest.fixture
def backend():
    backend = MemoryBackend()
    fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT)
    backend.write(fd, b"0123456789")
    backend.close(fd)
    return backend


class TestInputStream:
    """Test CephInputStream."""

    def test_read_stops_at_known_size(self, backend):
        fd = backend.open("/f", OpenFlags.RDONLY)
        raw = CephInputStream(backend, fd, 4, "/f")
        assert raw.read(100) == b"0123"
        assert raw.read(1) == b""
        raw.close()

    def test_seek_whence(self, backend):
        raw = CephInputStream(backend, backend.open("/f", OpenFlags.RDONLY), 10)
        assert raw.seek(-3, io.SEEK_END) == 7
        assert raw.read(10) == b"789"
        assert raw.seek(-5, io.SEEK_CUR) == 5
        with pytest.raises(ValueError):
            raw.seek(-1)
        raw.close()

    def test_close_once(self, backend):
        fd = backend.open("/f", OpenFlags.RDONLY)
        raw = CephInputStream(backend, fd, 10)
        raw.close()
        raw.close()
        assert fd not in backend._handles

    def test_buffered(self, backend):
        stream = open_input_stream(backend, backend.open("/f", OpenFlags.RDONLY), 10, 4, "/f")
        assert isinstance(stream, io.BufferedReader)
        assert stream.read() == b"0123456789"
        assert stream.name == "/f"
        stream.close()


class TestOutputStream:
    """Test CephOutputStream."""

    def test_write_and_tell(self, backend):
        fd = backend.open("/g", OpenFlags.WRONLY | OpenFlags.CREAT)
        raw = CephOutputStream(backend, fd, "/g")
        raw.write(b"abc")
        raw.write(memoryview(b"de"))
        assert raw.tell() == 5
        assert not raw.readable()
        raw.close()
        assert backend.lstat("/g").size == 5

    def test_buffered_flushes_on_close(self, backend):
        fd = backend.open("/g", OpenFlags.WRONLY | OpenFlags.CREAT)
        stream = open_output_stream(backend, fd, 1024, "/g")
        stream.write(b"buffered")
        assert backend.lstat("/g").size == 0
        stream.close()
        assert backend.lstat("/g").size == 8

    def test_write_after_close(self, backend):
        raw = CephOutputStream(backend, backend.open("/g", OpenFlags.WRONLY | OpenFlags.CREAT))
        raw.close()
        with pytest.raises(ValueError):
            raw.write(b"x")
