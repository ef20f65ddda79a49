"""Tests for MemoryBackend direct API."""

import errno
import stat
import threading

import pytest

from cephdfs import Backend, MemoryBackend, OpenFlags, RawStat, SetAttrMask


def _errno(excinfo):
    return excinfo.value.errno


class TestMemoryBackendHandles:
    """Test open/read/write/close on MemoryBackend."""

    def test_satisfies_protocol(self):
        assert isinstance(MemoryBackend(), Backend)

    def test_create_write_read(self):
        backend = MemoryBackend()
        fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT, 0o600)
        assert fd >= 10_000
        assert backend.write(fd, b"hello") == 5
        backend.close(fd)

        fd = backend.open("/f", OpenFlags.RDONLY)
        assert backend.read(fd, 2) == b"he"
        assert backend.read(fd, 10) == b"llo"
        assert backend.read(fd, 3, 1) == b"ell"
        assert backend.fstat(fd).size == 5
        backend.close(fd)

    def test_open_missing_without_create(self):
        with pytest.raises(FileNotFoundError):
            MemoryBackend().open("/nope", OpenFlags.RDONLY)

    def test_open_missing_parent(self):
        with pytest.raises(FileNotFoundError):
            MemoryBackend().open("/a/b", OpenFlags.WRONLY | OpenFlags.CREAT)

    def test_excl(self):
        backend = MemoryBackend()
        backend.close(backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT))
        with pytest.raises(FileExistsError):
            backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT | OpenFlags.EXCL)

    def test_append_writes_at_end(self):
        backend = MemoryBackend()
        fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT)
        backend.write(fd, b"abc")
        backend.close(fd)
        fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.APPEND)
        backend.write(fd, b"def")
        backend.close(fd)
        fd = backend.open("/f", OpenFlags.RDONLY)
        assert backend.read(fd, 100) == b"abcdef"

    def test_read_on_write_handle(self):
        backend = MemoryBackend()
        fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT)
        with pytest.raises(OSError) as info:
            backend.read(fd, 1)
        assert _errno(info) == errno.EBADF

    def test_double_close(self):
        backend = MemoryBackend()
        fd = backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT)
        backend.close(fd)
        with pytest.raises(OSError) as info:
            backend.close(fd)
        assert _errno(info) == errno.EBADF


class TestMemoryBackendNamespace:
    """Test namespace operations on MemoryBackend."""

    def test_mkdirs_and_listdir(self):
        backend = MemoryBackend()
        backend.mkdirs("/a/b", 0o700)
        assert backend.listdir("/") == ["a"]
        assert backend.listdir("/a") == ["b"]
        assert backend.listdir("/a/b") == []
        assert stat.S_IMODE(backend.lstat("/a").mode) == 0o700

    def test_mkdirs_existing_leaf(self):
        backend = MemoryBackend()
        backend.mkdirs("/a", 0o755)
        with pytest.raises(FileExistsError):
            backend.mkdirs("/a", 0o755)

    def test_listdir_file_is_none(self):
        backend = MemoryBackend()
        backend.close(backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT))
        assert backend.listdir("/f") is None

    def test_lstat_through_file(self):
        backend = MemoryBackend()
        backend.close(backend.open("/f", OpenFlags.WRONLY | OpenFlags.CREAT))
        with pytest.raises(NotADirectoryError):
            backend.lstat("/f/child")

    def test_rmdir_not_empty(self):
        backend = MemoryBackend()
        backend.mkdirs("/a/b", 0o755)
        with pytest.raises(OSError) as info:
            backend.rmdir("/a")
        assert _errno(info) == errno.ENOTEMPTY

    def test_unlink_directory(self):
        backend = MemoryBackend()
        backend.mkdirs("/a", 0o755)
        with pytest.raises(IsADirectoryError):
            backend.unlink("/a")

    def test_rename_moves_subtree(self):
        backend = MemoryBackend()
        backend.mkdirs("/a/b/c", 0o755)
        backend.rename("/a", "/z")
        assert backend.listdir("/z/b") == ["c"]
        with pytest.raises(FileNotFoundError):
            backend.lstat("/a")

    def test_rename_into_itself(self):
        backend = MemoryBackend()
        backend.mkdirs("/a", 0o755)
        with pytest.raises(OSError) as info:
            backend.rename("/a", "/a/b")
        assert _errno(info) == errno.EINVAL

    def test_setattr_mask(self):
        backend = MemoryBackend()
        backend.mkdirs("/d", 0o755)
        backend.setattr("/d", RawStat(mtime=42, atime=99), SetAttrMask.MTIME)
        raw = backend.lstat("/d")
        assert raw.mtime == 42
        assert raw.atime != 99

    def test_shutdown(self):
        backend = MemoryBackend()
        backend.shutdown()
        with pytest.raises(OSError) as info:
            backend.lstat("/")
        assert _errno(info) == errno.ENOTCONN


class TestMemoryBackendThreadSafety:
    def test_concurrent_namespace_changes(self):
        """Threads creating entries while others list them."""
        backend = MemoryBackend()
        backend.mkdirs("/shared", 0o755)
        errors = []

        def writer(idx):
            try:
                for j in range(50):
                    backend.mkdirs(f"/shared/d{idx}_{j}/sub", 0o755)
                    fd = backend.open(
                        f"/shared/f{idx}_{j}", OpenFlags.WRONLY | OpenFlags.CREAT, 0o644
                    )
                    backend.write(fd, b"x")
                    backend.close(fd)
            except Exception as e:
                errors.append(e)

        def reader():
            try:
                for _ in range(200):
                    backend.listdir("/shared")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors, f"Errors in threads: {errors}"
        assert len(backend.listdir("/shared")) == 4 * 50 * 2
