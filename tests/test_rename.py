"""Tests for CephFileSystem.rename()."""

import pytest

from cephdfs import UnknownBackendError


def _write(fs, path, content=b""):
    with fs.create(path) as out:
        out.write(content)


class TestRename:
    """Test rename semantics."""

    def test_rename_file(self, fs):
        _write(fs, "/old.txt", b"content")
        assert fs.rename("/old.txt", "/new.txt") is True
        assert not fs.exists("/old.txt")
        assert fs.open("/new.txt").read() == b"content"

    def test_rename_directory(self, fs):
        _write(fs, "/src/a.txt", b"a")
        assert fs.rename("/src", "/dst") is True
        assert fs.open("/dst/a.txt").read() == b"a"
        assert not fs.exists("/src")

    def test_into_existing_directory(self, fs):
        """An existing directory destination retargets to dst/basename(src)."""
        _write(fs, "/file.txt", b"x")
        fs.mkdirs("/target")

        assert fs.rename("/file.txt", "/target") is True

        assert fs.open("/target/file.txt").read() == b"x"
        assert fs.is_directory("/target")

    def test_retarget_equivalent_to_explicit(self, fs):
        _write(fs, "/one/f", b"1")
        _write(fs, "/two/f", b"2")
        fs.mkdirs("/t1")
        fs.mkdirs("/t2")

        fs.rename("/one/f", "/t1")
        fs.rename("/two/f", "/t2/f")

        assert fs.list_status("/t1")[0].name == fs.list_status("/t2")[0].name

    def test_only_one_retarget(self, fs):
        """dst/basename(src) being a directory is not descended into."""
        _write(fs, "/x", b"x")
        fs.mkdirs("/target/x")

        assert fs.rename("/x", "/target") is False

        assert fs.exists("/x")
        assert fs.list_status("/target/x") == []

    def test_missing_source_returns_false(self, fs):
        assert fs.rename("/nope", "/also-nope") is False

    def test_missing_source_into_directory_returns_false(self, fs):
        fs.mkdirs("/target")
        assert fs.rename("/nope", "/target") is False

    def test_existing_file_destination_returns_false(self, fs):
        _write(fs, "/a", b"a")
        _write(fs, "/b", b"b")
        assert fs.rename("/a", "/b") is False
        assert fs.open("/b").read() == b"b"
        assert fs.exists("/a")

    def test_relative_paths(self, fs):
        fs.set_working_directory("/w")
        _write(fs, "a")
        assert fs.rename("a", "b") is True
        assert fs.exists("/w/b")

    def test_other_failures_propagate(self, fs, backend, monkeypatch):
        _write(fs, "/a")

        def broken_rename(src, dst):
            raise OSError(5, "Input/output error", src)

        monkeypatch.setattr(backend, "rename", broken_rename)
        with pytest.raises(UnknownBackendError):
            fs.rename("/a", "/b")
