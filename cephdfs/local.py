"""Backend backed by a host directory.

Maps backend paths under a root directory and performs real I/O with the
``os`` module. Useful for running the adapter against local disk, e.g. a
kernel-mounted CephFS.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path

from .base import OpenFlags, RawStat, SetAttrMask

_NS_PER_MS = 1_000_000


def _os_flags(flags: OpenFlags) -> int:
    if flags & OpenFlags.RDWR:
        result = os.O_RDWR
    elif flags & OpenFlags.WRONLY:
        result = os.O_WRONLY
    else:
        result = os.O_RDONLY
    if flags & OpenFlags.CREAT:
        result |= os.O_CREAT
    if flags & OpenFlags.TRUNC:
        result |= os.O_TRUNC
    if flags & OpenFlags.APPEND:
        result |= os.O_APPEND
    if flags & OpenFlags.EXCL:
        result |= os.O_EXCL
    return result


def _raw_stat(st: os.stat_result) -> RawStat:
    return RawStat(
        mode=st.st_mode,
        size=st.st_size,
        blksize=getattr(st, "st_blksize", 0),
        mtime=st.st_mtime_ns // _NS_PER_MS,
        atime=st.st_atime_ns // _NS_PER_MS,
    )


class LocalBackend:
    """Backend restricted to a root directory.

    Backend path ``/a/b`` maps to ``<root>/a/b``. Paths resolving outside
    the root (through ``..`` or symlinks) raise ``PermissionError``.
    Replication is always reported as 1.
    """

    def __init__(self, root: str | Path, replication: int = 1):
        """Initialize the backend.

        Args:
            root: Absolute path to the root directory (created if missing).
            replication: Replication factor reported for every path.

        Raises:
            ValueError: If root is not absolute or not a directory.
        """
        root_path = Path(root)
        if not root_path.is_absolute():
            raise ValueError(f"Root must be absolute path: {root}")
        self.root = root_path.resolve()
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
        if not self.root.is_dir():
            raise ValueError(f"Root must be a directory: {root}")
        self.replication = replication

    def _host(self, path: str, follow: bool = True) -> Path:
        """Resolve a backend path to a host path inside root.

        With ``follow`` the whole path is resolved, so a symlink pointing
        outside root is rejected. Without it the last component is kept
        as is, for calls that act on a link itself.
        """
        rel = path.lstrip("/")
        if not rel:
            return self.root
        candidate = self.root / rel
        if follow or candidate.name == "..":
            resolved = candidate.resolve()
        else:
            resolved = candidate.parent.resolve() / candidate.name
        try:
            resolved.relative_to(self.root)
        except ValueError:
            raise PermissionError(
                errno.EACCES, f"Path outside root (root: {self.root})", path
            ) from None
        return resolved

    def open(self, path: str, flags: OpenFlags, mode: int = 0) -> int:
        host = self._host(path)
        fd = os.open(host, _os_flags(OpenFlags(flags)), mode or 0o644)
        return fd

    def close(self, handle: int) -> None:
        os.close(handle)

    def read(self, handle: int, size: int, offset: int = -1) -> bytes:
        if offset < 0:
            return os.read(handle, size)
        return os.pread(handle, size, offset)

    def write(self, handle: int, data: bytes, offset: int = -1) -> int:
        if offset < 0:
            return os.write(handle, data)
        return os.pwrite(handle, data, offset)

    def fstat(self, handle: int) -> RawStat:
        return _raw_stat(os.fstat(handle))

    def lstat(self, path: str) -> RawStat:
        return _raw_stat(os.lstat(self._host(path, follow=False)))

    def mkdirs(self, path: str, mode: int) -> None:
        host = self._host(path)
        if os.path.lexists(host):
            if host.is_dir():
                raise FileExistsError(errno.EEXIST, "File exists", path)
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        current = self.root
        for part in host.relative_to(self.root).parts:
            current = current / part
            if current.is_dir():
                continue
            if os.path.lexists(current):
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            os.mkdir(current, mode)
            # mkdir applies the umask
            os.chmod(current, mode)

    def listdir(self, path: str) -> list[str] | None:
        host = self._host(path)
        if not host.is_dir():
            if not os.path.lexists(host):
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            return None
        return sorted(os.listdir(host))

    def unlink(self, path: str) -> None:
        os.unlink(self._host(path, follow=False))

    def rmdir(self, path: str) -> None:
        os.rmdir(self._host(path, follow=False))

    def rename(self, src: str, dst: str) -> None:
        os.rename(self._host(src, follow=False), self._host(dst, follow=False))

    def chmod(self, path: str, mode: int) -> None:
        os.chmod(self._host(path), mode)

    def setattr(self, path: str, stat: RawStat, mask: SetAttrMask) -> None:
        host = self._host(path)
        if mask & SetAttrMask.MODE:
            os.chmod(host, stat.mode & 0o7777)
        if mask & (SetAttrMask.MTIME | SetAttrMask.ATIME):
            current = os.lstat(host)
            atime_ns = stat.atime * _NS_PER_MS if mask & SetAttrMask.ATIME else current.st_atime_ns
            mtime_ns = stat.mtime * _NS_PER_MS if mask & SetAttrMask.MTIME else current.st_mtime_ns
            os.utime(host, ns=(atime_ns, mtime_ns))

    def get_default_replication(self) -> int:
        return self.replication

    def get_file_replication(self, path: str) -> int:
        os.lstat(self._host(path, follow=False))
        return self.replication

    def get_block_size(self, path: str) -> int:
        return getattr(os.lstat(self._host(path, follow=False)), "st_blksize", 0)

    def shutdown(self) -> None:
        pass
