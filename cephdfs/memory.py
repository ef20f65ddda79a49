"""In-memory backend implementation."""

from __future__ import annotations

import errno as _errno
import posixpath
import stat as stat_mod
import threading
import time
from dataclasses import dataclass, field

from .base import OpenFlags, RawStat, SetAttrMask


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class _Node:
    mode: int
    data: bytearray = field(default_factory=bytearray)
    mtime: int = field(default_factory=_now_ms)
    atime: int = field(default_factory=_now_ms)

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)


@dataclass
class _Handle:
    path: str
    node: _Node
    flags: OpenFlags
    pos: int = 0


class MemoryBackend:
    """Simple in-memory POSIX-like backend.

    Stores nodes in a dict keyed by absolute path and hands out integer
    handles from a fd table starting at 10,000. Failures are raised as
    ``OSError`` with the errno a real client would report. Implements the
    full ``Backend`` protocol. Every public call runs under one lock, so a
    backend may be shared between threads.

    Useful for tests and for trying the adapter without a cluster.

    Args:
        block_size: Block size reported by ``get_block_size``.
        stat_block_size: Block size placed in stat records. ``0`` simulates
            a backend that only reports it through ``get_block_size``.
        replication: Replication factor reported for every path.
    """

    _BASE_FD = 10_000

    def __init__(
        self,
        block_size: int = 4 * 1024 * 1024,
        stat_block_size: int | None = None,
        replication: int = 3,
    ) -> None:
        self.block_size = block_size
        self.stat_block_size = block_size if stat_block_size is None else stat_block_size
        self.replication = replication
        self.nodes: dict[str, _Node] = {"/": _Node(stat_mod.S_IFDIR | 0o755)}
        self._lock = threading.RLock()
        self._handles: dict[int, _Handle] = {}
        self._next_fd = self._BASE_FD
        self._mounted = True

    # -------------------------------------------------------------------------
    # Handles
    # -------------------------------------------------------------------------

    def open(self, path: str, flags: OpenFlags, mode: int = 0) -> int:
        with self._lock:
            self._check_mounted()
            flags = OpenFlags(flags)
            node = self._lookup(path, missing_ok=True)
            if node is None:
                if not flags & OpenFlags.CREAT:
                    raise FileNotFoundError(_errno.ENOENT, "No such file or directory", path)
                self._parent_dir(path)
                node = _Node(stat_mod.S_IFREG | (mode & 0o7777))
                self.nodes[path] = node
            else:
                if flags & OpenFlags.CREAT and flags & OpenFlags.EXCL:
                    raise FileExistsError(_errno.EEXIST, "File exists", path)
                if node.is_dir and flags.writable:
                    raise IsADirectoryError(_errno.EISDIR, "Is a directory", path)
                if flags & OpenFlags.TRUNC and flags.writable:
                    del node.data[:]
                    node.mtime = _now_ms()
            fd = self._next_fd
            self._next_fd += 1
            self._handles[fd] = _Handle(path=path, node=node, flags=flags)
            return fd

    def close(self, handle: int) -> None:
        with self._lock:
            if self._handles.pop(handle, None) is None:
                raise OSError(_errno.EBADF, "Bad file descriptor")

    def read(self, handle: int, size: int, offset: int = -1) -> bytes:
        with self._lock:
            h = self._handle(handle)
            if not h.flags.readable:
                raise OSError(_errno.EBADF, "Handle not open for reading", h.path)
            pos = h.pos if offset < 0 else offset
            data = bytes(h.node.data[pos:pos + size])
            if offset < 0:
                h.pos = pos + len(data)
            h.node.atime = _now_ms()
            return data

    def write(self, handle: int, data: bytes, offset: int = -1) -> int:
        with self._lock:
            h = self._handle(handle)
            if not h.flags.writable:
                raise OSError(_errno.EBADF, "Handle not open for writing", h.path)
            buf = h.node.data
            if h.flags & OpenFlags.APPEND:
                pos = len(buf)
            else:
                pos = h.pos if offset < 0 else offset
            if pos > len(buf):
                buf.extend(b"\0" * (pos - len(buf)))
            buf[pos:pos + len(data)] = data
            if offset < 0 or h.flags & OpenFlags.APPEND:
                h.pos = pos + len(data)
            h.node.mtime = _now_ms()
            return len(data)

    def fstat(self, handle: int) -> RawStat:
        with self._lock:
            return self._stat(self._handle(handle).node)

    # -------------------------------------------------------------------------
    # Namespace
    # -------------------------------------------------------------------------

    def lstat(self, path: str) -> RawStat:
        with self._lock:
            self._check_mounted()
            return self._stat(self._lookup(path))

    def mkdirs(self, path: str, mode: int) -> None:
        with self._lock:
            self._check_mounted()
            path = posixpath.normpath(path)
            if path in self.nodes:
                if self.nodes[path].is_dir:
                    raise FileExistsError(_errno.EEXIST, "File exists", path)
                raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", path)
            current = ""
            for part in path.strip("/").split("/"):
                current += "/" + part
                node = self.nodes.get(current)
                if node is None:
                    self.nodes[current] = _Node(stat_mod.S_IFDIR | (mode & 0o7777))
                elif not node.is_dir:
                    raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", current)

    def listdir(self, path: str) -> list[str] | None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(path)
            if not node.is_dir:
                return None
            return self._children(path)

    def unlink(self, path: str) -> None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(path)
            if node.is_dir:
                raise IsADirectoryError(_errno.EISDIR, "Is a directory", path)
            del self.nodes[path]

    def rmdir(self, path: str) -> None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(path)
            if not node.is_dir:
                raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", path)
            if path == "/":
                raise OSError(_errno.EBUSY, "Device or resource busy", path)
            if self._children(path):
                raise OSError(_errno.ENOTEMPTY, "Directory not empty", path)
            del self.nodes[path]

    def rename(self, src: str, dst: str) -> None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(src)
            self._parent_dir(dst)
            if src == dst:
                return
            if node.is_dir and dst.startswith(src.rstrip("/") + "/"):
                raise OSError(_errno.EINVAL, "Cannot move a directory into itself", src)

            target = self.nodes.get(dst)
            if target is not None:
                if target.is_dir and not node.is_dir:
                    raise IsADirectoryError(_errno.EISDIR, "Is a directory", dst)
                if node.is_dir and not target.is_dir:
                    raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", dst)
                if target.is_dir and self._children(dst):
                    raise OSError(_errno.ENOTEMPTY, "Directory not empty", dst)

            src_prefix = src.rstrip("/") + "/"
            self.nodes[dst] = self.nodes.pop(src)
            for p in [p for p in self.nodes if p.startswith(src_prefix)]:
                self.nodes[dst + p[len(src):]] = self.nodes.pop(p)

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def chmod(self, path: str, mode: int) -> None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(path)
            node.mode = stat_mod.S_IFMT(node.mode) | (mode & 0o7777)

    def setattr(self, path: str, stat: RawStat, mask: SetAttrMask) -> None:
        with self._lock:
            self._check_mounted()
            node = self._lookup(path)
            if mask & SetAttrMask.MODE:
                node.mode = stat_mod.S_IFMT(node.mode) | stat_mod.S_IMODE(stat.mode)
            if mask & SetAttrMask.MTIME:
                node.mtime = stat.mtime
            if mask & SetAttrMask.ATIME:
                node.atime = stat.atime

    def get_default_replication(self) -> int:
        with self._lock:
            self._check_mounted()
            return self.replication

    def get_file_replication(self, path: str) -> int:
        with self._lock:
            self._check_mounted()
            self._lookup(path)
            return self.replication

    def get_block_size(self, path: str) -> int:
        with self._lock:
            self._check_mounted()
            self._lookup(path)
            return self.block_size

    def shutdown(self) -> None:
        with self._lock:
            self._mounted = False

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_mounted(self) -> None:
        if not self._mounted:
            raise OSError(_errno.ENOTCONN, "Backend is not mounted")

    def _handle(self, handle: int) -> _Handle:
        self._check_mounted()
        h = self._handles.get(handle)
        if h is None:
            raise OSError(_errno.EBADF, "Bad file descriptor")
        return h

    def _lookup(self, path: str, missing_ok: bool = False) -> _Node | None:
        """Find the node at ``path``, raising ENOTDIR for a file in the middle."""
        node = self.nodes.get(path)
        if node is not None:
            return node
        ancestor = posixpath.dirname(path)
        while ancestor not in self.nodes:
            ancestor = posixpath.dirname(ancestor)
        if not self.nodes[ancestor].is_dir:
            raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", path)
        if missing_ok:
            return None
        raise FileNotFoundError(_errno.ENOENT, "No such file or directory", path)

    def _parent_dir(self, path: str) -> None:
        dirname = posixpath.dirname(path)
        node = self._lookup(dirname)
        if not node.is_dir:
            raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", dirname)

    def _children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        return sorted(
            p[len(prefix):]
            for p in self.nodes
            if p.startswith(prefix) and p != prefix and "/" not in p[len(prefix):]
        )

    def _stat(self, node: _Node) -> RawStat:
        return RawStat(
            mode=node.mode,
            size=len(node.data),
            blksize=self.stat_block_size,
            mtime=node.mtime,
            atime=node.atime,
        )
