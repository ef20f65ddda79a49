"""Base backend interface and dataclasses.

Defines the raw records exchanged with a backend (``RawStat``), the
caller-facing value objects (``FileStatus``, ``BlockLocation``), the flag
sets used on the backend surface, and the ``Backend`` protocol every
storage client must satisfy.
"""

from __future__ import annotations

import enum
import stat as stat_mod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class OpenFlags(enum.IntFlag):
    """Backend open flags.

    Values follow the libcephfs constants rather than the host ``os.O_*``
    values, so they stay identical on every platform. Backends that sit on
    top of ``os`` translate them (see ``LocalBackend``).
    """

    RDONLY = 1
    RDWR = 2
    APPEND = 4
    CREAT = 8
    TRUNC = 16
    EXCL = 32
    WRONLY = 64

    @property
    def writable(self) -> bool:
        return bool(self & (OpenFlags.WRONLY | OpenFlags.RDWR))

    @property
    def readable(self) -> bool:
        return bool(self & (OpenFlags.RDONLY | OpenFlags.RDWR))


class SetAttrMask(enum.IntFlag):
    """Mask bits selecting which ``RawStat`` fields ``setattr`` applies."""

    MODE = 1
    UID = 2
    GID = 4
    MTIME = 8
    ATIME = 16


@dataclass
class RawStat:
    """Stat record as returned by a backend.

    Attributes:
        mode: Full ``st_mode`` (type bits and permission bits).
        size: Size in bytes.
        blksize: Native block (stripe unit) size. ``0`` means the backend
            does not report it per stat and it must be queried separately.
        mtime: Modification time in milliseconds since the epoch.
        atime: Access time in milliseconds since the epoch.
    """

    mode: int = 0
    size: int = 0
    blksize: int = 0
    mtime: int = 0
    atime: int = 0

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        return stat_mod.S_ISREG(self.mode)

    @property
    def permission(self) -> int:
        return stat_mod.S_IMODE(self.mode)


@dataclass(frozen=True)
class FileStatus:
    """Uniform file status handed back to callers.

    Attributes:
        path: Fully qualified path (``scheme://authority/abs/path``).
        length: File size in bytes (0 for directories on most backends).
        is_dir: True if this is a directory.
        replication: Replication factor reported for the file.
        block_size: Native block size, always > 0.
        modification_time: Milliseconds since the epoch.
        access_time: Milliseconds since the epoch.
        permission: Permission bits (``0o7777`` range).
        owner: Synthesized from the process identity, never from the backend.
        group: Synthesized group name, or None when not known.
    """

    path: str
    length: int
    is_dir: bool
    replication: int
    block_size: int
    modification_time: int
    access_time: int
    permission: int
    owner: str
    group: str | None = None

    @property
    def is_file(self) -> bool:
        return not self.is_dir

    @property
    def name(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class BlockLocation:
    """Location of one block of a file.

    ``hosts`` and ``names`` are always empty: the backend picks servers and
    handles failover internally, so no topology is exposed.
    """

    offset: int
    length: int
    hosts: tuple[str, ...] = ()
    names: tuple[str, ...] = ()


@runtime_checkable
class Backend(Protocol):
    """Capability set the adapter consumes from a storage client.

    Failures are reported as ``OSError`` carrying an ``errno`` (or as a bare
    integer error code); ``cephdfs.errors.translate_error`` maps both onto
    the adapter's error taxonomy.
    """

    def open(self, path: str, flags: OpenFlags, mode: int = 0) -> int:
        """Open a file and return an integer handle."""
        ...

    def close(self, handle: int) -> None:
        """Release a handle."""
        ...

    def read(self, handle: int, size: int, offset: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``offset=-1`` reads at the current position."""
        ...

    def write(self, handle: int, data: bytes, offset: int = -1) -> int:
        """Write bytes; ``offset=-1`` writes at the current position."""
        ...

    def fstat(self, handle: int) -> RawStat:
        """Stat an open handle."""
        ...

    def lstat(self, path: str) -> RawStat:
        """Stat a path without following symlinks."""
        ...

    def mkdirs(self, path: str, mode: int) -> None:
        """Create a directory and any missing parents."""
        ...

    def listdir(self, path: str) -> list[str] | None:
        """List child names, or None if ``path`` is not a directory."""
        ...

    def unlink(self, path: str) -> None:
        """Remove a file."""
        ...

    def rmdir(self, path: str) -> None:
        """Remove an empty directory."""
        ...

    def rename(self, src: str, dst: str) -> None:
        """Rename a file or directory."""
        ...

    def chmod(self, path: str, mode: int) -> None:
        """Change permission bits."""
        ...

    def setattr(self, path: str, stat: RawStat, mask: SetAttrMask) -> None:
        """Apply the fields of ``stat`` selected by ``mask``."""
        ...

    def get_default_replication(self) -> int:
        """Cluster-wide default replication factor."""
        ...

    def get_file_replication(self, path: str) -> int:
        """Replication factor of a single path."""
        ...

    def get_block_size(self, path: str) -> int:
        """Block size of a path, for backends that omit it from stat."""
        ...

    def shutdown(self) -> None:
        """Unmount and release the connection."""
        ...
