"""Distributed-filesystem adapter over a POSIX-like Ceph backend.

``CephFileSystem`` turns the backend's low-level calls (open with raw
flags, stat, mkdirs, rename, unlink, listdir) into the operations a
distributed-filesystem client expects: create with overwrite policy,
directory-aware rename, recursive delete, block locations and stat-style
status records.

Known limitations:

- Per-file replication and block size passed to ``create`` are ignored;
  both are configured on the backend.
- ``delete(recursive=True)`` and ``mkdirs`` are not atomic. A failure
  part-way through a recursive delete leaves the already-deleted children
  deleted, and concurrent changes to the same subtree can surface as
  ``DirectoryNotEmptyError`` after some children were removed.
"""

from __future__ import annotations

import errno
import io
import logging
import posixpath

from .base import Backend, BlockLocation, FileStatus, OpenFlags, RawStat, SetAttrMask
from .blocks import synthesize_block_locations
from .config import CephConfig
from .errors import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    InvalidArgumentError,
    PathNotFoundError,
    backend_call,
    check_code,
)
from .paths import PathResolver, basename, parent
from .status import StatusTranslator
from .streams import open_input_stream, open_output_stream

logger = logging.getLogger(__name__)

DEFAULT_FILE_PERMISSION = 0o644
DEFAULT_DIR_PERMISSION = 0o755


class CephFileSystem:
    """Hierarchical filesystem view of a Ceph backend.

    Every operation resolves its paths against this instance's working
    directory, calls the backend, and translates backend errors into the
    ``cephdfs.errors`` taxonomy. Nothing is retried.

    The backend handle may be shared by several instances (see
    ``with_working_directory``); this class does not lock around it. The
    working directory is per instance and unsynchronized.

    Example:
        >>> fs = CephFileSystem(MemoryBackend())
        >>> with fs.create("/a/b/c.txt") as out:
        ...     out.write(b"hello")
        5
        >>> fs.open("/a/b/c.txt").read()
        b'hello'
    """

    def __init__(self, backend: Backend, config: CephConfig | None = None):
        self._backend = backend
        self.config = config or CephConfig()
        self.uri = f"{self.config.scheme}://{self.config.authority}"
        self._paths = PathResolver(self.get_home_directory())
        self._status = StatusTranslator(
            backend,
            self.config.block_size,
            self.config.replication_policy,
            owner=self.config.user,
        )
        self._closed = False
        logger.info("Initialized %s (working directory %s)", self.uri, self._paths.working_directory)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Shut down the backend client. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        with backend_call():
            self._backend.shutdown()
        logger.info("Closed %s", self.uri)

    def __enter__(self) -> CephFileSystem:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Working Directory
    # -------------------------------------------------------------------------

    def get_home_directory(self) -> str:
        return posixpath.join(self.config.home_root, self.config.user)

    def get_working_directory(self) -> str:
        return self._paths.working_directory

    def set_working_directory(self, path: str) -> None:
        """Change the working directory. The path is not checked for existence."""
        self._paths.working_directory = path

    def with_working_directory(self, path: str) -> CephFileSystem:
        """Return a new instance sharing this backend with its own working directory.

        Closing either instance shuts down the shared backend.
        """
        clone = CephFileSystem(self._backend, self.config)
        clone.set_working_directory(self._resolve(path))
        return clone

    def make_qualified(self, path: str) -> str:
        """Return ``scheme://authority/abs/path`` for a caller path."""
        return self.uri + self._paths.backend_path(path)

    def _resolve(self, path: str) -> str:
        return self._paths.backend_path(path)

    # -------------------------------------------------------------------------
    # Open / Create / Append
    # -------------------------------------------------------------------------

    def open(self, path: str, buffer_size: int | None = None) -> io.BufferedReader:
        """Open a file for reading.

        Raises:
            PathNotFoundError: If the path does not exist.
            InvalidArgumentError: If the path is a directory.
        """
        target = self._resolve(path)
        handle = self._open_handle(target, OpenFlags.RDONLY, 0)
        try:
            with backend_call(target):
                raw = self._backend.fstat(handle)
            if raw.is_dir:
                raise InvalidArgumentError(f"Is a directory: '{target}'")
        except BaseException:
            self._close_quietly(handle, target)
            raise
        return open_input_stream(self._backend, handle, raw.size, buffer_size, target)

    def create(
        self,
        path: str,
        permission: int | None = None,
        overwrite: bool = True,
        buffer_size: int | None = None,
        replication: int | None = None,
        block_size: int | None = None,
    ) -> io.BufferedWriter:
        """Create a file and return a stream writing to it.

        Missing parent directories are created with ``permission``, or with
        ``DEFAULT_DIR_PERMISSION`` when none is given. An existing file is
        truncated when ``overwrite`` is true.

        Args:
            path: File to create.
            permission: Permission bits for the file and any new parents.
                Defaults to ``DEFAULT_FILE_PERMISSION`` for the file and
                ``DEFAULT_DIR_PERMISSION`` for parents.
            overwrite: Replace an existing file.
            buffer_size: Buffer hint for the returned stream.
            replication: Ignored; replication is configured on the backend.
            block_size: Ignored; block size is configured on the backend.

        Raises:
            AlreadyExistsError: If the path is a directory, or is a file and
                ``overwrite`` is false.
        """
        target = self._resolve(path)
        if replication is not None or block_size is not None:
            logger.debug(
                "create %s: ignoring replication=%s block_size=%s",
                target,
                replication,
                block_size,
            )

        existing = self._lstat_or_none(target)
        if existing is not None:
            if existing.is_dir:
                raise AlreadyExistsError(
                    errno.EEXIST, "Cannot overwrite a directory with a file", target
                )
            if not overwrite:
                raise AlreadyExistsError(errno.EEXIST, "File exists", target)
        else:
            dirname = parent(target)
            if dirname is not None:
                logger.debug("create %s: ensuring parent %s", target, dirname)
                self.mkdirs(
                    dirname,
                    DEFAULT_DIR_PERMISSION if permission is None else permission,
                )

        flags = OpenFlags.WRONLY | OpenFlags.CREAT | OpenFlags.TRUNC
        if permission is None:
            permission = DEFAULT_FILE_PERMISSION
        handle = self._open_handle(target, flags, permission)
        return open_output_stream(self._backend, handle, buffer_size, target)

    def append(self, path: str, buffer_size: int | None = None) -> io.BufferedWriter:
        """Open a file for appending.

        A missing file is created unless the config sets
        ``append_creates=False``, in which case ``PathNotFoundError`` is
        raised.
        """
        target = self._resolve(path)
        flags = OpenFlags.WRONLY | OpenFlags.APPEND
        if self.config.append_creates:
            flags |= OpenFlags.CREAT
        handle = self._open_handle(target, flags, DEFAULT_FILE_PERMISSION)
        return open_output_stream(self._backend, handle, buffer_size, target)

    def _open_handle(self, target: str, flags: OpenFlags, mode: int) -> int:
        with backend_call(target):
            handle = self._backend.open(target, flags, mode)
        return check_code(handle, target)

    def _close_quietly(self, handle: int, target: str) -> None:
        try:
            with backend_call(target):
                self._backend.close(handle)
        except OSError as exc:
            logger.warning("Failed to close handle %d for %s: %s", handle, target, exc)

    # -------------------------------------------------------------------------
    # Directories
    # -------------------------------------------------------------------------

    def mkdirs(self, path: str, permission: int = DEFAULT_DIR_PERMISSION) -> bool:
        """Create a directory and any missing parents.

        Any part of the tree may already exist, including the leaf itself.

        Raises:
            NotADirectoryPathError: If a path component is a file.
        """
        target = self._resolve(path)
        try:
            with backend_call(target):
                self._backend.mkdirs(target, permission)
        except AlreadyExistsError:
            pass
        return True

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_file_status(self, path: str) -> FileStatus:
        """Stat a path.

        Raises:
            PathNotFoundError: If the path does not exist.
        """
        target = self._resolve(path)
        with backend_call(target):
            raw = self._backend.lstat(target)
        return self._status.translate(raw, target, self.uri + target)

    def list_status(self, path: str) -> list[FileStatus]:
        """Status of each entry of a directory.

        For a plain file, returns a single-element list with its own status.
        An empty directory yields an empty list.

        Raises:
            PathNotFoundError: If the path does not exist.
        """
        target = self._resolve(path)
        with backend_call(target):
            names = self._backend.listdir(target)
        if names is not None:
            return [self.get_file_status(posixpath.join(target, name)) for name in names]
        return [self.get_file_status(target)]

    def exists(self, path: str) -> bool:
        return self._lstat_or_none(self._resolve(path)) is not None

    def is_file(self, path: str) -> bool:
        raw = self._lstat_or_none(self._resolve(path))
        return raw is not None and not raw.is_dir

    def is_directory(self, path: str) -> bool:
        raw = self._lstat_or_none(self._resolve(path))
        return raw is not None and raw.is_dir

    def _lstat_or_none(self, target: str) -> RawStat | None:
        try:
            with backend_call(target):
                return self._backend.lstat(target)
        except PathNotFoundError:
            return None

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def set_permission(self, path: str, permission: int) -> None:
        target = self._resolve(path)
        with backend_call(target):
            self._backend.chmod(target, permission)

    def set_times(self, path: str, mtime: int = -1, atime: int = -1) -> None:
        """Set modification and/or access time in milliseconds.

        ``-1`` leaves the corresponding time unchanged.
        """
        target = self._resolve(path)
        stat = RawStat()
        mask = SetAttrMask(0)
        if mtime != -1:
            mask |= SetAttrMask.MTIME
            stat.mtime = mtime
        if atime != -1:
            mask |= SetAttrMask.ATIME
            stat.atime = atime
        if not mask:
            return
        with backend_call(target):
            self._backend.setattr(target, stat, mask)

    # -------------------------------------------------------------------------
    # Rename / Delete
    # -------------------------------------------------------------------------

    def rename(self, src: str, dst: str) -> bool:
        """Rename ``src`` to ``dst``.

        If ``dst`` is an existing directory, ``src`` is moved into it as
        ``dst/basename(src)``. Only that one retarget is applied.

        Returns:
            True on success. False if ``src`` does not exist or the
            destination already exists as a file.
        """
        return self._rename(self._resolve(src), self._resolve(dst), retarget=True)

    def _rename(self, src: str, dst: str, retarget: bool) -> bool:
        existing = self._lstat_or_none(dst)
        if existing is not None:
            if existing.is_dir and retarget:
                return self._rename(src, posixpath.join(dst, basename(src)), retarget=False)
            logger.debug("rename %s -> %s: destination exists", src, dst)
            return False

        try:
            with backend_call(src):
                self._backend.rename(src, dst)
        except PathNotFoundError:
            logger.warning("rename %s -> %s: source not found", src, dst)
            return False
        return True

    def delete(self, path: str, recursive: bool = False) -> bool:
        """Delete a file or directory.

        Not atomic: when a recursive delete fails part-way, children deleted
        so far stay deleted.

        Returns:
            False if the path does not exist or a child could not be
            deleted, True otherwise.

        Raises:
            DirectoryNotEmptyError: If ``path`` is a non-empty directory and
                ``recursive`` is false.
        """
        return self._delete(self._resolve(path), recursive)

    def _delete(self, target: str, recursive: bool) -> bool:
        raw = self._lstat_or_none(target)
        if raw is None:
            return False

        if not raw.is_dir:
            with backend_call(target):
                self._backend.unlink(target)
            return True

        with backend_call(target):
            names = self._backend.listdir(target)
        if names is None:
            return False

        if names and not recursive:
            raise DirectoryNotEmptyError(errno.ENOTEMPTY, "Directory not empty", target)

        for name in names:
            if not self._delete(posixpath.join(target, name), recursive):
                logger.debug("delete %s: stopped at child %s", target, name)
                return False

        with backend_call(target):
            self._backend.rmdir(target)
        return True

    # -------------------------------------------------------------------------
    # Block Locations / Defaults
    # -------------------------------------------------------------------------

    def get_file_block_locations(
        self, file: FileStatus | str, start: int, length: int
    ) -> list[BlockLocation]:
        """Synthesized block locations covering ``[start, start + length)``.

        The first location is aligned to the block containing ``start`` and
        may begin before it. Host lists are empty.

        Raises:
            PathNotFoundError: If the file cannot be opened.
        """
        path = file.path if isinstance(file, FileStatus) else file
        target = self._resolve(path)
        try:
            handle = self._open_handle(target, OpenFlags.RDONLY, 0)
        except PathNotFoundError:
            logger.error("get_file_block_locations: cannot open %s", target)
            raise
        try:
            with backend_call(target):
                raw = self._backend.fstat(handle)
            block_size = self._status.block_size(raw, target)
        finally:
            self._close_quietly(handle, target)
        return synthesize_block_locations(start, length, block_size)

    def get_default_replication(self) -> int:
        if self.config.replication is not None:
            return self.config.replication
        with backend_call():
            return self._backend.get_default_replication()

    def get_default_block_size(self) -> int:
        return self.config.block_size
