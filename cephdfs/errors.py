"""Exception hierarchy and backend error translation.

Backend failures arrive either as ``OSError`` instances carrying an
``errno`` or as raw integer codes (libcephfs style, usually negative).
``translate_error`` is the only place where those are interpreted; every
call site matches on the resulting exception classes.

Each class also derives from the closest builtin so ordinary
``except FileNotFoundError`` handling keeps working.
"""

from __future__ import annotations

import errno
import os
from collections.abc import Iterator
from contextlib import contextmanager


class DFSError(Exception):
    """Base exception for all adapter errors."""


class PathNotFoundError(DFSError, FileNotFoundError):
    """Raised when a file or directory path does not exist."""


class AlreadyExistsError(DFSError, FileExistsError):
    """Raised when a path exists and the operation may not replace it."""


class NotADirectoryPathError(DFSError, NotADirectoryError):
    """Raised when a path component that must be a directory is a file."""


class DirectoryNotEmptyError(DFSError, OSError):
    """Raised when a non-recursive delete meets a non-empty directory."""


class InvalidArgumentError(DFSError, ValueError):
    """Raised for arguments the backend or adapter rejects (e.g. a directory
    opened as a file)."""


class UnknownBackendError(DFSError, OSError):
    """Raised for backend error codes with no mapping.

    ``code`` carries the raw value for diagnostics only.
    """

    def __init__(self, code: int | None, message: str, path: str | None = None):
        self.code = code
        super().__init__(code, message, path)

    def __str__(self) -> str:
        text = f"[backend code {self.code}] {self.strerror}"
        if self.filename is not None:
            text += f": '{self.filename}'"
        return text


_ERRNO_MAP: dict[int, type[DFSError]] = {
    errno.ENOENT: PathNotFoundError,
    errno.EEXIST: AlreadyExistsError,
    errno.ENOTDIR: NotADirectoryPathError,
    errno.ENOTEMPTY: DirectoryNotEmptyError,
    errno.EINVAL: InvalidArgumentError,
    errno.EISDIR: InvalidArgumentError,
}


def translate_error(error: BaseException | int, path: str | None = None) -> DFSError:
    """Map a backend failure onto the adapter's error taxonomy.

    Args:
        error: An exception raised by the backend, or a raw integer code.
            Negative codes are treated as ``-errno``.
        path: Path involved in the failing call (for the message).

    Returns:
        The translated exception (not raised).
    """
    if isinstance(error, DFSError):
        return error

    if isinstance(error, int):
        code: int | None = abs(error)
        message = os.strerror(code) if code else "Unknown error"
    elif isinstance(error, OSError):
        code = error.errno
        message = error.strerror or str(error)
        if path is None and error.filename is not None:
            path = str(error.filename)
    else:
        return UnknownBackendError(None, str(error) or type(error).__name__, path)

    cls = _ERRNO_MAP.get(code) if code is not None else None
    if cls is None:
        return UnknownBackendError(code, message, path)
    if issubclass(cls, OSError):
        return cls(code, message, path)
    return cls(f"{message}: '{path}'" if path else message)


@contextmanager
def backend_call(path: str | None = None) -> Iterator[None]:
    """Translate any ``OSError`` raised inside the block.

    Example::

        with backend_call(path):
            raw = backend.lstat(path)
    """
    try:
        yield
    except DFSError:
        raise
    except OSError as exc:
        raise translate_error(exc, path) from exc


def check_code(code: int, path: str | None = None) -> int:
    """Raise the translated error for a negative integer return code."""
    if code < 0:
        raise translate_error(code, path)
    return code
