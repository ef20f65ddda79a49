"""Path resolution against a working directory.

Caller paths may be relative, absolute, or fully qualified
(``ceph://host/a/b``). Everything sent to a backend is absolute,
normalized and scheme-free.
"""

from __future__ import annotations

import posixpath
from urllib.parse import urlsplit

from .errors import InvalidArgumentError


def _strip_scheme(path: str) -> str:
    if "://" not in path:
        return path
    return urlsplit(path).path or "/"


def basename(path: str) -> str:
    """Last component of a (possibly qualified) path."""
    return posixpath.basename(_strip_scheme(path).rstrip("/"))


def parent(path: str) -> str | None:
    """Parent of an absolute path, or None for the root."""
    path = posixpath.normpath(path)
    if path == "/":
        return None
    return posixpath.dirname(path)


class PathResolver:
    """Resolves caller paths against a mutable working directory.

    One resolver belongs to one ``CephFileSystem``; the working directory is
    not shared between instances.
    """

    def __init__(self, working_directory: str = "/"):
        self._cwd = "/"
        self.working_directory = working_directory

    @property
    def working_directory(self) -> str:
        return self._cwd

    @working_directory.setter
    def working_directory(self, path: str) -> None:
        self._cwd = self.backend_path(path)

    def resolve(self, path: str) -> str:
        """Return ``path`` as an absolute, normalized path.

        Qualified paths keep their scheme and authority; relative paths are
        joined under the working directory.
        """
        if not path:
            raise InvalidArgumentError("Empty path")
        if "://" in path:
            parts = urlsplit(path)
            return f"{parts.scheme}://{parts.netloc}{posixpath.normpath(parts.path or '/')}"
        if path.startswith("/"):
            return self._normalize(path)
        return self._normalize(f"{self._cwd}/{path}")

    def to_backend_path(self, path: str) -> str:
        """Strip scheme and authority from an already-resolved path.

        Raises:
            InvalidArgumentError: If ``path`` is not absolute.
        """
        stripped = _strip_scheme(path)
        if not stripped.startswith("/"):
            raise InvalidArgumentError(f"Path is not absolute: '{path}'")
        return self._normalize(stripped)

    def backend_path(self, path: str) -> str:
        """Resolve a caller path straight to its backend form."""
        return self.to_backend_path(self.resolve(path))

    @staticmethod
    def _normalize(path: str) -> str:
        # posixpath keeps a leading "//"; collapse it
        normalized = posixpath.normpath(path)
        if normalized.startswith("//"):
            normalized = "/" + normalized.lstrip("/")
        return normalized
