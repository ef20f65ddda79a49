"""Translation of raw backend stat records into ``FileStatus``."""

from __future__ import annotations

import getpass
import logging
from typing import Literal

from .base import Backend, FileStatus, RawStat
from .errors import backend_call

logger = logging.getLogger(__name__)

ReplicationPolicy = Literal["backend", "fixed"]

FIXED_REPLICATION = 1


class StatusTranslator:
    """Builds ``FileStatus`` records from ``RawStat`` values.

    Size, type, times and permission bits are copied verbatim. Block size
    comes from the stat record when the backend fills it in; otherwise it is
    queried from the backend and, failing that, the configured default is
    used. Owner and group are synthesized from the process identity.

    Replication follows ``replication_policy``:

    - ``"backend"``: ask ``Backend.get_file_replication`` for every path.
    - ``"fixed"``: always report ``1``; callers must not rely on any other
      value.
    """

    def __init__(
        self,
        backend: Backend,
        default_block_size: int,
        replication_policy: ReplicationPolicy = "backend",
        owner: str | None = None,
        group: str | None = None,
    ):
        self._backend = backend
        self._default_block_size = default_block_size
        self.replication_policy = replication_policy
        self.owner = owner or getpass.getuser()
        self.group = group

    def translate(self, raw: RawStat, backend_path: str, qualified_path: str) -> FileStatus:
        """Convert ``raw`` (the stat of ``backend_path``) into a ``FileStatus``."""
        return FileStatus(
            path=qualified_path,
            length=raw.size,
            is_dir=raw.is_dir,
            replication=self.replication(backend_path),
            block_size=self.block_size(raw, backend_path),
            modification_time=raw.mtime,
            access_time=raw.atime,
            permission=raw.permission,
            owner=self.owner,
            group=self.group,
        )

    def block_size(self, raw: RawStat, backend_path: str) -> int:
        """Block size for ``backend_path``, querying the backend lazily."""
        if raw.blksize > 0:
            return raw.blksize
        with backend_call(backend_path):
            queried = self._backend.get_block_size(backend_path)
        if queried > 0:
            return queried
        logger.debug(
            "No block size reported for %s, using default %d",
            backend_path,
            self._default_block_size,
        )
        return self._default_block_size

    def replication(self, backend_path: str) -> int:
        if self.replication_policy == "fixed":
            return FIXED_REPLICATION
        with backend_call(backend_path):
            return self._backend.get_file_replication(backend_path)
