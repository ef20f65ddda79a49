"""Configuration for the Ceph filesystem adapter.

Provides the ``CephConfig`` dataclass, a loader for Hadoop-style
``fs.ceph.*`` key/value mappings, and the ``connect_fs`` factory.
"""

from __future__ import annotations

import getpass
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from .base import Backend
    from .filesystem import CephFileSystem

DEFAULT_URI = "ceph://localhost"
DEFAULT_BLOCK_SIZE = 64 * 1024 * 1024  # 64MB
DEFAULT_HOME_ROOT = "/user"

# Hadoop-style configuration keys -> CephConfig field names
CONFIG_KEYS = {
    "fs.ceph.uri": "uri",
    "fs.ceph.blockSize": "block_size",
    "fs.ceph.replication": "replication",
    "fs.ceph.replicationPolicy": "replication_policy",
    "fs.ceph.appendCreates": "append_creates",
    "fs.ceph.user": "user",
    "fs.ceph.homeRoot": "home_root",
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


@dataclass(frozen=True)
class CephConfig:
    """Settings read once at initialization.

    Attributes:
        uri: Filesystem URI (``scheme://authority``); the backend endpoint.
        block_size: Default block size in bytes, used when neither the stat
            record nor the backend reports one.
        replication: Default replication reported by the adapter. None asks
            the backend.
        replication_policy: ``"backend"`` forwards per-path replication from
            the backend; ``"fixed"`` always reports 1.
        append_creates: Whether ``append`` on a missing path creates it.
        user: Name reported as owner of every file; defaults to the process
            user.
        home_root: Parent of per-user home directories.
    """

    uri: str = DEFAULT_URI
    block_size: int = DEFAULT_BLOCK_SIZE
    replication: int | None = None
    replication_policy: Literal["backend", "fixed"] = "backend"
    append_creates: bool = True
    user: str = field(default_factory=getpass.getuser)
    home_root: str = DEFAULT_HOME_ROOT

    def __post_init__(self) -> None:
        parts = urlsplit(self.uri)
        if not parts.scheme:
            raise ValueError(f"URI must include a scheme: {self.uri!r}")
        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if self.replication is not None and self.replication <= 0:
            raise ValueError(f"replication must be positive, got {self.replication}")
        if self.replication_policy not in ("backend", "fixed"):
            raise ValueError(
                f"Unsupported replication policy: {self.replication_policy}. "
                "Use 'backend' or 'fixed'."
            )
        if not self.home_root.startswith("/"):
            raise ValueError(f"home_root must be absolute: {self.home_root!r}")

    @property
    def scheme(self) -> str:
        return urlsplit(self.uri).scheme

    @property
    def authority(self) -> str:
        return urlsplit(self.uri).netloc

    @classmethod
    def from_mapping(cls, conf: Mapping[str, Any]) -> CephConfig:
        """Build a config from ``fs.ceph.*`` keys.

        Keys outside the ``fs.ceph.`` namespace are ignored; unknown keys
        inside it raise ``ValueError``.

        Example:
            >>> CephConfig.from_mapping({"fs.ceph.blockSize": "1048576"}).block_size
            1048576
        """
        kwargs: dict[str, Any] = {}
        for key, value in conf.items():
            if not key.startswith("fs.ceph."):
                continue
            name = CONFIG_KEYS.get(key)
            if name is None:
                raise ValueError(f"Unknown configuration key: {key}")
            if name in ("block_size", "replication"):
                value = int(value)
            elif name == "append_creates":
                value = _parse_bool(value)
            kwargs[name] = value
        return cls(**kwargs)


def connect_fs(backend: Backend, **kwargs: Any) -> CephFileSystem:
    """Create a ``CephFileSystem`` over a connected backend.

    Args:
        backend: Connected, authenticated backend client.
        **kwargs: ``CephConfig`` fields, or ``config=CephConfig(...)``.

    Returns:
        The initialized filesystem.

    Examples:
        >>> fs = connect_fs(MemoryBackend(), uri="ceph://mon1:6789", block_size=4096)
        >>> fs.get_default_block_size()
        4096
    """
    from .filesystem import CephFileSystem

    config = kwargs.pop("config", None)
    if config is not None:
        if kwargs:
            raise ValueError(
                f"Unexpected arguments alongside config: {list(kwargs.keys())}"
            )
        return CephFileSystem(backend, config)

    known = set(CephConfig.__dataclass_fields__)
    unexpected = [k for k in kwargs if k not in known]
    if unexpected:
        raise ValueError(f"Unexpected arguments for ceph fs: {unexpected}")
    return CephFileSystem(backend, CephConfig(**kwargs))
