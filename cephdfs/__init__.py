"""cephdfs: Distributed-filesystem adapter over a POSIX-like Ceph backend."""

from .base import Backend, BlockLocation, FileStatus, OpenFlags, RawStat, SetAttrMask
from .blocks import synthesize_block_locations
from .config import CephConfig, connect_fs
from .errors import (
    AlreadyExistsError,
    DFSError,
    DirectoryNotEmptyError,
    InvalidArgumentError,
    NotADirectoryPathError,
    PathNotFoundError,
    UnknownBackendError,
    translate_error,
)
from .filesystem import CephFileSystem
from .local import LocalBackend
from .memory import MemoryBackend
from .paths import PathResolver
from .status import StatusTranslator

__all__ = [
    "AlreadyExistsError",
    "Backend",
    "BlockLocation",
    "CephConfig",
    "CephFileSystem",
    "connect_fs",
    "DFSError",
    "DirectoryNotEmptyError",
    "FileStatus",
    "InvalidArgumentError",
    "LocalBackend",
    "MemoryBackend",
    "NotADirectoryPathError",
    "OpenFlags",
    "PathNotFoundError",
    "PathResolver",
    "RawStat",
    "SetAttrMask",
    "StatusTranslator",
    "synthesize_block_locations",
    "translate_error",
    "UnknownBackendError",
]
