from .attributes import AttributesView, BucketAttributes, FileAttributes
from .channels import OpenOption
from .config import GsConfig
from .core.key import PathKey, PathKind
from .core.path import GsPath
from .directory import DirEntry, DirectoryStream
from .errors import (
    AlreadyExists,
    CopyTimeout,
    DirectoryNotEmpty,
    GsFsError,
    InvalidPath,
    IOFailure,
    MoveIncomplete,
    NotFound,
    UnsupportedMode,
)
from .filesystem import GsFileSystem
from .registry import FileSystemRegistry, default_registry, get_path

__all__ = [
    "AlreadyExists",
    "AttributesView",
    "BucketAttributes",
    "CopyTimeout",
    "DirEntry",
    "DirectoryNotEmpty",
    "DirectoryStream",
    "FileAttributes",
    "FileSystemRegistry",
    "GsConfig",
    "GsFileSystem",
    "GsFsError",
    "GsPath",
    "InvalidPath",
    "IOFailure",
    "MoveIncomplete",
    "NotFound",
    "OpenOption",
    "PathKey",
    "PathKind",
    "UnsupportedMode",
    "default_registry",
    "get_path",
]
__version__ = "0.1.0"
