from .fs import FileSystem, copy_between
from .key import GLOBAL_ROOT, SCHEME, PathKey, PathKind
from .path import GsPath

__all__ = ["FileSystem", "GLOBAL_ROOT", "GsPath", "PathKey", "PathKind", "SCHEME", "copy_between"]
