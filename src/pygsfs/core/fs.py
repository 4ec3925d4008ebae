# src/pygsfs/core/fs.py
from __future__ import annotations

import abc
import io
import shutil
from typing import Any, Iterator, List, Optional, Tuple, Union

from .path import GsPath

StrPath = Union[str, GsPath]


class FileSystem(abc.ABC):
    """
    Abstract filesystem interface for pygsfs.

    Implementations are rooted at a base location (a bucket).
    All methods accept either a ``GsPath`` or a POSIX string; relative strings are taken
    relative to the root, absolute ones (``/bucket/...``) are used as is.
    Concrete backends MUST implement the abstract methods below.
    """

    # ----- identity -----
    @property
    @abc.abstractmethod
    def root(self) -> GsPath:
        """Root path for this filesystem (the bucket)."""

    # ----- path helpers -----
    def _to_path(self, p: StrPath) -> GsPath:
        """Coerce a string to a path relative to root; pass through GsPath."""
        if isinstance(p, GsPath):
            return p
        return self.root.resolve(p)

    # ----- I/O primitives -----
    @abc.abstractmethod
    def open(self, path: StrPath, mode: str = "rb") -> io.IOBase:
        """Open a path for reading/writing. Binary/text mode must be honored."""

    @abc.abstractmethod
    def read_bytes(self, path: StrPath) -> bytes:
        """Read the entire file as bytes."""

    @abc.abstractmethod
    def write_bytes(self, path: StrPath, data: bytes) -> None:
        """Write the entire file from bytes."""

    # Convenience text wrappers
    def read_text(self, path: StrPath, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def write_text(self, path: StrPath, text: str, encoding: str = "utf-8") -> None:
        self.write_bytes(path, text.encode(encoding))

    # ----- metadata / existence -----
    @abc.abstractmethod
    def exists(self, path: StrPath) -> bool:
        """True if a file or directory exists at path."""

    @abc.abstractmethod
    def is_dir(self, path: StrPath) -> bool:
        """True if path is a directory/prefix."""

    def is_file(self, path: StrPath) -> bool:
        return self.exists(path) and not self.is_dir(path)

    def attribute_view(self, path: StrPath) -> Optional[Any]:
        """Attribute view accepting ``set_times``; ``None`` when the backend has none."""
        return None

    # ----- directory ops -----
    @abc.abstractmethod
    def ls(self, path: Optional[StrPath] = None, detail: bool = False) -> List[Any]:
        """
        List a directory.

        - If detail=False (default): returns a list of child names (str).
        - If detail=True: returns a list of ``DirEntry`` carrying the listing attributes.
        Raises ``NotFound`` when the bucket does not exist.
        """

    @abc.abstractmethod
    def mkdirs(self, path: StrPath, exist_ok: bool = True) -> None:
        """Create a directory."""

    @abc.abstractmethod
    def rm(self, path: StrPath, recursive: bool = False) -> None:
        """Remove a file. If recursive=True and path is a directory, remove its contents."""

    # ----- data movement -----
    @abc.abstractmethod
    def mv(self, src: StrPath, dst: StrPath, overwrite: bool = False) -> None:
        """Move/rename a file."""

    @abc.abstractmethod
    def cp(self, src: StrPath, dst: StrPath, overwrite: bool = False) -> None:
        """Copy a file."""

    # ----- convenience utilities (default impls may be overridden) -----
    def walk(self, top: Optional[StrPath] = None) -> Iterator[Tuple[GsPath, List[str], List[str]]]:
        """
        Walk the directory tree rooted at `top` (default: root), yielding (dirpath, dirnames, filenames).
        """
        top_path = self.root if top is None else self._to_path(top)
        dirs, files = [], []
        for e in self.ls(top_path, detail=True):
            if e.is_dir():
                dirs.append(e.name)
            else:
                files.append(e.name)
        yield top_path, sorted(dirs), sorted(files)
        for d in sorted(dirs):
            yield from self.walk(top_path.resolve(d + "/"))


def copy_between(src_fs: FileSystem, src: StrPath, dst_fs: FileSystem, dst: StrPath, times: Optional[Tuple[Any, Any, Any]] = None) -> None:
    """
    Stream a file from one filesystem to another, then carry over its timestamps.

    ``times`` is ``(last_modified, last_access, creation)``; backends that cannot set times
    accept the call and ignore it.
    """
    with src_fs.open(src, "rb") as reader, dst_fs.open(dst, "wb") as writer:
        shutil.copyfileobj(reader, writer)
    view = dst_fs.attribute_view(dst)
    if view is not None and times is not None:
        view.set_times(*times)
