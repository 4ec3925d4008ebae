from __future__ import annotations

import io
from typing import TYPE_CHECKING, List, Optional, Set

from .attributes import AttributesView, FileAttributes
from .channels import OpenOption, options_from_mode
from .client import ObjectStoreClient
from .config import GsConfig
from .core.fs import FileSystem, StrPath
from .core.key import SEPARATOR, PathKey
from .core.path import GsPath
from .directory import DirEntry, DirectoryStream, PathFilter
from .errors import AlreadyExists, translate_store_errors
from .operations import NamespaceOperations

if TYPE_CHECKING:  # pragma: no cover
    from .registry import FileSystemRegistry


def _trim_slash(part: str) -> str:
    return part.strip(SEPARATOR)


class GsFileSystem(FileSystem):
    """
    File system handle for one Google Storage bucket.

    Handles are created by a ``FileSystemRegistry`` (one per bucket) and share its client session.
    The handle registered for ``GLOBAL_ROOT`` serves the ``/`` path that lists buckets.
    """

    separator = SEPARATOR

    def __init__(
        self,
        registry: "FileSystemRegistry",
        client: ObjectStoreClient,
        bucket: str,
        config: Optional[GsConfig] = None,
    ) -> None:
        self.registry = registry
        self.client = client
        self.bucket = bucket
        self.config = config or GsConfig()
        self.operations = NamespaceOperations(client, self.config)

    def __repr__(self) -> str:
        return f"GsFileSystem(bucket={self.bucket!r})"

    # ----- identity -----
    @property
    def root(self) -> GsPath:
        return GsPath(self, PathKey(self.bucket))

    @property
    def is_open(self) -> bool:
        return True

    @property
    def is_read_only(self) -> bool:
        return False

    @property
    def supported_attribute_views(self) -> Set[str]:
        return {AttributesView.name}

    def close(self) -> None:
        # nothing to release: the client session is shared through the registry
        return None

    # ----- paths -----
    def get_path(self, first: str, *more: str) -> GsPath:
        """
        Build a path from one or more strings.

        With several parts, slashes around each part are trimmed before joining, so
        ``get_path("/alpha", "gamma//", "delta//")`` is ``/alpha/gamma/delta``.
        """
        if more:
            joined = SEPARATOR.join(p for p in (_trim_slash(x) for x in (first,) + more) if p)
            raw = SEPARATOR + joined if first.startswith(SEPARATOR) else joined
            key = PathKey.parse(raw)
            key = PathKey(key.bucket, key.key, False) if key.key else key
        else:
            key = PathKey.parse(first)
        return self._path_for(key)

    def _path_for(self, key: PathKey) -> GsPath:
        bucket = key.bucket
        if not bucket or bucket == self.bucket:
            return GsPath(self, key)
        return GsPath(self.registry.get_file_system(bucket), key)

    def root_directories(self) -> List[GsPath]:
        """One path per bucket visible to the client credentials."""
        with translate_store_errors("gs:///", "listing"):
            return [self._path_for(PathKey(b.name)) for b in self.client.list_buckets()]

    def _to_path(self, p: StrPath) -> GsPath:
        if isinstance(p, str) and p.startswith(SEPARATOR):
            return self.get_path(p)
        return super()._to_path(p)

    # ----- attributes -----
    def read_attributes(self, path: StrPath, cached: Optional[FileAttributes] = None) -> FileAttributes:
        return self.operations.read_attributes(self._to_path(path), cached)

    def stat(self, path: StrPath) -> FileAttributes:
        return self.read_attributes(path)

    def attribute_view(self, path: StrPath) -> AttributesView:
        return self.operations.get_attribute_view(self._to_path(path))

    def exists(self, path: StrPath) -> bool:
        return self.operations.exists(self._to_path(path))

    def is_dir(self, path: StrPath) -> bool:
        p = self._to_path(path)
        return self.operations.exists(p) and self.read_attributes(p).is_directory

    def check_access(self, path: StrPath, *modes: str) -> None:
        self.operations.check_access(self._to_path(path), *modes)

    def is_same_file(self, path: StrPath, other: StrPath) -> bool:
        return self.operations.is_same_file(self._to_path(path), self._to_path(other))

    def is_hidden(self, path: StrPath) -> bool:
        return self._to_path(path).is_hidden()

    # ----- I/O -----
    def new_channel(self, path: StrPath, options: OpenOption = OpenOption.READ):
        return self.operations.new_channel(self._to_path(path), options)

    def open(self, path: StrPath, mode: str = "rb", encoding: Optional[str] = None) -> io.IOBase:
        channel = self.new_channel(path, options_from_mode(mode))
        stream = io.BufferedWriter(channel) if channel.writable() else io.BufferedReader(channel)
        if "b" in mode:
            return stream
        return io.TextIOWrapper(stream, encoding=encoding or "utf-8")

    def read_bytes(self, path: StrPath) -> bytes:
        with self.open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: StrPath, data: bytes) -> None:
        self.operations.create_file(self._to_path(path), data)

    # ----- directory ops -----
    def scandir(self, path: Optional[StrPath] = None, accept: Optional[PathFilter] = None) -> DirectoryStream:
        target = self.root if path is None else self._to_path(path)
        return self.operations.new_directory_stream(target, accept)

    def iterdir(self, path: Optional[StrPath] = None, accept: Optional[PathFilter] = None):
        for entry in self.scandir(path, accept):
            yield entry.path

    def ls(self, path: Optional[StrPath] = None, detail: bool = False) -> List:
        entries: List[DirEntry] = list(self.scandir(path))
        if detail:
            return entries
        return [e.name for e in entries]

    def mkdirs(self, path: StrPath, exist_ok: bool = True) -> None:
        p = self._to_path(path)
        if not exist_ok and self.exists(p):
            raise AlreadyExists(p.to_uri_string())
        self.operations.create_directory(p)

    def rm(self, path: StrPath, recursive: bool = False) -> None:
        p = self._to_path(path)
        if recursive and self.is_dir(p):
            for entry in self.ls(p, detail=True):
                self.rm(entry.path, recursive=entry.is_dir())
            if not p.is_bucket and not self.exists(p):
                # a directory without marker vanishes with its last child
                return
        self.operations.delete(p)

    # ----- data movement -----
    def mv(self, src: StrPath, dst: StrPath, overwrite: bool = False) -> None:
        self.operations.move(self._to_path(src), self._to_path(dst), replace_existing=overwrite)

    def cp(self, src: StrPath, dst: StrPath, overwrite: bool = False) -> None:
        self.operations.copy(self._to_path(src), self._to_path(dst), replace_existing=overwrite)

    def delete(self, path: StrPath) -> None:
        self.operations.delete(self._to_path(path))

    def create_directory(self, path: StrPath) -> GsPath:
        return self.operations.create_directory(self._to_path(path))

    def create_file(self, path: StrPath, data: bytes = b"") -> None:
        self.operations.create_file(self._to_path(path), data)
