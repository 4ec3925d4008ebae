from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional

from .attributes import FileAttributes
from .client import ObjectStoreClient
from .core.key import PathKey, PathKind
from .core.path import GsPath
from .errors import InvalidPath, NotFound, translate_store_errors

logger = logging.getLogger(__name__)

PathFilter = Callable[[GsPath], bool]


class DirEntry:
    """
    A directory listing entry: the child path plus the attributes read from the listing item.

    The snapshot is handed out once: the first ``stat()`` consumes it, later calls ask the store.
    """

    __slots__ = ("path", "_attributes")

    def __init__(self, path: GsPath, attributes: Optional[FileAttributes] = None) -> None:
        self.path = path
        self._attributes = attributes

    @property
    def name(self) -> str:
        return self.path.name

    def is_dir(self) -> bool:
        return self.path.is_directory

    def is_file(self) -> bool:
        return not self.path.is_directory

    def take_attributes(self) -> Optional[FileAttributes]:
        result, self._attributes = self._attributes, None
        return result

    def stat(self) -> FileAttributes:
        cached = self.take_attributes()
        if cached is not None:
            return cached
        return self.path.file_system.read_attributes(self.path)

    def __repr__(self) -> str:
        return f"DirEntry({self.path!r})"


class DirectoryStream:
    """
    Lazy, forward-only listing of one directory level.

    Buckets are listed for the global root; otherwise the objects directly under ``prefix/``.
    The marker object of the listed directory itself is skipped and ``accept`` (when given)
    filters children one by one.
    """

    def __init__(self, client: ObjectStoreClient, origin: GsPath, accept: Optional[PathFilter] = None) -> None:
        kind = origin.kind
        if kind is PathKind.RELATIVE:
            raise InvalidPath(f"Cannot list a relative path: {origin}")
        self.origin = origin
        self._accept = accept
        if kind is PathKind.GLOBAL_ROOT:
            self._items = self._buckets(client)
        else:
            bucket = origin.bucket_name
            if client.get_bucket(bucket) is None:
                raise NotFound(origin.to_uri_string(), f"Unknown Google Storage bucket: {bucket}")
            self._items = self._objects(client, bucket)

    def _buckets(self, client: ObjectStoreClient) -> Iterator[DirEntry]:
        for meta in client.list_buckets():
            yield DirEntry(self.origin.resolve(f"/{meta.name}"), FileAttributes.from_bucket(meta))

    def _objects(self, client: ObjectStoreClient, bucket: str) -> Iterator[DirEntry]:
        prefix = self.origin.key_string
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        logger.debug("list directory bucket=%s prefix=%s", bucket, prefix)
        fs = self.origin.file_system
        for meta in client.list(bucket, prefix, current_directory=True):
            if meta.name == prefix:
                continue
            yield DirEntry(GsPath(fs, PathKey(bucket, meta.name)), FileAttributes.from_object(meta))

    def __iter__(self) -> "DirectoryStream":
        return self

    def __next__(self) -> DirEntry:
        while True:
            with translate_store_errors(self.origin.to_uri_string(), "listing"):
                entry = next(self._items, None)
            if entry is None:
                raise StopIteration
            if self._accept is None or self._accept(entry.path):
                return entry

    def close(self) -> None:
        self._items.close()

    def __enter__(self) -> "DirectoryStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
