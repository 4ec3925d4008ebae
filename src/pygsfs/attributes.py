from __future__ import annotations

import enum
from datetime import datetime
from typing import Callable, Optional

from .client import BucketMetadata, ObjectMetadata


class AttributesKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    BUCKET = "bucket"
    ROOT = "root"


class FileAttributes:
    """
    Basic attributes of a Google Storage path.

    The store does not track access times, so ``last_access_time`` is always ``None``.
    Directories (marker objects, synthetic prefixes, buckets) report size 0 and no
    modification time.

    Equality and hashing look at ``(creation_time, last_modified_time, is_directory, size)``
    only; ``file_key`` is not part of it.
    """

    __slots__ = ("kind", "file_key", "size", "creation_time", "last_modified_time")

    def __init__(
        self,
        kind: AttributesKind,
        file_key: str,
        size: int = 0,
        creation_time: Optional[datetime] = None,
        last_modified_time: Optional[datetime] = None,
    ) -> None:
        directory = kind is not AttributesKind.FILE
        self.kind = kind
        self.file_key = file_key
        self.size = 0 if directory else size
        self.creation_time = creation_time
        self.last_modified_time = None if directory else last_modified_time

    @classmethod
    def root(cls) -> "FileAttributes":
        return cls(AttributesKind.ROOT, "/")

    @classmethod
    def directory(cls, bucket: str, key: str) -> "FileAttributes":
        """Synthetic directory inferred from keys sharing ``key/``."""
        return cls(AttributesKind.DIRECTORY, _file_key(bucket, key))

    @classmethod
    def from_object(cls, meta: ObjectMetadata) -> "FileAttributes":
        kind = AttributesKind.DIRECTORY if meta.is_directory else AttributesKind.FILE
        return cls(kind, _file_key(meta.bucket, meta.name), meta.size, meta.create_time, meta.update_time)

    @classmethod
    def from_bucket(cls, meta: BucketMetadata) -> "BucketAttributes":
        return BucketAttributes(meta)

    @property
    def is_directory(self) -> bool:
        return self.kind is not AttributesKind.FILE

    @property
    def is_regular_file(self) -> bool:
        return self.kind is AttributesKind.FILE

    @property
    def is_symbolic_link(self) -> bool:
        return False

    @property
    def is_other(self) -> bool:
        return False

    @property
    def last_access_time(self) -> Optional[datetime]:
        return None

    def _identity(self):
        return (self.creation_time, self.last_modified_time, self.is_directory, self.size)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value}, file_key={self.file_key!r}, size={self.size}, "
            f"creation_time={self.creation_time}, last_modified_time={self.last_modified_time})"
        )


class BucketAttributes(FileAttributes):
    """Attributes of a bucket root; also exposes where and how the bucket stores data."""

    __slots__ = ("location", "storage_class")

    def __init__(self, meta: BucketMetadata) -> None:
        super().__init__(AttributesKind.BUCKET, f"/{meta.name}", creation_time=meta.create_time)
        self.location = meta.location
        self.storage_class = meta.storage_class


class AttributesView:
    """
    "basic" attribute view over a path.

    ``set_times`` is accepted and ignored: objects carry store-assigned timestamps, and generic
    copy helpers set times on the target unconditionally after copying.
    """

    name = "basic"

    def __init__(self, loader: Callable[[], FileAttributes]) -> None:
        self._loader = loader

    def read_attributes(self) -> FileAttributes:
        return self._loader()

    def set_times(
        self,
        last_modified_time: Optional[datetime] = None,
        last_access_time: Optional[datetime] = None,
        creation_time: Optional[datetime] = None,
    ) -> None:
        return None


def _file_key(bucket: str, key: str) -> str:
    key = key.rstrip("/")
    return f"/{bucket}/{key}" if key else f"/{bucket}"
