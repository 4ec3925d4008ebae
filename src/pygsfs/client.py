from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Iterator, Optional, Protocol


@dataclass(frozen=True)
class ObjectMetadata:
    """
    Metadata of a stored object, or of a prefix returned by a current-directory listing.

    - name: the object key; directory markers and listed prefixes end with ``/``
    - create_time / update_time: ``None`` when the store does not report them (e.g. prefixes)
    """
    bucket: str
    name: str
    size: int = 0
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    @property
    def is_directory(self) -> bool:
        return self.name.endswith("/")


@dataclass(frozen=True)
class BucketMetadata:
    name: str
    create_time: Optional[datetime] = None
    location: Optional[str] = None
    storage_class: Optional[str] = None


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str


class CopyWriter(Protocol):
    """Handle of a copy the provider performs in chunks."""

    def is_done(self) -> bool:
        ...

    def advance(self) -> None:
        """Move the copy forward by one provider-sized chunk."""


class ObjectStoreClient(Protocol):
    """
    Object store operations the file-system layer relies on.

    Failures are reported with ``pygsfs.errors.StoreNotFound`` (missing bucket/object),
    ``StoreNotEmpty`` (bucket still holds objects) or ``StoreError`` (anything else).
    Retries, credentials and timeouts belong to the implementation.
    """

    def get(self, bucket: str, key: str) -> Optional[ObjectMetadata]:
        ...

    def get_bucket(self, bucket: str) -> Optional[BucketMetadata]:
        ...

    def list(self, bucket: str, prefix: str = "", current_directory: bool = False) -> Iterator[ObjectMetadata]:
        """Objects whose key starts with ``prefix``; ``current_directory`` groups deeper keys into prefixes."""

    def list_buckets(self) -> Iterator[BucketMetadata]:
        ...

    def create(self, bucket: str, key: str, data: bytes = b"") -> ObjectMetadata:
        ...

    def create_bucket(self, bucket: str, location: Optional[str] = None, storage_class: Optional[str] = None) -> BucketMetadata:
        ...

    def delete(self, bucket: str, key: str) -> bool:
        ...

    def delete_bucket(self, bucket: str) -> bool:
        ...

    def open_reader(self, bucket: str, key: str, offset: int = 0) -> BinaryIO:
        ...

    def open_writer(self, bucket: str, key: str) -> BinaryIO:
        """Sequential write stream; the object becomes visible once the stream is closed."""

    def copy(self, source: ObjectRef, target: ObjectRef) -> CopyWriter:
        ...
