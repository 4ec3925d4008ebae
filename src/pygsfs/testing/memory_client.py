from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from ..client import BucketMetadata, ObjectMetadata, ObjectRef
from ..errors import StoreNotEmpty, StoreNotFound


@dataclass
class StoreOp:
    name: str
    args: tuple


@dataclass
class _Bucket:
    meta: BucketMetadata
    objects: Dict[str, bytes] = field(default_factory=dict)
    metadata: Dict[str, ObjectMetadata] = field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryObjectStore:
    """
    Object store client keeping buckets and objects in dictionaries.

    Simulates the parts of the store semantics the file-system layer depends on:
    prefix listings (optionally grouped per directory), bucket-not-empty errors and chunked copies.
    Every call is recorded in ``ops``.
    """

    def __init__(self, copy_chunk_size: int = 4, clock: Callable[[], datetime] = _utcnow) -> None:
        self.copy_chunk_size = copy_chunk_size
        self.clock = clock
        self.ops: List[StoreOp] = []
        self._buckets: Dict[str, _Bucket] = {}

    def _bucket(self, name: str) -> _Bucket:
        try:
            return self._buckets[name]
        except KeyError:
            raise StoreNotFound(f"bucket {name}: not found") from None

    # ----- metadata -----
    def get(self, bucket: str, key: str) -> Optional[ObjectMetadata]:
        self.ops.append(StoreOp("get", (bucket, key)))
        b = self._buckets.get(bucket)
        if b is None:
            return None
        return b.metadata.get(key)

    def get_bucket(self, bucket: str) -> Optional[BucketMetadata]:
        self.ops.append(StoreOp("get_bucket", (bucket,)))
        b = self._buckets.get(bucket)
        return b.meta if b else None

    def list(self, bucket: str, prefix: str = "", current_directory: bool = False) -> Iterator[ObjectMetadata]:
        self.ops.append(StoreOp("list", (bucket, prefix, current_directory)))
        b = self._bucket(bucket)
        entries: Dict[str, ObjectMetadata] = {}
        for key in sorted(b.objects):
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            cut = rest.find("/")
            if current_directory and cut != -1:
                name = prefix + rest[: cut + 1]
                entries.setdefault(name, ObjectMetadata(bucket=bucket, name=name))
            else:
                entries[key] = b.metadata[key]
        return iter([entries[k] for k in sorted(entries)])

    def list_buckets(self) -> Iterator[BucketMetadata]:
        self.ops.append(StoreOp("list_buckets", ()))
        return iter([self._buckets[name].meta for name in sorted(self._buckets)])

    # ----- mutation -----
    def create(self, bucket: str, key: str, data: bytes = b"") -> ObjectMetadata:
        self.ops.append(StoreOp("create", (bucket, key)))
        b = self._bucket(bucket)
        now = self.clock()
        previous = b.metadata.get(key)
        meta = ObjectMetadata(
            bucket=bucket,
            name=key,
            size=len(data),
            create_time=previous.create_time if previous else now,
            update_time=now,
        )
        b.objects[key] = bytes(data)
        b.metadata[key] = meta
        return meta

    def create_bucket(self, bucket: str, location: Optional[str] = None, storage_class: Optional[str] = None) -> BucketMetadata:
        self.ops.append(StoreOp("create_bucket", (bucket, location, storage_class)))
        meta = BucketMetadata(name=bucket, create_time=self.clock(), location=location, storage_class=storage_class)
        self._buckets.setdefault(bucket, _Bucket(meta=meta))
        return self._buckets[bucket].meta

    def delete(self, bucket: str, key: str) -> bool:
        self.ops.append(StoreOp("delete", (bucket, key)))
        b = self._bucket(bucket)
        if key not in b.objects:
            return False
        del b.objects[key]
        del b.metadata[key]
        return True

    def delete_bucket(self, bucket: str) -> bool:
        self.ops.append(StoreOp("delete_bucket", (bucket,)))
        b = self._bucket(bucket)
        if b.objects:
            raise StoreNotEmpty(f"bucket {bucket}: not empty")
        del self._buckets[bucket]
        return True

    # ----- streams -----
    def open_reader(self, bucket: str, key: str, offset: int = 0) -> io.BytesIO:
        self.ops.append(StoreOp("open_reader", (bucket, key, offset)))
        b = self._bucket(bucket)
        if key not in b.objects:
            raise StoreNotFound(f"gs://{bucket}/{key}: not found")
        return io.BytesIO(b.objects[key][offset:])

    def open_writer(self, bucket: str, key: str) -> "_MemoryWriter":
        self.ops.append(StoreOp("open_writer", (bucket, key)))
        self._bucket(bucket)
        return _MemoryWriter(self, bucket, key)

    def copy(self, source: ObjectRef, target: ObjectRef) -> "MemoryCopyWriter":
        self.ops.append(StoreOp("copy", (source, target)))
        src = self._bucket(source.bucket)
        self._bucket(target.bucket)
        if source.key not in src.objects:
            raise StoreNotFound(f"gs://{source.bucket}/{source.key}: not found")
        return MemoryCopyWriter(self, source, target, src.objects[source.key])

    # ----- helpers for tests -----
    def keys(self, bucket: str) -> List[str]:
        return sorted(self._bucket(bucket).objects)

    def read(self, bucket: str, key: str) -> bytes:
        return self._bucket(bucket).objects[key]


class _MemoryWriter(io.BytesIO):

    def __init__(self, store: InMemoryObjectStore, bucket: str, key: str) -> None:
        super().__init__()
        self._store = store
        self._bucket = bucket
        self._key = key

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._store.create(self._bucket, self._key, self.getvalue())
        finally:
            super().close()


class MemoryCopyWriter:
    """Copies ``copy_chunk_size`` bytes per ``advance()``; the target appears when done."""

    def __init__(self, store: InMemoryObjectStore, source: ObjectRef, target: ObjectRef, data: bytes) -> None:
        self._store = store
        self._target = target
        self._data = data
        self._copied = 0
        self._done = False
        self.chunks = 0

    def is_done(self) -> bool:
        return self._done

    def advance(self) -> None:
        if self._done:
            return
        self.chunks += 1
        self._copied = min(self._copied + self._store.copy_chunk_size, len(self._data))
        if self._copied >= len(self._data):
            self._store.create(self._target.bucket, self._target.key, self._data)
            self._done = True
