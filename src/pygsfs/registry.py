from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional

from .client import ObjectStoreClient
from .config import GsConfig
from .core.key import GLOBAL_ROOT, SEPARATOR, PathKey
from .core.path import GsPath
from .errors import AlreadyExists, InvalidPath, NotFound
from .filesystem import GsFileSystem
from .observability import log_event

logger = logging.getLogger(__name__)

ClientFactory = Callable[[GsConfig], ObjectStoreClient]


def _checked(bucket: Optional[str]) -> str:
    if not bucket:
        return GLOBAL_ROOT
    if SEPARATOR in bucket:
        raise InvalidPath(f"Invalid bucket name: {bucket!r}")
    # same casing rule as PathKey.parse
    return bucket.lower()


def _default_client_factory(config: GsConfig) -> ObjectStoreClient:
    from .s3client import S3ObjectStoreClient

    return S3ObjectStoreClient(config=config)


class FileSystemRegistry:
    """
    Table of file-system handles, one per bucket, built on first use.

    Registration is serialized with a lock; looking up an already registered bucket is a
    plain dictionary read. All handles share the registry client unless one is given explicitly.
    """

    def __init__(
        self,
        client: Optional[ObjectStoreClient] = None,
        config: Optional[GsConfig] = None,
        client_factory: ClientFactory = _default_client_factory,
    ) -> None:
        self.config = config or GsConfig()
        self._client = client
        self._client_factory = client_factory
        self._file_systems: Dict[str, GsFileSystem] = {}
        self._lock = threading.Lock()

    @property
    def client(self) -> ObjectStoreClient:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._client_factory(self.config)
        return self._client

    def new_file_system(
        self,
        bucket: str,
        config: Optional[GsConfig] = None,
        client: Optional[ObjectStoreClient] = None,
    ) -> GsFileSystem:
        """Register a handle for ``bucket``; fails with ``AlreadyExists`` if it has one."""
        bucket = _checked(bucket)
        client = client or self.client
        with self._lock:
            if bucket in self._file_systems:
                raise AlreadyExists(f"gs://{bucket}", "File system already exists")
            fs = self._file_systems[bucket] = GsFileSystem(self, client, bucket, config or self.config)
        log_event(logger, "register file system", bucket=bucket or SEPARATOR)
        return fs

    def get_file_system(self, bucket: str, create: bool = True) -> GsFileSystem:
        bucket = _checked(bucket)
        fs = self._file_systems.get(bucket)
        if fs is not None:
            return fs
        if not create:
            raise NotFound(f"gs://{bucket}", "No file system registered for bucket")
        client = self.client
        with self._lock:
            fs = self._file_systems.get(bucket)
            if fs is None:
                fs = self._file_systems[bucket] = GsFileSystem(self, client, bucket, self.config)
                log_event(logger, "register file system", bucket=bucket or SEPARATOR)
        return fs

    def get_path(self, value: str) -> GsPath:
        """Path for a ``gs://bucket/key`` / ``gs:key`` URI or a ``/bucket/key`` string."""
        if value.startswith(SEPARATOR):
            key = PathKey.parse(value)
        else:
            key = PathKey.from_uri(value)
        return GsPath(self.get_file_system(key.bucket or GLOBAL_ROOT), key)

    def __contains__(self, bucket: str) -> bool:
        return (bucket or GLOBAL_ROOT).lower() in self._file_systems

    def __len__(self) -> int:
        return len(self._file_systems)


_default_registry: Optional[FileSystemRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> FileSystemRegistry:
    """Process-wide registry configured from ``GS_*`` environment variables."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = FileSystemRegistry(config=GsConfig.from_env())
    return _default_registry


def get_path(value: str) -> GsPath:
    return default_registry().get_path(value)
