from __future__ import annotations

import logging
from typing import Optional

from .attributes import AttributesView, FileAttributes
from .channels import OpenOption, ReadChannel, WriteChannel, check_options
from .client import ObjectRef, ObjectStoreClient
from .config import GsConfig
from .core.key import PathKey, PathKind
from .core.path import GsPath
from .directory import DirectoryStream, PathFilter
from .errors import (
    AlreadyExists,
    CopyTimeout,
    DirectoryNotEmpty,
    GsFsError,
    InvalidPath,
    IOFailure,
    MoveIncomplete,
    NotFound,
    StoreError,
    StoreNotEmpty,
    StoreNotFound,
    UnsupportedMode,
)
from .observability import log_event

logger = logging.getLogger(__name__)


def gpath(path: object) -> GsPath:
    if isinstance(path, GsPath):
        return path
    raise InvalidPath(f"Not a valid Google Storage path object: `{path}` [{type(path).__name__}]")


def _object_path(path: GsPath, action: str) -> GsPath:
    if path.kind is not PathKind.OBJECT:
        raise InvalidPath(f"Cannot {action} `{path}`: not an object path")
    return path


class NamespaceOperations:
    """
    File-system semantics on top of object store calls.

    Every method is one synchronous unit of work: nothing is retried here and no state is
    kept between calls. Store failures surface as ``pygsfs.errors`` exceptions.
    """

    def __init__(self, client: ObjectStoreClient, config: GsConfig) -> None:
        self.client = client
        self.config = config

    # ----- attributes -----
    def read_attributes(self, path: GsPath, cached: Optional[FileAttributes] = None) -> FileAttributes:
        """Attributes of ``path``; a listing snapshot passed as ``cached`` is returned as is."""
        if cached is not None:
            return cached
        path = gpath(path)
        try:
            result = self._read_attributes0(path)
        except StoreError as e:
            raise IOFailure(f"Error reading attributes of {path.to_uri_string()}: {e}") from e
        if result is None:
            raise NotFound(path.to_uri_string())
        return result

    def _read_attributes0(self, path: GsPath) -> Optional[FileAttributes]:
        kind = path.kind
        if kind is PathKind.GLOBAL_ROOT:
            return FileAttributes.root()
        if kind is PathKind.BUCKET:
            bucket = self.client.get_bucket(path.bucket_name)
            return FileAttributes.from_bucket(bucket) if bucket else None
        if kind is PathKind.OBJECT:
            bucket, key = path.bucket_name, path.object_name
            if not path.is_directory:
                blob = self.client.get(bucket, key)
                if blob is not None:
                    return FileAttributes.from_object(blob)
            return self._probe_directory(bucket, key)
        raise InvalidPath(f"Cannot read attributes of relative path: {path}")

    def _probe_directory(self, bucket: str, key: str) -> Optional[FileAttributes]:
        prefix = key + "/"
        logger.debug("directory probe bucket=%s prefix=%s", bucket, prefix)
        try:
            first = next(iter(self.client.list(bucket, prefix, current_directory=True)), None)
        except StoreNotFound:
            return None
        if first is None:
            return None
        if first.name == prefix:
            return FileAttributes.from_object(first)
        return FileAttributes.directory(bucket, key)

    def exists(self, path: GsPath) -> bool:
        """True when the path resolves to attributes; any failure counts as "does not exist"."""
        try:
            self.read_attributes(path)
            return True
        except OSError as e:
            log_event(logger, "exists -> False", level=logging.DEBUG, path=path, error=e)
            return False

    def get_attribute_view(self, path: GsPath) -> AttributesView:
        path = gpath(path)
        return AttributesView(lambda: self.read_attributes(path))

    def check_access(self, path: GsPath, *modes: str) -> None:
        if modes:
            raise UnsupportedMode(f"Access modes are not supported: {', '.join(modes)}")
        self.read_attributes(gpath(path))

    def is_same_file(self, path: GsPath, other: GsPath) -> bool:
        return gpath(path) == gpath(other)

    # ----- listing -----
    def new_directory_stream(self, path: GsPath, accept: Optional[PathFilter] = None) -> DirectoryStream:
        try:
            return DirectoryStream(self.client, gpath(path), accept)
        except StoreError as e:
            raise IOFailure(f"Error listing {path.to_uri_string()}: {e}") from e

    # ----- create -----
    def create_directory(self, path: GsPath) -> GsPath:
        """Create a bucket, or the ``key/`` marker object that stands for an empty directory."""
        path = gpath(path)
        kind = path.kind
        if kind is PathKind.BUCKET:
            bucket = path.bucket_name
            try:
                self.client.create_bucket(bucket, self.config.location, self.config.storage_class)
            except StoreError as e:
                raise IOFailure(f"Error creating bucket: {path.to_uri_string()}: {e}") from e
            log_event(logger, "create bucket", bucket=bucket, location=self.config.location,
                      storage_class=self.config.storage_class)
            return path
        _object_path(path, "create directory")
        directory = GsPath(path.file_system, PathKey(path.bucket_name, path.object_name, True))
        try:
            self.client.create(directory.bucket_name, directory.key_string, b"")
        except StoreError as e:
            raise IOFailure(f"Error creating directory: {path.to_uri_string()}: {e}") from e
        log_event(logger, "create directory", path=directory.to_uri_string())
        return directory

    def create_file(self, path: GsPath, data: bytes = b"") -> None:
        path = _object_path(gpath(path), "create file")
        try:
            self.client.create(path.bucket_name, path.object_name, data)
        except StoreError as e:
            raise IOFailure(f"Error creating file: {path.to_uri_string()}: {e}") from e
        log_event(logger, "create file", path=path.to_uri_string(), size=len(data))

    # ----- delete -----
    def delete(self, path: GsPath) -> None:
        path = gpath(path)
        kind = path.kind
        if kind is PathKind.BUCKET:
            self._delete_bucket(path)
        elif kind is PathKind.OBJECT:
            self._delete_object(path)
        else:
            raise InvalidPath(f"Cannot delete `{path}`")

    def _delete_bucket(self, path: GsPath) -> None:
        uri = path.to_uri_string()
        try:
            deleted = self.client.delete_bucket(path.bucket_name)
        except StoreNotEmpty as e:
            raise DirectoryNotEmpty(uri) from e
        except StoreNotFound as e:
            raise NotFound(uri) from e
        except StoreError as e:
            raise IOFailure(f"Error deleting bucket: {uri}: {e}") from e
        if not deleted:
            if self.exists(path):
                raise IOFailure(f"Error deleting bucket: {uri}")
            raise NotFound(uri)
        log_event(logger, "delete bucket", bucket=path.bucket_name)

    def _delete_object(self, path: GsPath) -> None:
        # check-then-delete: a writer adding a child in between is not detected
        uri = path.to_uri_string()
        bucket, key = path.bucket_name, path.object_name
        marker = key + "/"
        has_file = has_marker = False
        try:
            for blob in self.client.list(bucket, key):
                if blob.name == key:
                    has_file = True
                elif blob.name == marker:
                    has_marker = True
                elif blob.name.startswith(marker):
                    raise DirectoryNotEmpty(uri)
            if not has_file and not has_marker and self.client.get(bucket, key) is not None:
                # listings may lag behind writes; an exact GET does not
                has_file = True
        except StoreNotFound as e:
            raise NotFound(uri) from e
        except StoreError as e:
            raise IOFailure(f"Error deleting file: {uri}: {e}") from e

        if not has_file and not has_marker:
            raise NotFound(uri)
        target = marker if has_marker and (path.is_directory or not has_file) else key
        try:
            deleted = self.client.delete(bucket, target)
        except StoreNotFound as e:
            raise NotFound(uri) from e
        except StoreError as e:
            raise IOFailure(f"Error deleting file: {uri}: {e}") from e
        if not deleted:
            raise NotFound(uri)
        log_event(logger, "delete", path=f"gs://{bucket}/{target}")

    # ----- copy / move -----
    def copy(self, source: GsPath, target: GsPath, replace_existing: bool = False) -> None:
        source, target = gpath(source), gpath(target)
        if source == target:
            return
        _object_path(source, "copy")
        _object_path(target, "copy to")

        if self.exists(target):
            if not replace_existing:
                raise AlreadyExists(target.to_uri_string())
            try:
                self.delete(target)
            except GsFsError as e:
                # the copy below fails on its own if the target is still in the way
                log_event(logger, "could not delete copy target", level=logging.WARNING,
                          path=target.to_uri_string(), error=e)

        src_ref = ObjectRef(source.bucket_name, source.key_string)
        dst_ref = ObjectRef(target.bucket_name, target.key_string)
        max_chunks = self.config.copy_max_chunks
        chunks = 0
        try:
            writer = self.client.copy(src_ref, dst_ref)
            while not writer.is_done():
                if chunks >= max_chunks:
                    abort = getattr(writer, "abort", None)
                    if abort is not None:
                        abort()
                    raise CopyTimeout(
                        f"Copy {source.to_uri_string()} -> {target.to_uri_string()} "
                        f"not completed after {chunks} chunks"
                    )
                writer.advance()
                chunks += 1
        except StoreNotFound as e:
            raise NotFound(source.to_uri_string()) from e
        except StoreError as e:
            raise IOFailure(f"Error copying {source.to_uri_string()} to {target.to_uri_string()}: {e}") from e
        log_event(logger, "copy", source=source.to_uri_string(), target=target.to_uri_string(), chunks=chunks)

    def move(self, source: GsPath, target: GsPath, replace_existing: bool = False) -> None:
        """Copy then delete the source; a failed delete leaves both objects in place."""
        source, target = gpath(source), gpath(target)
        if source == target:
            return
        self.copy(source, target, replace_existing)
        try:
            self.delete(source)
        except GsFsError as e:
            raise MoveIncomplete(
                f"Copied {source.to_uri_string()} to {target.to_uri_string()} but could not delete the source: {e}"
            ) from e
        log_event(logger, "move", source=source.to_uri_string(), target=target.to_uri_string())

    # ----- channels -----
    def new_channel(self, path: GsPath, options: OpenOption = OpenOption.READ):
        write = check_options(options)
        path = _object_path(gpath(path), "open")
        uri = path.to_uri_string()
        bucket, key = path.bucket_name, path.object_name
        try:
            if write:
                create_new = bool(options & OpenOption.CREATE_NEW)
                exists = self.client.get(bucket, key) is not None
                if create_new and exists:
                    raise AlreadyExists(uri)
                if not (options & OpenOption.CREATE) and not create_new and not exists:
                    raise NotFound(uri)
                if exists and not (options & OpenOption.TRUNCATE_EXISTING):
                    raise UnsupportedMode("Google Storage file can only be written using TRUNCATE mode")
                logger.debug("open write channel %s", uri)
                return WriteChannel(self.client.open_writer(bucket, key), uri)

            blob = self.client.get(bucket, key)
            if blob is None:
                raise NotFound(uri, f"File does not exist: {uri}")
            logger.debug("open read channel %s size=%s", uri, blob.size)
            return ReadChannel(self.client, bucket, key, blob.size)
        except StoreNotFound as e:
            raise NotFound(uri) from e
        except StoreError as e:
            raise IOFailure(f"Error opening {uri}: {e}") from e
