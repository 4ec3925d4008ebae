from __future__ import annotations

import io
import logging
import tempfile
import threading
from typing import Any, BinaryIO, Dict, Iterator, List, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .client import BucketMetadata, ObjectMetadata, ObjectRef
from .config import GsConfig
from .errors import StoreError, StoreNotEmpty, StoreNotFound

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
_NOT_EMPTY_CODES = {"409", "BucketNotEmpty"}
# GCS/S3 reject copy parts smaller than this (except the last one)
_MIN_PART_SIZE = 5 * 1024 * 1024
_SPOOL_SIZE = 8 * 1024 * 1024
# transport failures (connection, credentials, timeouts) are BotoCoreError, service replies ClientError
_BOTO_ERRORS = (ClientError, BotoCoreError)


def _error_code(exc: ClientError) -> str:
    error = exc.response.get("Error", {})
    return str(error.get("Code") or exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", ""))


def _translate(exc: Exception, what: str) -> StoreError:
    if not isinstance(exc, ClientError):
        return StoreError(f"{what}: {exc}")
    code = _error_code(exc)
    if code in _NOT_FOUND_CODES:
        return StoreNotFound(f"{what}: not found ({code})")
    if code in _NOT_EMPTY_CODES:
        return StoreNotEmpty(f"{what}: bucket not empty ({code})")
    return StoreError(f"{what}: {code} {exc}")


class S3ObjectStoreClient:
    """boto3-backed object store client talking to the GCS XML (S3-compatible) API."""

    def __init__(self, s3_client=None, config: Optional[GsConfig] = None) -> None:
        self.config = config or GsConfig()
        self.s3 = s3_client or boto3.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            region_name=self.config.region,
        )
        # storage class of the CreateBucket call in flight on the current thread
        self._pending = threading.local()
        self.s3.meta.events.register("before-call.s3.CreateBucket", self._inject_storage_class)

    def _inject_storage_class(self, params: Dict[str, Any], **kwargs: Any) -> None:
        storage_class = getattr(self._pending, "storage_class", None)
        if storage_class:
            params["headers"]["x-goog-storage-class"] = storage_class

    # ----- metadata -----
    def get(self, bucket: str, key: str) -> Optional[ObjectMetadata]:
        try:
            resp = self.s3.head_object(Bucket=bucket, Key=key)
        except _BOTO_ERRORS as e:
            err = _translate(e, f"head gs://{bucket}/{key}")
            if isinstance(err, StoreNotFound):
                return None
            raise err from e
        modified = resp.get("LastModified")
        return ObjectMetadata(
            bucket=bucket,
            name=key,
            size=int(resp.get("ContentLength", 0)),
            create_time=modified,
            update_time=modified,
        )

    def get_bucket(self, bucket: str) -> Optional[BucketMetadata]:
        try:
            resp = self.s3.head_bucket(Bucket=bucket)
        except _BOTO_ERRORS as e:
            err = _translate(e, f"head bucket gs://{bucket}")
            if isinstance(err, StoreNotFound):
                return None
            raise err from e
        return BucketMetadata(name=bucket, location=resp.get("BucketRegion"))

    def list(self, bucket: str, prefix: str = "", current_directory: bool = False) -> Iterator[ObjectMetadata]:
        params: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if current_directory:
            params["Delimiter"] = "/"
        paginator = self.s3.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(**params):
                for cp in page.get("CommonPrefixes", []):
                    yield ObjectMetadata(bucket=bucket, name=cp["Prefix"])
                for obj in page.get("Contents", []):
                    modified = obj.get("LastModified")
                    yield ObjectMetadata(
                        bucket=bucket,
                        name=obj["Key"],
                        size=int(obj.get("Size", 0)),
                        create_time=modified,
                        update_time=modified,
                    )
        except _BOTO_ERRORS as e:
            raise _translate(e, f"list gs://{bucket}/{prefix}") from e

    def list_buckets(self) -> Iterator[BucketMetadata]:
        try:
            resp = self.s3.list_buckets()
        except _BOTO_ERRORS as e:
            raise _translate(e, "list buckets") from e
        for b in resp.get("Buckets", []):
            yield BucketMetadata(name=b["Name"], create_time=b.get("CreationDate"))

    # ----- mutation -----
    def create(self, bucket: str, key: str, data: bytes = b"") -> ObjectMetadata:
        try:
            self.s3.put_object(Bucket=bucket, Key=key, Body=data)
        except _BOTO_ERRORS as e:
            raise _translate(e, f"put gs://{bucket}/{key}") from e
        return ObjectMetadata(bucket=bucket, name=key, size=len(data))

    def create_bucket(self, bucket: str, location: Optional[str] = None, storage_class: Optional[str] = None) -> BucketMetadata:
        params: Dict[str, Any] = {"Bucket": bucket}
        if location:
            params["CreateBucketConfiguration"] = {"LocationConstraint": location}

        self._pending.storage_class = storage_class
        try:
            self.s3.create_bucket(**params)
        except _BOTO_ERRORS as e:
            raise _translate(e, f"create bucket gs://{bucket}") from e
        finally:
            self._pending.storage_class = None
        return BucketMetadata(name=bucket, location=location, storage_class=storage_class)

    def delete(self, bucket: str, key: str) -> bool:
        # delete_object succeeds on missing keys, so probe first to report absence
        if self.get(bucket, key) is None:
            return False
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
        except _BOTO_ERRORS as e:
            raise _translate(e, f"delete gs://{bucket}/{key}") from e
        return True

    def delete_bucket(self, bucket: str) -> bool:
        try:
            self.s3.delete_bucket(Bucket=bucket)
        except _BOTO_ERRORS as e:
            raise _translate(e, f"delete bucket gs://{bucket}") from e
        return True

    # ----- streams -----
    def open_reader(self, bucket: str, key: str, offset: int = 0) -> BinaryIO:
        params: Dict[str, Any] = {"Bucket": bucket, "Key": key}
        if offset:
            params["Range"] = f"bytes={offset}-"
        try:
            resp = self.s3.get_object(**params)
        except _BOTO_ERRORS as e:
            if isinstance(e, ClientError) and _error_code(e) == "InvalidRange":
                return io.BytesIO(b"")
            raise _translate(e, f"get gs://{bucket}/{key}") from e
        return S3ObjectReader(resp["Body"], f"read gs://{bucket}/{key}")

    def open_writer(self, bucket: str, key: str) -> BinaryIO:
        return S3ObjectWriter(self.s3, bucket, key)

    def copy(self, source: ObjectRef, target: ObjectRef) -> "S3CopyWriter":
        meta = self.get(source.bucket, source.key)
        if meta is None:
            raise StoreNotFound(f"copy source gs://{source.bucket}/{source.key}: not found")
        return S3CopyWriter(self.s3, source, target, meta.size, max(self.config.copy_chunk_size, _MIN_PART_SIZE))


class S3ObjectReader(io.RawIOBase):
    """Streaming body of a GET; failures while reading surface as ``StoreError``."""

    def __init__(self, body, what: str) -> None:
        super().__init__()
        self._body = body
        self._what = what

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        try:
            data = self._body.read(len(b))
        except _BOTO_ERRORS as e:
            raise _translate(e, self._what) from e
        n = len(data)
        b[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            self._body.close()
        super().close()


class S3ObjectWriter(io.RawIOBase):
    """Spools writes locally and uploads the object on close."""

    def __init__(self, s3, bucket: str, key: str) -> None:
        super().__init__()
        self._s3 = s3
        self._bucket = bucket
        self._key = key
        self._spool = tempfile.SpooledTemporaryFile(max_size=_SPOOL_SIZE)

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("write to closed object writer")
        return self._spool.write(b)

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._spool.seek(0)
            try:
                self._s3.upload_fileobj(self._spool, self._bucket, self._key)
            except (S3UploadFailedError,) + _BOTO_ERRORS as e:
                raise _translate(e, f"upload gs://{self._bucket}/{self._key}") from e
        finally:
            self._spool.close()
            super().close()


class S3CopyWriter:
    """
    Chunked server-side copy.

    Objects up to one chunk are copied with a single ``copy_object``; larger ones use a
    multipart upload where every ``advance()`` copies one byte range with ``upload_part_copy``.
    """

    def __init__(self, s3, source: ObjectRef, target: ObjectRef, size: int, chunk_size: int) -> None:
        self._s3 = s3
        self._source = source
        self._target = target
        self._size = size
        self._chunk_size = chunk_size
        self._offset = 0
        self._upload_id: Optional[str] = None
        self._parts: List[Dict[str, Any]] = []
        self._done = False

    @property
    def bytes_copied(self) -> int:
        return self._offset

    def is_done(self) -> bool:
        return self._done

    def advance(self) -> None:
        if self._done:
            return
        copy_source = {"Bucket": self._source.bucket, "Key": self._source.key}
        what = f"copy gs://{self._source.bucket}/{self._source.key} -> gs://{self._target.bucket}/{self._target.key}"
        try:
            if self._size <= self._chunk_size:
                self._s3.copy_object(CopySource=copy_source, Bucket=self._target.bucket, Key=self._target.key)
                self._offset = self._size
                self._done = True
                return
            if self._upload_id is None:
                resp = self._s3.create_multipart_upload(Bucket=self._target.bucket, Key=self._target.key)
                self._upload_id = resp["UploadId"]
            end = min(self._offset + self._chunk_size, self._size) - 1
            part_number = len(self._parts) + 1
            resp = self._s3.upload_part_copy(
                Bucket=self._target.bucket,
                Key=self._target.key,
                CopySource=copy_source,
                CopySourceRange=f"bytes={self._offset}-{end}",
                PartNumber=part_number,
                UploadId=self._upload_id,
            )
            self._parts.append({"ETag": resp["CopyPartResult"]["ETag"], "PartNumber": part_number})
            self._offset = end + 1
            logger.debug("copy chunk part=%s offset=%s size=%s", part_number, self._offset, self._size)
            if self._offset >= self._size:
                self._s3.complete_multipart_upload(
                    Bucket=self._target.bucket,
                    Key=self._target.key,
                    UploadId=self._upload_id,
                    MultipartUpload={"Parts": self._parts},
                )
                self._done = True
        except _BOTO_ERRORS as e:
            raise _translate(e, what) from e

    def abort(self) -> None:
        """Drop an unfinished multipart copy."""
        if self._upload_id is None or self._done:
            return
        try:
            self._s3.abort_multipart_upload(Bucket=self._target.bucket, Key=self._target.key, UploadId=self._upload_id)
        except _BOTO_ERRORS as e:
            raise _translate(e, f"abort copy to gs://{self._target.bucket}/{self._target.key}") from e
