from __future__ import annotations

import errno
from contextlib import contextmanager
from typing import Iterator, Optional


class GsFsError(OSError):
    """Base error for pygsfs."""


class NotFound(GsFsError, FileNotFoundError):
    """Raised when no object, prefix or bucket matches a path."""

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        super().__init__(errno.ENOENT, message or "No such file or directory", path)


class AlreadyExists(GsFsError, FileExistsError):
    """Raised when a target object or file-system handle already exists."""

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        super().__init__(errno.EEXIST, message or "File exists", path)


class DirectoryNotEmpty(GsFsError):
    """Raised when deleting a bucket or directory that still holds objects."""

    def __init__(self, path: str) -> None:
        super().__init__(errno.ENOTEMPTY, "Directory not empty", path)


class InvalidPath(GsFsError, ValueError):
    """Raised for malformed buckets/segments or foreign path types."""


class UnsupportedMode(GsFsError):
    """Raised for open options or operations the object store cannot honour."""


class IOFailure(GsFsError):
    """Wraps a provider failure; the original exception is kept as ``__cause__``."""


class CopyTimeout(IOFailure):
    """Raised when a chunked copy does not finish within the configured chunk bound."""


class MoveIncomplete(IOFailure):
    """Raised when a move copied the target but failed to remove the source."""


# -- errors raised by object store clients --

class StoreError(Exception):
    """Generic failure reported by an object store client."""


class StoreNotFound(StoreError):
    """The bucket or object addressed by a client call does not exist."""


class StoreNotEmpty(StoreError):
    """The bucket addressed by a client call still holds objects."""


@contextmanager
def translate_store_errors(uri: str, action: str) -> Iterator[None]:
    """Re-raise client failures of the wrapped block as ``NotFound`` / ``IOFailure`` for ``uri``."""
    try:
        yield
    except StoreNotFound as e:
        raise NotFound(uri) from e
    except StoreError as e:
        raise IOFailure(f"Error {action} {uri}: {e}") from e
