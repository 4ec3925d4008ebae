from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from ..errors import InvalidPath

SCHEME = "gs"
SEPARATOR = "/"

# bucket value of the absolute path "/", the parent of every bucket
GLOBAL_ROOT = ""


class PathKind(enum.Enum):
    """Closed set of path shapes every component branches on."""

    GLOBAL_ROOT = "global-root"
    BUCKET = "bucket"
    OBJECT = "object"
    RELATIVE = "relative"


def split_segments(raw: str) -> List[str]:
    """Split on ``/`` dropping the empty segments produced by leading, trailing or doubled slashes."""
    return [s for s in raw.split(SEPARATOR) if s]


@dataclass(frozen=True)
class PathKey:
    """
    Decomposition of a hierarchical path into ``(bucket, key, is_directory)``.

    - bucket: ``None`` for relative paths, ``GLOBAL_ROOT`` for the absolute root ``/``
    - key: object key segments joined by ``/``, never with a leading or trailing slash
    - is_directory: True for bucket roots, empty keys and keys given with a trailing slash
    """
    bucket: Optional[str]
    key: str = ""
    is_directory: bool = False

    def __post_init__(self) -> None:
        if self.bucket is not None and self.bucket != GLOBAL_ROOT and SEPARATOR in self.bucket:
            raise InvalidPath(f"Invalid bucket name: {self.bucket!r}")
        raw = self.key or ""
        segments = split_segments(raw)
        if self.bucket is None and not segments:
            raise InvalidPath("A relative path requires at least one segment")
        if self.bucket == GLOBAL_ROOT and segments:
            raise InvalidPath(f"The global root cannot hold an object key: {raw!r}")
        directory = self.is_directory or not segments or raw.endswith(SEPARATOR)
        object.__setattr__(self, "key", SEPARATOR.join(segments))
        object.__setattr__(self, "is_directory", directory)

    # ----- parsing -----
    @classmethod
    def parse(cls, path: str) -> "PathKey":
        """Parse ``/bucket[/seg...[/]]`` or a relative ``seg[/seg...]`` string."""
        if path is None:
            raise InvalidPath("Path string cannot be None")
        if not path.startswith(SEPARATOR):
            return cls(None, path, path.endswith(SEPARATOR))
        segments = split_segments(path)
        if not segments:
            return cls(GLOBAL_ROOT)
        bucket, rest = segments[0].lower(), segments[1:]
        return cls(bucket, SEPARATOR.join(rest), path.endswith(SEPARATOR))

    @classmethod
    def from_uri(cls, uri: str) -> "PathKey":
        """Parse ``gs://bucket/key`` (absolute) or ``gs:key`` (relative)."""
        parsed = urlparse(uri)
        if parsed.scheme.lower() != SCHEME:
            raise InvalidPath(f"Not a valid Google Storage URI scheme: {parsed.scheme!r}")
        if parsed.netloc:
            return cls(parsed.netloc.lower(), parsed.path, parsed.path.endswith(SEPARATOR))
        if parsed.path.startswith(SEPARATOR):
            return cls.parse(parsed.path)
        return cls(None, parsed.path, parsed.path.endswith(SEPARATOR))

    # ----- derived views -----
    @property
    def kind(self) -> PathKind:
        if self.bucket is None:
            return PathKind.RELATIVE
        if self.bucket == GLOBAL_ROOT:
            return PathKind.GLOBAL_ROOT
        if not self.key:
            return PathKind.BUCKET
        return PathKind.OBJECT

    @property
    def is_absolute(self) -> bool:
        return self.bucket is not None

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(split_segments(self.key))

    @property
    def names(self) -> Tuple[str, ...]:
        """Path components root-to-leaf; the bucket comes first for absolute paths."""
        if self.bucket:
            return (self.bucket,) + self.segments
        return self.segments

    @property
    def key_string(self) -> str:
        """Canonical object key: directories keep their trailing slash."""
        if self.key and self.is_directory:
            return self.key + SEPARATOR
        return self.key

    def with_names(self, names: Tuple[str, ...], is_directory: bool) -> "PathKey":
        """Build a key of the same absoluteness from a names tuple (bucket first when absolute)."""
        if self.bucket is None:
            return PathKey(None, SEPARATOR.join(names), is_directory)
        if not names:
            return PathKey(GLOBAL_ROOT)
        return PathKey(names[0], SEPARATOR.join(names[1:]), is_directory)

    def __str__(self) -> str:
        if self.bucket is None:
            return self.key
        return SEPARATOR + SEPARATOR.join(self.names)
