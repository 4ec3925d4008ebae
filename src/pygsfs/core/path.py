from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Optional, Union

from ..errors import InvalidPath
from .key import GLOBAL_ROOT, SCHEME, SEPARATOR, PathKey, PathKind

if TYPE_CHECKING:  # pragma: no cover
    from ..filesystem import GsFileSystem

StrPath = Union[str, "GsPath"]


class GsPath:
    """
    Immutable Google Storage path.

    A path is a ``PathKey`` plus a shared reference to the ``GsFileSystem`` it belongs to.
    Every operation here is pure: nothing reaches the object store.

        /bucket/dir/file.txt   absolute, kind OBJECT
        /bucket                absolute, kind BUCKET (always a directory)
        /                      absolute, kind GLOBAL_ROOT (parent of all buckets)
        dir/file.txt           relative, kind RELATIVE
    """

    __slots__ = ("_fs", "_key")

    def __init__(self, fs: Optional["GsFileSystem"], key: PathKey) -> None:
        bucket = key.bucket
        if fs is not None and bucket and bucket != fs.bucket:
            raise InvalidPath(f"Path bucket `{bucket}` does not match file system bucket: `{fs.bucket}`")
        self._fs = fs
        self._key = key

    @classmethod
    def parse(cls, fs: Optional["GsFileSystem"], path: str) -> "GsPath":
        return cls(fs, PathKey.parse(path))

    # ----- identity -----
    @property
    def file_system(self) -> Optional["GsFileSystem"]:
        return self._fs

    @property
    def path_key(self) -> PathKey:
        return self._key

    @property
    def kind(self) -> PathKind:
        return self._key.kind

    @property
    def is_absolute(self) -> bool:
        return self._key.is_absolute

    @property
    def is_directory(self) -> bool:
        return self._key.is_directory

    @property
    def is_bucket(self) -> bool:
        return self.kind is PathKind.BUCKET

    @property
    def bucket_name(self) -> Optional[str]:
        return self._key.bucket or None

    @property
    def object_name(self) -> Optional[str]:
        """Object key without trailing slash; ``None`` for bucket and global roots."""
        return self._key.key or None

    @property
    def key_string(self) -> str:
        return self._key.key_string

    @property
    def name(self) -> str:
        names = self._key.names
        return names[-1] if names else ""

    # ----- derived paths -----
    def _derive(self, key: PathKey) -> "GsPath":
        return GsPath(self._file_system_for(key.bucket), key)

    def _file_system_for(self, bucket: Optional[str]) -> Optional["GsFileSystem"]:
        fs = self._fs
        if fs is None or not bucket or bucket == fs.bucket:
            return fs
        return fs.registry.get_file_system(bucket)

    @property
    def root(self) -> Optional["GsPath"]:
        kind = self.kind
        if kind is PathKind.RELATIVE:
            return None
        if kind is PathKind.GLOBAL_ROOT:
            return self
        return GsPath(self._fs, PathKey(self._key.bucket))

    @property
    def parent(self) -> Optional["GsPath"]:
        kind = self.kind
        if kind is PathKind.OBJECT:
            return GsPath(self._fs, PathKey(self._key.bucket, SEPARATOR.join(self._key.segments[:-1]), True))
        if kind is PathKind.RELATIVE and len(self._key.segments) > 1:
            return GsPath(self._fs, PathKey(None, SEPARATOR.join(self._key.segments[:-1]), True))
        return None

    @property
    def file_name(self) -> Optional["GsPath"]:
        segments = self._key.segments
        if not segments:
            return None
        return GsPath(self._fs, PathKey(None, segments[-1], self.is_directory))

    @property
    def name_count(self) -> int:
        return len(self._key.names)

    def get_name(self, index: int) -> "GsPath":
        names = self._key.names
        if not 0 <= index < len(names):
            raise IndexError(index)
        return GsPath(self._fs, PathKey(None, names[index], index < len(names) - 1 or self.is_directory))

    def subpath(self, begin: int, end: int) -> "GsPath":
        names = self._key.names
        if not 0 <= begin < end <= len(names):
            raise IndexError((begin, end))
        directory = end < len(names) or self.is_directory
        return GsPath(self._fs, PathKey(None, SEPARATOR.join(names[begin:end]), directory))

    def parts_paths(self) -> List["GsPath"]:
        """One relative path per component, root-to-leaf; the bucket is the first component."""
        names = self._key.names
        last = len(names) - 1
        return [GsPath(self._fs, PathKey(None, n, i < last or self.is_directory)) for i, n in enumerate(names)]

    def __iter__(self) -> Iterator["GsPath"]:
        return iter(self.parts_paths())

    # ----- resolution -----
    def resolve(self, other: StrPath) -> "GsPath":
        if isinstance(other, str):
            if other.startswith(SEPARATOR):
                return self._derive(PathKey.parse(other))
            other_key = PathKey(None, other, other.endswith(SEPARATOR))
        elif isinstance(other, GsPath):
            if other.is_absolute:
                return other
            other_key = other.path_key
        else:
            raise InvalidPath(f"Not a Google Storage path: {other!r} [{type(other).__name__}]")

        names = self._key.names + other_key.segments
        if self.kind is PathKind.GLOBAL_ROOT:
            return self._derive(PathKey(other_key.segments[0], SEPARATOR.join(other_key.segments[1:]), other_key.is_directory))
        return GsPath(self._fs, self._key.with_names(names, other_key.is_directory))

    def joinpath(self, *others: StrPath) -> "GsPath":
        result = self
        for other in others:
            result = result.resolve(other)
        return result

    def __truediv__(self, other: StrPath) -> "GsPath":
        return self.resolve(other)

    def resolve_sibling(self, other: StrPath) -> "GsPath":
        parent = self.parent
        if parent is not None:
            return parent.resolve(other)
        if isinstance(other, GsPath):
            return other
        if not isinstance(other, str):
            raise InvalidPath(f"Not a Google Storage path: {other!r} [{type(other).__name__}]")
        if other.startswith(SEPARATOR):
            return self._derive(PathKey.parse(other))
        return GsPath(self._fs, PathKey(None, other, other.endswith(SEPARATOR)))

    def relativize(self, other: "GsPath") -> "GsPath":
        """Relative path that, resolved against this path, yields ``other``."""
        if not isinstance(other, GsPath):
            raise InvalidPath(f"Not a Google Storage path: {other!r} [{type(other).__name__}]")
        if self.is_absolute != other.is_absolute:
            raise InvalidPath(f"Cannot relativize `{other}` against `{self}`: absolute/relative mismatch")
        base, names = self._key.names, other.path_key.names
        common = 0
        while common < min(len(base), len(names)) and base[common] == names[common]:
            common += 1
        if self.is_absolute and common == 0 and base and names:
            raise InvalidPath(f"Cannot relativize `{other}` against `{self}`: different buckets")
        rel = [".."] * (len(base) - common) + list(names[common:])
        if not rel:
            raise InvalidPath(f"Cannot relativize a path against itself: {self}")
        return GsPath(self._fs, PathKey(None, SEPARATOR.join(rel), other.is_directory))

    def normalize(self) -> "GsPath":
        """Collapse ``.`` and ``..`` segments; ``..`` never climbs above the bucket."""
        out: List[str] = []
        for segment in self._key.segments:
            if segment == ".":
                continue
            if segment == "..":
                if out and out[-1] != "..":
                    out.pop()
                elif not self.is_absolute:
                    out.append(segment)
                continue
            out.append(segment)
        key = self._key
        if key.bucket is None and not out:
            return GsPath(self._fs, PathKey(None, ".", True))
        return GsPath(self._fs, PathKey(key.bucket, SEPARATOR.join(out), key.is_directory))

    # ----- comparison -----
    def starts_with(self, other: StrPath) -> bool:
        that = other.path_key if isinstance(other, GsPath) else PathKey.parse(other)
        if that.is_absolute != self.is_absolute:
            return False
        mine, theirs = self._key.names, that.names
        return mine[: len(theirs)] == theirs

    def ends_with(self, other: StrPath) -> bool:
        that = other.path_key if isinstance(other, GsPath) else PathKey.parse(other)
        mine, theirs = self._key.names, that.names
        if that.is_absolute:
            return self.is_absolute and mine == theirs
        return len(theirs) <= len(mine) and mine[len(mine) - len(theirs):] == theirs

    def is_hidden(self) -> bool:
        return self.name.startswith(".")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GsPath):
            return NotImplemented
        return self._fs is other._fs and self._key == other._key

    def __hash__(self) -> int:
        return hash((id(self._fs), self._key))

    def __lt__(self, other: "GsPath") -> bool:
        if not isinstance(other, GsPath):
            return NotImplemented
        return str(self) < str(other)

    # ----- rendering -----
    def __str__(self) -> str:
        return str(self._key)

    def __repr__(self) -> str:
        return f"GsPath({self.to_uri_string()!r}, directory={self.is_directory})"

    def to_uri_string(self) -> str:
        if not self.is_absolute:
            return f"{SCHEME}:{self._key.key}"
        if self._key.bucket == GLOBAL_ROOT:
            return f"{SCHEME}:///"
        return f"{SCHEME}:/{self}"

    def to_absolute_path(self) -> "GsPath":
        if self.is_absolute:
            return self
        raise InvalidPath(f"Cannot make relative path absolute without a base: {self}")
