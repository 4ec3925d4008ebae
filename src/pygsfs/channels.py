from __future__ import annotations

import enum
import io
from typing import BinaryIO, Optional

from .client import ObjectStoreClient
from .errors import UnsupportedMode, translate_store_errors


class OpenOption(enum.Flag):
    READ = enum.auto()
    WRITE = enum.auto()
    APPEND = enum.auto()
    CREATE = enum.auto()
    CREATE_NEW = enum.auto()
    TRUNCATE_EXISTING = enum.auto()
    SYNC = enum.auto()
    DSYNC = enum.auto()


_MODES = {
    "r": OpenOption.READ,
    "w": OpenOption.WRITE | OpenOption.CREATE | OpenOption.TRUNCATE_EXISTING,
    "x": OpenOption.WRITE | OpenOption.CREATE_NEW,
    "a": OpenOption.WRITE | OpenOption.APPEND | OpenOption.CREATE,
}


def options_from_mode(mode: str) -> OpenOption:
    """Translate a builtin ``open()`` mode string (``rb``, ``wt``, ``x``...) into open options."""
    kinds = [c for c in mode if c in _MODES]
    if len(kinds) != 1 or any(c not in "rwxabt+" for c in mode):
        raise ValueError(f"Invalid mode: {mode!r}")
    options = _MODES[kinds[0]]
    if "+" in mode:
        options |= OpenOption.READ | OpenOption.WRITE
    return options


def check_options(options: OpenOption) -> bool:
    """Validate a set of options; returns True for write mode."""
    write = bool(options & (OpenOption.WRITE | OpenOption.APPEND))
    if options & OpenOption.READ and write:
        raise UnsupportedMode("Google Storage file cannot be opened in R/W mode at the same time")
    for unsupported in (OpenOption.APPEND, OpenOption.SYNC, OpenOption.DSYNC):
        if options & unsupported:
            raise UnsupportedMode(f"Google Storage file system does not support `{unsupported.name}` mode")
    return write


class ReadChannel(io.RawIOBase):
    """
    Seekable read channel over one object.

    ``size()`` is captured when the channel is opened and does not follow later writers.
    Seeking re-opens a ranged read at the new offset.
    """

    def __init__(self, client: ObjectStoreClient, bucket: str, key: str, size: int) -> None:
        super().__init__()
        self._client = client
        self._bucket = bucket
        self._key = key
        self._size = size
        self._position = 0
        self._uri = f"gs://{bucket}/{key}"
        self._stream: Optional[BinaryIO] = None
        self._stream = client.open_reader(bucket, key)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        with translate_store_errors(self._uri, "reading"):
            data = self._stream.read(len(b))
        n = len(data)
        b[:n] = data
        self._position += n
        return n

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if position < 0:
            raise ValueError(f"Negative seek position: {position}")
        if position != self._position:
            self._stream.close()
            with translate_store_errors(self._uri, "reading"):
                self._stream = self._client.open_reader(self._bucket, self._key, position)
            self._position = position
        return position

    def tell(self) -> int:
        return self._position

    def size(self) -> int:
        return self._size

    def close(self) -> None:
        if not self.closed and self._stream is not None:
            self._stream.close()
        super().close()


class WriteChannel(io.RawIOBase):
    """
    Sequential, write-once channel.

    The position only grows; the size is whatever has been written so far and ``close()``
    finalizes the remote object.
    """

    def __init__(self, stream: BinaryIO, uri: str) -> None:
        super().__init__()
        self._stream = stream
        self._uri = uri
        self._position = 0

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def write(self, b) -> int:
        with translate_store_errors(self._uri, "writing"):
            n = self._stream.write(b)
        n = len(b) if n is None else n
        self._position += n
        return n

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        raise UnsupportedMode("Google Storage write channels cannot be repositioned")

    def truncate(self, size=None) -> int:
        raise UnsupportedMode("Google Storage write channels cannot be truncated")

    def tell(self) -> int:
        return self._position

    def size(self) -> int:
        return self._position

    def close(self) -> None:
        if self.closed:
            return
        try:
            with translate_store_errors(self._uri, "writing"):
                self._stream.close()
        finally:
            super().close()
