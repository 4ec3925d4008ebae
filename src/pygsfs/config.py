"""File-system level settings (env-first, explicit values win)."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

DEFAULT_ENDPOINT_URL = "https://storage.googleapis.com"
DEFAULT_COPY_CHUNK_SIZE = 64 * 1024 * 1024
DEFAULT_COPY_MAX_CHUNKS = 10_000


@dataclass(frozen=True)
class GsConfig:
    """
    Settings shared by a file-system handle.

    - location / storage_class: only used when a bucket is created; ``None`` keeps the provider default
    - endpoint_url / region: where the boto3 client talks to (GCS XML interoperability endpoint by default)
    - copy_chunk_size: bytes moved by one step of a chunked copy
    - copy_max_chunks: upper bound of copy steps before giving up with ``CopyTimeout``
    """
    location: Optional[str] = None
    storage_class: Optional[str] = None
    endpoint_url: Optional[str] = DEFAULT_ENDPOINT_URL
    region: Optional[str] = None
    copy_chunk_size: int = DEFAULT_COPY_CHUNK_SIZE
    copy_max_chunks: int = DEFAULT_COPY_MAX_CHUNKS

    def __post_init__(self) -> None:
        if self.copy_chunk_size <= 0:
            raise ValueError("copy_chunk_size must be positive")
        if self.copy_max_chunks <= 0:
            raise ValueError("copy_max_chunks must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides: Any) -> "GsConfig":
        """Read ``GS_*`` variables; keyword overrides take precedence."""
        env = os.environ if env is None else env
        config = cls(
            location=_text(env.get("GS_LOCATION")),
            storage_class=_text(env.get("GS_STORAGE_CLASS")),
            endpoint_url=_text(env.get("GS_ENDPOINT_URL")) or DEFAULT_ENDPOINT_URL,
            region=_text(env.get("GS_REGION")),
            copy_chunk_size=_int(env.get("GS_COPY_CHUNK_SIZE"), DEFAULT_COPY_CHUNK_SIZE, "GS_COPY_CHUNK_SIZE"),
            copy_max_chunks=_int(env.get("GS_COPY_MAX_CHUNKS"), DEFAULT_COPY_MAX_CHUNKS, "GS_COPY_MAX_CHUNKS"),
        )
        return replace(config, **overrides) if overrides else config

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GsConfig":
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
        return cls(**known)


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int(value: Optional[str], default: int, name: str) -> int:
    text = _text(value)
    if text is None:
        return default
    try:
        return int(text)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
