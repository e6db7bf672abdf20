"""Data models shared across the CLI, config loader, and line readers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_BUFFER_SIZE = 32768
DEFAULT_CHUNK_SIZE = 2048
DEFAULT_ENCODING = "utf-8"


@dataclass(slots=True)
class ReaderSettings:
    """Everything a LineReader needs besides its handle."""

    buffer_size: int = DEFAULT_BUFFER_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = DEFAULT_ENCODING
    errors: str = "strict"


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = DEFAULT_ENCODING
    error_policy: str = "fail-fast"  # fail-fast | replace


@dataclass(slots=True)
class ProfileSettings:
    """Buffer sizing for one named profile."""

    description: str
    buffer_size: int = DEFAULT_BUFFER_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: Optional[str] = None
    error_policy: Optional[str] = None


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a single run."""

    global_settings: GlobalSettings
    profile: ProfileSettings


@dataclass(slots=True)
class BufferSnapshot:
    """Point-in-time view of a shared line buffer, for diagnostics."""

    capacity: int
    read_start: int
    write_offset: int
    pending_bytes: int
    grow_count: int = 0
    compact_count: int = 0
    closed: bool = False
