"""Buffered, blocking ``gets``-style line reader over a byte source."""
from __future__ import annotations

import codecs
from typing import Hashable, Iterator, Optional

from common.config import resolve_reader_settings
from common.errors import BackendError, ErrorCode, StaleHandleError
from common.models import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ENCODING,
    BufferSnapshot,
    RuntimeConfig,
)

from .buffer import next_power_of_two
from .registry import BufferRegistry, default_registry
from .sources import ReadFunc, fd_read


class LineReader:
    """Returns one decoded line per call until the source is exhausted.

    Lines keep their trailing ``\\n`` (and any ``\\r`` before it). The last
    line of a stream without a trailing newline is returned as-is, after
    which every call returns ``None``.

    Readers built for the same handle in the same registry share one buffer,
    so a line consumed by one is not seen by the other.
    """

    def __init__(
        self,
        handle: Hashable = 0,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = DEFAULT_ENCODING,
        *,
        errors: str = "strict",
        registry: Optional[BufferRegistry] = None,
        read: ReadFunc = fd_read,
    ) -> None:
        if buffer_size <= 0:
            buffer_size = DEFAULT_BUFFER_SIZE
        if chunk_size <= 0:
            chunk_size = DEFAULT_CHUNK_SIZE
        codecs.lookup(encoding)
        self.handle = handle
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.errors = errors
        self.registry = registry if registry is not None else default_registry()
        self._read = read
        self._buffer = self.registry.get_or_create(handle, next_power_of_two(buffer_size))

    def next_line(self) -> Optional[str]:
        buffer = self._buffer
        if buffer.closed:
            raise StaleHandleError(self.handle)

        if buffer.read_start != buffer.write_offset:
            cutidx = buffer.find_delimiter(buffer.read_start, buffer.write_offset)
            if cutidx != -1:
                return self._decode(buffer.take(cutidx))

        while True:
            buffer.reserve(self.chunk_size)
            count = self._read(self.handle, buffer.data, buffer.write_offset, self.chunk_size)
            if count < 0 or count > self.chunk_size:
                raise BackendError(
                    ErrorCode.IO_ERROR,
                    f"Read primitive returned {count} bytes for a {self.chunk_size} byte request",
                    context={"handle": self.handle},
                )
            if count == 0:
                rest = buffer.take_rest()
                return self._decode(rest) if rest else None

            new_end = buffer.write_offset + count
            cutidx = buffer.find_delimiter(buffer.write_offset, new_end)
            buffer.write_offset = new_end
            if cutidx != -1:
                return self._decode(buffer.take(cutidx))

    def snapshot(self) -> BufferSnapshot:
        return self._buffer.snapshot()

    def _decode(self, raw: bytes) -> str:
        # Cursors have already moved past ``raw``; a decode error does not stall the reader.
        return raw.decode(self.encoding, self.errors)

    def __call__(self) -> Optional[str]:
        return self.next_line()

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line

    def __repr__(self) -> str:
        return (
            f"LineReader(handle={self.handle!r}, capacity={self._buffer.capacity}, "
            f"chunk_size={self.chunk_size}, encoding={self.encoding!r})"
        )


def create_line_reader(
    handle: Hashable = 0,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = DEFAULT_ENCODING,
    *,
    errors: str = "strict",
    registry: Optional[BufferRegistry] = None,
    read: ReadFunc = fd_read,
) -> LineReader:
    """Create a zero-argument callable returning the next line or ``None`` at end of stream."""

    return LineReader(
        handle,
        buffer_size,
        chunk_size,
        encoding,
        errors=errors,
        registry=registry,
        read=read,
    )


def create_line_reader_from_profile(
    handle: Hashable,
    config: RuntimeConfig,
    *,
    registry: Optional[BufferRegistry] = None,
    read: ReadFunc = fd_read,
) -> LineReader:
    settings = resolve_reader_settings(config)
    return LineReader(
        handle,
        settings.buffer_size,
        settings.chunk_size,
        settings.encoding,
        errors=settings.errors,
        registry=registry,
        read=read,
    )


def remove_buffer(handle: Hashable, *, registry: Optional[BufferRegistry] = None) -> None:
    """Tear down the shared buffer for ``handle``; its readers raise ``StaleHandleError`` afterwards."""

    (registry if registry is not None else default_registry()).remove(handle)
