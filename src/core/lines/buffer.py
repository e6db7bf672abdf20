"""Growable byte buffer with cursors over newline-delimited data."""
from __future__ import annotations

import logging

from common.models import BufferSnapshot

log = logging.getLogger(__name__)

DELIMITER = 0x0A


def next_power_of_two(value: int, start: int = 1) -> int:
    """Return the smallest ``start * 2**n`` that is >= ``value`` (minimum 1)."""

    size = max(1, start)
    while size < value:
        size <<= 1
    return size


class LineBuffer:
    """Byte region plus the two cursors bounding unconsumed data.

    ``data[read_start:write_offset]`` holds bytes already pulled from the
    source but not yet handed out as part of a line. Everything before
    ``read_start`` is consumed and may be reclaimed by :meth:`compact`.
    ``len(data)`` is the capacity and is always a power of two; it only
    grows.
    """

    def __init__(self, capacity: int) -> None:
        self.data = bytearray(next_power_of_two(capacity))
        self.read_start = 0
        self.write_offset = 0
        self.closed = False
        self.grow_count = 0
        self.compact_count = 0

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def pending(self) -> int:
        return self.write_offset - self.read_start

    def find_delimiter(self, start: int, end: int) -> int:
        """Index of the first delimiter in ``[start, end)``, or ``-1``."""

        return self.data.find(DELIMITER, start, end)

    def reserve(self, nbytes: int) -> None:
        """Make room for ``nbytes`` at ``write_offset``, compacting before growing."""

        if self.write_offset + nbytes > len(self.data) and self.read_start != 0:
            self.compact()
        if self.write_offset + nbytes > len(self.data):
            self.ensure_capacity(self.write_offset + nbytes)

    def compact(self) -> None:
        """Shift the unconsumed region down to index 0."""

        if self.read_start == 0:
            return
        live = self.write_offset - self.read_start
        self.data[:live] = self.data[self.read_start : self.write_offset]
        log.debug("compacted %d pending bytes (dropped %d consumed)", live, self.read_start)
        self.read_start = 0
        self.write_offset = live
        self.compact_count += 1

    def ensure_capacity(self, capacity: int) -> None:
        """Grow to the next power of two >= ``capacity``, keeping ``[0, write_offset)``."""

        if capacity <= len(self.data):
            return
        new_capacity = next_power_of_two(capacity, len(self.data))
        grown = bytearray(new_capacity)
        grown[: self.write_offset] = self.data[: self.write_offset]
        log.debug("grew buffer %d -> %d bytes", len(self.data), new_capacity)
        self.data = grown
        self.grow_count += 1

    def take(self, cutidx: int) -> bytes:
        """Consume ``[read_start, cutidx]`` and return it."""

        line = bytes(self.data[self.read_start : cutidx + 1])
        self.read_start = cutidx + 1
        return line

    def take_rest(self) -> bytes:
        """Consume whatever is pending and rewind both cursors."""

        rest = bytes(self.data[self.read_start : self.write_offset])
        self.read_start = 0
        self.write_offset = 0
        return rest

    def close(self) -> None:
        self.closed = True
        self.data = bytearray()
        self.read_start = 0
        self.write_offset = 0

    def snapshot(self) -> BufferSnapshot:
        return BufferSnapshot(
            capacity=len(self.data),
            read_start=self.read_start,
            write_offset=self.write_offset,
            pending_bytes=self.pending,
            grow_count=self.grow_count,
            compact_count=self.compact_count,
            closed=self.closed,
        )
