"""Blocking read primitives that fill a caller-supplied buffer region."""
from __future__ import annotations

import os
from typing import Any, BinaryIO, Callable

from common.errors import BackendError, ErrorCode

ReadFunc = Callable[[Any, bytearray, int, int], int]


def fd_read(handle: int, dest: bytearray, offset: int, max_bytes: int) -> int:
    """Read up to ``max_bytes`` from descriptor ``handle`` into ``dest[offset:]``."""

    data = os.read(handle, max_bytes)
    count = len(data)
    dest[offset : offset + count] = data
    return count


def stream_read(stream: BinaryIO) -> ReadFunc:
    """Build a read primitive over a binary file object; the handle is ignored."""

    def read(handle: Any, dest: bytearray, offset: int, max_bytes: int) -> int:
        with memoryview(dest) as view, view[offset : offset + max_bytes] as window:
            count = stream.readinto(window)
        if count is None:
            raise BackendError(
                ErrorCode.IO_ERROR,
                "Stream has no data available; non-blocking streams are not supported",
                context={"handle": handle},
            )
        return count

    return read
