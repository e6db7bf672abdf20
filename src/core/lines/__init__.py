"""Buffered newline-delimited reading over descriptor-like byte sources."""

from .buffer import DELIMITER, LineBuffer, next_power_of_two
from .reader import LineReader, create_line_reader, create_line_reader_from_profile, remove_buffer
from .registry import BufferRegistry, default_registry
from .sources import ReadFunc, fd_read, stream_read

__all__ = [
    "DELIMITER",
    "BufferRegistry",
    "LineBuffer",
    "LineReader",
    "ReadFunc",
    "create_line_reader",
    "create_line_reader_from_profile",
    "default_registry",
    "fd_read",
    "next_power_of_two",
    "remove_buffer",
    "stream_read",
]
