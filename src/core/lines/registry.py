"""Handle-keyed store of line buffers shared between readers."""
from __future__ import annotations

import logging
from typing import Dict, Hashable, List, Optional

from .buffer import LineBuffer

log = logging.getLogger(__name__)


class BufferRegistry:
    """Maps source handles to the single :class:`LineBuffer` readers share.

    Readers created against the same handle in one registry see the same
    cursors. There is no locking: callers must not drive two readers of one
    handle concurrently.
    """

    def __init__(self) -> None:
        self._buffers: Dict[Hashable, LineBuffer] = {}

    def get_or_create(self, handle: Hashable, capacity: int) -> LineBuffer:
        buffer = self._buffers.get(handle)
        if buffer is None:
            buffer = LineBuffer(capacity)
            self._buffers[handle] = buffer
            log.debug("allocated %d byte buffer for handle %r", buffer.capacity, handle)
        else:
            buffer.ensure_capacity(capacity)
        return buffer

    def get(self, handle: Hashable) -> Optional[LineBuffer]:
        return self._buffers.get(handle)

    def remove(self, handle: Hashable) -> None:
        """Drop the buffer for ``handle``; readers still holding it become stale."""

        buffer = self._buffers.pop(handle, None)
        if buffer is None:
            return
        buffer.close()
        log.debug("removed buffer for handle %r", handle)

    def clear(self) -> None:
        for handle in list(self._buffers):
            self.remove(handle)

    def handles(self) -> List[Hashable]:
        return list(self._buffers)

    def __contains__(self, handle: object) -> bool:
        return handle in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)


_DEFAULT_REGISTRY = BufferRegistry()


def default_registry() -> BufferRegistry:
    """Registry used when a reader is created without an explicit one."""

    return _DEFAULT_REGISTRY
