"""Shared error codes and exceptions for line readers and their tooling."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    IO_ERROR = "IO_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    STALE_HANDLE = "STALE_HANDLE"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for the CLI and callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class StaleHandleError(BackendError):
    """Raised when a reader is used after its handle's buffer was removed."""

    def __init__(self, handle: Any) -> None:
        super().__init__(
            ErrorCode.STALE_HANDLE,
            f"Buffer for handle {handle!r} was removed",
            context={"handle": handle},
        )
        self.handle = handle
