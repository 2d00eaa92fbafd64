"""Explicit result values returned by identity and wardrobe operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIAL = "invalid_credential"
    ALREADY_RECEIVED = "already_received"
    STORAGE_FAILURE = "storage_failure"
    INVALID_INPUT = "invalid_input"


@dataclass
class OperationResult:
    """Success flag plus either a payload or an error kind and message.

    Callers check ``success`` before trusting ``value``.
    """

    success: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def ok(cls, value: Any = None, message: str = "") -> "OperationResult":
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=error, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "value": self.value,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }


__all__ = ["ErrorKind", "OperationResult"]
