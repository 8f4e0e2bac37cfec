"""Cancellation primitives for user-dismissable workflow steps."""

from __future__ import annotations

from typing import Any, Final, TypeVar

__all__ = [
    "CANCELLED",
    "OperationCancelledError",
    "is_cancelled",
    "raise_if_cancelled",
]

_T = TypeVar("_T")


class OperationCancelledError(RuntimeError):
    """Raised when the user dismisses a step of an in-flight workflow."""


class _Cancelled:
    """Singleton marker returned by dialogs that were dismissed."""

    __slots__ = ()
    _instance: _Cancelled | None = None

    def __new__(cls) -> _Cancelled:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"

    def __bool__(self) -> bool:
        return False


CANCELLED: Final = _Cancelled()


def is_cancelled(value: Any) -> bool:
    """Return ``True`` when *value* is the :data:`CANCELLED` marker."""

    return value is CANCELLED


def raise_if_cancelled(value: _T | _Cancelled) -> _T:
    """Return *value* unchanged or raise :class:`OperationCancelledError`."""

    if value is CANCELLED:
        raise OperationCancelledError()
    return value  # type: ignore[return-value]
