"""
Error kinds raised at each collaborator boundary of the pipeline.

Callers switch on the exception class (or `kind`) instead of probing for
optional attributes; the original exception is kept as `cause`.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    FETCH = "fetch"
    GEOCODE = "geocode"
    DISPATCH = "dispatch"
    PERSISTENCE = "persistence"


class CameraAlertError(Exception):
    kind: ErrorKind

    def __init__(self, message: str, *, cause: Optional[BaseException] = None, **details: Any):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value, "error": self.message}
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        if self.details:
            data["details"] = self.details
        return data


class FetchError(CameraAlertError):
    """The source page could not be retrieved (network, non-2xx, timeout)."""

    kind = ErrorKind.FETCH


class EmptyScheduleError(FetchError):
    """The page loaded but no addresses could be extracted from it."""


class GeocodeError(CameraAlertError):
    kind = ErrorKind.GEOCODE


class DispatchError(CameraAlertError):
    kind = ErrorKind.DISPATCH


class PersistenceError(CameraAlertError):
    kind = ErrorKind.PERSISTENCE


class CycleInProgressError(RuntimeError):
    """A scrape-reconcile-notify cycle is already running in this process."""


__all__ = [
    "CameraAlertError",
    "CycleInProgressError",
    "DispatchError",
    "EmptyScheduleError",
    "ErrorKind",
    "FetchError",
    "GeocodeError",
    "PersistenceError",
]
