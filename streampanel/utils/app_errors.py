"""Application error taxonomy.

Every failure the console surfaces to a session owner is an `AppError`:
an error code, a human readable message, an optional HTTP status from the
encoder backend, and a short `erresid` that ties the notice to its log line.
"""

from __future__ import annotations

import inspect
from enum import Enum
from uuid import uuid4


class AppErrorCode(str, Enum):
    E_INVALID_PARAMS = "E_INVALID_PARAMS"
    E_INVALID_STATE = "E_INVALID_STATE"
    E_SESSION_NOT_FOUND = "E_SESSION_NOT_FOUND"
    E_SESSION_EXISTS = "E_SESSION_EXISTS"
    E_SESSION_LIMIT = "E_SESSION_LIMIT"
    E_BACKEND_REJECTED = "E_BACKEND_REJECTED"
    E_BACKEND_UNAVAILABLE = "E_BACKEND_UNAVAILABLE"
    E_ACQUISITION_TIMEOUT = "E_ACQUISITION_TIMEOUT"
    E_PLAYBACK_FATAL = "E_PLAYBACK_FATAL"

    def __str__(self) -> str:
        return self.value


def _caller_info() -> str:
    for frame_info in inspect.stack()[2:]:
        module = inspect.getmodule(frame_info.frame)
        module_name = module.__name__ if module else frame_info.filename
        if module_name != __name__:
            return f"{module_name}:{frame_info.function}:{frame_info.lineno}"
    return "unknown"


class AppError(Exception):
    """Base error carrying an error code, message and optional backend status."""

    default_errcode: AppErrorCode = AppErrorCode.E_INVALID_STATE

    def __init__(
        self,
        errmesg: str,
        *,
        errcode: AppErrorCode | None = None,
        status_code: int | None = None,
    ):
        super().__init__(errmesg)
        self.errcode = errcode or self.default_errcode
        self.errmesg = errmesg
        self.status_code = status_code
        self.erresid = uuid4().hex[:10]
        self.caller_info = _caller_info()

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.errcode}: {self.errmesg} (status={self.status_code})"
        return f"{self.errcode}: {self.errmesg}"


class ValidationError(AppError):
    """Missing or out-of-range input, raised before any network call."""

    default_errcode = AppErrorCode.E_INVALID_PARAMS


class InvalidStateTransition(AppError):
    default_errcode = AppErrorCode.E_INVALID_STATE


class SessionNotFound(AppError):
    default_errcode = AppErrorCode.E_SESSION_NOT_FOUND


class SessionExists(AppError):
    default_errcode = AppErrorCode.E_SESSION_EXISTS


class SessionLimitReached(AppError):
    default_errcode = AppErrorCode.E_SESSION_LIMIT


class BackendRejection(AppError):
    """Non-success HTTP response to a start/stop/list command. Never retried."""

    default_errcode = AppErrorCode.E_BACKEND_REJECTED


class BackendUnavailable(AppError):
    """The encoder backend could not be reached at all. Never retried."""

    default_errcode = AppErrorCode.E_BACKEND_UNAVAILABLE


class AcquisitionTimeout(AppError):
    """The preview manifest did not appear within the bounded probe attempts."""

    default_errcode = AppErrorCode.E_ACQUISITION_TIMEOUT


class PlaybackFailed(AppError):
    """The playback engine reported an unrecoverable error."""

    default_errcode = AppErrorCode.E_PLAYBACK_FATAL
