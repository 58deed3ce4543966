"""Error taxonomy shared by the engine, the CAD host and the HTTP layer."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from pathlib import Path


class ReasonCode(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    COLLISION = "collision"
    HOST_FAILURE = "host_failure"
    SESSION_BUSY = "session_busy"
    NO_SESSION = "no_session"
    UNRESOLVED = "unresolved"
    CYCLE = "cycle"
    OPEN_FAILURE = "open_failure"
    WRITE_FAILURE = "write_failure"
    AMBIGUOUS_REFERENCE = "ambiguous_reference"
    STALE_REFERENCE = "stale_reference"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class DocTreeError(Exception):
    """Base error. Carries a machine-readable reason and the affected paths."""

    reason: ReasonCode = ReasonCode.HOST_FAILURE

    def __init__(self, message: str, paths: Iterable[str | Path] = (), reason: ReasonCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.paths = [str(p) for p in paths]
        if reason is not None:
            self.reason = reason


class InvalidRequestError(DocTreeError):
    reason = ReasonCode.VALIDATION

    def __init__(self, message: str, field: str | None = None, paths: Iterable[str | Path] = ()) -> None:
        super().__init__(message, paths)
        self.field = field


class NotFoundError(DocTreeError):
    reason = ReasonCode.NOT_FOUND


class AccessDeniedError(DocTreeError):
    reason = ReasonCode.ACCESS_DENIED


class CollisionError(DocTreeError):
    reason = ReasonCode.COLLISION


class HostFailureError(DocTreeError):
    reason = ReasonCode.HOST_FAILURE


class SessionBusyError(DocTreeError):
    reason = ReasonCode.SESSION_BUSY


class NoSessionError(DocTreeError):
    reason = ReasonCode.NO_SESSION


def translate_os_error(exc: OSError, path: str | Path, action: str) -> DocTreeError:
    """Map an ``OSError`` raised while touching *path* onto the taxonomy."""
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(f"{action} failed, file not found: {path}", [path])
    if isinstance(exc, PermissionError):
        return AccessDeniedError(f"{action} failed, access denied: {path}", [path])
    if isinstance(exc, FileExistsError):
        return CollisionError(f"{action} failed, target already exists: {path}", [path])
    return HostFailureError(f"{action} failed for {path}: {exc}", [path])
