"""
NetStorage client error classes.

Provides a clear taxonomy of errors that can occur while talking to the
storage service. Every error raised by the client derives from NetStorageError,
so callers can catch the whole family or pick the kinds they care about.
"""
from __future__ import annotations

import json
from typing import Any, Mapping, Optional


class NetStorageError(Exception):
    """
    Base class for all NetStorage client errors.

    Carries optional diagnostic context (the phase that failed, the remote
    path involved and a redacted view of the active settings). Context is
    attached with annotate(), which mutates and returns the same instance so
    the error kind seen by callers never changes.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.phase: Optional[str] = None
        self.path: Optional[str] = None
        self.config: Optional[Mapping[str, Any]] = None

    def annotate(
        self,
        phase: str,
        *,
        path: Optional[str] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> NetStorageError:
        self.phase = phase
        if path is not None:
            self.path = path
        if config is not None:
            self.config = config
        return self

    def __str__(self) -> str:
        text = self.message
        if self.phase:
            text = f"{self.phase} {text}"
        if self.path:
            text = f"{text} ({self.path})"
        if self.config is not None:
            text = f"{text}\t{json.dumps(self.config, sort_keys=True)}"
        return text


class TransportError(NetStorageError):
    """
    The request never produced an HTTP response.

    Raised when:
    - DNS resolution or connection fails
    - A connect/read/write timeout expires

    The underlying httpx exception is chained as __cause__.
    """
    pass


class ProtocolError(NetStorageError):
    """
    The service answered with an HTTP status >= 300.

    Raised when:
    - HTTP 404 Not Found (path does not exist)
    - HTTP 409 Conflict (path already exists)
    - HTTP 403 Forbidden (bad signature or key)
    - any other non-success status
    """

    def __init__(self, message: str, status: int, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class ParseError(NetStorageError):
    """A successful response claimed to be XML but could not be parsed."""
    pass


class ValidationError(NetStorageError, TypeError):
    """
    An argument was rejected before any request was issued.

    Raised when:
    - mtime() receives something that is not a datetime
    """
    pass


CONFLICT_STATUS = 409
NOT_FOUND_STATUS = 404


def is_conflict(exc: BaseException) -> bool:
    """True for the "already exists" response tolerated during directory creation."""
    return isinstance(exc, ProtocolError) and exc.status == CONFLICT_STATUS


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, ProtocolError) and exc.status == NOT_FOUND_STATUS


__all__ = [
    "NetStorageError",
    "TransportError",
    "ProtocolError",
    "ParseError",
    "ValidationError",
    "CONFLICT_STATUS",
    "NOT_FOUND_STATUS",
    "is_conflict",
    "is_not_found",
]
