from __future__ import annotations

from typing import Any, Iterable, List, Optional


class CatalogError(Exception):
    """Base class for every failure surfaced by the catalog core."""


class ValidationError(CatalogError):
    """Missing or malformed input, caught before any network call."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields: List[str] = list(fields or [])


class TransportError(CatalogError):
    """No response was received (connection failure, timeout)."""


class ServerError(CatalogError):
    """The server answered with an error status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def server_message(self) -> Optional[str]:
        if isinstance(self.body, dict):
            for key in ("message", "error"):
                value = self.body.get(key)
                if value:
                    return str(value)
        return None


class NotFoundError(ServerError):
    """A selection or request references an entity that no longer exists."""


def error_message(exc: BaseException, fallback: str = "An error occurred") -> str:
    """User-facing text: server message, then server error, then transport/exception text."""
    if isinstance(exc, ServerError):
        server_msg = exc.server_message
        if server_msg:
            return server_msg
    text = str(exc).strip()
    return text or fallback
