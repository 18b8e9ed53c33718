"""Error types raised by the PostageApp client."""

from __future__ import annotations

from typing import Optional


class PostageAppError(Exception):
    """Base error for client failures."""


class ConfigurationError(PostageAppError):
    """Raised when a setting required by an operation is missing or invalid."""


class TransportError(PostageAppError):
    """Raised when the HTTP exchange itself failed (connect, timeout, TLS)."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ProtocolError(PostageAppError):
    """Raised when the API answered with a body that cannot be interpreted."""


__all__ = ["PostageAppError", "ConfigurationError", "TransportError", "ProtocolError"]
