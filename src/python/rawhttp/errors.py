from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .http_protocol import HttpResponse


class RawHttpError(Exception):
    """Base exception for the rawhttp library."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

# --- Transport Errors ---

class NetworkError(RawHttpError):
    """The transport could not complete the exchange."""
    pass

class DnsFailureError(NetworkError): pass
class SocketConnectError(NetworkError): pass
class SocketWriteError(NetworkError): pass
class SocketReadError(NetworkError): pass


class SocketTimeoutError(NetworkError):
    """The read deadline expired before a complete response arrived."""

    def __init__(self, message: str = "timeout") -> None:
        super().__init__(message)

# --- Protocol Errors ---

class InvalidResponse(RawHttpError):
    """The received bytes do not form a well-formed HTTP response."""
    pass

# --- Status Errors ---

class HttpError(RawHttpError):
    """A well-formed response carried a status code outside the accepted range."""

    def __init__(self, code: int, message: str, response: HttpResponse | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.response = response

    def __str__(self) -> str:
        return f"HTTP {self.code} error: {self.message}"
