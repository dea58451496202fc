from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

@dataclass
class HttpRequest:
    method: HttpMethod = HttpMethod.GET
    host: str = ""
    path: str = "/"
    body: str | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        from .http1_protocol import build_request
        return build_request(self.method, self.host, self.path, self.headers, self.body)

def header_values(lines: list[str], name: str) -> list[str]:
    wanted = name.lower()
    values = []
    for line in lines:
        key, _, value = line.partition(":")
        if key.strip().lower() == wanted:
            values.append(value.strip())
    return values

@dataclass
class HttpResponse:
    """A fully read response.

    ``headers`` holds the raw header lines in the order they arrived on the
    wire, duplicates included. ``content`` is the de-chunked body as bytes and
    ``body`` the same payload decoded to text.
    """

    status_line: str
    status_code: int
    headers: list[str] = field(default_factory=list)
    body: str = ""
    content: bytes = b""

    @property
    def version(self) -> str:
        return self.status_line.split(None, 1)[0]

    @property
    def reason(self) -> str:
        parts = self.status_line.split(None, 2)
        return parts[2] if len(parts) > 2 else ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def header_values(self, name: str) -> list[str]:
        """Returns every value of the given header in arrival order.

        Header names are compared case-insensitively.
        """
        return header_values(self.headers, name)

    def get_header(self, name: str, default: str | None = None) -> str | None:
        """Returns the last value of the given header, or ``default``."""
        values = self.header_values(name)
        return values[-1] if values else default

class HttpProtocol(Protocol):
    def connect(self, host: str, port: int) -> None:
        ...

    def disconnect(self) -> None:
        ...

    def perform_request(self, request: HttpRequest) -> HttpResponse:
        ...

# --- Status Codes ---
class HttpStatusCode(Enum):
    CONTINUE = 100
    SWITCHING_PROTOCOLS = 101
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204
    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
