import codecs
import logging
import re
import time
from collections.abc import Iterable, Mapping
from enum import Enum

from .dechunker import ChunkedDecoder
from .errors import InvalidResponse, SocketTimeoutError
from .http_protocol import (
    HttpMethod,
    HttpProtocol,
    HttpRequest,
    HttpResponse,
    HttpStatusCode,
    header_values,
)
from .transport import Transport

logger = logging.getLogger(__name__)

_CHARSET_PATTERN = re.compile(r"""(?:^|;)\s*charset\s*=\s*["']?([\w.:-]+)""", re.IGNORECASE)

_BODYLESS_STATUS_CODES = (HttpStatusCode.NO_CONTENT.value, HttpStatusCode.NOT_MODIFIED.value)


def build_request(
    method: HttpMethod | str,
    host: str,
    path: str,
    headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    body: str | None = None,
) -> bytes:
    """Serializes a request into the exact bytes sent on the wire.

    The mandatory ``Host`` and ``Connection: close`` headers come first,
    followed by ``Content-Length`` when a body is given and then the caller's
    headers in the order supplied. Nothing is validated.
    """
    method_name = method.value if isinstance(method, HttpMethod) else str(method)
    buffer = bytearray()

    buffer += f"{method_name} {path} HTTP/1.1\r\n".encode("utf-8")
    buffer += f"Host: {host}\r\n".encode("utf-8")
    buffer += b"Connection: close\r\n"

    encoded_body = body.encode("utf-8") if body is not None else None
    if encoded_body is not None:
        buffer += f"Content-Length: {len(encoded_body)}\r\n".encode("ascii")

    items = headers.items() if isinstance(headers, Mapping) else (headers or ())
    for key, value in items:
        buffer += f"{key}: {value}\r\n".encode("utf-8")

    buffer += b"\r\n"

    if encoded_body is not None:
        buffer += encoded_body

    return bytes(buffer)


class ParserState(Enum):
    AWAITING_STATUS_LINE = "AWAITING_STATUS_LINE"
    AWAITING_HEADERS = "AWAITING_HEADERS"
    AWAITING_BODY = "AWAITING_BODY"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class ResponseParser:
    """Incremental parser for a single HTTP/1.1 response.

    Feed it the bytes read from the connection with `feed()` and call
    `feed_eof()` once the peer closes. The parser moves through the
    states of `ParserState`; any framing error moves it to ``FAILED`` and
    raises `InvalidResponse`. Interim ``1xx`` responses are skipped.
    """

    _LINE_TERMINATOR = b"\r\n"

    def __init__(self, max_header_size: int = 65536):
        self.state = ParserState.AWAITING_STATUS_LINE
        self._max_header_size = max_header_size
        self._buffer = bytearray()
        self._header_bytes = 0
        self._interim_responses = 0

        self._status_line = ""
        self._status_code = 0
        self._headers: list[str] = []

        self._content_length: int | None = None
        self._decoder: ChunkedDecoder | None = None
        self._body = bytearray()
        self._response: HttpResponse | None = None

    @property
    def is_complete(self) -> bool:
        return self.state is ParserState.COMPLETE

    @property
    def response(self) -> HttpResponse | None:
        """The parsed response, or ``None`` while parsing is in progress."""
        return self._response

    def feed(self, data: bytes) -> None:
        if self.state in (ParserState.COMPLETE, ParserState.FAILED):
            return

        self._buffer += data
        self._run(self._advance)

    def feed_eof(self) -> None:
        if self.state in (ParserState.COMPLETE, ParserState.FAILED):
            return

        self._run(self._finish)

    def _run(self, step) -> None:
        try:
            step()
        except InvalidResponse:
            self.state = ParserState.FAILED
            raise

    def _advance(self) -> None:
        while True:
            if self.state is ParserState.AWAITING_STATUS_LINE:
                line = self._take_line()
                if line is None:
                    return
                self._parse_status_line(line)
                self.state = ParserState.AWAITING_HEADERS

            elif self.state is ParserState.AWAITING_HEADERS:
                line = self._take_line()
                if line is None:
                    return
                if line:
                    self._parse_header_line(line)
                else:
                    self._end_of_headers()

            elif self.state is ParserState.AWAITING_BODY:
                self._consume_body()
                return

            else:
                return

    def _finish(self) -> None:
        if self.state is ParserState.AWAITING_STATUS_LINE:
            if not self._buffer:
                if self._interim_responses:
                    raise InvalidResponse("connection closed before final response")
                raise InvalidResponse("empty response")
            # An unterminated first line is still validated as a status line.
            self._parse_status_line(self._buffer.decode("latin-1"))
            raise InvalidResponse("connection closed before end of headers")

        if self.state is ParserState.AWAITING_HEADERS:
            raise InvalidResponse("connection closed before end of headers")

        if self._decoder is not None and not self._decoder.last_chunk_seen:
            raise InvalidResponse("connection closed before final chunk")
        if self._content_length is not None:
            raise InvalidResponse(
                f"connection closed before full content length was received "
                f"({len(self._body)} of {self._content_length} bytes)"
            )
        self._complete()

    def _take_line(self) -> str | None:
        end = self._buffer.find(self._LINE_TERMINATOR)
        if end < 0:
            if self._header_bytes + len(self._buffer) > self._max_header_size:
                raise InvalidResponse("header section too large")
            return None

        self._header_bytes += end + len(self._LINE_TERMINATOR)
        if self._header_bytes > self._max_header_size:
            raise InvalidResponse("header section too large")

        line = self._buffer[:end].decode("latin-1")
        del self._buffer[:end + len(self._LINE_TERMINATOR)]
        return line

    def _parse_status_line(self, line: str) -> None:
        parts = line.split(None, 2)
        if len(parts) < 3 or not parts[0].startswith("HTTP/"):
            raise InvalidResponse("malformed status line")

        code = parts[1]
        if len(code) != 3 or not (code.isascii() and code.isdigit()):
            raise InvalidResponse("malformed status line")

        self._status_line = line
        self._status_code = int(code)

    def _parse_header_line(self, line: str) -> None:
        name, separator, _ = line.partition(":")
        if not separator or not name.strip():
            raise InvalidResponse("malformed header")
        self._headers.append(line)

    def _end_of_headers(self) -> None:
        if 100 <= self._status_code < 200:
            logger.debug("Skipping interim response: %s", self._status_line)
            self._interim_responses += 1
            self._status_line = ""
            self._status_code = 0
            self._headers = []
            self.state = ParserState.AWAITING_STATUS_LINE
            return

        self.state = ParserState.AWAITING_BODY

        if self._status_code in _BODYLESS_STATUS_CODES:
            return

        codings = [
            coding.strip().lower()
            for value in header_values(self._headers, "Transfer-Encoding")
            for coding in value.split(",")
            if coding.strip()
        ]
        if codings and codings[-1] == "chunked":
            if header_values(self._headers, "Content-Length"):
                logger.warning("Response has both Transfer-Encoding and Content-Length; ignoring Content-Length")
            self._decoder = ChunkedDecoder()
        elif not codings:
            self._content_length = self._parse_content_length()

    def _parse_content_length(self) -> int | None:
        values = {
            part.strip()
            for value in header_values(self._headers, "Content-Length")
            for part in value.split(",")
        }
        if not values:
            return None
        if len(values) > 1:
            raise InvalidResponse("conflicting Content-Length headers")

        value = values.pop()
        if not (value.isascii() and value.isdigit()):
            raise InvalidResponse(f"invalid Content-Length value: {value!r}")
        return int(value)

    def _consume_body(self) -> None:
        if self._status_code in _BODYLESS_STATUS_CODES:
            self._complete()
        elif self._decoder is not None:
            self._body += self._decoder.feed(bytes(self._buffer))
            self._buffer.clear()
            if self._decoder.done:
                self._complete()
        elif self._content_length is not None:
            missing = self._content_length - len(self._body)
            self._body += self._buffer[:missing]
            del self._buffer[:missing]
            if len(self._body) >= self._content_length:
                self._complete()
        else:
            self._body += self._buffer
            self._buffer.clear()

    def _complete(self) -> None:
        content = bytes(self._body)
        self._response = HttpResponse(
            status_line=self._status_line,
            status_code=self._status_code,
            headers=list(self._headers),
            body=content.decode(self._charset(), errors="replace"),
            content=content,
        )
        self.state = ParserState.COMPLETE

    def _charset(self) -> str:
        content_types = header_values(self._headers, "Content-Type")
        match = _CHARSET_PATTERN.search(content_types[-1]) if content_types else None
        if match:
            try:
                codec = codecs.lookup(match.group(1))
            except LookupError:
                codec = None
            # bytes-to-bytes codecs such as base64 cannot decode a body to text
            if codec is not None and getattr(codec, "_is_text_encoding", True):
                return codec.name
        return "utf-8"


class Http1Protocol(HttpProtocol):
    def __init__(
        self,
        transport: Transport,
        timeout: float | None = 30.0,
        read_chunk_size: int = 4096,
        max_header_size: int = 65536,
    ):
        self._transport: Transport = transport
        self._timeout = timeout
        self._read_chunk_size = read_chunk_size
        self._max_header_size = max_header_size

    def connect(self, host: str, port: int) -> None:
        self._transport.connect(host, port)

    def disconnect(self) -> None:
        self._transport.close()

    def perform_request(self, request: HttpRequest) -> HttpResponse:
        payload = request.to_bytes()
        self._transport.set_timeout(self._timeout)
        self._transport.write(payload)
        logger.debug("Sent %s %s (%d bytes)", request.method.value, request.path, len(payload))

        response = self._read_full_response()
        logger.debug("Received %r (%d body bytes)", response.status_line, len(response.content))
        return response

    def _read_full_response(self) -> HttpResponse:
        parser = ResponseParser(self._max_header_size)
        buffer = bytearray(self._read_chunk_size)
        read_view = memoryview(buffer)
        deadline = time.monotonic() + self._timeout if self._timeout is not None else None

        while not parser.is_complete:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise SocketTimeoutError()
                self._transport.set_timeout(remaining)

            bytes_read = self._transport.read_into(read_view)
            if bytes_read == 0:
                parser.feed_eof()
                break
            parser.feed(bytes(read_view[:bytes_read]))

        if parser.response is None:
            raise InvalidResponse("incomplete response")
        return parser.response
