import logging
from collections.abc import Callable, Iterable, Mapping

from .config import ClientConfig
from .errors import HttpError
from .http1_protocol import Http1Protocol
from .http_protocol import HttpMethod, HttpRequest, HttpResponse
from .tcp_transport import TcpTransport
from .transport import Transport

logger = logging.getLogger(__name__)

Headers = Mapping[str, str] | Iterable[tuple[str, str]]


class HttpClient:
    """One-shot HTTP/1.1 client.

    Every request opens its own connection, which is closed again once the
    response has been read or an error was raised. The client keeps no state
    between calls, so a single instance can be shared between threads.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport_factory: Callable[[], Transport] | None = None,
    ):
        self._config = config or ClientConfig()
        self._transport_factory = transport_factory or self._tcp_transport

    @property
    def config(self) -> ClientConfig:
        return self._config

    def send(self, request: HttpRequest) -> HttpResponse:
        """Performs the request and applies the status code policy.

        Raises:
            NetworkError: when the connection or an I/O operation fails
            InvalidResponse: when the reply is not a well-formed response
            HttpError: when the status code is outside ``accepted_status``
        """
        protocol = Http1Protocol(
            self._transport_factory(),
            timeout=self._config.timeout,
            read_chunk_size=self._config.read_chunk_size,
            max_header_size=self._config.max_header_size,
        )
        try:
            protocol.connect(request.host, self._config.port)
            response = protocol.perform_request(request)
        finally:
            protocol.disconnect()

        return self._check_status(response)

    def get(self, host: str, path: str = "/", headers: Headers | None = None) -> HttpResponse:
        return self.send(_make_request(HttpMethod.GET, host, path, None, headers))

    def post(self, host: str, path: str, body: str, headers: Headers | None = None) -> HttpResponse:
        return self.send(_make_request(HttpMethod.POST, host, path, body, headers))

    def put(self, host: str, path: str, body: str, headers: Headers | None = None) -> HttpResponse:
        return self.send(_make_request(HttpMethod.PUT, host, path, body, headers))

    def delete(self, host: str, path: str, headers: Headers | None = None) -> HttpResponse:
        return self.send(_make_request(HttpMethod.DELETE, host, path, None, headers))

    def _tcp_transport(self) -> Transport:
        return TcpTransport(connect_timeout=self._config.effective_connect_timeout)

    def _check_status(self, response: HttpResponse) -> HttpResponse:
        if response.status_code in self._config.accepted_status:
            return response

        logger.debug("Rejecting response with status %d", response.status_code)
        raise HttpError(response.status_code, _error_message(response), response)


def _make_request(
    method: HttpMethod, host: str, path: str, body: str | None, headers: Headers | None
) -> HttpRequest:
    items = headers.items() if isinstance(headers, Mapping) else (headers or ())
    return HttpRequest(method=method, host=host, path=path, body=body, headers=list(items))


def _error_message(response: HttpResponse) -> str:
    body = response.body.strip()
    if body:
        return body
    return response.reason or response.status_line


def _client(port: int | None, timeout: float | None, config: ClientConfig | None) -> HttpClient:
    config = config or ClientConfig()
    if port is not None:
        config = config.replace(port=port)
    if timeout is not None:
        config = config.replace(timeout=timeout)
    return HttpClient(config)


def send_request(
    method: HttpMethod | str,
    host: str,
    path: str,
    body: str | None = None,
    headers: Headers | None = None,
    *,
    port: int | None = None,
    timeout: float | None = None,
    config: ClientConfig | None = None,
) -> HttpResponse:
    if not isinstance(method, HttpMethod):
        method = HttpMethod(method.upper())
    client = _client(port, timeout, config)
    return client.send(_make_request(method, host, path, body, headers))


def get(host: str, path: str = "/", headers: Headers | None = None, **options) -> HttpResponse:
    return send_request(HttpMethod.GET, host, path, None, headers, **options)


def post(host: str, path: str, body: str, headers: Headers | None = None, **options) -> HttpResponse:
    return send_request(HttpMethod.POST, host, path, body, headers, **options)


def put(host: str, path: str, body: str, headers: Headers | None = None, **options) -> HttpResponse:
    return send_request(HttpMethod.PUT, host, path, body, headers, **options)


def delete(host: str, path: str, headers: Headers | None = None, **options) -> HttpResponse:
    return send_request(HttpMethod.DELETE, host, path, None, headers, **options)
