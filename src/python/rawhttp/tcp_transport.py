import logging
import socket

from .errors import (
    NetworkError,
    DnsFailureError,
    SocketConnectError,
    SocketWriteError,
    SocketReadError,
    SocketTimeoutError,
)
from .transport import Transport

logger = logging.getLogger(__name__)


class TcpTransport(Transport):
    def __init__(self, connect_timeout: float | None = None) -> None:
        self._sock: socket.socket | None = None
        self._connect_timeout = connect_timeout

    def connect(self, host: str, port: int) -> None:
        if self._sock is not None:
            raise NetworkError("Transport is already connected.")

        logger.debug("Connecting to %s:%d", host, port)
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self._sock.settimeout(self._connect_timeout)
            self._sock.connect((host, port))
            self._sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except socket.gaierror as e:
            self._discard()
            raise DnsFailureError(f"DNS Failure for host '{host}'") from e
        except socket.timeout as e:
            self._discard()
            raise SocketConnectError(f"Connection to {host}:{port} timed out") from e
        except OSError as e:
            self._discard()
            raise SocketConnectError(f"Socket connection failed: {e}") from e

    def set_timeout(self, seconds: float | None) -> None:
        if self._sock is None:
            raise NetworkError("Cannot set a timeout on a disconnected transport.")

        self._sock.settimeout(seconds)

    def write(self, data: bytes) -> int:
        if self._sock is None:
            raise NetworkError("Cannot write on a disconnected transport.")

        try:
            self._sock.sendall(data)
        except socket.timeout as e:
            raise SocketTimeoutError() from e
        except OSError as e:
            raise SocketWriteError(f"Socket write failed: {e}") from e
        return len(data)

    def read_into(self, buffer: bytearray | memoryview) -> int:
        if self._sock is None:
            raise NetworkError("Cannot read from a disconnected transport.")

        try:
            return self._sock.recv_into(buffer)
        except socket.timeout as e:
            raise SocketTimeoutError() from e
        except OSError as e:
            raise SocketReadError(f"Socket read failed: {e}") from e

    def close(self) -> None:
        if self._sock is not None:
            logger.debug("Closing connection")
            try:
                self._sock.close()
            finally:
                self._sock = None

    def _discard(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
