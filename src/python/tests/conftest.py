import socket
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ContextManager

import pytest


@dataclass
class ServerDetails:
    host: str = ""
    port: int = 0


@pytest.fixture
def server_factory() -> Callable[[Callable[[socket.socket], None]], ContextManager[ServerDetails]]:
    @contextmanager
    def _factory(handler: Callable[[socket.socket], None]):
        details = ServerDetails()

        def server_loop(listener: socket.socket):
            try:
                client_sock, _ = listener.accept()
                with client_sock:
                    handler(client_sock)
            except (socket.timeout, OSError):
                pass

        listener_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener_sock.bind(("127.0.0.1", 0))
        details.host, details.port = listener_sock.getsockname()
        server_thread = None

        try:
            listener_sock.settimeout(1.0)
            listener_sock.listen()
            server_thread = threading.Thread(target=server_loop, args=(listener_sock,))
            server_thread.start()
            yield details
        finally:
            try:
                with socket.create_connection((details.host, details.port), timeout=0.1):
                    pass
            except OSError:
                pass
            if server_thread:
                server_thread.join(timeout=1.0)
            listener_sock.close()

    return _factory
