from typing import Protocol

class Transport(Protocol):
    def connect(self, host: str, port: int) -> None:
        ...

    def set_timeout(self, seconds: float | None) -> None:
        ...

    def write(self, data: bytes) -> int:
        ...

    def read_into(self, buffer: bytearray | memoryview) -> int:
        ...

    def close(self) -> None:
        ...
