import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass, field


def _optional_float(raw: str) -> float | None:
    return None if raw.lower() == "none" else float(raw)


# environment variable, field name, converter
_ENV_VARS = (
    ("RAWHTTP_PORT", "port", int),
    ("RAWHTTP_TIMEOUT", "timeout", float),
    ("RAWHTTP_CONNECT_TIMEOUT", "connect_timeout", _optional_float),
)


@dataclass(frozen=True)
class ClientConfig:
    port: int = 80
    timeout: float = 30.0  # deadline for the whole read phase, in seconds
    connect_timeout: float | None = None  # falls back to timeout
    read_chunk_size: int = 4096
    max_header_size: int = 65536
    accepted_status: range = field(default_factory=lambda: range(200, 400))

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")
        if self.read_chunk_size <= 0:
            raise ValueError(f"read_chunk_size must be positive, got {self.read_chunk_size}")

    @property
    def effective_connect_timeout(self) -> float:
        return self.timeout if self.connect_timeout is None else self.connect_timeout

    def replace(self, **changes) -> "ClientConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """Builds a config from ``RAWHTTP_*`` environment variables.

        Unset or empty variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        changes = {}
        for variable, name, convert in _ENV_VARS:
            raw = environ.get(variable, "").strip()
            if not raw:
                continue
            try:
                changes[name] = convert(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {variable}: {raw!r}") from None
        return cls(**changes)
