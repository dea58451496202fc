"""Minimal HTTP/1.1 client over raw TCP sockets."""

from .config import ClientConfig
from .errors import (
    HttpError,
    InvalidResponse,
    NetworkError,
    RawHttpError,
)
from .http1_protocol import build_request
from .http_protocol import HttpMethod, HttpRequest, HttpResponse
from .rawhttp import HttpClient, delete, get, post, put, send_request

__version__ = "0.1.0"

__all__ = (
    "ClientConfig",
    "HttpClient",
    "HttpError",
    "HttpMethod",
    "HttpRequest",
    "HttpResponse",
    "InvalidResponse",
    "NetworkError",
    "RawHttpError",
    "build_request",
    "delete",
    "get",
    "post",
    "put",
    "send_request",
)
