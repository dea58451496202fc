import argparse
import logging
import sys

from .config import ClientConfig
from .errors import HttpError, InvalidResponse, NetworkError
from .http_protocol import HttpMethod
from .log import setup_logging
from .rawhttp import send_request

EXIT_HTTP_ERROR = 1
EXIT_INVALID_RESPONSE = 2
EXIT_NETWORK_ERROR = 3
EXIT_CONFIG_ERROR = 4


def parse_header(raw: str) -> tuple[str, str]:
    name, separator, value = raw.partition(":")
    if not separator or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: Value', got {raw!r}")
    return name.strip(), value.strip()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rawhttp", description="Send a single plaintext HTTP/1.1 request.")

    parser.add_argument("method", type=str.upper, choices=[m.value for m in HttpMethod], help="Request method.")
    parser.add_argument("host", help="The server host name or address.")
    parser.add_argument("path", nargs="?", default="/", help="Request path, starting with '/'.")

    parser.add_argument("-d", "--data", default=None, help="Request body, sent as UTF-8 text.")
    parser.add_argument("-H", "--header", dest="headers", action="append", type=parse_header, default=[],
                        help="Extra request header as 'Name: Value'. May be repeated.")
    parser.add_argument("--port", type=int, default=None, help="Server port (default: 80).")
    parser.add_argument("--timeout", type=float, default=None, help="Read deadline in seconds (default: 30).")
    parser.add_argument("-i", "--include", action="store_true", help="Print the status line and headers.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        response = send_request(
            args.method,
            args.host,
            args.path,
            body=args.data,
            headers=args.headers,
            port=args.port,
            timeout=args.timeout,
            config=config,
        )
    except HttpError as e:
        if args.include and e.response is not None:
            print(e.response.status_line)
            for line in e.response.headers:
                print(line)
        print(str(e), file=sys.stderr)
        return EXIT_HTTP_ERROR
    except InvalidResponse as e:
        print(f"Invalid response: {e}", file=sys.stderr)
        return EXIT_INVALID_RESPONSE
    except NetworkError as e:
        print(f"Network error: {e}", file=sys.stderr)
        return EXIT_NETWORK_ERROR

    if args.include:
        print(response.status_line)
        for line in response.headers:
            print(line)
        print()
    print(response.body)
    return 0


if __name__ == "__main__":
    sys.exit(main())
