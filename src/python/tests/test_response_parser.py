import pytest

from rawhttp.errors import InvalidResponse
from rawhttp.http1_protocol import ParserState, ResponseParser


def parse(*pieces: bytes, eof: bool = True) -> ResponseParser:
    parser = ResponseParser()
    for piece in pieces:
        parser.feed(piece)
    if eof:
        parser.feed_eof()
    return parser


def test_end_to_end_example_response():
    parser = parse(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nOK", eof=False)

    assert parser.is_complete
    res = parser.response
    assert res.status_code == 200
    assert res.status_line == "HTTP/1.1 200 OK"
    assert res.headers == ["Content-Length: 2"]
    assert res.body == "OK"


def test_moves_through_states_as_bytes_arrive():
    parser = ResponseParser()
    assert parser.state is ParserState.AWAITING_STATUS_LINE

    parser.feed(b"HTTP/1.1 200 OK\r\n")
    assert parser.state is ParserState.AWAITING_HEADERS

    parser.feed(b"Content-Length: 3\r\n\r\n")
    assert parser.state is ParserState.AWAITING_BODY
    assert parser.response is None

    parser.feed(b"abc")
    assert parser.state is ParserState.COMPLETE


def test_byte_by_byte_feeding_gives_the_same_result():
    raw = b"HTTP/1.1 201 Created\r\nLocation: /items/1\r\nContent-Length: 4\r\n\r\ndone"
    parser = ResponseParser()
    for i in range(len(raw)):
        parser.feed(raw[i:i + 1])

    assert parser.is_complete
    assert parser.response.status_code == 201
    assert parser.response.headers == ["Location: /items/1", "Content-Length: 4"]
    assert parser.response.body == "done"


@pytest.mark.parametrize("status_line", [
    b"NOTHTTP garbage",
    b"HTTP/1.1 200",
    b"HTTP/1.1 abc OK",
    b"HTTP/1.1 2000 OK",
    b"FTP/1.0 200 OK",
    b"",
])
def test_rejects_malformed_status_line(status_line):
    parser = ResponseParser()
    with pytest.raises(InvalidResponse, match="malformed status line"):
        parser.feed(status_line + b"\r\n\r\n")
    assert parser.state is ParserState.FAILED


def test_rejects_unterminated_garbage_at_end_of_stream():
    with pytest.raises(InvalidResponse, match="malformed status line"):
        parse(b"NOTHTTP garbage")


def test_reports_empty_response():
    with pytest.raises(InvalidResponse, match="empty response"):
        parse()


def test_rejects_header_without_colon():
    parser = ResponseParser()
    with pytest.raises(InvalidResponse, match="malformed header"):
        parser.feed(b"HTTP/1.1 200 OK\r\nNoColonHere\r\n\r\n")
    assert parser.state is ParserState.FAILED


def test_rejects_header_with_empty_name():
    with pytest.raises(InvalidResponse, match="malformed header"):
        parse(b"HTTP/1.1 200 OK\r\n: value\r\n\r\n")


def test_ignores_bytes_after_failure():
    parser = ResponseParser()
    with pytest.raises(InvalidResponse):
        parser.feed(b"garbage\r\n")

    parser.feed(b"HTTP/1.1 200 OK\r\n\r\n")
    parser.feed_eof()
    assert parser.state is ParserState.FAILED
    assert parser.response is None


def test_preserves_header_order_and_duplicates():
    parser = parse(
        b"HTTP/1.1 200 OK\r\n"
        b"Set-Cookie: a=1\r\n"
        b"X-Order: first\r\n"
        b"Set-Cookie: b=2\r\n"
        b"Content-Length: 0\r\n"
        b"\r\n",
        eof=False,
    )

    res = parser.response
    assert res.headers == ["Set-Cookie: a=1", "X-Order: first", "Set-Cookie: b=2", "Content-Length: 0"]
    assert res.header_values("set-cookie") == ["a=1", "b=2"]
    assert res.get_header("Set-Cookie") == "b=2"
    assert res.get_header("Missing", "default") == "default"


def test_stores_header_lines_verbatim():
    res = parse(b"HTTP/1.1 200 OK\r\nX-Spaced:   padded value  \r\n\r\n").response

    assert res.headers == ["X-Spaced:   padded value  "]
    assert res.get_header("x-spaced") == "padded value"


def test_reads_until_close_without_framing_headers():
    parser = parse(b"HTTP/1.1 200 OK\r\n\r\nfirst ", b"second", eof=False)
    assert parser.state is ParserState.AWAITING_BODY

    parser.feed_eof()
    assert parser.response.body == "first second"


def test_body_is_empty_string_when_absent():
    res = parse(b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n", eof=False).response
    assert res.body == ""
    assert res.content == b""


def test_ignores_bytes_beyond_content_length():
    res = parse(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\nabcdef").response
    assert res.body == "abc"


def test_truncated_content_length_is_invalid():
    with pytest.raises(InvalidResponse, match=r"\(50 of 100 bytes\)"):
        parse(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\n" + b"x" * 50)


@pytest.mark.parametrize("value", [b"-1", b"abc", b"1.5", b""])
def test_rejects_invalid_content_length(value):
    with pytest.raises(InvalidResponse, match="invalid Content-Length"):
        parse(b"HTTP/1.1 200 OK\r\nContent-Length: " + value + b"\r\n\r\n")


def test_rejects_conflicting_content_lengths():
    with pytest.raises(InvalidResponse, match="conflicting Content-Length"):
        parse(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\nContent-Length: 4\r\n\r\nabcd")


def test_accepts_repeated_identical_content_lengths():
    res = parse(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\nContent-Length: 3\r\n\r\nabc", eof=False).response
    assert res.body == "abc"


def test_chunked_encoding_takes_precedence_over_content_length():
    res = parse(
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Length: 100\r\n"
        b"Transfer-Encoding: chunked\r\n"
        b"\r\n"
        b"3\r\nabc\r\n0\r\n\r\n",
        eof=False,
    ).response
    assert res.body == "abc"


def test_chunked_body_with_trailers():
    res = parse(
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: gzip, chunked\r\n\r\n"
        b"4\r\nWiki\r\n5\r\npedia\r\n0\r\nX-Checksum: 1\r\n\r\n",
        eof=False,
    ).response
    assert res.body == "Wikipedia"


def test_chunked_body_closed_early_is_invalid():
    with pytest.raises(InvalidResponse, match="before final chunk"):
        parse(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n4\r\nWi")


def test_chunked_body_closed_after_final_chunk_completes():
    parser = parse(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n4\r\nWiki\r\n0\r\n")

    assert parser.is_complete
    assert parser.response.body == "Wiki"


def test_chunked_body_closed_inside_trailer_section_completes():
    parser = parse(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n2\r\nok\r\n0\r\nExpires: ne")

    assert parser.is_complete
    assert parser.response.body == "ok"


def test_unparseable_chunk_size_is_invalid():
    with pytest.raises(InvalidResponse, match="invalid chunk size"):
        parse(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\nzz\r\n")


def test_skips_interim_responses():
    res = parse(
        b"HTTP/1.1 100 Continue\r\n\r\n"
        b"HTTP/1.1 102 Processing\r\nX-Interim: yes\r\n\r\n"
        b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nOK",
        eof=False,
    ).response

    assert res.status_line == "HTTP/1.1 200 OK"
    assert res.headers == ["Content-Length: 2"]
    assert res.body == "OK"


def test_only_interim_response_before_close_is_invalid():
    with pytest.raises(InvalidResponse, match="before final response"):
        parse(b"HTTP/1.1 100 Continue\r\n\r\n")


@pytest.mark.parametrize("status", [b"204 No Content", b"304 Not Modified"])
def test_bodyless_statuses_complete_after_headers(status):
    parser = parse(b"HTTP/1.1 " + status + b"\r\nContent-Length: 10\r\n\r\n", eof=False)
    assert parser.is_complete
    assert parser.response.body == ""


def test_rejects_oversized_header_section():
    parser = ResponseParser(max_header_size=64)
    with pytest.raises(InvalidResponse, match="header section too large"):
        parser.feed(b"HTTP/1.1 200 OK\r\nX-Long: " + b"a" * 100)


def test_decodes_body_with_declared_charset():
    body = "café".encode("latin-1")
    res = parse(
        b"HTTP/1.1 200 OK\r\nContent-Type: text/plain; charset=ISO-8859-1\r\n\r\n" + body
    ).response

    assert res.body == "café"
    assert res.content == body


def test_replaces_undecodable_bytes():
    res = parse(b"HTTP/1.1 200 OK\r\nContent-Type: text/plain; charset=bogus\r\n\r\n\xff").response
    assert res.body == "�"


def test_status_code_matches_status_line_token():
    res = parse(b"HTTP/1.0 404 Not Found Here\r\n\r\n").response
    assert res.status_code == 404
    assert res.version == "HTTP/1.0"
    assert res.reason == "Not Found Here"
    assert res.status_line.split()[1] == str(res.status_code)


@pytest.mark.parametrize("charset", ["base64", "rot13", "hex", "zlib"])
def test_falls_back_to_utf8_for_non_text_codecs(charset):
    res = parse(
        f"HTTP/1.1 200 OK\r\nContent-Type: text/plain; charset={charset}\r\nContent-Length: 2\r\n\r\nOK".encode()
    ).response

    assert res.body == "OK"


def test_ignores_parameters_that_merely_end_in_charset():
    res = parse(
        b"HTTP/1.1 200 OK\r\nContent-Type: text/plain; xcharset=latin-1\r\n\r\n" + "é".encode("utf-8")
    ).response

    assert res.body == "é"


def test_finds_charset_after_other_parameters():
    res = parse(
        b'HTTP/1.1 200 OK\r\nContent-Type: text/plain; format=flowed; charset="latin-1"\r\n\r\n\xe9'
    ).response

    assert res.body == "é"
