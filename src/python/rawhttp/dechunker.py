"""Decoder that turns a body sent with chunked transfer encoding back into
a plain byte stream.
"""

from enum import Enum

from .errors import InvalidResponse

__all__ = ("ChunkedDecoder",)

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


class ChunkedDecoderState(Enum):
    SIZE = "SIZE"
    DATA = "DATA"
    DATA_ENDING = "DATA_ENDING"
    TRAILER = "TRAILER"
    DONE = "DONE"


class ChunkedDecoder:
    """Incrementally merges the chunks of a response body.

    Bytes may be fed in arbitrary slices; the decoder keeps whatever it
    cannot consume yet until more data arrives. Chunk extensions and trailer
    fields are skipped.
    """

    def __init__(self, max_line_length: int = 16384):
        """Constructor.

        Parameters:
            max_line_length: the longest chunk-size or trailer line accepted
                before the body is rejected
        """
        self._max_line_length = max_line_length
        self._buffer = bytearray()
        self._remaining = 0
        self._state = ChunkedDecoderState.SIZE

    @property
    def done(self) -> bool:
        """Whether the terminating zero-length chunk and trailers were seen."""
        return self._state is ChunkedDecoderState.DONE

    @property
    def last_chunk_seen(self) -> bool:
        """Whether the zero-length chunk arrived; trailers may still follow."""
        return self._state in (ChunkedDecoderState.TRAILER, ChunkedDecoderState.DONE)

    def feed(self, data: bytes) -> bytes:
        """Feeds some bytes into the decoder.

        Parameters:
            data: the raw bytes received from the wire

        Returns:
            the body bytes decoded from the data seen so far

        Raises:
            InvalidResponse: when the data violates the chunked framing
        """
        if self.done:
            return b""

        self._buffer += data
        result = bytearray()

        while not self.done:
            if self._state is ChunkedDecoderState.SIZE:
                line = self._take_line()
                if line is None:
                    break
                size = self._parse_size(line)
                if size == 0:
                    self._state = ChunkedDecoderState.TRAILER
                else:
                    self._remaining = size
                    self._state = ChunkedDecoderState.DATA

            elif self._state is ChunkedDecoderState.DATA:
                if not self._buffer:
                    break
                taken = self._buffer[:self._remaining]
                del self._buffer[:self._remaining]
                result += taken
                self._remaining -= len(taken)
                if self._remaining == 0:
                    self._state = ChunkedDecoderState.DATA_ENDING

            elif self._state is ChunkedDecoderState.DATA_ENDING:
                if len(self._buffer) < 2:
                    break
                if self._buffer[:2] != b"\r\n":
                    raise InvalidResponse("missing CRLF after chunk data")
                del self._buffer[:2]
                self._state = ChunkedDecoderState.SIZE

            elif self._state is ChunkedDecoderState.TRAILER:
                line = self._take_line()
                if line is None:
                    break
                if not line:
                    self._state = ChunkedDecoderState.DONE

        return bytes(result)

    def _take_line(self) -> bytes | None:
        end = self._buffer.find(b"\r\n")
        if end < 0:
            if len(self._buffer) > self._max_line_length:
                raise InvalidResponse("chunk line too long")
            return None

        line = bytes(self._buffer[:end])
        del self._buffer[:end + 2]
        return line

    @staticmethod
    def _parse_size(line: bytes) -> int:
        # chunk-ext after ';' is ignored
        size_field = line.split(b";", 1)[0].strip()
        if not size_field or any(byte not in _HEX_DIGITS for byte in size_field):
            raise InvalidResponse(f"invalid chunk size: {line!r}")
        return int(size_field, 16)
