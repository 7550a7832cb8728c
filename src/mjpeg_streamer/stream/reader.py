"""
Multipart Stream Reader
=======================

Incremental parser for the mixed-replace wire format.

Used by the probe and viewer clients and by tests to check what
actually went over the wire. A part is only returned once its
trailing delimiter has arrived, and its Content-Length must match
the bytes that precede that delimiter.

Example:
    reader = MultipartReader(parse_boundary(response.headers["content-type"]))
    for chunk in response.iter_content(chunk_size=4096):
        for part in reader.feed(chunk):
            show(part.payload)
"""

import logging
from typing import Dict, Iterable, Iterator, List

from mjpeg_streamer.models.part import EncodedPart


logger = logging.getLogger(__name__)


class MultipartParseError(ValueError):
    """Raised when the byte stream violates the wire format."""
    pass


def parse_boundary(content_type: str) -> str:
    """
    Extract the boundary parameter from a multipart content type.

    Raises:
        MultipartParseError: If the type is not multipart or has no boundary
    """
    media_type, _, params = content_type.partition(";")
    if not media_type.strip().lower().startswith("multipart/"):
        raise MultipartParseError(f"Not a multipart content type: {content_type!r}")

    for param in params.split(";"):
        key, _, value = param.strip().partition("=")
        if key.lower() == "boundary" and value:
            return value.strip('"')

    raise MultipartParseError(f"No boundary in content type: {content_type!r}")


class MultipartReader:
    """
    Incremental multipart parser.

    Attributes:
        boundary: Boundary token of the stream
        parts_read: Number of complete parts returned so far
    """

    def __init__(self, boundary: str, max_header_size: int = 16384) -> None:
        self.boundary = boundary
        self.max_header_size = max_header_size
        self.parts_read: int = 0

        self._marker = f"--{boundary}\r\n".encode("ascii")
        self._delimiter = b"\r\n" + self._marker
        self._buffer = bytearray()
        self._in_part: bool = False

    @property
    def buffered(self) -> int:
        """Bytes received but not yet consumed."""
        return len(self._buffer)

    def feed(self, data: bytes) -> List[EncodedPart]:
        """
        Consume bytes and return every part they complete.

        Raises:
            MultipartParseError: On malformed headers or length mismatch
        """
        self._buffer.extend(data)
        parts: List[EncodedPart] = []

        if not self._in_part and not self._skip_preamble():
            return parts

        while True:
            part = self._next_part()
            if part is None:
                break
            parts.append(part)
            self.parts_read += 1

        return parts

    def _skip_preamble(self) -> bool:
        index = self._buffer.find(self._marker)
        if index < 0:
            # Keep a tail long enough to hold a split marker
            keep = len(self._marker) - 1
            if len(self._buffer) > keep:
                del self._buffer[:-keep]
            return False

        del self._buffer[:index + len(self._marker)]
        self._in_part = True
        return True

    def _next_part(self):
        header_end = self._buffer.find(b"\r\n\r\n")
        if header_end < 0:
            if len(self._buffer) > self.max_header_size:
                raise MultipartParseError("Part headers exceed maximum size")
            return None

        headers = self._parse_headers(bytes(self._buffer[:header_end]))
        body_start = header_end + 4

        if "content-length" in headers:
            try:
                length = int(headers["content-length"])
            except ValueError:
                raise MultipartParseError(
                    f"Invalid Content-Length: {headers['content-length']!r}"
                )
            body_end = body_start + length
            trailer_end = body_end + len(self._delimiter)
            if len(self._buffer) < trailer_end:
                return None
            if self._buffer[body_end:trailer_end] != self._delimiter:
                raise MultipartParseError(
                    f"Content-Length {length} does not match part body "
                    f"(part {self.parts_read + 1})"
                )
        else:
            body_end = self._buffer.find(self._delimiter, body_start)
            if body_end < 0:
                return None
            trailer_end = body_end + len(self._delimiter)

        payload = bytes(self._buffer[body_start:body_end])
        del self._buffer[:trailer_end]

        return EncodedPart(
            mime_type=headers.get("content-type", "application/octet-stream"),
            payload=payload,
        )

    @staticmethod
    def _parse_headers(raw: bytes) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for line in raw.decode("latin-1").split("\r\n"):
            if not line:
                continue
            name, sep, value = line.partition(":")
            if not sep:
                raise MultipartParseError(f"Malformed part header: {line!r}")
            headers[name.strip().lower()] = value.strip()
        return headers


def iter_parts(chunks: Iterable[bytes], boundary: str) -> Iterator[EncodedPart]:
    """Yield parts from an iterable of raw byte chunks."""
    reader = MultipartReader(boundary)
    for chunk in chunks:
        yield from reader.feed(chunk)

    if reader.buffered:
        logger.debug(f"Stream ended with {reader.buffered} unparsed bytes")
