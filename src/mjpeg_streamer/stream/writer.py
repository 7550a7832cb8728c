"""
Multipart Stream Writer
=======================

Frames encoded parts into a multipart/x-mixed-replace byte stream.

Wire format (per part):

    \\r\\n--<boundary>\\r\\n              (lead-in, or previous part's trailer)
    Content-Type: <mime>\\r\\n
    Content-Length: <decimal>\\r\\n
    \\r\\n
    <payload>
    \\r\\n--<boundary>\\r\\n              (opens the next part)

Design Rules:
    - Boundary is fixed for the writer's lifetime
    - A part is written with a single sink write, headers and payload together
    - Flushing is explicit; sinks without flush degrade to their own buffering
    - Payloads containing the delimiter are rejected, never escaped
"""

import logging
import re

from mjpeg_streamer.errors import EncodingFault, TransportFault
from mjpeg_streamer.models.part import EncodedPart
from mjpeg_streamer.stream.sink import OutputSink, sink_supports_flush


logger = logging.getLogger(__name__)


# RFC 2046 boundary: 1-70 characters, no trailing space
_BOUNDARY_RE = re.compile(r"^[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]$")

# Characters allowed in a boundary that are not HTTP token characters
_NON_TOKEN_RE = re.compile(r"[()/:=?, ]")


def validate_boundary(boundary: str) -> str:
    """
    Check a boundary token against RFC 2046.

    Returns:
        The boundary unchanged

    Raises:
        ValueError: If the token is not a valid boundary
    """
    if not _BOUNDARY_RE.match(boundary):
        raise ValueError(f"Invalid multipart boundary: {boundary!r}")
    return boundary


class MultipartStreamWriter:
    """
    Serializes EncodedParts into the mixed-replace wire format.

    Attributes:
        boundary: Boundary token shared by every part
        content_type: Transport content type declared on begin_stream()
        parts_written: Number of parts written so far

    Example:
        writer = MultipartStreamWriter("abcd4321")
        await writer.begin_stream(sink)
        await writer.write_part(sink, part)
        await writer.flush(sink)
    """

    def __init__(self, boundary: str) -> None:
        self.boundary = validate_boundary(boundary)
        self.parts_written: int = 0

        self._delimiter = f"\r\n--{boundary}\r\n".encode("ascii")
        self._marker = f"--{boundary}".encode("ascii")
        self._flush_warned: bool = False

    @property
    def content_type(self) -> str:
        # Boundaries outside the token charset must be quoted in the header
        if _NON_TOKEN_RE.search(self.boundary):
            return f'multipart/x-mixed-replace; boundary="{self.boundary}"'
        return f"multipart/x-mixed-replace; boundary={self.boundary}"

    @property
    def delimiter(self) -> bytes:
        """Delimiter line that precedes every part's headers."""
        return self._delimiter

    async def begin_stream(self, sink: OutputSink) -> None:
        """
        Declare the mixed-replace content type and write the lead-in.

        Raises:
            TransportFault: If the sink rejects the write
        """
        await self._call(sink.start(self.content_type))
        await self._call(sink.write(self._delimiter))

    async def write_part(self, sink: OutputSink, part: EncodedPart) -> None:
        """
        Write one part followed by the delimiter opening the next.

        Args:
            sink: Destination sink (begin_stream must have been called)
            part: Encoded payload and MIME type

        Raises:
            EncodingFault: If the payload contains the boundary delimiter
            TransportFault: If the sink rejects the write
        """
        if self._marker in part.payload:
            raise EncodingFault(
                f"Payload of {part} contains the boundary delimiter {self.boundary!r}"
            )

        await self._call(sink.write(self.encode_part(part)))
        self.parts_written += 1

    def encode_part(self, part: EncodedPart) -> bytes:
        """Serialized headers, payload and trailing delimiter of a part."""
        headers = (
            f"Content-Type: {part.mime_type}\r\n"
            f"Content-Length: {part.length}\r\n"
            f"\r\n"
        ).encode("latin-1")
        return b"".join((headers, part.payload, self._delimiter))

    async def flush(self, sink: OutputSink) -> None:
        """
        Push buffered bytes to the client.

        Sinks without flush support are left to their own buffering;
        this is logged once per writer and is not an error.

        Raises:
            TransportFault: If the sink rejects the flush
        """
        if not sink_supports_flush(sink):
            if not self._flush_warned:
                logger.warning("Output sink does not support flushing, frames may be delayed")
                self._flush_warned = True
            return

        await self._call(sink.flush())

    @staticmethod
    async def _call(operation) -> None:
        try:
            await operation
        except ConnectionError as e:
            raise TransportFault(f"Connection lost: {e}") from e
        except OSError as e:
            raise TransportFault(f"Write failed: {e}") from e
