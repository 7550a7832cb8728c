"""
Output Sinks
============

Byte sinks a streaming session writes into.

A sink receives the transport content type once, then raw bytes.
Flushing is an optional capability: a sink declares it through
`supports_flush`, and callers check it with `sink_supports_flush`.

Sinks:
    - AsgiSink: buffered writer over an ASGI `send` callable
    - MemorySink: in-memory sink for tools and tests
"""

from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from mjpeg_streamer.errors import TransportFault


class OutputSink(Protocol):
    """
    Protocol for output sinks.

    Attributes:
        supports_flush: Whether flush() actually pushes buffered bytes
    """

    supports_flush: bool

    async def start(self, content_type: str) -> None:
        """Declare the transport content type. Called once, before any write."""
        ...

    async def write(self, data: bytes) -> None:
        """Write bytes. Raises TransportFault if the client is gone."""
        ...

    async def flush(self) -> None:
        """Push buffered bytes to the client."""
        ...


def sink_supports_flush(sink: OutputSink) -> bool:
    """
    Whether the sink can push buffered bytes on demand.

    Sinks that do not declare `supports_flush` are treated as unflushable.
    """
    return bool(getattr(sink, "supports_flush", False))


class AsgiSink:
    """
    Buffered sink over an ASGI `send` callable.

    Writes accumulate in a local buffer which is sent as one
    `http.response.body` message on flush(), or as soon as it
    grows past `buffer_size`.

    Attributes:
        status_code: HTTP status sent with the response start
        buffer_size: Bytes buffered before an implicit send
        bytes_sent: Total body bytes handed to the server

    Example:
        sink = AsgiSink(send, headers={"cache-control": "no-cache"})
        await sink.start("image/jpeg")
        await sink.write(payload)
        await sink.flush()
        await sink.close()
    """

    supports_flush = True

    def __init__(
        self,
        send: Callable[[dict], Awaitable[None]],
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        buffer_size: int = 4096,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        self.status_code = status_code
        self.buffer_size = buffer_size
        self.bytes_sent: int = 0

        self._send = send
        self._headers = dict(headers or {})
        self._buffer = bytearray()
        self._started: bool = False
        self._closed: bool = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self, content_type: str) -> None:
        if self._started:
            raise RuntimeError("Response already started")

        raw_headers: List[Tuple[bytes, bytes]] = [
            (b"content-type", content_type.encode("latin-1")),
        ]
        for name, value in self._headers.items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        await self._safe_send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": raw_headers,
        })
        self._started = True

    async def write(self, data: bytes) -> None:
        if not self._started:
            raise RuntimeError("write() called before start()")
        if self._closed:
            raise TransportFault("Write after response was closed")

        self._buffer.extend(data)
        if len(self._buffer) >= self.buffer_size:
            await self._send_buffer()

    async def flush(self) -> None:
        if self._buffer:
            await self._send_buffer()

    async def close(self) -> None:
        """Send any buffered bytes and end the response body."""
        if self._closed:
            return
        if not self._started:
            raise RuntimeError("close() called before start()")

        body = bytes(self._buffer)
        self._buffer.clear()
        self._closed = True
        await self._safe_send({
            "type": "http.response.body",
            "body": body,
            "more_body": False,
        })
        self.bytes_sent += len(body)

    async def _send_buffer(self) -> None:
        body = bytes(self._buffer)
        self._buffer.clear()
        await self._safe_send({
            "type": "http.response.body",
            "body": body,
            "more_body": True,
        })
        self.bytes_sent += len(body)

    async def _safe_send(self, message: dict) -> None:
        try:
            await self._send(message)
        except (OSError, RuntimeError) as e:
            self._closed = True
            raise TransportFault(f"Send failed: {e}") from e


class MemorySink:
    """
    In-memory sink that records everything written to it.

    Attributes:
        content_type: Content type declared by start()
        data: All bytes written so far
        flush_count: Number of flush() calls
        write_count: Number of write() calls
    """

    def __init__(self, supports_flush: bool = True) -> None:
        self.supports_flush = supports_flush
        self.content_type: Optional[str] = None
        self.data = bytearray()
        self.flush_count: int = 0
        self.write_count: int = 0

    async def start(self, content_type: str) -> None:
        self.content_type = content_type

    async def write(self, data: bytes) -> None:
        self.write_count += 1
        self.data.extend(data)

    async def flush(self) -> None:
        self.flush_count += 1

    def getvalue(self) -> bytes:
        return bytes(self.data)
