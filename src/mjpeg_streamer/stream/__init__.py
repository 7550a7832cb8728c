"""
Stream Module
=============

Multipart framing and per-connection streaming sessions.

This module provides the delivery layer of the streamer:
    - OutputSink: Protocol for byte sinks (AsgiSink, MemorySink)
    - MultipartStreamWriter: mixed-replace framing with explicit flush
    - StreamingSession: per-connection generate/encode/write loop
    - MultipartStreamResponse: binds a session to an HTTP response
    - MultipartReader: incremental parser for clients and tests

Example:
    from mjpeg_streamer.stream import MultipartStreamWriter, StreamingSession

    session = StreamingSession(
        config=config,
        encoder=JpegEncoder(),
        writer=MultipartStreamWriter("abcd4321"),
    )
    result = await session.run(sink)
"""

from mjpeg_streamer.stream.sink import AsgiSink, MemorySink, OutputSink, sink_supports_flush
from mjpeg_streamer.stream.writer import MultipartStreamWriter, validate_boundary
from mjpeg_streamer.stream.session import StreamingSession
from mjpeg_streamer.stream.reader import (
    MultipartParseError,
    MultipartReader,
    iter_parts,
    parse_boundary,
)
from mjpeg_streamer.stream.response import MultipartStreamResponse


__all__ = [
    "AsgiSink",
    "MemorySink",
    "OutputSink",
    "sink_supports_flush",
    "MultipartStreamWriter",
    "validate_boundary",
    "StreamingSession",
    "MultipartParseError",
    "MultipartReader",
    "iter_parts",
    "parse_boundary",
    "MultipartStreamResponse",
]
