"""
Test Configuration
==================

Pytest fixtures and test helpers for the MJPEG streamer.
"""

from typing import List, Optional

import pytest

from mjpeg_streamer.errors import TransportFault
from mjpeg_streamer.models.content import ContentKind
from mjpeg_streamer.models.part import EncodedPart
from mjpeg_streamer.models.session import SessionConfig
from mjpeg_streamer.render.encoder import PngEncoder
from mjpeg_streamer.stream.reader import MultipartReader
from mjpeg_streamer.stream.sink import MemorySink
from mjpeg_streamer.stream.writer import MultipartStreamWriter


BOUNDARY = "abcd4321"


class FailingSink(MemorySink):
    """MemorySink that rejects the Nth write and every write after it."""

    def __init__(self, fail_on_write: int, supports_flush: bool = True) -> None:
        super().__init__(supports_flush=supports_flush)
        self.fail_on_write = fail_on_write
        self.attempts: int = 0

    async def write(self, data: bytes) -> None:
        self.attempts += 1
        if self.attempts >= self.fail_on_write:
            raise TransportFault("Connection reset by peer")
        await super().write(data)


def parse_parts(data: bytes, boundary: str = BOUNDARY) -> List[EncodedPart]:
    """Parse a complete multipart body."""
    return MultipartReader(boundary).feed(data)


@pytest.fixture
def writer():
    """Provide a writer with the default boundary."""
    return MultipartStreamWriter(BOUNDARY)


@pytest.fixture
def encoder():
    """Provide a lossless encoder so decoded colors are exact."""
    return PngEncoder(compression=1)


@pytest.fixture
def sample_part():
    """Provide a small encoded part."""
    return EncodedPart(mime_type="image/jpeg", payload=b"\xff\xd8fake-jpeg\xff\xd9")


@pytest.fixture
def make_config():
    """Factory for small, fast session configurations."""

    def _make(
        content_kind: ContentKind = ContentKind.SOLID_COLOR_SEQUENCE,
        frame_count: Optional[int] = 3,
        frame_cap: Optional[int] = None,
        pacing_interval_ms: int = 0,
        width: int = 16,
        height: int = 12,
    ) -> SessionConfig:
        return SessionConfig(
            content_kind=content_kind,
            width=width,
            height=height,
            frame_count=frame_count,
            frame_cap=frame_cap,
            pacing_interval_ms=pacing_interval_ms,
        )

    return _make
