"""
Streaming Session
=================

Drives one client connection from first frame to termination.

Loop:
    generate → encode → write_part → flush → wait pacing → next index

States:
    STARTING   begin_stream() on the sink
    STREAMING  emitting parts
    COMPLETED  finite frame limit reached, run() returns normally
    ABORTED    fault or client disconnect, no further writes

Design Rules:
    - One session per connection, run inside that connection's task
    - Configuration is immutable; the frame index is the only mutable state
    - Faults abort this session only and are never raised to the server
    - No retry: a reconnecting client starts a fresh session
"""

import asyncio
import logging
import time
from typing import Optional

from mjpeg_streamer.errors import EncodingFault, GenerationFault, TransportFault
from mjpeg_streamer.models.session import SessionConfig, SessionResult, SessionState
from mjpeg_streamer.render.encoder import FrameEncoder
from mjpeg_streamer.render.generator import generate
from mjpeg_streamer.stream.sink import OutputSink
from mjpeg_streamer.stream.writer import MultipartStreamWriter


logger = logging.getLogger(__name__)


class StreamingSession:
    """
    Streams generated frames to a single output sink.

    Attributes:
        config: Immutable session configuration
        state: Current lifecycle state
        frame_index: Index of the next frame to emit
        frames_sent: Parts fully written and flushed

    Example:
        session = StreamingSession(
            config=SessionConfig(
                content_kind=ContentKind.SOLID_COLOR_SEQUENCE,
                width=200,
                height=200,
                frame_count=3,
                pacing_interval_ms=500,
            ),
            encoder=JpegEncoder(),
            writer=MultipartStreamWriter("abcd4321"),
        )
        result = await session.run(sink)
    """

    def __init__(
        self,
        config: SessionConfig,
        encoder: FrameEncoder,
        writer: MultipartStreamWriter,
        name: str = "session",
    ) -> None:
        self.config = config
        self.encoder = encoder
        self.writer = writer
        self.name = name

        self.state: SessionState = SessionState.STARTING
        self.frame_index: int = 0
        self.frames_sent: int = 0

    def has_next(self) -> bool:
        """Whether another frame is due."""
        limit = self.config.frame_limit
        return limit is None or self.frame_index < limit

    async def run(
        self,
        sink: OutputSink,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SessionResult:
        """
        Run the session until its frame limit, a fault, or cancellation.

        Args:
            sink: Output sink of this connection
            cancel_event: Set when the client disconnects or the server
                stops; observed at every write and wait boundary

        Returns:
            SessionResult with the terminal state and frames sent
        """
        if self.state != SessionState.STARTING:
            raise RuntimeError(f"{self.name} already ran (state={self.state.value})")

        cancel_event = cancel_event or asyncio.Event()
        start_time = time.monotonic()

        logger.info(
            f"{self.name} starting: kind={self.config.content_kind.value}, "
            f"size={self.config.width}x{self.config.height}, "
            f"limit={self.config.frame_limit}, "
            f"interval={self.config.pacing_interval_ms}ms"
        )

        try:
            await self.writer.begin_stream(sink)
            self.state = SessionState.STREAMING

            while self.has_next():
                if cancel_event.is_set():
                    raise TransportFault("Client connection closed")

                await self._emit_frame(sink)

                if self.has_next() and await self._pace(cancel_event):
                    raise TransportFault("Client connection closed during pacing")

        except TransportFault as e:
            return self._abort(str(e), logging.INFO)
        except (GenerationFault, EncodingFault) as e:
            return self._abort(f"{type(e).__name__}: {e}", logging.ERROR)
        except asyncio.CancelledError:
            self._abort("Session task cancelled", logging.INFO)
            raise

        self.state = SessionState.COMPLETED
        logger.info(
            f"{self.name} completed: {self.frames_sent} frames "
            f"in {time.monotonic() - start_time:.2f}s"
        )
        return SessionResult(state=self.state, frames_sent=self.frames_sent)

    async def _emit_frame(self, sink: OutputSink) -> None:
        frame = generate(
            self.config.content_kind,
            self.frame_index,
            self.config.width,
            self.config.height,
        )
        part = self.encoder.encode(frame)

        await self.writer.write_part(sink, part)
        await self.writer.flush(sink)

        self.frames_sent += 1
        self.frame_index += 1

    async def _pace(self, cancel_event: asyncio.Event) -> bool:
        """
        Wait the pacing interval.

        Returns:
            True if cancellation was signalled during the wait
        """
        try:
            await asyncio.wait_for(
                cancel_event.wait(),
                timeout=self.config.pacing_interval,
            )
            return True
        except asyncio.TimeoutError:
            return False

    def _abort(self, reason: str, level: int) -> SessionResult:
        self.state = SessionState.ABORTED
        logger.log(
            level,
            f"{self.name} aborted after {self.frames_sent} frames: {reason}",
        )
        return SessionResult(
            state=self.state,
            frames_sent=self.frames_sent,
            error=reason,
        )
