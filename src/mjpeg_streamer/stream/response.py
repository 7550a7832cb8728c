"""
Multipart Stream Response
=========================

Starlette response that runs a StreamingSession on its connection.

The response owns two tasks for the lifetime of the request:
    - the session loop, writing through an AsgiSink
    - a listener that sets the session's cancel event on http.disconnect

Both are torn down when the session ends, so a disconnected client
never leaves a task behind.
"""

import asyncio
import logging
from typing import Dict, Optional

from starlette.background import BackgroundTask
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from mjpeg_streamer.errors import TransportFault
from mjpeg_streamer.models.session import SessionResult
from mjpeg_streamer.stream.session import StreamingSession
from mjpeg_streamer.stream.sink import AsgiSink


logger = logging.getLogger(__name__)


NO_CACHE_HEADERS = {
    "cache-control": "no-cache, no-store, must-revalidate",
    "pragma": "no-cache",
}


class MultipartStreamResponse(Response):
    """
    Streams a session's parts as the response body.

    Attributes:
        session: Session driving this response
        result: Session outcome, set once the response finishes
    """

    def __init__(
        self,
        session: StreamingSession,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        buffer_size: int = 4096,
        background: Optional[BackgroundTask] = None,
    ) -> None:
        self.session = session
        self.status_code = status_code
        self.media_type = session.writer.content_type
        self.background = background
        self.buffer_size = buffer_size
        self.result: Optional[SessionResult] = None

        self._extra_headers = {**NO_CACHE_HEADERS, **(headers or {})}
        self.init_headers(self._extra_headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sink = AsgiSink(
            send,
            status_code=self.status_code,
            headers=self._extra_headers,
            buffer_size=self.buffer_size,
        )
        cancel_event = asyncio.Event()

        session_task = asyncio.create_task(
            self.session.run(sink, cancel_event=cancel_event),
            name=f"{self.session.name}:stream",
        )
        listener_task = asyncio.create_task(
            self._listen_for_disconnect(receive, cancel_event),
            name=f"{self.session.name}:disconnect",
        )

        try:
            self.result = await session_task
        finally:
            listener_task.cancel()
            try:
                await listener_task
            except asyncio.CancelledError:
                pass

        # Aborted by a transport fault or disconnect: nothing more may be written
        if sink.started and not sink.closed and not cancel_event.is_set():
            try:
                await sink.close()
            except TransportFault as e:
                logger.info(f"{self.session.name} could not close response: {e}")

        if self.background is not None:
            await self.background()

    @staticmethod
    async def _listen_for_disconnect(receive: Receive, cancel_event: asyncio.Event) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                cancel_event.set()
                break
