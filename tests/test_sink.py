"""
Output Sink Tests
=================
"""

import asyncio

import pytest

from mjpeg_streamer.errors import TransportFault
from mjpeg_streamer.stream.sink import AsgiSink


class RecordingSend:
    """ASGI send callable that records messages."""

    def __init__(self, fail_after: int = -1) -> None:
        self.messages = []
        self.fail_after = fail_after

    async def __call__(self, message: dict) -> None:
        if 0 <= self.fail_after <= len(self.messages):
            raise OSError("client went away")
        self.messages.append(message)

    @property
    def bodies(self):
        return [m["body"] for m in self.messages if m["type"] == "http.response.body"]


class TestAsgiSink:
    """Tests for the buffered ASGI sink."""

    def test_start_sends_headers(self):
        send = RecordingSend()
        sink = AsgiSink(send, headers={"Cache-Control": "no-cache"})

        asyncio.run(sink.start("multipart/x-mixed-replace; boundary=abcd4321"))

        start = send.messages[0]
        assert start["type"] == "http.response.start"
        assert start["status"] == 200
        assert (b"content-type", b"multipart/x-mixed-replace; boundary=abcd4321") in start["headers"]
        assert (b"cache-control", b"no-cache") in start["headers"]
        assert sink.started

    def test_writes_buffered_until_flush(self):
        send = RecordingSend()
        sink = AsgiSink(send, buffer_size=1024)

        async def _run():
            await sink.start("image/jpeg")
            await sink.write(b"abc")
            await sink.write(b"def")
            assert send.bodies == []
            await sink.flush()

        asyncio.run(_run())

        assert send.bodies == [b"abcdef"]
        assert send.messages[-1]["more_body"] is True
        assert sink.bytes_sent == 6

    def test_implicit_send_when_buffer_full(self):
        send = RecordingSend()
        sink = AsgiSink(send, buffer_size=4)

        async def _run():
            await sink.start("image/jpeg")
            await sink.write(b"abcdef")

        asyncio.run(_run())
        assert send.bodies == [b"abcdef"]

    def test_flush_empty_buffer_sends_nothing(self):
        send = RecordingSend()
        sink = AsgiSink(send)

        async def _run():
            await sink.start("image/jpeg")
            await sink.flush()

        asyncio.run(_run())
        assert send.bodies == []

    def test_close_ends_body(self):
        send = RecordingSend()
        sink = AsgiSink(send)

        async def _run():
            await sink.start("image/jpeg")
            await sink.write(b"tail")
            await sink.close()
            await sink.close()

        asyncio.run(_run())

        assert send.messages[-1] == {"type": "http.response.body", "body": b"tail", "more_body": False}
        assert len(send.bodies) == 1
        assert sink.closed

    def test_send_failure_is_transport_fault(self):
        send = RecordingSend(fail_after=1)
        sink = AsgiSink(send)

        async def _run():
            await sink.start("image/jpeg")
            await sink.write(b"abc")
            await sink.flush()

        with pytest.raises(TransportFault):
            asyncio.run(_run())
        assert sink.closed

    def test_write_after_close(self):
        send = RecordingSend()
        sink = AsgiSink(send)

        async def _run():
            await sink.start("image/jpeg")
            await sink.close()
            await sink.write(b"late")

        with pytest.raises(TransportFault):
            asyncio.run(_run())

    def test_write_before_start(self):
        with pytest.raises(RuntimeError):
            asyncio.run(AsgiSink(RecordingSend()).write(b"x"))
