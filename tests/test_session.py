"""
Streaming Session Tests
=======================
"""

import asyncio
import time

import cv2
import numpy as np
import pytest
from pydantic import ValidationError

from mjpeg_streamer.errors import EncodingFault
from mjpeg_streamer.models.content import ContentKind
from mjpeg_streamer.models.session import SessionConfig, SessionState
from mjpeg_streamer.render.generator import GREEN, RED, YELLOW, generate
from mjpeg_streamer.stream.session import StreamingSession
from mjpeg_streamer.stream.sink import MemorySink, sink_supports_flush
from mjpeg_streamer.stream.writer import MultipartStreamWriter

from conftest import BOUNDARY, FailingSink, parse_parts


def _session(config, encoder, name="test"):
    return StreamingSession(
        config=config,
        encoder=encoder,
        writer=MultipartStreamWriter(BOUNDARY),
        name=name,
    )


class FlakyEncoder:
    """Encoder that fails on the Nth call."""

    mime_type = "image/png"

    def __init__(self, inner, fail_on_call: int) -> None:
        self.inner = inner
        self.fail_on_call = fail_on_call
        self.calls = 0

    def encode(self, frame):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise EncodingFault("simulated encoder failure")
        return self.inner.encode(frame)


class TestSessionConfig:
    """Tests for the immutable session configuration."""

    def test_frame_limit(self, make_config):
        assert make_config(frame_count=3).frame_limit == 3
        assert make_config(frame_count=None, frame_cap=60).frame_limit == 60
        assert make_config(frame_count=10, frame_cap=4).frame_limit == 4
        assert make_config(frame_count=None, frame_cap=None).frame_limit is None

    def test_frozen(self, make_config):
        config = make_config()
        with pytest.raises(ValidationError):
            config.width = 100

    @pytest.mark.parametrize("field,value", [("width", 0), ("height", -1), ("pacing_interval_ms", -5)])
    def test_rejects_invalid(self, field, value):
        data = {
            "content_kind": ContentKind.SINE_WAVE_ANIMATION,
            "width": 10,
            "height": 10,
        }
        data[field] = value
        with pytest.raises(ValidationError):
            SessionConfig(**data)


class TestSessionCompletion:
    """Sessions that run to their frame limit."""

    def test_bounded_three_frames(self, make_config, encoder):
        sink = MemorySink()
        session = _session(make_config(frame_count=3), encoder)

        result = asyncio.run(session.run(sink))

        assert result.state == SessionState.COMPLETED
        assert result.completed
        assert result.frames_sent == 3
        assert session.state == SessionState.COMPLETED
        assert sink.flush_count == 3

        parts = parse_parts(sink.getvalue())
        assert len(parts) == 3

        colors = []
        for part in parts:
            bgr = cv2.imdecode(np.frombuffer(part.payload, np.uint8), cv2.IMREAD_COLOR)
            b, g, r = bgr[0, 0]
            colors.append((int(r), int(g), int(b)))
        assert colors == [RED, YELLOW, GREEN]

    def test_unbounded_capped_at_sixty(self, make_config, encoder):
        sink = MemorySink()
        config = make_config(
            content_kind=ContentKind.SINE_WAVE_ANIMATION,
            frame_count=None,
            frame_cap=60,
        )

        result = asyncio.run(_session(config, encoder).run(sink))

        assert result.state == SessionState.COMPLETED
        assert result.frames_sent == 60
        assert len(parse_parts(sink.getvalue())) == 60

    def test_frames_in_index_order(self, make_config, encoder):
        config = make_config(content_kind=ContentKind.SINE_WAVE_ANIMATION, frame_count=5)
        sink = MemorySink()

        asyncio.run(_session(config, encoder).run(sink))

        expected = [
            encoder.encode(generate(ContentKind.SINE_WAVE_ANIMATION, i, 16, 12)).payload
            for i in range(5)
        ]
        assert [p.payload for p in parse_parts(sink.getvalue())] == expected

    def test_zero_frames(self, make_config, encoder):
        sink = MemorySink()
        result = asyncio.run(_session(make_config(frame_count=0), encoder).run(sink))

        assert result.state == SessionState.COMPLETED
        assert result.frames_sent == 0
        assert sink.getvalue() == b"\r\n--abcd4321\r\n"

    def test_pacing_applied_between_frames(self, make_config, encoder):
        config = make_config(frame_count=2, pacing_interval_ms=200)

        start = time.monotonic()
        asyncio.run(_session(config, encoder).run(MemorySink()))
        elapsed = time.monotonic() - start

        # One wait between the two frames, none after the final frame
        assert 0.19 <= elapsed < 0.35

    def test_flush_unsupported_still_streams(self, make_config, encoder):
        sink = MemorySink(supports_flush=False)
        result = asyncio.run(_session(make_config(frame_count=3), encoder).run(sink))

        assert result.state == SessionState.COMPLETED
        assert len(parse_parts(sink.getvalue())) == 3

    def test_sink_without_flush_capability(self, make_config, encoder):
        class PlainSink:
            def __init__(self) -> None:
                self.data = bytearray()

            async def start(self, content_type: str) -> None:
                pass

            async def write(self, data: bytes) -> None:
                self.data.extend(data)

        sink = PlainSink()
        assert not sink_supports_flush(sink)

        result = asyncio.run(_session(make_config(frame_count=3), encoder).run(sink))

        assert result.state == SessionState.COMPLETED
        assert result.frames_sent == 3
        assert len(parse_parts(bytes(sink.data))) == 3

    def test_session_runs_once(self, make_config, encoder):
        session = _session(make_config(frame_count=1), encoder)
        asyncio.run(session.run(MemorySink()))

        with pytest.raises(RuntimeError):
            asyncio.run(session.run(MemorySink()))


class TestSessionAbort:
    """Sessions stopped by faults or cancellation."""

    def test_write_failure_on_second_part(self, make_config, encoder):
        # Write 1 is the lead-in, write 2 is part 1, write 3 is part 2
        sink = FailingSink(fail_on_write=3)
        session = _session(make_config(frame_count=5), encoder)

        result = asyncio.run(session.run(sink))

        assert result.state == SessionState.ABORTED
        assert result.frames_sent == 1
        assert sink.attempts == 3
        assert len(parse_parts(sink.getvalue())) == 1
        assert sink.flush_count == 1

    def test_encoding_failure(self, make_config, encoder):
        sink = MemorySink()
        flaky = FlakyEncoder(encoder, fail_on_call=2)

        result = asyncio.run(_session(make_config(frame_count=5), flaky).run(sink))

        assert result.state == SessionState.ABORTED
        assert result.frames_sent == 1
        assert "EncodingFault" in result.error
        assert flaky.calls == 2
        assert len(parse_parts(sink.getvalue())) == 1

    def test_cancel_during_pacing(self, make_config, encoder):
        config = make_config(frame_count=5, pacing_interval_ms=10000)
        sink = MemorySink()

        async def _run():
            cancel_event = asyncio.Event()
            task = asyncio.create_task(_session(config, encoder).run(sink, cancel_event))
            await asyncio.sleep(0.05)
            cancel_event.set()
            return await task

        start = time.monotonic()
        result = asyncio.run(_run())

        assert time.monotonic() - start < 2.0
        assert result.state == SessionState.ABORTED
        assert result.frames_sent == 1

    def test_cancelled_before_first_frame(self, make_config, encoder):
        sink = MemorySink()

        async def _run():
            cancel_event = asyncio.Event()
            cancel_event.set()
            return await _session(make_config(), encoder).run(sink, cancel_event)

        result = asyncio.run(_run())

        assert result.state == SessionState.ABORTED
        assert result.frames_sent == 0
        assert parse_parts(sink.getvalue()) == []

    def test_task_cancellation_propagates(self, make_config, encoder):
        config = make_config(frame_count=5, pacing_interval_ms=10000)
        session = _session(config, encoder)

        async def _run():
            task = asyncio.create_task(session.run(MemorySink()))
            await asyncio.sleep(0.05)
            task.cancel()
            await task

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(_run())

        assert session.state == SessionState.ABORTED


class TestSessionIsolation:
    """Concurrent sessions never share state."""

    def test_concurrent_sessions(self, make_config, encoder):
        solid = make_config(content_kind=ContentKind.SOLID_COLOR_SEQUENCE, frame_count=4, pacing_interval_ms=5)
        wave = make_config(
            content_kind=ContentKind.SINE_WAVE_ANIMATION,
            frame_count=None,
            frame_cap=7,
            pacing_interval_ms=3,
            width=20,
            height=10,
        )
        solid_sink, wave_sink = MemorySink(), MemorySink()

        async def _run():
            return await asyncio.gather(
                _session(solid, encoder, "solid").run(solid_sink),
                _session(wave, encoder, "wave").run(wave_sink),
            )

        solid_result, wave_result = asyncio.run(_run())

        assert solid_result.frames_sent == 4
        assert wave_result.frames_sent == 7

        expected_solid = [
            encoder.encode(generate(ContentKind.SOLID_COLOR_SEQUENCE, i, 16, 12)).payload
            for i in range(4)
        ]
        expected_wave = [
            encoder.encode(generate(ContentKind.SINE_WAVE_ANIMATION, i, 20, 10)).payload
            for i in range(7)
        ]
        assert [p.payload for p in parse_parts(solid_sink.getvalue())] == expected_solid
        assert [p.payload for p in parse_parts(wave_sink.getvalue())] == expected_wave
