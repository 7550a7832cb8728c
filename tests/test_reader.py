"""
Multipart Reader Tests
======================
"""

import pytest

from mjpeg_streamer.stream.reader import (
    MultipartParseError,
    MultipartReader,
    iter_parts,
    parse_boundary,
)


STREAM = (
    b"\r\n--frame\r\n"
    b"Content-Type: image/jpeg\r\nContent-Length: 3\r\n\r\nabc"
    b"\r\n--frame\r\n"
    b"Content-Type: image/png\r\nContent-Length: 5\r\n\r\n12345"
    b"\r\n--frame\r\n"
)


class TestParseBoundary:
    """Tests for content type parsing."""

    def test_plain(self):
        assert parse_boundary("multipart/x-mixed-replace; boundary=abcd4321") == "abcd4321"

    def test_quoted(self):
        assert parse_boundary('multipart/x-mixed-replace;boundary="a b"') == "a b"

    @pytest.mark.parametrize("content_type", ["image/jpeg", "multipart/mixed", ""])
    def test_invalid(self, content_type):
        with pytest.raises(MultipartParseError):
            parse_boundary(content_type)


class TestMultipartReader:
    """Tests for incremental parsing."""

    def test_whole_stream(self):
        parts = MultipartReader("frame").feed(STREAM)
        assert [(p.mime_type, p.payload) for p in parts] == [
            ("image/jpeg", b"abc"),
            ("image/png", b"12345"),
        ]

    def test_byte_by_byte(self):
        reader = MultipartReader("frame")
        parts = []
        for i in range(len(STREAM)):
            parts.extend(reader.feed(STREAM[i:i + 1]))

        assert [p.payload for p in parts] == [b"abc", b"12345"]
        assert reader.parts_read == 2

    def test_part_waits_for_trailer(self):
        reader = MultipartReader("frame")
        cut = STREAM.index(b"abc") + 3
        assert reader.feed(STREAM[:cut]) == []
        assert len(reader.feed(STREAM[cut:])) == 2

    def test_length_mismatch(self):
        bad = STREAM.replace(b"Content-Length: 3", b"Content-Length: 2")
        with pytest.raises(MultipartParseError):
            MultipartReader("frame").feed(bad)

    def test_without_content_length(self):
        data = b"--frame\r\nContent-Type: text/plain\r\n\r\nhello\r\n--frame\r\n"
        parts = MultipartReader("frame").feed(data)
        assert parts[0].payload == b"hello"

    def test_iter_parts(self):
        chunks = [STREAM[:10], STREAM[10:40], STREAM[40:]]
        assert len(list(iter_parts(chunks, "frame"))) == 2
