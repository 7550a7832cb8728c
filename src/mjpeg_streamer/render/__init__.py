"""
Render Module
=============

Frame generation and encoding.

Components:
    - Frame: Immutable indexed-color raster
    - generate: Deterministic test-pattern generator
    - FrameEncoder: Protocol for encoders
    - JpegEncoder, PngEncoder: OpenCV-backed encoders

Example:
    from mjpeg_streamer.models import ContentKind
    from mjpeg_streamer.render import JpegEncoder, generate

    frame = generate(ContentKind.SINE_WAVE_ANIMATION, 0, 400, 300)
    part = JpegEncoder(quality=75).encode(frame)
"""

from mjpeg_streamer.render.frame import Frame
from mjpeg_streamer.render.generator import generate
from mjpeg_streamer.render.encoder import (
    FrameEncoder,
    JpegEncoder,
    PngEncoder,
    create_encoder,
)


__all__ = [
    "Frame",
    "generate",
    "FrameEncoder",
    "JpegEncoder",
    "PngEncoder",
    "create_encoder",
]
