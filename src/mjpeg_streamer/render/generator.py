"""
Frame Generator
===============

Deterministic test-pattern frames for the streaming endpoints.

Content kinds:
    - SOLID_COLOR_SEQUENCE: uniform frames cycling red → yellow → green,
      selected by the sequence position
    - SINE_WAVE_ANIMATION: one blue pixel per column tracing
      y = a*sin(b*x + c) + d on a white background, where
      a = height/3, b = FREQUENCY, c = frame_index/PHASE_DIVISOR, d = height/2

Design Rules:
    - Pure functions, no hidden state between calls
    - Fresh read-only buffer per call
    - Out-of-range rows are clamped into the frame
"""

import numpy as np

from mjpeg_streamer.errors import GenerationFault
from mjpeg_streamer.models.content import ContentKind
from mjpeg_streamer.render.frame import RGB, Frame


# =============================================================================
# Palette
# =============================================================================

WHITE: RGB = (255, 255, 255)
BLUE: RGB = (0, 0, 255)
RED: RGB = (255, 0, 0)
YELLOW: RGB = (255, 255, 0)
GREEN: RGB = (0, 255, 0)

SOLID_COLORS = (RED, YELLOW, GREEN)

WAVE_PALETTE = (WHITE, BLUE)
BACKGROUND_INDEX = 0
FOREGROUND_INDEX = 1


# =============================================================================
# Wave Parameters
# =============================================================================

# Period is 2*pi / FREQUENCY pixels
FREQUENCY = 0.01
PHASE_DIVISOR = 6.0


def generate(
    content_kind: ContentKind,
    frame_index: int,
    width: int,
    height: int,
) -> Frame:
    """
    Generate one frame of the requested animation.

    Args:
        content_kind: Animation to render
        frame_index: Position in the sequence (time index)
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        Fresh immutable Frame of exactly width x height pixels

    Raises:
        GenerationFault: If the inputs are outside the generator's domain
    """
    if width < 1 or height < 1:
        raise GenerationFault(f"Invalid frame size: {width}x{height}")
    if frame_index < 0:
        raise GenerationFault(f"Invalid frame index: {frame_index}")

    if content_kind == ContentKind.SOLID_COLOR_SEQUENCE:
        return solid_color_frame(frame_index, width, height)
    elif content_kind == ContentKind.SINE_WAVE_ANIMATION:
        return sine_wave_frame(frame_index, width, height)

    raise GenerationFault(f"Unknown content kind: {content_kind!r}")


def solid_color_frame(position: int, width: int, height: int) -> Frame:
    """Uniform frame colored by the sequence position."""
    return uniform_frame(SOLID_COLORS[position % len(SOLID_COLORS)], width, height)


def uniform_frame(color: RGB, width: int, height: int) -> Frame:
    """Frame filled with a single color."""
    pixels = np.zeros((height, width), dtype=np.uint8)
    pixels.setflags(write=False)
    return Frame(pixels=pixels, palette=(color,))


def sine_wave_frame(frame_index: int, width: int, height: int) -> Frame:
    """Sine wave frame for the given time index."""
    pixels = np.full((height, width), BACKGROUND_INDEX, dtype=np.uint8)
    columns = np.arange(width)
    pixels[wave_rows(frame_index, width, height), columns] = FOREGROUND_INDEX
    pixels.setflags(write=False)
    return Frame(pixels=pixels, palette=WAVE_PALETTE)


def wave_rows(frame_index: int, width: int, height: int) -> np.ndarray:
    """
    Row of the wave pixel for every column.

    Returns:
        Integer rows, shape (width,), each within [0, height)
    """
    amplitude = height / 3.0
    phase = frame_index / PHASE_DIVISOR
    vertical_center = height / 2.0

    x = np.arange(width, dtype=np.float64)
    y = amplitude * np.sin(x * FREQUENCY + phase) + vertical_center

    return np.clip(np.rint(y), 0, height - 1).astype(np.intp)
