"""
Content Kinds
=============

Enumerates the animations a streaming session can produce.
"""

from enum import Enum


class ContentKind(str, Enum):
    """
    Kind of content a session generates.

    Values:
        SOLID_COLOR_SEQUENCE: Uniform frames cycling red, yellow, green
        SINE_WAVE_ANIMATION: Travelling sine wave on a white background
    """

    SOLID_COLOR_SEQUENCE = "solid_color_sequence"
    SINE_WAVE_ANIMATION = "sine_wave_animation"
