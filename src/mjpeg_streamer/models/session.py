"""
Session Models
==============

Per-connection configuration and outcome of a streaming session.

Lifecycle:
    STARTING → STREAMING → COMPLETED
                         ↘ ABORTED

A SessionConfig is immutable and copied into each session at start,
so concurrently running sessions never share mutable state.

Example:
    from mjpeg_streamer.models.session import SessionConfig
    from mjpeg_streamer.models.content import ContentKind

    config = SessionConfig(
        content_kind=ContentKind.SINE_WAVE_ANIMATION,
        width=400,
        height=300,
        frame_cap=60,
        pacing_interval_ms=50,
    )
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mjpeg_streamer.models.content import ContentKind


class SessionState(str, Enum):
    """
    Streaming session states.

    Attributes:
        STARTING: Validating and declaring the stream
        STREAMING: Emitting parts
        COMPLETED: Finite frame count exhausted
        ABORTED: Stopped by a fault or client disconnect
    """

    STARTING = "STARTING"
    STREAMING = "STREAMING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


class SessionConfig(BaseModel):
    """
    Immutable configuration of one streaming session.

    Attributes:
        content_kind: Which animation to generate
        width: Frame width in pixels
        height: Frame height in pixels
        frame_count: Frames to emit, None for an unbounded stream
        frame_cap: Practical upper bound applied to any stream
        pacing_interval_ms: Delay between successive frames
    """

    model_config = ConfigDict(frozen=True)

    content_kind: ContentKind = Field(..., description="Animation to generate")

    width: int = Field(..., ge=1, le=4096, description="Frame width in pixels")

    height: int = Field(..., ge=1, le=4096, description="Frame height in pixels")

    frame_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of frames to emit (None = unbounded)",
    )

    frame_cap: Optional[int] = Field(
        default=None,
        ge=0,
        description="Hard cap on emitted frames (None = no cap)",
    )

    pacing_interval_ms: int = Field(
        default=50,
        ge=0,
        description="Delay between frames in milliseconds",
    )

    @property
    def frame_limit(self) -> Optional[int]:
        """Effective number of frames to emit, None if truly unbounded."""
        limits = [n for n in (self.frame_count, self.frame_cap) if n is not None]
        return min(limits) if limits else None

    @property
    def pacing_interval(self) -> float:
        """Pacing interval in seconds."""
        return self.pacing_interval_ms / 1000.0


@dataclass(frozen=True, slots=True)
class SessionResult:
    """
    Outcome of a finished session.

    Attributes:
        state: Terminal state (COMPLETED or ABORTED)
        frames_sent: Parts fully written and flushed
        error: Description of the fault that aborted the session
    """

    state: SessionState
    frames_sent: int
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.state == SessionState.COMPLETED
