"""
Data Models
===========

Models:
    - ContentKind: Animations a session can generate
    - EncodedPart: Encoded payload plus MIME type
    - SessionConfig: Immutable per-session configuration
    - SessionState: Session lifecycle states
    - SessionResult: Outcome of a finished session
"""

from mjpeg_streamer.models.content import ContentKind
from mjpeg_streamer.models.part import EncodedPart
from mjpeg_streamer.models.session import SessionConfig, SessionResult, SessionState

__all__ = [
    "ContentKind",
    "EncodedPart",
    "SessionConfig",
    "SessionResult",
    "SessionState",
]
