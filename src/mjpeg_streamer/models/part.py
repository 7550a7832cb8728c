"""
Encoded Part
============

A single encoded document ready to be framed into the multipart stream.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EncodedPart:
    """
    Encoded frame payload with its MIME type.

    Attributes:
        mime_type: Value written verbatim into the part's Content-Type
        payload: Encoded image bytes
    """

    mime_type: str
    payload: bytes

    @property
    def length(self) -> int:
        """Payload length in bytes."""
        return len(self.payload)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the payload."""
        return f"EncodedPart(mime_type={self.mime_type!r}, length={self.length})"
