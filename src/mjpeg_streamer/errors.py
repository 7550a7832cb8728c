"""
Streaming Errors
================

Fault taxonomy for the streaming pipeline.

Each fault aborts only the session that raised it. None of them is
allowed to escape into the hosting server.

    - GenerationFault: frame generator rejected its inputs (a defect)
    - EncodingFault: encoder could not produce a payload
    - TransportFault: write or flush to the client failed
"""


class StreamError(Exception):
    """Base class for all streaming faults."""
    pass


class GenerationFault(StreamError):
    """Raised when a frame cannot be generated."""
    pass


class EncodingFault(StreamError):
    """Raised when a frame cannot be encoded into a payload."""
    pass


class TransportFault(StreamError):
    """Raised when bytes cannot be delivered to the client."""
    pass
