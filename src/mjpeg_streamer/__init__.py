"""
MJPEG Streamer
==============

Live test-pattern streaming over multipart/x-mixed-replace.

For every HTTP connection the service generates a sequence of raster
frames, encodes them, and writes them as parts of a single long-lived
response that the browser displays as an animation.

Components:
    - render: Frame generation and encoding
    - stream: Multipart framing, sinks and streaming sessions
    - models: Session configuration and results
    - main: FastAPI application

Example:
    uvicorn mjpeg_streamer.main:app --port 8080
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
