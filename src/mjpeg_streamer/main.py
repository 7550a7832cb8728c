"""
MJPEG Streamer Main Application
===============================

FastAPI entry point for the live-image streaming service.

Every streaming request gets its own StreamingSession running inside
that request's task. Sessions share nothing but the immutable settings
and the process-wide boundary token.

Endpoints:
    GET  /           - Service information, or redirect to the index page
    GET  /health     - Liveness probe
    GET  /picture    - Single still image
    GET  /animation  - Bounded solid-color animation (mixed-replace)
    GET  /wave       - Capped sine-wave animation (mixed-replace)
    GET  /static/*   - Static files, when the directory exists
"""

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from mjpeg_streamer.config import settings
from mjpeg_streamer.errors import EncodingFault
from mjpeg_streamer.models import ContentKind, SessionConfig
from mjpeg_streamer.render import FrameEncoder, create_encoder
from mjpeg_streamer.render.generator import BLUE, uniform_frame
from mjpeg_streamer.stream import (
    MultipartStreamResponse,
    MultipartStreamWriter,
    StreamingSession,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Component Factories
# =============================================================================

def build_encoder() -> FrameEncoder:
    """Create the process-wide encoder from settings."""
    return create_encoder(
        settings.stream.encoder,
        jpeg_quality=settings.stream.jpeg_quality,
        png_compression=settings.stream.png_compression,
    )


def build_session(
    encoder: FrameEncoder,
    config: SessionConfig,
    name: str,
) -> StreamingSession:
    """Create a session with its own writer."""
    return StreamingSession(
        config=config,
        encoder=encoder,
        writer=MultipartStreamWriter(settings.stream.boundary),
        name=f"{name}-{uuid.uuid4().hex[:8]}",
    )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    app.state.startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")
    logger.info(f"Multipart boundary: {settings.stream.boundary}")

    app.state.encoder = build_encoder()

    yield

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="MJPEG Streamer",
    description="Live test-pattern streams over multipart/x-mixed-replace",
    version=settings.service.version,
    lifespan=lifespan,
)

STATIC_ENABLED = Path(settings.server.static_dir).is_dir()

if STATIC_ENABLED:
    app.mount(
        "/static",
        StaticFiles(directory=settings.server.static_dir, html=True),
        name="static",
    )
else:
    logger.info(f"Static directory not found, /static disabled: {settings.server.static_dir}")


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root(request: Request) -> Response:
    """
    Service information endpoint.

    Browsers asking for HTML are sent to the index page when it is served.
    """
    if STATIC_ENABLED and "text/html" in request.headers.get("accept", ""):
        return RedirectResponse("/static/")

    info = {
        "service": settings.service.name,
        "version": settings.service.version,
        "status": "running",
        "encoder": settings.stream.encoder,
        "boundary": settings.stream.boundary,
        "streams": ["/animation", "/wave"],
    }
    if STATIC_ENABLED:
        info["index"] = "/static/"
    return JSONResponse(info)


@app.get("/health")
async def health(request: Request) -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - request.app.state.startup_time, 1),
    })


@app.get("/picture")
async def picture(request: Request) -> Response:
    """Single blue still image in the configured format."""
    frame = uniform_frame(BLUE, settings.picture.width, settings.picture.height)

    try:
        part = request.app.state.encoder.encode(frame)
    except EncodingFault as e:
        logger.error(f"Picture encoding failed: {e}")
        return JSONResponse({"error": "Encoding failed"}, status_code=500)

    return Response(
        content=part.payload,
        media_type=part.mime_type,
        headers={"Content-Length": str(part.length)},
    )


@app.get("/animation")
async def animation(
    request: Request,
    frames: Optional[int] = Query(None, ge=1, le=10000, description="Frames to send"),
    interval_ms: Optional[int] = Query(None, ge=0, le=10000, description="Pacing interval"),
) -> MultipartStreamResponse:
    """Bounded solid-color animation (red, yellow, green)."""
    config = SessionConfig(
        content_kind=ContentKind.SOLID_COLOR_SEQUENCE,
        width=settings.animation.width,
        height=settings.animation.height,
        frame_count=frames if frames is not None else settings.animation.frame_count,
        pacing_interval_ms=(
            interval_ms if interval_ms is not None
            else settings.animation.pacing_interval_ms
        ),
    )
    session = build_session(request.app.state.encoder, config, "animation")
    return MultipartStreamResponse(session, buffer_size=settings.stream.write_buffer_size)


@app.get("/wave")
async def wave(
    request: Request,
    frames: Optional[int] = Query(None, ge=1, le=100000, description="Frame cap"),
    interval_ms: Optional[int] = Query(None, ge=0, le=10000, description="Pacing interval"),
) -> MultipartStreamResponse:
    """Unbounded sine-wave animation, capped at a frame budget."""
    config = SessionConfig(
        content_kind=ContentKind.SINE_WAVE_ANIMATION,
        width=settings.wave.width,
        height=settings.wave.height,
        frame_count=None,
        frame_cap=frames if frames is not None else settings.wave.frame_cap,
        pacing_interval_ms=(
            interval_ms if interval_ms is not None
            else settings.wave.pacing_interval_ms
        ),
    )
    session = build_session(request.app.state.encoder, config, "wave")
    return MultipartStreamResponse(session, buffer_size=settings.stream.write_buffer_size)


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "mjpeg_streamer.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
