"""
Frame Encoder
=============

Encodes raster frames into standalone image documents with OpenCV.

Design Rules:
    - This is the ONLY place in the codebase that encodes images
    - Never returns a partial payload: any failure raises EncodingFault
    - The returned MIME type is usable verbatim in a part header
"""

import logging
from typing import Protocol

import cv2
import numpy as np

from mjpeg_streamer.errors import EncodingFault
from mjpeg_streamer.models.part import EncodedPart
from mjpeg_streamer.render.frame import Frame


logger = logging.getLogger(__name__)


class FrameEncoder(Protocol):
    """
    Protocol for frame encoders.

    Implementations must be deterministic enough that the same frame
    always yields a valid, decodable document of `mime_type`.
    """

    mime_type: str

    def encode(self, frame: Frame) -> EncodedPart:
        """
        Encode a frame.

        Args:
            frame: Frame to encode

        Returns:
            EncodedPart with the payload and its MIME type

        Raises:
            EncodingFault: If the frame cannot be encoded
        """
        ...


class _OpenCVEncoder:
    """Shared cv2.imencode plumbing."""

    mime_type = "application/octet-stream"
    extension = ""

    def _params(self) -> list:
        return []

    def encode(self, frame: Frame) -> EncodedPart:
        try:
            bgr = frame.to_bgr()
            ok, buffer = cv2.imencode(self.extension, bgr, self._params())
        except (cv2.error, IndexError, ValueError) as e:
            raise EncodingFault(f"{self.extension} encoding failed for {frame}: {e}")

        if not ok or buffer is None:
            raise EncodingFault(
                f"{self.extension} encoding failed for {frame}: cv2.imencode returned False"
            )

        payload = np.asarray(buffer, dtype=np.uint8).tobytes()
        if not payload:
            raise EncodingFault(f"{self.extension} encoding produced no bytes for {frame}")

        return EncodedPart(mime_type=self.mime_type, payload=payload)


class JpegEncoder(_OpenCVEncoder):
    """
    Baseline JPEG encoder.

    Attributes:
        quality: JPEG quality in [1, 100]
    """

    mime_type = "image/jpeg"
    extension = ".jpg"

    def __init__(self, quality: int = 75) -> None:
        if not 1 <= quality <= 100:
            raise ValueError("quality must be in [1, 100]")
        self.quality = quality

    def _params(self) -> list:
        return [cv2.IMWRITE_JPEG_QUALITY, self.quality]


class PngEncoder(_OpenCVEncoder):
    """
    Lossless PNG encoder.

    Attributes:
        compression: zlib compression level in [0, 9]
    """

    mime_type = "image/png"
    extension = ".png"

    def __init__(self, compression: int = 3) -> None:
        if not 0 <= compression <= 9:
            raise ValueError("compression must be in [0, 9]")
        self.compression = compression

    def _params(self) -> list:
        return [cv2.IMWRITE_PNG_COMPRESSION, self.compression]


def create_encoder(
    name: str,
    jpeg_quality: int = 75,
    png_compression: int = 3,
) -> FrameEncoder:
    """
    Create an encoder by config name.

    Args:
        name: 'jpeg' or 'png'
        jpeg_quality: Quality used by the JPEG encoder
        png_compression: Compression level used by the PNG encoder

    Raises:
        ValueError: If the name is unknown
    """
    if name == "jpeg":
        logger.info(f"Using JpegEncoder: quality={jpeg_quality}")
        return JpegEncoder(quality=jpeg_quality)
    elif name == "png":
        logger.info(f"Using PngEncoder: compression={png_compression}")
        return PngEncoder(compression=png_compression)
    else:
        raise ValueError(f"Unknown encoder: {name}")
