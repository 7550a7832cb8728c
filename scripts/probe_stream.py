#!/usr/bin/env python3
"""
Stream Probe Script
===================

Standalone client that reads a running mixed-replace stream and
reports what arrived.

This script:
    1. Connects to a stream endpoint of a running streamer
    2. Parses every part with MultipartReader
    3. Logs part size and inter-frame timing as parts arrive
    4. Reports a final summary

Usage:
    python scripts/probe_stream.py --url http://localhost:8080/wave
    python scripts/probe_stream.py --url http://localhost:8080/animation --max-parts 3
"""

import argparse
import logging
import os
import sys
import time
from typing import Optional

import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from mjpeg_streamer.stream.reader import MultipartParseError, MultipartReader, parse_boundary


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def probe(url: str, max_parts: Optional[int], timeout: float) -> dict:
    """
    Read a stream and collect timing statistics.

    Args:
        url: Stream endpoint URL
        max_parts: Stop after this many parts (None = until the stream ends)
        timeout: Socket read timeout in seconds

    Returns:
        Summary dict
    """
    logger.info(f"Connecting to {url}")

    parts = 0
    total_bytes = 0
    intervals = []
    mime_types = set()
    start_time = time.time()
    last_part_time: Optional[float] = None

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        boundary = parse_boundary(response.headers.get("Content-Type", ""))
        logger.info(f"Boundary: {boundary}")

        reader = MultipartReader(boundary)
        try:
            for chunk in response.iter_content(chunk_size=4096):
                for part in reader.feed(chunk):
                    now = time.time()
                    if last_part_time is not None:
                        intervals.append(now - last_part_time)
                    last_part_time = now

                    parts += 1
                    total_bytes += part.length
                    mime_types.add(part.mime_type)
                    logger.info(f"Part {parts}: {part.mime_type}, {part.length} bytes")

                    if max_parts is not None and parts >= max_parts:
                        break
                else:
                    continue
                break
        except MultipartParseError as e:
            logger.error(f"Malformed stream after {parts} parts: {e}")

    total_time = time.time() - start_time
    mean_interval = sum(intervals) / len(intervals) if intervals else 0.0

    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Parts received: {parts}")
    logger.info(f"Bytes received: {total_bytes}")
    logger.info(f"MIME types: {', '.join(sorted(mime_types)) or '-'}")
    logger.info(f"Mean interval: {mean_interval * 1000:.1f} ms")
    logger.info(f"Total time: {total_time:.2f} s")
    logger.info("=" * 60)

    return {
        "parts": parts,
        "bytes": total_bytes,
        "mean_interval": mean_interval,
        "duration": total_time,
    }


def main():
    parser = argparse.ArgumentParser(description="Probe a multipart/x-mixed-replace stream")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("MJPEG_STREAM_URL", "http://localhost:8080/wave"),
        help="Stream endpoint URL",
    )
    parser.add_argument(
        "--max-parts",
        type=int,
        default=None,
        help="Stop after this many parts (default: until the stream ends)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Read timeout in seconds (default: 10)",
    )

    args = parser.parse_args()

    try:
        result = probe(args.url, args.max_parts, args.timeout)
    except requests.RequestException as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)

    sys.exit(0 if result["parts"] > 0 else 1)


if __name__ == "__main__":
    main()
