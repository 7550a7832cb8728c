"""
MJPEG Streamer — OpenCV Stream Viewer
=====================================

Architecture:
    Thread 1 (daemon)  : HTTP reader  → parses parts, decodes frames
    Main thread        : cv2.imshow render loop

The reader reconnects when the server ends a stream, so a capped
/wave session simply restarts as a fresh session.

Usage:  python viewer.py [URL]
Controls: q/ESC quit, s print stream stats
"""

import os
import sys
import threading
import time

import cv2
import numpy as np
import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from mjpeg_streamer.stream.reader import MultipartParseError, MultipartReader, parse_boundary


# =============================================================================
# Configuration
# =============================================================================

STREAM_URL = sys.argv[1] if len(sys.argv) > 1 else os.getenv(
    "MJPEG_STREAM_URL", "http://localhost:8080/wave"
)
RECONNECT_DELAY = float(os.getenv("MJPEG_RECONNECT_DELAY", "1.0"))


# =============================================================================
# Thread-safe shared state
# =============================================================================

_lock = threading.Lock()
_state = {
    "frame": None,
    "parts": 0,
    "sessions": 0,
    "connected": False,
    "decode_errors": 0,
}


def _get(k):
    with _lock:
        return _state.get(k)


def _set(k, v):
    with _lock:
        _state[k] = v


# =============================================================================
# Thread 1 — HTTP stream reader
# =============================================================================

def stream_reader_thread():
    while True:
        try:
            with requests.get(STREAM_URL, stream=True, timeout=10) as response:
                response.raise_for_status()
                reader = MultipartReader(parse_boundary(response.headers["Content-Type"]))
                _set("connected", True)
                with _lock:
                    _state["sessions"] += 1
                print(f"[stream] Connected to {STREAM_URL}")

                for chunk in response.iter_content(chunk_size=4096):
                    for part in reader.feed(chunk):
                        arr = np.frombuffer(part.payload, dtype=np.uint8)
                        frame = cv2.imdecode(arr, cv2.IMREAD_COLOR)
                        with _lock:
                            _state["parts"] += 1
                            if frame is None:
                                _state["decode_errors"] += 1
                            else:
                                _state["frame"] = frame

            print("[stream] Stream ended. Reconnecting...")
        except (requests.RequestException, MultipartParseError, KeyError) as e:
            print(f"[stream] Disconnected: {e}. Reconnecting in {RECONNECT_DELAY}s...")
        _set("connected", False)
        time.sleep(RECONNECT_DELAY)


# =============================================================================
# Main render loop
# =============================================================================

def main():
    print("=" * 60)
    print("MJPEG Streamer Viewer")
    print("=" * 60)
    print(f"  Stream:  {STREAM_URL}")
    print()
    print("  Controls:")
    print("    q/ESC  — quit")
    print("    s      — print stream stats")
    print("=" * 60)

    t1 = threading.Thread(target=stream_reader_thread, daemon=True)
    t1.start()

    window_name = "MJPEG Streamer"
    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(window_name, 800, 600)

    while True:
        frame = _get("frame")

        if frame is not None:
            cv2.imshow(window_name, frame)
        else:
            blank = np.full((480, 640, 3), 30, dtype=np.uint8)
            cv2.putText(blank, "Connecting to stream...", (160, 240),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.8, (100, 100, 100), 2)
            cv2.imshow(window_name, blank)

        key = cv2.waitKey(10) & 0xFF
        if key == ord('q') or key == 27:
            break
        elif key == ord('s'):
            with _lock:
                print(
                    f"[stats] sessions={_state['sessions']}  parts={_state['parts']}  "
                    f"decode_errors={_state['decode_errors']}  connected={_state['connected']}"
                )

    cv2.destroyAllWindows()
    print("\n[viewer] Shutdown.")


if __name__ == "__main__":
    main()
