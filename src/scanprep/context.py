"""Rendering context: turns frames into concrete pixel buffers.

A ``RenderContext`` is what the enhancement stages use to read pixels back
(for the area-average brightness sample) and what callers use to materialise a
frame as a displayable Pillow bitmap.  Contexts are meant to be created once
and reused.  A single context may be shared between threads; each render is
serialised through the context's lock.
"""

import logging
import threading
from typing import Optional

from PIL import Image

from scanprep.frame import TRANSPARENT, Frame
from scanprep.geometry import Rect

logger = logging.getLogger(__name__)

# Pillow mode used for each supported output buffer format.
FORMATS = {
    "RGBA8": "RGBA",
    "RGB8": "RGB",
    "L8": "L",
}


class RenderContext:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def render(self, frame: Frame, bounds: Rect, fmt: str = "RGBA8") -> bytes:
        """Render the *bounds* region of *frame* into a tightly packed buffer.

        Parts of *bounds* that the frame doesn't cover come back transparent
        (zero).  The buffer is ``rowBytes = width * channels``, rows top-down.
        """
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported buffer format: {fmt}")

        target = bounds.integral()
        width, height = int(target.width), int(target.height)
        if width <= 0 or height <= 0:
            return b""

        with self._lock:
            canvas = Image.new("RGBA", (width, height), TRANSPARENT)
            region = frame.cropped(target)
            if not region.is_empty():
                box = region.extent.integral()
                offset = (
                    int(box.min_x - target.min_x),
                    int(target.max_y - box.max_y),
                )
                canvas.paste(region.pixels, offset)

        return canvas.convert(FORMATS[fmt]).tobytes()

    def create_bitmap(self, frame: Frame) -> Optional[Image.Image]:
        """Materialise *frame* over its own extent; ``None`` for an empty frame."""
        if frame.is_empty():
            return None
        target = frame.extent.integral()
        data = self.render(frame, frame.extent, fmt="RGBA8")
        return Image.frombytes("RGBA", (int(target.width), int(target.height)), data)


# ── Process-wide shared context ────────────────────────────────────────────

_shared: Optional[RenderContext] = None
_shared_lock = threading.Lock()


def shared_context() -> RenderContext:
    """Return the process-wide context, creating it on first use."""
    global _shared
    with _shared_lock:
        if _shared is None:
            logger.debug("Creating shared render context")
            _shared = RenderContext()
        return _shared


def reset_shared_context() -> None:
    """Drop the shared context; the next ``shared_context()`` call builds a new one."""
    global _shared
    with _shared_lock:
        _shared = None
