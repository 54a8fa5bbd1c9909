"""The default preparation pipeline run on every frame before recognition.

Pipeline
--------
1. Geometry      rotate → crop to the on-screen scan box → fit *or* fill
                 to a target size.  Each step only runs when asked for.

2. Grayscale     optional desaturation.  If the colour-controls filter is
                 unavailable the frame continues in colour.

3. Blur          optional gaussian blur to knock down sensor noise before
                 the brightness sample is taken.

4. Auto-adjust   invert bright backgrounds, stretch dark ones toward
                 mid-grey (see ``scanprep.enhance``).

5. Threshold     optional high-contrast stretch to emphasise text edges.

Recognition itself is the caller's business; this module only hands back a
frame (or PNG bytes) ready for it.
"""

import logging
from typing import Optional

from scanprep.config import PipelineConfig
from scanprep.enhance import EnhancementPipeline
from scanprep.frame import Frame
from scanprep.geometry import Rect, Size
from scanprep.transform import (
    crop_to_region_of_interest,
    resize_to_fill,
    resize_to_fit,
    rotate,
)

logger = logging.getLogger(__name__)


def prepare_for_recognition(
    frame: Frame,
    config: Optional[PipelineConfig] = None,
    *,
    rotate_degrees: float = 0.0,
    roi: Optional[Rect] = None,
    screen_size: Optional[Size] = None,
    fit: Optional[Size] = None,
    fill: Optional[Size] = None,
    pipeline: Optional[EnhancementPipeline] = None,
) -> Frame:
    if fit is not None and fill is not None:
        raise ValueError("fit and fill are mutually exclusive")
    if (roi is None) != (screen_size is None):
        raise ValueError("roi and screen_size must be given together")

    config = config or PipelineConfig()
    pipeline = pipeline or EnhancementPipeline()

    # Step 1: geometry
    frame = rotate(frame, rotate_degrees)
    if roi is not None:
        frame = crop_to_region_of_interest(frame, roi, screen_size, config.aspect_ratio)
        if frame.is_empty():
            logger.warning("Scan box %s lies outside the frame; nothing left to enhance", roi)
            return frame
    if fit is not None:
        frame = resize_to_fit(frame, fit)
    elif fill is not None:
        frame = resize_to_fill(frame, fill)

    # Step 2: grayscale
    if config.grayscale:
        frame = pipeline.grayscale(frame) or frame

    # Step 3: blur
    if config.blur_radius > 0:
        frame = pipeline.gaussian_blur(frame, config.blur_radius)

    # Step 4: auto-adjust
    if config.auto_adjust:
        frame = pipeline.analyze_and_adjust(frame)

    # Step 5: threshold emphasis
    if config.threshold is not None:
        frame = pipeline.emphasize_text(frame, config.threshold)

    return frame


def preprocess_image_bytes(
    image_bytes: bytes, config: Optional[PipelineConfig] = None, **geometry
) -> bytes:
    """Decode, run ``prepare_for_recognition`` and return the result as PNG bytes."""
    frame = Frame.from_bytes(image_bytes)
    return prepare_for_recognition(frame, config, **geometry).to_png_bytes()
