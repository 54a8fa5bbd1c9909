"""Appearance normalisation: grayscale, blur, threshold emphasis, inversion
and the auto-adjust procedure.

Every stage is optional and can be called on its own.  When a stage's filter
can't be built, the stage degrades instead of raising; *how* it degrades is
decided per stage:

=============================  ===============================
Stage                          On construction failure
=============================  ===============================
``grayscale``                  ``None``
``gaussian_blur``              input returned, warning logged
``emphasize_text``             input returned, warning logged
``invert_colors``              input returned
``adjust_contrast_and_...``    ``None``
``analyze_and_adjust``         input returned
=============================  ===============================

Auto-adjust
-----------
``analyze_and_adjust`` averages the whole frame down to one RGBA pixel,
computes its luma and treats anything above 192 as a bright background.
Bright backgrounds are inverted outright.  Dark ones get a contrast stretch
of ``255 / (255 - luma)`` and a brightness offset that pulls the mean toward
mid-grey (``128 - luma``).

The contrast factor treats the mean luma as if it were the frame's darkest
value and 255 as its brightest.  It does not measure the real min/max, so a
genuinely low-contrast frame is not fully normalised.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from scanprep.context import RenderContext, shared_context
from scanprep.filters import ConstructionFailed, FilterRegistry, default_registry
from scanprep.frame import Frame
from scanprep.geometry import Rect

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
BRIGHT_BACKGROUND_LUMA = 192
BRIGHT_BACKGROUND_OFFSET = -15
MID_GREY = 128


@dataclass(frozen=True)
class BrightnessSample:
    """Mean pixel of a region, 0–255 per channel."""

    r: int
    g: int
    b: int
    a: int = 255

    @property
    def luma(self) -> float:
        wr, wg, wb = LUMA_WEIGHTS
        return wr * self.r + wg * self.g + wb * self.b


@dataclass(frozen=True)
class AdjustmentPlan:
    contrast_factor: float
    brightness_offset: int
    invert: bool


def contrast_factor(min_brightness: int, max_brightness: int = 255) -> float:
    brightness_range = max_brightness - min_brightness
    return 255 / brightness_range if brightness_range > 0 else 1.0


def brightness_offset(average_brightness: float, is_bright_background: bool) -> int:
    if is_bright_background:
        return BRIGHT_BACKGROUND_OFFSET
    return int(MID_GREY - average_brightness)


def plan_adjustment(sample: BrightnessSample) -> AdjustmentPlan:
    """Derive the correction for a frame from its brightness sample."""
    luma = sample.luma
    is_bright = luma > BRIGHT_BACKGROUND_LUMA
    return AdjustmentPlan(
        contrast_factor=contrast_factor(int(luma)),
        brightness_offset=brightness_offset(luma, is_bright),
        invert=is_bright,
    )


class EnhancementPipeline:
    def __init__(
        self,
        registry: Optional[FilterRegistry] = None,
        context: Optional[RenderContext] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self._context = context

    @property
    def context(self) -> RenderContext:
        return self._context if self._context is not None else shared_context()

    # ── Stages ────────────────────────────────────────────────────────────

    def grayscale(self, frame: Frame) -> Optional[Frame]:
        result = self.registry.apply(
            "color_controls", frame, saturation=0.0, contrast=1.0, brightness=0.0
        )
        if isinstance(result, ConstructionFailed):
            return None
        return result.frame

    def gaussian_blur(self, frame: Frame, radius: float = 2.0) -> Frame:
        result = self.registry.apply("gaussian_blur", frame, radius=radius)
        if isinstance(result, ConstructionFailed):
            logger.warning("Failed to create gaussian_blur filter: %s", result.reason)
            return frame
        return result.frame.cropped(frame.extent)

    def emphasize_text(self, frame: Frame, threshold: float = 0.5) -> Frame:
        """High-contrast stretch around *threshold*; requires ``threshold < 1``."""
        scale = 1.0 / (1.0 - threshold)
        bias = -threshold * scale
        result = self.registry.apply(
            "color_matrix",
            frame,
            r_vector=(scale, 0, 0, 0),
            g_vector=(0, scale, 0, 0),
            b_vector=(0, 0, scale, 0),
            a_vector=(0, 0, 0, 1),
            bias_vector=(bias, bias, bias, 0),
        )
        if isinstance(result, ConstructionFailed):
            logger.warning("Failed to create color_matrix filter: %s", result.reason)
            return frame
        return result.frame

    def invert_colors(self, frame: Frame) -> Frame:
        result = self.registry.apply("color_invert", frame)
        if isinstance(result, ConstructionFailed):
            return frame
        return result.frame

    def adjust_contrast_and_brightness(
        self, frame: Frame, contrast: float, brightness: float
    ) -> Optional[Frame]:
        """Colour controls with *brightness* as a fraction (offset / 255)."""
        result = self.registry.apply(
            "color_controls", frame, contrast=contrast, brightness=brightness
        )
        if isinstance(result, ConstructionFailed):
            return None
        return result.frame

    # ── Auto-adjust ───────────────────────────────────────────────────────

    def sample_brightness(self, frame: Frame) -> Optional[BrightnessSample]:
        if frame.is_empty():
            return None
        result = self.registry.apply("area_average", frame, extent=frame.extent)
        if isinstance(result, ConstructionFailed):
            logger.warning("Failed to apply mean filter: %s", result.reason)
            return None
        r, g, b, a = self.context.render(result.frame, Rect(0, 0, 1, 1), fmt="RGBA8")
        return BrightnessSample(r, g, b, a)

    def analyze_and_adjust(self, frame: Frame) -> Frame:
        sample = self.sample_brightness(frame)
        if sample is None:
            return frame

        plan = plan_adjustment(sample)
        logger.debug("Brightness sample %s (luma %.1f) -> %s", sample, sample.luma, plan)
        if plan.invert:
            return self.invert_colors(frame)

        adjusted = self.adjust_contrast_and_brightness(
            frame, plan.contrast_factor, plan.brightness_offset / 255.0
        )
        return adjusted if adjusted is not None else frame


# ── Module-level shortcuts on the default pipeline ─────────────────────────

_pipeline = EnhancementPipeline()


def grayscale(frame: Frame) -> Optional[Frame]:
    return _pipeline.grayscale(frame)


def gaussian_blur(frame: Frame, radius: float = 2.0) -> Frame:
    return _pipeline.gaussian_blur(frame, radius)


def emphasize_text(frame: Frame, threshold: float = 0.5) -> Frame:
    return _pipeline.emphasize_text(frame, threshold)


def invert_colors(frame: Frame) -> Frame:
    return _pipeline.invert_colors(frame)


def analyze_and_adjust(frame: Frame) -> Frame:
    return _pipeline.analyze_and_adjust(frame)
