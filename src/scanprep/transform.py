"""Coordinate-space operations on frames: rotate, ROI crop, fit and fill.

None of these touch pixel values beyond the resampling a rotation or scale
implies.  All of them return a new ``Frame`` and leave the input alone.
"""

import logging
import math

from scanprep.frame import Frame
from scanprep.geometry import AffineTransform, Rect, Size

logger = logging.getLogger(__name__)

# Width / height of an ID-1 card (85.60 mm × 53.98 mm).
CARD_ASPECT_RATIO = 1.586


def rotate(frame: Frame, degrees: float) -> Frame:
    """Rotate *frame* about its own centre.

    A zero angle returns the input object untouched.  Otherwise the output
    extent is the bounding box of the rotated extent, with no extra cropping
    or padding.
    """
    if degrees == 0:
        return frame

    radians = degrees * math.pi / 180
    half_w = frame.width / 2
    half_h = frame.height / 2
    transform = (
        AffineTransform.translation(half_w, half_h)
        .rotated(radians)
        .translated(-half_w, -half_h)
    )
    return frame.transformed(transform)


def roi_crop_rect(
    image_size: Size,
    roi_rect: Rect,
    screen_size: Size,
    aspect_ratio: float = CARD_ASPECT_RATIO,
) -> Rect:
    """Map an on-screen scan box into the image's own coordinate space.

    The frame is assumed to be shown aspect-fill on a screen of
    *screen_size*, so the smaller of the two axis ratios is the scale that
    was actually applied.  Only the ROI's height and vertical position are
    used: the crop width is derived from the height and *aspect_ratio*, and
    the crop is centred horizontally in the image.  Display y grows downward,
    image y grows upward, hence the flip on the origin.
    """
    if screen_size.width <= 0 or screen_size.height <= 0:
        return Rect.empty()

    width_scale = image_size.width / screen_size.width
    height_scale = image_size.height / screen_size.height
    min_scale = min(width_scale, height_scale)

    crop_height = roi_rect.height * min_scale
    crop_width = crop_height * aspect_ratio
    crop_x = (image_size.width - crop_width) / 2
    crop_y = image_size.height - (roi_rect.y + roi_rect.height) * min_scale

    return Rect(crop_x, crop_y, crop_width, crop_height)


def crop_to_region_of_interest(
    frame: Frame,
    roi_rect: Rect,
    screen_size: Size,
    aspect_ratio: float = CARD_ASPECT_RATIO,
) -> Frame:
    crop = roi_crop_rect(frame.extent.size, roi_rect, screen_size, aspect_ratio)
    logger.debug("ROI %s on screen %s -> crop %s", roi_rect, screen_size, crop)
    return frame.cropped(crop)


def resize_to_fit(frame: Frame, target_size: Size) -> Frame:
    """Scale uniformly so the whole frame fits in *target_size* (letterbox).

    The scaled frame is shifted so it sits centred in the target box, whatever
    its starting origin; the canvas itself is not padded out to *target_size*.
    """
    if frame.is_empty():
        return frame

    scale = min(target_size.width / frame.width, target_size.height / frame.height)
    resized = frame.transformed(AffineTransform.scale(scale, scale))

    centered_x = (target_size.width - resized.width) / 2.0 - resized.extent.x
    centered_y = (target_size.height - resized.height) / 2.0 - resized.extent.y
    return resized.transformed(AffineTransform.translation(centered_x, centered_y))


def resize_to_fill(frame: Frame, target_size: Size) -> Frame:
    """Scale uniformly so the frame covers *target_size*, then centre-crop to it.

    If rounding leaves the crop box poking outside the scaled extent, the
    scaled frame is returned uncropped.
    """
    if frame.is_empty():
        return frame

    scale = max(target_size.width / frame.width, target_size.height / frame.height)
    scaled = frame.transformed(AffineTransform.scale(scale, scale))
    scaled_extent = scaled.extent

    crop_x = max((scaled_extent.width - target_size.width) / 2.0, 0)
    crop_y = max((scaled_extent.height - target_size.height) / 2.0, 0)
    crop = Rect(
        scaled_extent.x + crop_x,
        scaled_extent.y + crop_y,
        target_size.width,
        target_size.height,
    )

    if not scaled_extent.contains(crop):
        logger.debug("Fill crop %s not inside %s; returning scaled frame", crop, scaled_extent)
        return scaled
    return scaled.cropped(crop)
