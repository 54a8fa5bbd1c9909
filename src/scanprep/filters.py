"""Named pixel filters and the registry that builds them.

Every enhancement stage goes through ``FilterRegistry.apply(name, frame,
**params)``.  Building a filter can fail: the name may not be registered in
the registry the pipeline was given, or a parameter may be missing its
expected shape.  Instead of raising, ``apply`` returns a tagged result:

* ``Ok(frame)``                      the filter ran
* ``ConstructionFailed(name, reason)`` the filter could not be built

Each caller decides what a failure means for *its* stage (give up with
``None`` or hand back the untouched input).

Pixel math runs on normalised floats in ``[0, 1]`` with straight (not
premultiplied) alpha, and is clamped back to 8-bit at the end.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import numpy as np
from PIL import Image, ImageFilter

from scanprep.frame import Frame
from scanprep.geometry import Rect

# Rec. 709 weights used by the colour-controls saturation mix.
SATURATION_LUMA_WEIGHTS = np.array([0.2125, 0.7154, 0.0721], dtype=np.float64)


@dataclass(frozen=True)
class Ok:
    frame: Frame


@dataclass(frozen=True)
class ConstructionFailed:
    name: str
    reason: str


FilterResult = Union[Ok, ConstructionFailed]


# ── Float <-> 8-bit helpers ────────────────────────────────────────────────


def _to_float(frame: Frame) -> np.ndarray:
    return np.asarray(frame.pixels, dtype=np.float64) / 255.0


def _from_float(frame: Frame, arr: np.ndarray) -> Frame:
    out = np.clip(np.rint(arr * 255.0), 0, 255).astype(np.uint8)
    return frame.with_pixels(Image.fromarray(out))


# ── Kernels ────────────────────────────────────────────────────────────────


def color_controls(
    frame: Frame, saturation: float = 1.0, brightness: float = 0.0, contrast: float = 1.0
) -> Frame:
    """Saturation mix, then additive brightness, then contrast around mid-grey."""
    arr = _to_float(frame)
    rgb = arr[..., :3]
    luma = (rgb @ SATURATION_LUMA_WEIGHTS)[..., np.newaxis]
    rgb = luma + saturation * (rgb - luma)
    rgb = rgb + brightness
    rgb = (rgb - 0.5) * contrast + 0.5
    arr[..., :3] = rgb
    return _from_float(frame, arr)


def gaussian_blur(frame: Frame, radius: float = 10.0) -> Frame:
    return frame.with_pixels(frame.pixels.filter(ImageFilter.GaussianBlur(radius)))


def color_matrix(
    frame: Frame,
    r_vector: tuple = (1, 0, 0, 0),
    g_vector: tuple = (0, 1, 0, 0),
    b_vector: tuple = (0, 0, 1, 0),
    a_vector: tuple = (0, 0, 0, 1),
    bias_vector: tuple = (0, 0, 0, 0),
) -> Frame:
    """``out[c] = dot(vector[c], (r, g, b, a)) + bias[c]`` for each channel."""
    arr = _to_float(frame)
    matrix = np.array([r_vector, g_vector, b_vector, a_vector], dtype=np.float64)
    out = arr @ matrix.T + np.asarray(bias_vector, dtype=np.float64)
    return _from_float(frame, out)


def color_invert(frame: Frame) -> Frame:
    arr = _to_float(frame)
    arr[..., :3] = 1.0 - arr[..., :3]
    return _from_float(frame, arr)


def area_average(frame: Frame, extent: Optional[Rect] = None) -> Frame:
    """Mean RGBA over *extent* (default: the whole frame) as a 1×1 frame at the origin."""
    region = frame if extent is None else frame.cropped(extent)
    if region.is_empty():
        mean = (0, 0, 0, 0)
    else:
        pixels = np.asarray(region.pixels, dtype=np.float64).reshape(-1, 4)
        mean = tuple(int(v) for v in np.rint(pixels.mean(axis=0)))
    return Frame(pixels=Image.new("RGBA", (1, 1), mean), extent=Rect(0.0, 0.0, 1.0, 1.0))


# ── Registry ───────────────────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_vector4(value: Any) -> bool:
    return isinstance(value, (tuple, list)) and len(value) == 4 and all(_is_number(v) for v in value)


def _is_rect(value: Any) -> bool:
    return value is None or isinstance(value, Rect)


@dataclass(frozen=True)
class FilterSpec:
    """A kernel plus the parameters it accepts and how to validate each."""

    kernel: Callable[..., Frame]
    params: dict[str, Callable[[Any], bool]] = field(default_factory=dict)


BUILTIN_FILTERS: dict[str, FilterSpec] = {
    "color_controls": FilterSpec(
        color_controls,
        {"saturation": _is_number, "brightness": _is_number, "contrast": _is_number},
    ),
    "gaussian_blur": FilterSpec(
        gaussian_blur,
        {"radius": lambda v: _is_number(v) and v >= 0},
    ),
    "color_matrix": FilterSpec(
        color_matrix,
        {
            "r_vector": _is_vector4,
            "g_vector": _is_vector4,
            "b_vector": _is_vector4,
            "a_vector": _is_vector4,
            "bias_vector": _is_vector4,
        },
    ),
    "color_invert": FilterSpec(color_invert),
    "area_average": FilterSpec(area_average, {"extent": _is_rect}),
}


class FilterRegistry:
    def __init__(self, filters: Optional[dict[str, FilterSpec]] = None) -> None:
        self._filters = dict(BUILTIN_FILTERS if filters is None else filters)

    def __contains__(self, name: str) -> bool:
        return name in self._filters

    @property
    def names(self) -> list[str]:
        return sorted(self._filters)

    def without(self, *names: str) -> "FilterRegistry":
        """A copy of this registry lacking *names*."""
        return FilterRegistry({k: v for k, v in self._filters.items() if k not in names})

    def apply(self, name: str, frame: Frame, **params: Any) -> FilterResult:
        spec = self._filters.get(name)
        if spec is None:
            return ConstructionFailed(name, "filter not registered")

        for key, value in params.items():
            check = spec.params.get(key)
            if check is None:
                return ConstructionFailed(name, f"unknown parameter {key!r}")
            if not check(value):
                return ConstructionFailed(name, f"invalid value for {key!r}: {value!r}")

        if frame.is_empty():
            return Ok(frame)
        return Ok(spec.kernel(frame, **params))


_default_registry = FilterRegistry()


def default_registry() -> FilterRegistry:
    return _default_registry
