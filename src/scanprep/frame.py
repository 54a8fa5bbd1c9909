"""The immutable image value every pipeline stage consumes and produces.

A ``Frame`` pairs a Pillow RGBA raster with a floating-point *extent* in image
space (origin bottom-left, y up).  The raster always covers the integral
bounding box of the extent; the extent itself may be fractional because
rotations, scales and ROI crops rarely land on whole pixels.

Row 0 of the raster is the *top* of the extent, i.e. the pixel at raster
position ``(u, v)`` covers image-space ``x ∈ [x0 + u, x0 + u + 1]`` and
``y ∈ [y1 - v - 1, y1 - v]`` where ``(x0, y1)`` is the top-left corner of the
integral extent.
"""

import io
from dataclasses import dataclass
from typing import Union

from PIL import Image

from scanprep.geometry import AffineTransform, Rect

Color = Union[tuple[int, int, int], tuple[int, int, int, int]]

TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True, eq=False)
class Frame:
    pixels: Image.Image
    extent: Rect

    def __post_init__(self) -> None:
        if self.pixels.mode != "RGBA":
            object.__setattr__(self, "pixels", self.pixels.convert("RGBA"))

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_pil(cls, image: Image.Image) -> "Frame":
        """Wrap a Pillow image; the extent starts at the origin."""
        pixels = image.convert("RGBA")  # always a copy, never an alias
        return cls(pixels=pixels, extent=Rect(0.0, 0.0, float(image.width), float(image.height)))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Frame":
        """Decode PNG / JPEG / any Pillow-readable bytes."""
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return cls.from_pil(img)

    @classmethod
    def solid(cls, width: int, height: int, color: Color) -> "Frame":
        """A uniform frame, mostly useful for calibration and tests."""
        if len(color) == 3:
            color = (*color, 255)
        return cls.from_pil(Image.new("RGBA", (width, height), color))

    @classmethod
    def empty(cls) -> "Frame":
        return cls(pixels=Image.new("RGBA", (0, 0)), extent=Rect.empty())

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def width(self) -> float:
        return self.extent.width

    @property
    def height(self) -> float:
        return self.extent.height

    def is_empty(self) -> bool:
        return self.extent.is_empty()

    # ── Geometry ──────────────────────────────────────────────────────────

    def transformed(self, transform: AffineTransform) -> "Frame":
        """Resample the frame through *transform*.

        The identity transform returns ``self``.  The output extent is the
        bounding box of the transformed extent; areas of that box not covered
        by the source are transparent.
        """
        if transform.is_identity() or self.is_empty():
            return self

        out_extent = self.extent.applying(transform)
        out_box = out_extent.integral()
        src_box = self.extent.integral()
        out_w, out_h = int(out_box.width), int(out_box.height)
        if out_w <= 0 or out_h <= 0:
            return Frame.empty()

        # Map output raster coordinates back to source raster coordinates.
        # Raster u = X - box.x, v = box.max_y - Y (rows run top-down).
        inv = transform.inverted()
        ox0, oy1 = out_box.min_x, out_box.max_y
        sx0, sy1 = src_box.min_x, src_box.max_y
        coeffs = (
            inv.a,
            -inv.c,
            inv.a * ox0 + inv.c * oy1 + inv.tx - sx0,
            -inv.b,
            inv.d,
            sy1 - inv.b * ox0 - inv.d * oy1 - inv.ty,
        )
        pixels = self.pixels.transform(
            (out_w, out_h),
            Image.Transform.AFFINE,
            coeffs,
            resample=Image.Resampling.BILINEAR,
            fillcolor=TRANSPARENT,
        )
        return Frame(pixels=pixels, extent=out_extent)

    def cropped(self, rect: Rect) -> "Frame":
        """Restrict the frame to *rect*; a disjoint or empty rect gives an empty frame."""
        new_extent = self.extent.intersection(rect)
        if new_extent.is_empty():
            return Frame.empty()
        if new_extent == self.extent:
            return Frame(pixels=self.pixels.copy(), extent=self.extent)

        box = new_extent.integral()
        src_box = self.extent.integral()
        left = int(box.min_x - src_box.min_x)
        upper = int(src_box.max_y - box.max_y)
        pixels = self.pixels.crop(
            (left, upper, left + int(box.width), upper + int(box.height))
        )
        return Frame(pixels=pixels, extent=new_extent)

    def with_pixels(self, pixels: Image.Image) -> "Frame":
        """Same extent, new raster (used by the pixel filters)."""
        return Frame(pixels=pixels, extent=self.extent)

    # ── Output ────────────────────────────────────────────────────────────

    def to_png_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.pixels.save(buf, format="PNG")
        return buf.getvalue()

    def __repr__(self) -> str:
        e = self.extent
        return f"Frame(extent=({e.x:g}, {e.y:g}, {e.width:g}, {e.height:g}), raster={self.pixels.size})"
