"""Value types for coordinate-space work: sizes, rectangles and affine maps.

Coordinates follow the image convention used throughout the package: the
origin sits at the bottom-left corner and y grows upward.  Display
coordinates (screen overlays) grow downward; the conversion between the two
lives in ``scanprep.transform``.

Affine transforms use the column-vector convention::

    x' = a*x + c*y + tx
    y' = b*x + d*y + ty

and the chaining helpers (``translated``, ``scaled``, ``rotated``) *prepend*
the new operation, so ``translation(w/2, h/2).rotated(r).translated(-w/2, -h/2)``
moves a point to the origin first, rotates it, then moves it back.
"""

import math
from dataclasses import dataclass

# Snap values this close to an integer before flooring / ceiling so that
# float noise (e.g. 1600.0000000002 after a 90° rotation) doesn't grow
# a raster by a whole pixel.
_INTEGRAL_EPSILON = 1e-6


def _snap(value: float) -> float:
    nearest = round(value)
    if abs(value - nearest) < _INTEGRAL_EPSILON:
        return float(nearest)
    return value


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @classmethod
    def parse(cls, text: str) -> "Size":
        """Parse ``"WIDTHxHEIGHT"`` (e.g. ``"400x800"``)."""
        try:
            w, h = text.lower().split("x")
            return cls(float(w), float(h))
        except ValueError:
            raise ValueError(f"Expected WIDTHxHEIGHT, got {text!r}") from None


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def empty(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def parse(cls, text: str) -> "Rect":
        """Parse ``"X,Y,WIDTH,HEIGHT"``."""
        parts = text.split(",")
        if len(parts) != 4:
            raise ValueError(f"Expected X,Y,WIDTH,HEIGHT, got {text!r}")
        try:
            x, y, w, h = (float(p) for p in parts)
        except ValueError:
            raise ValueError(f"Expected X,Y,WIDTH,HEIGHT, got {text!r}") from None
        return cls(x, y, w, h)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, other: "Rect") -> bool:
        """True when *other* lies entirely inside this rect (edges inclusive)."""
        if self.is_empty() or other.is_empty():
            return False
        return (
            other.min_x >= self.min_x
            and other.min_y >= self.min_y
            and other.max_x <= self.max_x
            and other.max_y <= self.max_y
        )

    def intersection(self, other: "Rect") -> "Rect":
        """The overlapping region, or an empty rect when the two are disjoint."""
        if self.is_empty() or other.is_empty():
            return Rect.empty()
        if self.contains(other):
            return other
        if other.contains(self):
            return self
        x0 = max(self.min_x, other.min_x)
        y0 = max(self.min_y, other.min_y)
        x1 = min(self.max_x, other.max_x)
        y1 = min(self.max_y, other.max_y)
        if x1 <= x0 or y1 <= y0:
            return Rect.empty()
        return Rect(x0, y0, x1 - x0, y1 - y0)

    def integral(self) -> "Rect":
        """Smallest rect with whole-number edges that encloses this one."""
        if self.is_empty():
            return Rect.empty()
        x0 = math.floor(_snap(self.min_x))
        y0 = math.floor(_snap(self.min_y))
        x1 = math.ceil(_snap(self.max_x))
        y1 = math.ceil(_snap(self.max_y))
        return Rect(float(x0), float(y0), float(x1 - x0), float(y1 - y0))

    def applying(self, transform: "AffineTransform") -> "Rect":
        """Bounding box of the four transformed corners."""
        if transform.is_identity():
            return self
        corners = [
            transform.apply_to_point(px, py)
            for px in (self.min_x, self.max_x)
            for py in (self.min_y, self.max_y)
        ]
        xs = [_snap(p[0]) for p in corners]
        ys = [_snap(p[1]) for p in corners]
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


@dataclass(frozen=True)
class AffineTransform:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    # ── Constructors ──────────────────────────────────────────────────────

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "AffineTransform":
        return cls(tx=tx, ty=ty)

    @classmethod
    def scale(cls, sx: float, sy: float) -> "AffineTransform":
        return cls(a=sx, d=sy)

    @classmethod
    def rotation(cls, radians: float) -> "AffineTransform":
        cos, sin = math.cos(radians), math.sin(radians)
        return cls(a=cos, b=sin, c=-sin, d=cos)

    # ── Composition ───────────────────────────────────────────────────────

    def concat(self, other: "AffineTransform") -> "AffineTransform":
        """Apply ``self`` first, then ``other``."""
        return AffineTransform(
            a=self.a * other.a + self.b * other.c,
            b=self.a * other.b + self.b * other.d,
            c=self.c * other.a + self.d * other.c,
            d=self.c * other.b + self.d * other.d,
            tx=self.tx * other.a + self.ty * other.c + other.tx,
            ty=self.tx * other.b + self.ty * other.d + other.ty,
        )

    def translated(self, tx: float, ty: float) -> "AffineTransform":
        return AffineTransform.translation(tx, ty).concat(self)

    def scaled(self, sx: float, sy: float) -> "AffineTransform":
        return AffineTransform.scale(sx, sy).concat(self)

    def rotated(self, radians: float) -> "AffineTransform":
        return AffineTransform.rotation(radians).concat(self)

    def inverted(self) -> "AffineTransform":
        det = self.a * self.d - self.b * self.c
        if det == 0:
            raise ValueError("Affine transform is not invertible")
        a = self.d / det
        b = -self.b / det
        c = -self.c / det
        d = self.a / det
        return AffineTransform(
            a=a,
            b=b,
            c=c,
            d=d,
            tx=-(a * self.tx + c * self.ty),
            ty=-(b * self.tx + d * self.ty),
        )

    def is_identity(self) -> bool:
        return self == AffineTransform()

    def apply_to_point(self, x: float, y: float) -> tuple[float, float]:
        return (
            self.a * x + self.c * y + self.tx,
            self.b * x + self.d * y + self.ty,
        )
