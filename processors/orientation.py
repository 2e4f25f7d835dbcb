"""
EXIF orientation resolver.

Cameras (phones in particular) store pixels in sensor order and record how
the picture should be displayed in EXIF tag 0x0112. This module turns that
tag into a fixed 2D affine transform and the upright (canonical) dimension.

The transform uses canvas coefficient order (a, b, c, d, e, f):

    x' = a*x + c*y + e
    y' = b*x + d*y + f

where (x, y) is a raw pixel coordinate and (x', y') the canonical one.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Optional, Tuple

from models import Dimension
from utilities import Print

EXIF_ORIENTATION_TAG = 0x0112


@dataclass(frozen=True)
class AffineTransform:
    """Immutable 2D affine transform in canvas coefficient order."""
    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return (
            self.a * x + self.c * y + self.e,
            self.b * x + self.d * y + self.f,
        )

    def inverted(self) -> "AffineTransform":
        """
        Inverse transform (canonical -> raw).

        Raises:
            ValueError: If the matrix is singular
        """
        det = self.a * self.d - self.b * self.c
        if det == 0:
            raise ValueError(f"Affine transform is not invertible: {self}")
        return AffineTransform(
            a=self.d / det,
            b=-self.b / det,
            c=-self.c / det,
            d=self.a / det,
            e=(self.c * self.f - self.d * self.e) / det,
            f=(self.b * self.e - self.a * self.f) / det,
        )

    def pillow_data(self) -> Tuple[float, float, float, float, float, float]:
        """
        Coefficients for Image.transform(..., Transform.AFFINE).

        Pillow maps each output pixel back to the input, so it expects the
        inverse matrix in row order (x = A*x' + B*y' + C, y = D*x' + E*y' + F).
        """
        inv = self.inverted()
        return (inv.a, inv.c, inv.e, inv.b, inv.d, inv.f)


IDENTITY = AffineTransform(1, 0, 0, 1, 0, 0)


class Orientation(IntEnum):
    """The eight EXIF orientation values."""
    NORMAL = 1
    MIRROR_HORIZONTAL = 2
    ROTATE_180 = 3
    MIRROR_VERTICAL = 4
    TRANSPOSE = 5
    ROTATE_90 = 6
    TRANSVERSE = 7
    ROTATE_270 = 8

    @property
    def swaps_dimensions(self) -> bool:
        return self >= Orientation.TRANSPOSE

    def transform(self, width: int, height: int) -> AffineTransform:
        """Transform for a raw image of width x height pixels."""
        return _TRANSFORMS[self](width, height)

    @classmethod
    def from_tag(cls, tag: Optional[int]) -> "Orientation":
        """Anything outside 1..8 (including None) is treated as NORMAL."""
        if isinstance(tag, int) and not isinstance(tag, bool) and 1 <= tag <= 8:
            return cls(tag)
        if tag is not None:
            Print("DEBUG", f"Ignoring unknown orientation tag {tag!r}")
        return cls.NORMAL


# Closed lookup table, w/h are the raw (pre-orientation) width and height
_TRANSFORMS: Dict[Orientation, Callable[[int, int], AffineTransform]] = {
    Orientation.NORMAL: lambda w, h: IDENTITY,
    Orientation.MIRROR_HORIZONTAL: lambda w, h: AffineTransform(-1, 0, 0, 1, w, 0),
    Orientation.ROTATE_180: lambda w, h: AffineTransform(-1, 0, 0, -1, w, h),
    Orientation.MIRROR_VERTICAL: lambda w, h: AffineTransform(1, 0, 0, -1, 0, h),
    Orientation.TRANSPOSE: lambda w, h: AffineTransform(0, 1, 1, 0, 0, 0),
    Orientation.ROTATE_90: lambda w, h: AffineTransform(0, 1, -1, 0, h, 0),
    Orientation.TRANSVERSE: lambda w, h: AffineTransform(0, -1, -1, 0, h, w),
    Orientation.ROTATE_270: lambda w, h: AffineTransform(0, -1, 1, 0, 0, w),
}


def resolve(raw: Dimension, tag: Optional[int]) -> Tuple[Dimension, AffineTransform]:
    """
    Derive the canonical dimension and the raw -> canonical transform.

    Args:
        raw: Dimension of the decoded image as stored
        tag: EXIF orientation value, or None when absent/unreadable

    Returns:
        (canonical dimension, affine transform)
    """
    orientation = Orientation.from_tag(tag)
    canonical = raw.swapped() if orientation.swaps_dimensions else raw
    transform = orientation.transform(raw.width, raw.height)

    Print("DEBUG", f"Orientation {orientation.name} ({int(orientation)}): {raw} -> {canonical}")
    return canonical, transform
