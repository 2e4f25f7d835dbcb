"""
Off-screen raster surface backed by a Pillow RGBA image.

A surface owns exactly one buffer. Drawing composites onto it, while
write_pixels() replaces pixels outright. Nothing here touches global state.
"""

from typing import Optional, Tuple, Union

from PIL import Image

from models import Dimension, FillMode
from processors.orientation import AffineTransform

# (x, y, width, height)
Rect = Tuple[int, int, int, int]

WHITE = (255, 255, 255, 255)
TRANSPARENT = (0, 0, 0, 0)


class RasterSurface:
    """
    Mutable RGBA pixel buffer with a known dimension.

    Attributes:
        image: The live backing PIL image (do not keep references across resizes)
    """

    def __init__(self, image: Image.Image):
        if image.mode != "RGBA":
            raise ValueError(f"RasterSurface needs an RGBA image, got {image.mode}")
        self._image = image

    @classmethod
    def create(cls, width: int, height: int) -> "RasterSurface":
        """Zero-initialized (transparent black) surface."""
        dimension = Dimension(width, height)
        return cls(Image.new("RGBA", (dimension.width, dimension.height), TRANSPARENT))

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterSurface":
        """Adopt a decoded image, converting it to RGBA when needed."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(image)

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def dimension(self) -> Dimension:
        return Dimension(self._image.width, self._image.height)

    def clear(self, fill_mode: FillMode) -> None:
        color = WHITE if fill_mode is FillMode.OPAQUE_WHITE else TRANSPARENT
        self._image.paste(color, (0, 0, self.width, self.height))

    def draw_transformed(self, source: Union["RasterSurface", Image.Image], transform: AffineTransform) -> None:
        """
        Composite source into this surface through an affine transform at 1:1.

        Nearest-neighbour sampling at pixel centres keeps flips and quarter
        turns pixel-exact.
        """
        src = _as_rgba(source)
        warped = src.transform(
            self._image.size,
            Image.Transform.AFFINE,
            transform.pillow_data(),
            resample=Image.Resampling.NEAREST,
            fillcolor=TRANSPARENT,
        )
        self._image.alpha_composite(warped)

    def draw_scaled(
        self,
        source: Union["RasterSurface", Image.Image],
        src_rect: Rect,
        dst_rect: Rect,
        resample: Image.Resampling = Image.Resampling.BILINEAR,
    ) -> None:
        """Composite src_rect of source, resampled to fill dst_rect."""
        src = _as_rgba(source)
        sx, sy, sw, sh = src_rect
        dx, dy, dw, dh = dst_rect
        # Crop first so the filter never samples pixels outside src_rect
        region = src.crop((sx, sy, sx + sw, sy + sh))
        scaled = region.resize((dw, dh), resample=resample)
        self._image.alpha_composite(scaled, dest=(dx, dy))

    def read_pixels(self, rect: Optional[Rect] = None) -> Image.Image:
        """Copy of the pixels in rect (whole surface by default)."""
        if rect is None:
            return self._image.copy()
        x, y, w, h = rect
        return self._image.crop((x, y, x + w, y + h))

    def resize_in_place(self, dimension: Dimension) -> None:
        """Reallocate the buffer at a new size. Previous contents are discarded."""
        self._image = Image.new("RGBA", (dimension.width, dimension.height), TRANSPARENT)

    def write_pixels(self, pixels: Image.Image, origin: Tuple[int, int] = (0, 0)) -> None:
        """Replace pixels starting at origin, without compositing."""
        self._image.paste(_as_rgba(pixels), origin)

    def __repr__(self) -> str:
        return f"<RasterSurface {self.dimension}>"


def _as_rgba(source: Union[RasterSurface, Image.Image]) -> Image.Image:
    image = source.image if isinstance(source, RasterSurface) else source
    return image if image.mode == "RGBA" else image.convert("RGBA")
