"""
Pillow codec engine for Stepdown

Decodes anything Pillow can open and encodes PNG, JPEG and WEBP.

Requirements:
- Pillow built with libjpeg and libwebp (the default wheels are)
"""

import io
from typing import Optional

from PIL import Image, UnidentifiedImageError

from errors import ImageDecodeError
from models import ImageFormat
from processors.orientation import EXIF_ORIENTATION_TAG
from utilities import Print, format_bytes

from . import register_codec


@register_codec("pillow")
class PillowCodecFactory:
    """Factory for creating Pillow codec instances."""

    @staticmethod
    def create(config: dict) -> "PillowCodec":
        return PillowCodec(config)


class PillowCodec:
    """
    Pillow-backed decode/encode primitives.

    Attributes:
        optimize: Extra encoder pass for smaller PNG/JPEG output
        progressive: Write progressive JPEGs
        webp_method: WEBP effort, 0 (fast) to 6 (small)
    """

    def __init__(self, config: dict):
        """
        Initialize codec with configuration.

        Args:
            config: Configuration dictionary with optional keys:
                - optimize: bool - Optimize PNG/JPEG output (default: True)
                - progressive: bool - Progressive JPEG (default: False)
                - webp_method: int - WEBP method 0-6 (default: 4)
        """
        self.optimize = config.get('optimize', True)
        self.progressive = config.get('progressive', False)
        self.webp_method = config.get('webp_method', 4)

    def decode(self, payload: bytes, media_type: str) -> Image.Image:
        """
        Open and fully load an image.

        The declared media type is not used to pick a decoder; Pillow sniffs
        the content, so e.g. a BMP declared as image/bmp decodes normally.

        Raises:
            ImageDecodeError: If Pillow cannot identify or load the bytes
        """
        try:
            image = Image.open(io.BytesIO(payload))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(f"image load error ({media_type}, {format_bytes(len(payload))}): {e}") from e

        Print("DEBUG", f"Decoded {image.format} {image.width}x{image.height} {image.mode}")
        return image

    def read_orientation(self, image: Image.Image) -> Optional[int]:
        """
        Read EXIF orientation. Metadata problems are never fatal: they are
        logged and reported as None.
        """
        try:
            value = image.getexif().get(EXIF_ORIENTATION_TAG)
        except Exception as e:
            Print("DEBUG", f"Could not read EXIF orientation: {e}")
            return None

        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            Print("DEBUG", f"Non-numeric EXIF orientation: {value!r}")
            return None

    def encode(self, image: Image.Image, fmt: ImageFormat, quality: float) -> bytes:
        """
        Encode image to fmt.

        Raises:
            RuntimeError: If encoding fails
        """
        image = self._prepare_mode(image, fmt)

        options = {}
        if fmt is ImageFormat.JPEG:
            options = {'quality': _encoder_quality(quality), 'optimize': self.optimize, 'progressive': self.progressive}
        elif fmt is ImageFormat.WEBP:
            options = {'quality': _encoder_quality(quality), 'method': self.webp_method}
        elif fmt is ImageFormat.PNG:
            options = {'optimize': self.optimize}

        buffer = io.BytesIO()
        try:
            image.save(buffer, format=fmt.pillow_format, **options)
        except (OSError, ValueError, KeyError) as e:
            raise RuntimeError(
                f"{fmt.name} encoding failed: {e}\n"
                f"Image: {image.size}, mode: {image.mode}\n"
                f"Options: {options}"
            ) from e

        encoded = buffer.getvalue()
        Print("DEBUG", f"{fmt.name}: {image.width}x{image.height} encoded to {format_bytes(len(encoded))}")
        return encoded

    def _prepare_mode(self, image: Image.Image, fmt: ImageFormat) -> Image.Image:
        """Bring the image into a mode the target format can store."""
        if fmt.has_alpha:
            if image.mode == 'RGBA' and image.getchannel('A').getextrema() == (255, 255):
                # Fully opaque, the alpha channel only costs bytes
                return image.convert('RGB')
            if image.mode not in ('RGB', 'RGBA', 'L', 'LA'):
                image = image.convert('RGBA')
            return image

        if image.mode == 'RGBA':
            # Composite onto white background
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.getchannel('A'))
            Print("DEBUG", f"Flattened RGBA onto white for {fmt.name}")
            return background
        if image.mode == 'LA':
            background = Image.new('L', image.size, 255)
            background.paste(image, mask=image.getchannel('A'))
            return background.convert('RGB')
        if image.mode not in ('RGB', 'L'):
            return image.convert('RGB')
        return image

    @property
    def name(self) -> str:
        """Codec identifier."""
        return "pillow"


def _encoder_quality(quality: float) -> int:
    """Map (0, 1] onto the encoder's 1-100 scale."""
    return max(1, min(100, round(quality * 100)))
