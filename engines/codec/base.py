"""
Image Codec Protocol for Stepdown

Defines the contract that codec backends must implement. The pipeline only
talks to decode/encode primitives through this protocol.
"""

from typing import Optional, Protocol

from PIL import Image

from models import ImageFormat


class ImageCodec(Protocol):
    """
    Protocol for image codecs.

    Codecs are responsible for:
    - Decoding encoded bytes into a pixel-addressable PIL image
    - Reading the EXIF orientation tag of a decoded image
    - Encoding a PIL image to PNG, JPEG or WEBP bytes
    """

    def decode(self, payload: bytes, media_type: str) -> Image.Image:
        """
        Decode bytes into a fully loaded image.

        Args:
            payload: Encoded image bytes
            media_type: Declared media type (informational; content is sniffed)

        Returns:
            Loaded PIL Image in its stored (pre-orientation) layout

        Raises:
            ImageDecodeError: If the bytes cannot be loaded as an image
        """
        ...

    def read_orientation(self, image: Image.Image) -> Optional[int]:
        """
        Read the EXIF orientation tag.

        Returns:
            Tag value, or None when absent or unreadable (never raises)
        """
        ...

    def encode(self, image: Image.Image, fmt: ImageFormat, quality: float) -> bytes:
        """
        Encode image to bytes.

        Args:
            image: PIL Image to encode
            fmt: Target format
            quality: Quality in (0, 1]
                    - JPEG/WEBP: mapped to the 1-100 encoder scale
                    - PNG: ignored (lossless)

        Returns:
            Encoded image bytes

        Raises:
            RuntimeError: If encoding fails
        """
        ...

    @property
    def name(self) -> str:
        """
        Codec identifier for logging and debugging.

        Returns:
            Unique name of this codec (e.g., 'pillow')
        """
        ...
