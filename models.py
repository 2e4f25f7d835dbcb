"""
Data model for Stepdown

Plain value types shared by the engines, processors and the pipeline.
Everything here is immutable once built.
"""

import json
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Dimension:
    """Width and height of a raster in pixels (both >= 1)."""
    width: int
    height: int

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Invalid dimension {self.width}x{self.height}: both sides must be >= 1")

    def swapped(self) -> "Dimension":
        return Dimension(self.height, self.width)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class ImageFormat(Enum):
    """Encode targets. Values are the MIME types."""
    PNG = "image/png"
    JPEG = "image/jpeg"
    WEBP = "image/webp"

    @property
    def pillow_format(self) -> str:
        return self.name

    @property
    def is_lossy(self) -> bool:
        return self is not ImageFormat.PNG

    @property
    def has_alpha(self) -> bool:
        return self is not ImageFormat.JPEG

    @classmethod
    def from_media_type(cls, media_type: str) -> Optional["ImageFormat"]:
        """
        Look up the encode target for a media type.

        Parameters and case are ignored ("IMAGE/PNG; q=1" -> PNG).
        Returns None when there is no matching target.
        """
        normalized = media_type.split(";")[0].strip().lower()
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        return None


DEFAULT_FORMAT = ImageFormat.JPEG


class FillMode(Enum):
    """How a surface is cleared before drawing."""
    OPAQUE_WHITE = "opaque_white"
    TRANSPARENT = "transparent"

    @classmethod
    def for_format(cls, fmt: ImageFormat) -> "FillMode":
        # Formats without alpha would composite transparent areas to black
        return cls.TRANSPARENT if fmt.has_alpha else cls.OPAQUE_WHITE


# Option name -> field name; camelCase aliases accepted for JS-style configs
_OPTION_ALIASES = {
    'max_width': 'max_width',
    'maxWidth': 'max_width',
    'max_height': 'max_height',
    'maxHeight': 'max_height',
    'quality': 'quality',
}


@dataclass(frozen=True)
class CompressionConfig:
    """
    Bounding box and encode quality for one pipeline instance.

    Attributes:
        max_width: Maximum output width in pixels (default: 1600)
        max_height: Maximum output height in pixels (default: 1600)
        quality: Lossy encode quality in (0, 1] (default: 0.92)
    """
    max_width: int = 1600
    max_height: int = 1600
    quality: float = 0.92

    def __post_init__(self):
        for name in ('max_width', 'max_height'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.quality, bool) or not isinstance(self.quality, (int, float)):
            raise ValueError(f"quality must be a number in (0, 1], got {self.quality!r}")
        if not 0 < self.quality <= 1:
            raise ValueError(f"quality must be in (0, 1], got {self.quality!r}")

    @classmethod
    def from_options(cls, options: Optional[dict] = None) -> "CompressionConfig":
        """
        Build a config from an options dict.

        Only max_width, max_height and quality (plus the maxWidth/maxHeight
        aliases) are recognized. Unknown keys are ignored.

        Raises:
            ValueError: If a recognized option has an invalid value
        """
        kwargs = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key)
            if name is not None:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_file(cls, config_path: Path) -> "CompressionConfig":
        """
        Load the "compression" section of a JSON config file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file holds invalid options
        """
        return cls.from_options(load_config(config_path).get('compression', {}))


def load_config(config_path: Path) -> dict:
    """
    Load a JSON configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Create config/config.json or pass --config with a valid path."
        )

    with open(config_path) as f:
        return json.load(f)


@dataclass(frozen=True)
class InputFile:
    """Source image as handed to the pipeline: bytes plus declared media type."""
    payload: bytes
    media_type: str
    name: str = "<memory>"

    @property
    def size(self) -> int:
        return len(self.payload)

    @classmethod
    def from_path(cls, path: Path, media_type: Optional[str] = None) -> "InputFile":
        """
        Read a file from disk. The media type is guessed from the extension
        unless given explicitly.

        Raises:
            FileNotFoundError: If the path does not exist
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

        if media_type is None:
            media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        return cls(payload=path.read_bytes(), media_type=media_type, name=path.name)


@dataclass(frozen=True)
class ImagePayload:
    """Encoded bytes with the dimension of the image they hold."""
    payload: bytes
    width: int
    height: int

    @property
    def dimension(self) -> Dimension:
        return Dimension(self.width, self.height)

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class FormatFallback:
    """Non-fatal notice: the input type has no encode target, so the default is used."""
    media_type: str
    substitute: ImageFormat = DEFAULT_FORMAT

    @property
    def message(self) -> str:
        return (
            f"unsupported MIME type {self.media_type}, "
            f"will fallback to default {self.substitute.value}"
        )


@dataclass(frozen=True)
class CompressionOutcome:
    """
    Result of one process() call.

    dist is source itself whenever the re-encoded candidate was larger.
    """
    source: ImagePayload
    dist: ImagePayload
    output_format: ImageFormat
    fallback: Optional[FormatFallback] = field(default=None)

    @property
    def compression_ratio(self) -> float:
        return self.source.size / self.dist.size if self.dist.size > 0 else 0

    @property
    def kept_original(self) -> bool:
        return self.dist == self.source

    def to_dict(self) -> dict:
        """Summary without payload bytes, for logs and the CLI."""
        return {
            'source': {'size': self.source.size, 'width': self.source.width, 'height': self.source.height},
            'dist': {'size': self.dist.size, 'width': self.dist.width, 'height': self.dist.height},
            'output_format': self.output_format.value,
            'kept_original': self.kept_original,
            'compression_ratio': self.compression_ratio,
            'fallback': self.fallback.message if self.fallback else None,
        }
