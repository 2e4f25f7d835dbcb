"""
Error types raised by the Stepdown pipeline.

Both errors are fatal for a single process() call: the pipeline rejects
immediately with no partial output. Retrying is left to the caller.
"""


class CompressionError(Exception):
    """Base class for every fatal pipeline error."""


class UnsupportedInputTypeError(CompressionError, ValueError):
    """Declared media type is not an image type. Raised before any decode work."""

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"unsupported file type: {media_type}")


class ImageDecodeError(CompressionError, RuntimeError):
    """Input bytes could not be loaded or parsed as an image."""
