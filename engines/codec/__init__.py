"""
Image Codec Registry for Stepdown

Factory pattern with decorator-based registration.

Usage:
    # In codec implementation:
    @register_codec("pillow")
    class PillowCodecFactory:
        @staticmethod
        def create(config: dict) -> ImageCodec:
            return PillowCodec(config)

    # To get a codec:
    codec = get_codec("pillow", config)
"""

from typing import Callable, Dict, Optional

from .base import ImageCodec

# Global registry of codec factories
CODEC_REGISTRY: Dict[str, Callable[[dict], ImageCodec]] = {}


def register_codec(name: str):
    """
    Decorator to register codec factories.

    Args:
        name: Unique identifier for this codec

    Returns:
        Decorator function that registers the factory class
    """
    def decorator(factory_class):
        CODEC_REGISTRY[name] = factory_class.create
        return factory_class
    return decorator


def get_codec(name: str, config: Optional[dict] = None) -> ImageCodec:
    """
    Get a codec instance by name.

    Args:
        name: Codec identifier (must be registered)
        config: Codec-specific configuration dictionary

    Returns:
        Initialized codec instance

    Raises:
        ValueError: If codec name is not registered
    """
    if name not in CODEC_REGISTRY:
        available = ', '.join(CODEC_REGISTRY.keys()) if CODEC_REGISTRY else 'none'
        raise ValueError(
            f"Unknown codec: '{name}'. "
            f"Available codecs: {available}"
        )
    return CODEC_REGISTRY[name](config or {})


# Import built-in codecs to trigger registration
from . import pillow_codec  # noqa: E402,F401
