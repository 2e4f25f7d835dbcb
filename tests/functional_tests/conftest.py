"""
Shared fixtures for the Stepdown functional tests.

Every test image is generated in memory with Pillow, so the suite needs no
sample files on disk.
"""

import io
import random
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add repo root to path for imports
repo_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(repo_root))


def _noise(mode: str, size, seed: int) -> Image.Image:
    bands = len(mode)
    data = random.Random(seed).randbytes(size[0] * size[1] * bands)
    return Image.frombytes(mode, size, data)


def _encode(image: Image.Image, fmt: str, **options) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **options)
    return buffer.getvalue()


@pytest.fixture
def noise_image():
    """Factory: deterministic random-pixel image."""
    def make(width: int, height: int, mode: str = "RGB", seed: int = 7) -> Image.Image:
        return _noise(mode, (width, height), seed)
    return make


@pytest.fixture
def encode_image():
    """Factory: encode a PIL image with Pillow's own writer."""
    return _encode


@pytest.fixture
def pattern_image():
    """Small RGBA image where every pixel is distinct and opaque."""
    width, height = 5, 3
    image = Image.new("RGBA", (width, height))
    image.putdata([
        (x * 40, y * 80, (x + y * width) * 10, 255)
        for y in range(height)
        for x in range(width)
    ])
    return image
