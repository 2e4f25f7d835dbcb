"""Functional tests for the progressive downscaler."""

import math

import pytest
from PIL import Image

from models import Dimension, FillMode
from processors.scaler import MAX_STEPS, ProgressiveScaler, compute_steps, step_factor
from processors.surface import RasterSurface


def test_steps_for_one_tenth():
    assert compute_steps(0.1) == 4
    assert step_factor(0.1, 4) ** 4 == pytest.approx(0.1, abs=1e-6)


@pytest.mark.parametrize("scale, expected", [(0.9, 2), (0.5, 3), (0.25, 4), (0.01, 4)])
def test_step_counts(scale, expected):
    assert compute_steps(scale) == expected


@pytest.mark.parametrize("scale", [0.9, 0.5, 0.3, 0.1, 0.02])
def test_cumulative_factor_reaches_target(scale):
    steps = compute_steps(scale)
    assert 1 <= steps <= MAX_STEPS
    assert step_factor(scale, steps) ** steps == pytest.approx(scale, abs=1e-6)
    assert step_factor(scale, steps) <= 1


def test_scale_one_is_a_no_op(noise_image):
    surface = RasterSurface.from_image(noise_image(40, 30, mode="RGBA"))
    before = surface.image.tobytes()

    result = ProgressiveScaler(FillMode.TRANSPARENT).scale(surface, 1)

    assert result is surface
    assert result.dimension == Dimension(40, 30)
    assert result.image.tobytes() == before


def test_three_step_dimensions_truncate_each_step(noise_image):
    surface = RasterSurface.from_image(noise_image(100, 80))

    result = ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(surface, 0.5)

    # 100 -> 79 -> 62 -> 49 and 80 -> 63 -> 50 -> 39 with factor 0.5 ** (1/3)
    assert result.dimension == Dimension(49, 39)
    assert result.image.size == (49, 39)


def test_buffers_alternate_by_step_parity(noise_image):
    # Two steps end on the original buffer, three steps on the mirror
    two = RasterSurface.from_image(noise_image(50, 50))
    assert ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(two, 0.9) is two

    three = RasterSurface.from_image(noise_image(50, 50))
    assert ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(three, 0.5) is not three


def test_result_never_exceeds_target(noise_image):
    width, height = 333, 217
    scale = 0.137
    surface = RasterSurface.from_image(noise_image(width, height))

    result = ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(surface, scale)

    assert result.width <= math.ceil(width * scale)
    assert result.height <= math.ceil(height * scale)
    assert result.width >= 1 and result.height >= 1


def test_tiny_images_clamp_to_one_pixel():
    surface = RasterSurface.from_image(Image.new("RGBA", (3, 2), (1, 2, 3, 255)))
    result = ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(surface, 0.01)
    assert result.dimension == Dimension(1, 1)


def test_opaque_fill_keeps_flat_colour():
    surface = RasterSurface.from_image(Image.new("RGBA", (64, 48), (255, 255, 255, 255)))
    result = ProgressiveScaler(FillMode.OPAQUE_WHITE).scale(surface, 0.2)
    assert result.image.getextrema() == ((255, 255),) * 4


def test_transparent_fill_keeps_alpha():
    surface = RasterSurface.create(64, 48)
    result = ProgressiveScaler(FillMode.TRANSPARENT).scale(surface, 0.2)
    assert result.image.getextrema()[3] == (0, 0)


@pytest.mark.parametrize("scale", [0, -0.5, 1.5])
def test_invalid_scale(scale):
    surface = RasterSurface.create(10, 10)
    with pytest.raises(ValueError):
        ProgressiveScaler(FillMode.TRANSPARENT).scale(surface, scale)
