"""
Functional tests for the EXIF orientation resolver.

Each of the eight orientations is drawn through RasterSurface and compared
pixel for pixel against Pillow's own transpose of the same raster.
"""

import pytest
from PIL import Image

from models import Dimension, FillMode
from processors.orientation import IDENTITY, AffineTransform, Orientation, resolve
from processors.surface import RasterSurface

# Upright reference for each tag, as Pillow's exif_transpose does it
REFERENCE_TRANSPOSE = {
    1: None,
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}


@pytest.mark.parametrize("tag", range(1, 9))
def test_orientation_matches_reference(tag, pattern_image):
    raw = Dimension(*pattern_image.size)
    canonical, transform = resolve(raw, tag)

    surface = RasterSurface.create(canonical.width, canonical.height)
    surface.clear(FillMode.TRANSPARENT)
    surface.draw_transformed(pattern_image, transform)

    method = REFERENCE_TRANSPOSE[tag]
    expected = pattern_image if method is None else pattern_image.transpose(method)

    assert surface.image.size == expected.size
    assert surface.image.tobytes() == expected.tobytes()


@pytest.mark.parametrize("tag", range(1, 9))
def test_orientation_on_white_background_is_still_exact(tag, pattern_image):
    # Opaque pixels composited over white must not change
    canonical, transform = resolve(Dimension(*pattern_image.size), tag)
    surface = RasterSurface.create(canonical.width, canonical.height)
    surface.clear(FillMode.OPAQUE_WHITE)
    surface.draw_transformed(pattern_image, transform)

    method = REFERENCE_TRANSPOSE[tag]
    expected = pattern_image if method is None else pattern_image.transpose(method)
    assert surface.image.tobytes() == expected.tobytes()


def test_swapping_tags():
    raw = Dimension(640, 480)
    for tag in (1, 2, 3, 4):
        assert resolve(raw, tag)[0] == raw
    for tag in (5, 6, 7, 8):
        assert resolve(raw, tag)[0] == Dimension(480, 640)


@pytest.mark.parametrize("tag", [None, 0, 9, -1, "6", 6.0, True])
def test_unknown_tags_are_identity(tag):
    raw = Dimension(30, 20)
    canonical, transform = resolve(raw, tag)
    assert canonical == raw
    assert transform == IDENTITY


def test_from_tag():
    assert Orientation.from_tag(6) is Orientation.ROTATE_90
    assert Orientation.from_tag(None) is Orientation.NORMAL
    assert Orientation.ROTATE_90.swaps_dimensions
    assert not Orientation.ROTATE_180.swaps_dimensions


def test_rotate_90_maps_corners():
    # Raw top-left lands on canonical top-right
    transform = Orientation.ROTATE_90.transform(300, 200)
    assert transform.apply(0, 0) == (200, 0)
    assert transform.apply(300, 200) == (0, 300)


def test_inverted_round_trip():
    transform = Orientation.TRANSVERSE.transform(40, 25)
    inverse = transform.inverted()
    for point in [(0, 0), (10, 5), (40, 25)]:
        x, y = inverse.apply(*transform.apply(*point))
        assert x == pytest.approx(point[0])
        assert y == pytest.approx(point[1])


def test_singular_transform_cannot_be_inverted():
    with pytest.raises(ValueError):
        AffineTransform(1, 2, 2, 4, 0, 0).inverted()


def test_transform_is_immutable():
    with pytest.raises(AttributeError):
        IDENTITY.a = 2
