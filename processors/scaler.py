"""
Progressive downscaler.

Shrinking by much more than half in a single resampling pass throws away
detail, so the target scale is reached through up to MAX_STEPS smaller
steps that follow a geometric progression:

    steps  = min(MAX_STEPS, ceil((1 / scale) / ln 2))
    factor = scale ** (1 / steps)

Two buffers (the source surface and one mirror of the same size) take
turns as draw source and draw target, so no buffer is allocated per step.
"""

import math

from PIL import Image

from models import Dimension, FillMode
from processors.surface import RasterSurface
from utilities import Print

MAX_STEPS = 4
SCALE_FACTOR = math.log(2)


def compute_steps(target_scale: float) -> int:
    """Number of resampling passes for a target scale in (0, 1]."""
    return min(MAX_STEPS, math.ceil((1 / target_scale) / SCALE_FACTOR))


def step_factor(target_scale: float, steps: int) -> float:
    """Per-step factor whose steps-th power is target_scale."""
    return target_scale ** (1 / steps)


class ProgressiveScaler:
    """
    Downscale a RasterSurface in bounded steps.

    Attributes:
        fill_mode: How each destination buffer is cleared before drawing
        resample: Pillow resampling filter used for every step
    """

    def __init__(self, fill_mode: FillMode, resample: Image.Resampling = Image.Resampling.BILINEAR):
        self.fill_mode = fill_mode
        self.resample = resample

    def scale(self, source: RasterSurface, target_scale: float) -> RasterSurface:
        """
        Downscale source by target_scale.

        The source surface is used as one of the two scratch buffers, so the
        caller must treat it as consumed unless target_scale is 1.

        Args:
            source: Surface holding the canonical image
            target_scale: Scale in (0, 1]

        Returns:
            Surface whose dimension matches the scaled content

        Raises:
            ValueError: If target_scale is outside (0, 1]
        """
        if not 0 < target_scale <= 1:
            raise ValueError(f"target_scale must be in (0, 1], got {target_scale}")

        if target_scale == 1:
            return source

        steps = compute_steps(target_scale)
        if steps == 0:
            return source

        factor = step_factor(target_scale, steps)
        width, height = source.width, source.height
        buffers = (source, RasterSurface.create(width, height))

        Print("DEBUG", f"Scaling {source.dimension} by {target_scale:.4f} in {steps} steps (factor {factor:.4f})")

        for step in range(steps):
            src = buffers[step % 2]
            dst = buffers[(step + 1) % 2]

            dw = max(1, int(width * factor))
            dh = max(1, int(height * factor))

            dst.clear(self.fill_mode)
            dst.draw_scaled(src, (0, 0, width, height), (0, 0, dw, dh), resample=self.resample)

            Print("DEBUG", f"  Step {step + 1}/{steps}: {width}x{height} -> {dw}x{dh}")
            width, height = dw, dh

        # Commit: shrink the active buffer to the content size, no extra resample
        pixels = dst.read_pixels((0, 0, width, height))
        dst.resize_in_place(Dimension(width, height))
        dst.write_pixels(pixels)

        return dst
