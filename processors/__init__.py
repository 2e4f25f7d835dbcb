"""
Image processors for Stepdown

Pure in-memory stages of the pipeline: orientation, raster surfaces,
progressive scaling and the size guard.
"""

from .orientation import AffineTransform, Orientation, resolve
from .surface import RasterSurface
from .scaler import MAX_STEPS, ProgressiveScaler, compute_steps, step_factor
from .size_guard import choose

__all__ = [
    'AffineTransform',
    'Orientation',
    'resolve',
    'RasterSurface',
    'MAX_STEPS',
    'ProgressiveScaler',
    'compute_steps',
    'step_factor',
    'choose',
]
