"""Keep the original payload when re-encoding did not make it smaller."""

from models import Dimension, ImagePayload


def choose(
    original_bytes: bytes,
    original_dimension: Dimension,
    candidate_bytes: bytes,
    candidate_dimension: Dimension,
) -> ImagePayload:
    """
    Return whichever payload should be shipped, with its own dimension.

    The candidate wins ties. A strictly larger candidate is rejected
    together with its dimension.
    """
    if len(candidate_bytes) > len(original_bytes):
        return ImagePayload(original_bytes, original_dimension.width, original_dimension.height)
    return ImagePayload(candidate_bytes, candidate_dimension.width, candidate_dimension.height)
