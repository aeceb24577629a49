"""Foreground ink measurement on the staff-free source."""

import numpy as np

from key_extractor.models import BoundingBox


def get_ink(source: np.ndarray, rect: BoundingBox) -> int:
    """Count foreground (non-zero) pixels of the source within rect.

    The rectangle is clipped to the source; a rectangle lying entirely
    outside it holds no ink.
    """
    if rect.bottom < 0 or rect.right < 0:
        return 0
    top = max(rect.y, 0)
    left = max(rect.x, 0)
    region = source[top : rect.bottom + 1, left : rect.right + 1]
    return int(np.count_nonzero(region))


def has_sufficient_ink(source: np.ndarray, rect: BoundingBox, min_weight: int) -> bool:
    """Report whether rect contains enough ink for an alter symbol."""
    return get_ink(source, rect) >= min_weight
