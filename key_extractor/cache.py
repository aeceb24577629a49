"""Caching of scale-derived parameters.

Every staff of a sheet usually shares the same interline, so the pixel
parameters are computed once per (interline, constants) pair and shared by
all the extraction passes using them. Both key parts are immutable, which
makes the cached ``Parameters`` safe to share between threads.
"""

from functools import lru_cache

from key_extractor.models import ExtractionConstants, Parameters

PARAMETERS_CACHE_SIZE = 32


@lru_cache(maxsize=PARAMETERS_CACHE_SIZE)
def cached_parameters(interline: int, constants: ExtractionConstants) -> Parameters:
    """Cached version of ``Parameters.from_scale``.

    Args:
        interline: Staff interline in pixels.
        constants: Frozen (hence hashable) scale-independent constants.

    Returns:
        The pixel parameters for this scale.
    """
    return Parameters.from_scale(interline, constants)


def clear_all_caches() -> None:
    """Clear the parameter cache."""
    cached_parameters.cache_clear()
