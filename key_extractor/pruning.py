"""Population control for the fragments of a key region."""

import logging

from key_extractor.models import Fragment, Parameters

logger = logging.getLogger(__name__)


def purge_parts(parts: list[Fragment], x_max: int, params: Parameters) -> list[Fragment]:
    """Reduce the population of candidate parts before they get combined.

    The cost of later combinations is exponential in the number of parts, so
    the population is purged as much as possible:

    - parts lighter than ``min_part_weight`` are removed (isolated pixels);
    - parts whose left edge sits on ``x_max`` are removed, since they
      certainly belong to the stem of the next slice;
    - if more than ``max_part_count`` parts remain, only the heaviest ones
      are kept.

    Args:
        parts: Fragments to purge.
        x_max: Maximum abscissa of the region (its rightmost column).
        params: Scale-derived parameters.

    Returns:
        A new list with the surviving fragments, in their original order.
        May be empty.
    """
    kept = [
        p for p in parts if p.weight >= params.min_part_weight and p.bounds.x != x_max
    ]

    if len(kept) > params.max_part_count:
        heaviest = sorted(kept, key=lambda p: p.weight, reverse=True)
        retained = {p.index for p in heaviest[: params.max_part_count]}
        kept = [p for p in kept if p.index in retained]

    if len(kept) < len(parts):
        logger.debug("Purged parts %d -> %d", len(parts), len(kept))

    return kept
