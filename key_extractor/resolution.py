"""Mutual exclusion of candidates and their assignment to key slots."""

import logging

from key_extractor.models import Candidate, KeyAlter, KeyRoi

logger = logging.getLogger(__name__)


def by_reverse_grade(candidates: list[Candidate]) -> list[Candidate]:
    """Sort by decreasing grade; equal grades keep their encounter order."""
    return sorted(candidates, key=lambda c: c.grade, reverse=True)


def purge_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Make sure that no part is shared by different candidates.

    Candidates are scanned by decreasing grade. Each surviving candidate
    removes every later candidate that has at least one part in common with
    it. This is a greedy selection, not an exhaustive search for the best
    independent set.

    Args:
        candidates: Candidates from all subgraphs of the key area.

    Returns:
        The surviving candidates, by decreasing grade.
    """
    survivors: list[Candidate] = []
    claimed: set[int] = set()

    for candidate in by_reverse_grade(candidates):
        if claimed.isdisjoint(candidate.parts):
            survivors.append(candidate)
            claimed.update(candidate.parts)
        else:
            logger.debug("Discarded %s, sharing parts with a better candidate", candidate)

    return survivors


def assign_candidates(candidates: list[Candidate], roi: KeyRoi) -> None:
    """Give each slot the best candidate whose centroid lies in it.

    A slot content is replaced only by a strictly better candidate. Slots
    that receive no candidate are left untouched.
    """
    for candidate in candidates:
        slot = roi.slice_of(candidate.glyph.centroid[0])
        if slot is None:
            logger.debug("%s lies outside every slot", candidate)
            continue
        slot.offer(candidate.glyph, candidate.evaluation)


def create_alters(roi: KeyRoi, staff_id: int, intrinsic_ratio: float) -> list[KeyAlter]:
    """Turn every slot evaluation into the slot's key alter.

    Returns:
        The created alters, in slot order.
    """
    alters: list[KeyAlter] = []
    for slot in roi.slots:
        if slot.evaluation is not None:
            slot.alter = KeyAlter(
                glyph=slot.glyph,
                shape=slot.evaluation.shape,
                grade=intrinsic_ratio * slot.evaluation.grade,
                staff_id=staff_id,
            )
            alters.append(slot.alter)
        logger.debug("%s", slot)
    return alters
