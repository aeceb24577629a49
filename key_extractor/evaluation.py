"""Evaluation of compound glyphs proposed by the cluster decomposer.

A ``KeyAdapter`` filters each proposed glyph geometrically, submits the
survivors to the classifier and hands every acceptable (glyph, shape) pair
to its keep strategy:

- ``SingleSlot`` keeps, for one slot, the best glyph seen so far;
- ``WholeArea`` keeps every acceptable glyph as an independent candidate,
  to be resolved later by ``resolution.purge_candidates``.

Both strategies share the same filtering path; only the slot context and
the keep step differ.
"""

import logging
from collections.abc import Iterable

import networkx as nx

from key_extractor.classifier import Classifier
from key_extractor.fragments import FragmentArena
from key_extractor.models import (
    BoundingBox,
    Candidate,
    CompoundGlyph,
    Evaluation,
    KeyRoi,
    Parameters,
    Peak,
    Shape,
    Slot,
)

logger = logging.getLogger(__name__)


class SingleSlot:
    """Keep strategy retaining the best glyph of a single slot."""

    def __init__(self, slot: Slot):
        self.slot = slot


class WholeArea:
    """Keep strategy retaining every acceptable glyph of the key area."""

    def __init__(self):
        self.candidates: list[Candidate] = []


KeepStrategy = SingleSlot | WholeArea


def embraces_slot_peaks(slot: Slot, peaks: Iterable[Peak], bounds: BoundingBox) -> bool:
    """Check that the glyph box embraces every peak located in the slot.

    Peaks whose center lies outside the slot span are not considered.

    Args:
        slot: Slot providing the horizontal span.
        peaks: All peaks of the key area.
        bounds: Bounding box of the glyph.

    Returns:
        False as soon as one slot peak is not horizontally within the box.
    """
    slot_start = slot.rect.x
    slot_stop = slot.rect.right

    for peak in peaks:
        if slot_start <= peak.center <= slot_stop and not bounds.x_embraces(peak.center):
            return False

    return True


class KeyAdapter:
    """Evaluation callback and size predicates given to ``GlyphCluster``.

    Attributes:
        graph: Fragment graph to decompose.
        strategy: What to do with acceptable glyphs.
        target_shapes: Shapes the glyphs are checked against.
        min_grade: Minimum intrinsic grade for a glyph to be kept.
        trials: Number of glyphs actually submitted to the classifier.
    """

    def __init__(
        self,
        graph: nx.Graph,
        strategy: KeepStrategy,
        target_shapes: Iterable[Shape],
        min_grade: float,
        *,
        params: Parameters,
        peaks: list[Peak],
        roi: KeyRoi,
        classifier: Classifier,
        arena: FragmentArena,
        interline: int,
        intrinsic_ratio: float,
    ):
        self.graph = graph
        self.strategy = strategy
        wanted = set(target_shapes)
        self.target_shapes = [shape for shape in Shape if shape in wanted]
        self.min_grade = min_grade
        self.params = params
        self.peaks = peaks
        self.roi = roi
        self.classifier = classifier
        self.arena = arena
        self.interline = interline
        self.intrinsic_ratio = intrinsic_ratio
        self.trials = 0

    def is_too_small(self, bounds: BoundingBox) -> bool:
        return bounds.w < self.params.min_glyph_width or bounds.h < self.params.min_glyph_height

    def is_too_large(self, bounds: BoundingBox) -> bool:
        return bounds.w > self.params.max_glyph_width or bounds.h > self.params.max_glyph_height

    def is_too_light(self, weight: int) -> bool:
        return weight < self.params.min_glyph_weight

    def is_too_heavy(self, weight: int) -> bool:
        return weight > self.params.max_glyph_weight

    def slot_of(self, glyph: CompoundGlyph) -> Slot | None:
        """Slot context the glyph is evaluated in, if any."""
        if isinstance(self.strategy, SingleSlot):
            return self.strategy.slot
        return self.roi.slice_of(glyph.centroid[0])

    def evaluate_glyph(self, glyph: CompoundGlyph) -> None:
        """Filter, classify and possibly keep one proposed glyph."""
        if self.is_too_small(glyph.bounds):
            return

        slot = self.slot_of(glyph)
        if slot is not None and not embraces_slot_peaks(slot, self.peaks, glyph.bounds):
            return

        self.trials += 1
        glyph = self.arena.promote(glyph)
        self.arena.track(glyph)

        grades = self.classifier.evaluate(glyph, self.interline)

        for shape in self.target_shapes:
            raw = grades.get(shape, 0.0)
            if self.intrinsic_ratio * raw >= self.min_grade:
                evaluation = Evaluation(shape=shape, grade=raw)
                logger.debug("glyph#%s width:%d %s", glyph.glyph_id, glyph.width, evaluation)
                self._keep(glyph, evaluation)

    def _keep(self, glyph: CompoundGlyph, evaluation: Evaluation) -> None:
        if isinstance(self.strategy, SingleSlot):
            self.strategy.slot.offer(glyph, evaluation)
        else:
            self.strategy.candidates.append(Candidate(glyph=glyph, evaluation=evaluation))
