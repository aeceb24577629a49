"""
Key-signature alter extraction for one staff.

This module contains the ``KeyExtractor`` facade, which runs the extraction
pipeline on the staff-free pixels of a key area:

1. Fragment building from the binary pixels
2. Fragment pruning
3. Fragment linking and partitioning into connected subgraphs
4. Decomposition of each subgraph into compound glyphs, evaluated by the
   classifier
5. Mutual exclusion of candidates sharing fragments
6. Assignment of the surviving candidates to the key slots
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from itertools import repeat

import networkx as nx
import numpy as np

from key_extractor.cache import cached_parameters
from key_extractor.classifier import Classifier
from key_extractor.cluster import GlyphCluster
from key_extractor.evaluation import KeepStrategy, KeyAdapter, SingleSlot, WholeArea
from key_extractor.fragments import FragmentArena, build_fragments
from key_extractor.graph import build_links, connected_sets, sub_graph
from key_extractor.ink import has_sufficient_ink
from key_extractor.models import (
    BoundingBox,
    Candidate,
    ExtractionSettings,
    KeyAlter,
    KeyRange,
    KeyRoi,
    Peak,
    Shape,
    Slot,
    StaffInfo,
)
from key_extractor.pruning import purge_parts
from key_extractor.resolution import assign_candidates, create_alters, purge_candidates
from key_extractor.samples import SampleRecorder

logger = logging.getLogger(__name__)


# Custom exceptions
class ExtractionError(Exception):
    """Base exception for key extraction errors."""

    pass


class InputError(ExtractionError):
    """Exception raised when the provided geometry is invalid."""

    pass


class KeyExtractor:
    """Extracts key alter glyphs from the staff-free pixels of a key area.

    One extractor serves one pass over one staff key area. It owns the
    fragment arena of the pass, which is not meant to be shared with other
    extractors.

    Attributes:
        source: Staff-free binary image, foreground non-zero.
        staff: Staff geometry (identifier, interline, middle line).
        key_range: Horizontal extent of the key area.
        peaks: Expected stem-like landmarks of the key area.
        roi: Key area with its slots.
        classifier: Shape classifier.
        settings: Extraction settings.
        params: Pixel parameters derived from the staff interline.
        arena: Fragments and glyph identities of the pass.
    """

    def __init__(
        self,
        source: np.ndarray,
        staff: StaffInfo,
        key_range: KeyRange,
        peaks: list[Peak],
        roi: KeyRoi,
        classifier: Classifier,
        settings: ExtractionSettings | None = None,
    ):
        if source.ndim != 2:
            raise InputError(f"Expected a 2D binary source, got shape {source.shape}")
        if key_range.stop < key_range.start:
            raise InputError(f"Empty key range {key_range.start}..{key_range.stop}")
        if not roi.slots:
            raise InputError("Key ROI has no slot")

        self.source = source
        self.staff = staff
        self.key_range = key_range
        self.peaks = peaks
        self.roi = roi
        self.classifier = classifier
        self.settings = settings or ExtractionSettings()
        self.params = cached_parameters(staff.interline, self.settings.constants)
        self.arena = FragmentArena()

    def _adapter(
        self,
        graph: nx.Graph,
        strategy: KeepStrategy,
        target_shapes: set[Shape],
        min_grade: float,
    ) -> KeyAdapter:
        return KeyAdapter(
            graph,
            strategy,
            target_shapes,
            min_grade,
            params=self.params,
            peaks=self.peaks,
            roi=self.roi,
            classifier=self.classifier,
            arena=self.arena,
            interline=self.staff.interline,
            intrinsic_ratio=self.settings.intrinsic_ratio,
        )

    def extract_single(
        self,
        slot: Slot,
        target_shapes: set[Shape],
        min_grade: float,
        crop_neighbors: bool,
    ) -> KeyAlter | None:
        """Extract the best alter glyph within one slot.

        Args:
            slot: The slot to process, one of the ROI slots.
            target_shapes: Shapes to try.
            min_grade: Minimum acceptable intrinsic grade.
            crop_neighbors: True to discard pixels of neighbor alters.

        Returns:
            The slot alter if an acceptable glyph was found, otherwise None.
        """
        if not any(s is slot for s in self.roi.slots):
            raise InputError(f"Slot#{slot.index} does not belong to the key ROI")

        rect = slot.rect
        buf = self.roi.slice_pixels(self.source, slot, crop_neighbors)
        parts = build_fragments(buf, (rect.x, rect.y), self.arena)
        parts = purge_parts(parts, rect.right, self.params)

        adapter = self._adapter(
            build_links(parts, self.params.max_part_gap),
            SingleSlot(slot),
            target_shapes,
            min_grade,
        )
        GlyphCluster(adapter).decompose()
        logger.debug("Staff#%d slot#%d trials:%d", self.staff.staff_id, slot.index, adapter.trials)

        if slot.evaluation is None:
            return None

        grade = self.settings.intrinsic_ratio * slot.evaluation.grade
        if grade < min_grade:
            return None

        if slot.alter is None or slot.alter.glyph.glyph_id != slot.glyph.glyph_id:
            logger.debug("Glyph#%s %s", slot.glyph.glyph_id, slot.evaluation)
            slot.alter = KeyAlter(
                glyph=slot.glyph,
                shape=slot.evaluation.shape,
                grade=grade,
                staff_id=self.staff.staff_id,
            )
            logger.debug("%s", slot)

        return slot.alter

    def _evaluate_subgraph(self, graph: nx.Graph, target_shapes: set[Shape]) -> list[Candidate]:
        strategy = WholeArea()
        adapter = self._adapter(
            graph, strategy, target_shapes, self.settings.whole_area_min_grade
        )
        GlyphCluster(adapter).decompose()
        logger.debug(
            "Staff#%d set:%d trials:%d",
            self.staff.staff_id,
            graph.number_of_nodes(),
            adapter.trials,
        )
        return strategy.candidates

    def extract_all(self, target_shapes: set[Shape]) -> list[Candidate]:
        """Retrieve all candidates with acceptable shape in the whole key area.

        Args:
            target_shapes: Acceptable shapes.

        Returns:
            Candidates sharing no fragment, by decreasing grade. Empty if
            nothing acceptable was found.
        """
        logger.debug("Retrieve candidates for staff#%d", self.staff.staff_id)

        start, stop = self.key_range.start, self.key_range.stop
        buf = self.roi.area_pixels(self.source, start, stop)
        parts = build_fragments(buf, (start, self.roi.y), self.arena)
        parts = purge_parts(parts, stop, self.params)

        if not parts:
            logger.warning("No fragment left in key area of staff#%d", self.staff.staff_id)
            return []

        # Formalize parts relationships in a global graph
        global_graph = build_links(parts, self.params.max_part_gap)
        sets = connected_sets(global_graph)
        logger.debug("Staff#%d sets:%d", self.staff.staff_id, len(sets))

        graphs = [sub_graph(nodes, global_graph) for nodes in sets]
        workers = min(self.settings.max_workers, len(graphs))

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(
                    executor.map(self._evaluate_subgraph, graphs, repeat(target_shapes))
                )
        else:
            results = [self._evaluate_subgraph(g, target_shapes) for g in graphs]

        all_candidates = [c for candidates in results for c in candidates]
        return purge_candidates(all_candidates)

    def assign_to_slots(self, target_shape: Shape) -> list[KeyAlter]:
        """Look into the key area for key alters of the expected shape.

        Each slot receives at most the best candidate located in it, then an
        alter is created for every slot holding an evaluation.

        Args:
            target_shape: Expected alter shape.

        Returns:
            The alters created, in slot order.
        """
        logger.debug("Key for staff#%d", self.staff.staff_id)

        candidates = self.extract_all({target_shape})
        assign_candidates(candidates, self.roi)
        return create_alters(self.roi, self.staff.staff_id, self.settings.intrinsic_ratio)

    def has_sufficient_ink(self, rect: BoundingBox) -> bool:
        """Report whether the rectangle contains enough ink for an alter."""
        return has_sufficient_ink(self.source, rect, self.params.min_glyph_weight)

    def record_samples(
        self,
        recorder: SampleRecorder | None,
        record_positives: bool,
        record_negatives: bool,
        key_shape: Shape,
    ) -> None:
        """Record glyphs used in key building as training samples.

        Alter glyphs are positive samples of the key shape; the other glyphs
        submitted to the classifier during this pass are CLUTTER samples.

        Args:
            recorder: Sample sink, or None to skip recording.
            record_positives: True to record positive glyphs.
            record_negatives: True to record negative glyphs.
            key_shape: Key shape (SHARP or FLAT).
        """
        if recorder is None:
            return

        interline = self.staff.interline

        for slot in self.roi.slots:
            if slot.alter is not None:
                glyph = slot.alter.glyph
                if record_positives:
                    pitch = self.staff.pitch_position_of(glyph.centroid[1])
                    recorder.add_sample(key_shape, glyph, interline, pitch)
                self.arena.untrack(glyph)

        if record_negatives:
            for glyph in self.arena.submitted:
                pitch = self.staff.pitch_position_of(glyph.centroid[1])
                recorder.add_sample(Shape.CLUTTER, glyph, interline, pitch)
