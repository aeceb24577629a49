"""Enumeration of compound glyphs within a fragment graph.

``GlyphCluster`` walks a connected fragment graph and offers every
connected subset of fragments, exactly once, to the evaluation callback of
an adapter. The adapter predicates bound the search: as soon as a subset is
too large or too heavy, none of its supersets is explored.
"""

import logging
from typing import Protocol

import networkx as nx

from key_extractor.fragments import build_compound
from key_extractor.models import BoundingBox, CompoundGlyph

logger = logging.getLogger(__name__)


class ClusterAdapter(Protocol):
    """What the decomposer needs from its caller."""

    graph: nx.Graph

    def is_too_small(self, bounds: BoundingBox) -> bool: ...

    def is_too_large(self, bounds: BoundingBox) -> bool: ...

    def is_too_light(self, weight: int) -> bool: ...

    def is_too_heavy(self, weight: int) -> bool: ...

    def evaluate_glyph(self, glyph: CompoundGlyph) -> None: ...


class GlyphCluster:
    """Depth-first decomposer of a fragment graph into compound glyphs.

    Subsets are grown from each seed node using only neighbors with a larger
    index than the seed, so each connected subset is generated from its
    smallest node; a visited set guards against the different growth paths
    that reach the same subset.
    """

    def __init__(self, adapter: ClusterAdapter):
        self.adapter = adapter
        self.graph = adapter.graph
        self.visited: set[frozenset[int]] = set()

    def decompose(self) -> int:
        """Offer every acceptable connected subset to the adapter.

        Returns:
            The number of distinct subsets considered.
        """
        self.visited.clear()
        for seed in sorted(self.graph.nodes):
            parts = frozenset([seed])
            self.visited.add(parts)
            self._process(parts, seed)
        logger.debug("Decomposed %d nodes into %d subsets", len(self.graph), len(self.visited))
        return len(self.visited)

    def _process(self, parts: frozenset[int], seed: int) -> None:
        glyph = build_compound(self.graph.nodes[i]["fragment"] for i in sorted(parts))

        # Supersets can only be larger and heavier
        if self.adapter.is_too_large(glyph.bounds) or self.adapter.is_too_heavy(glyph.weight):
            return

        if not self.adapter.is_too_light(glyph.weight):
            self.adapter.evaluate_glyph(glyph)

        outliers = {
            n
            for p in parts
            for n in self.graph.neighbors(p)
            if n > seed and n not in parts
        }
        for outlier in sorted(outliers):
            larger = parts | {outlier}
            if larger in self.visited:
                continue
            self.visited.add(larger)
            self._process(larger, seed)
