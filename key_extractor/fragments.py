"""Fragment source and per-pass fragment bookkeeping.

This module turns a binary pixel region into atomic fragments using OpenCV
connected-component analysis, combines fragments into compound glyphs, and
provides the ``FragmentArena`` that owns every fragment and glyph identity
of one extraction pass.
"""

import logging
import threading
from collections.abc import Iterable

import cv2
import numpy as np

from key_extractor.models import BoundingBox, CompoundGlyph, Fragment

logger = logging.getLogger(__name__)


class FragmentArena:
    """Owner of the fragments and glyph identities of one extraction pass.

    Fragments are stored by index, so that compound glyphs can refer to their
    parts as plain integer sets. A fragment is registered once per pixel
    content: extracting the same pixels again yields the same index, hence
    the same glyph identities across slot and whole-area passes. Compound glyphs are transient until they are
    promoted: promotion assigns a persistent ``glyph_id``, once per distinct
    part set. The arena also tracks every glyph submitted to the classifier,
    which is what negative-sample recording later draws from.

    Promotion and tracking are guarded by a lock so that independent
    subgraphs may be evaluated from several threads.
    """

    def __init__(self, first_id: int = 1):
        self._fragments: list[Fragment] = []
        self._by_content: dict[tuple, int] = {}
        self._ids: dict[frozenset[int], int] = {}
        self._next_id = first_id
        self._submitted: dict[int, CompoundGlyph] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._fragments)

    def __getitem__(self, index: int) -> Fragment:
        return self._fragments[index]

    def add(
        self,
        bounds: BoundingBox,
        weight: int,
        centroid: tuple[float, float],
        mask: np.ndarray | None = None,
    ) -> Fragment:
        """Store a fragment under the next free index.

        If a fragment with the same bounds and pixels is already known, that
        fragment is returned instead and no index is consumed.
        """
        key = (bounds.x, bounds.y, bounds.w, bounds.h, weight, None if mask is None else mask.tobytes())
        with self._lock:
            index = self._by_content.get(key)
            if index is not None:
                return self._fragments[index]
            fragment = Fragment(
                index=len(self._fragments),
                bounds=bounds,
                weight=weight,
                centroid=centroid,
                mask=mask,
            )
            self._fragments.append(fragment)
            self._by_content[key] = fragment.index
        return fragment

    def fragments_of(self, indices: Iterable[int]) -> list[Fragment]:
        return [self._fragments[i] for i in sorted(indices)]

    def promote(self, glyph: CompoundGlyph) -> CompoundGlyph:
        """Return the glyph with its persistent identity.

        The same part set always receives the same identity within a pass.
        """
        if glyph.glyph_id is not None:
            return glyph
        with self._lock:
            glyph_id = self._ids.get(glyph.parts)
            if glyph_id is None:
                glyph_id = self._next_id
                self._next_id += 1
                self._ids[glyph.parts] = glyph_id
        return glyph.model_copy(update={"glyph_id": glyph_id})

    def track(self, glyph: CompoundGlyph) -> None:
        """Remember a promoted glyph as submitted to the classifier."""
        with self._lock:
            self._submitted[glyph.glyph_id] = glyph

    def untrack(self, glyph: CompoundGlyph) -> None:
        with self._lock:
            self._submitted.pop(glyph.glyph_id, None)

    @property
    def submitted(self) -> list[CompoundGlyph]:
        """Glyphs submitted to the classifier and not yet untracked, by identity."""
        with self._lock:
            return [self._submitted[k] for k in sorted(self._submitted)]


def build_fragments(
    region: np.ndarray,
    origin: tuple[int, int],
    arena: FragmentArena,
    connectivity: int = 8,
) -> list[Fragment]:
    """Extract the atomic fragments of a binary region.

    Finds the connected components of the region foreground and registers
    each of them in the arena. Coordinates are shifted by ``origin`` so that
    fragments live in absolute image coordinates.

    Args:
        region: 2D binary array where foreground pixels are non-zero.
        origin: Absolute (x, y) position of the region top-left corner.
        arena: Arena receiving the new fragments.
        connectivity: Pixel connectivity, 4 or 8.

    Returns:
        The new fragments, ordered by left abscissa then top ordinate.
        Returns an empty list for an empty region.
    """
    if region.size == 0:
        logger.warning("Empty region at %s, no fragment built", origin)
        return []

    binary = (region > 0).astype(np.uint8)
    num_labels, labels, stats, centroids = cv2.connectedComponentsWithStats(
        binary, connectivity=connectivity
    )

    # Label 0 is the background
    order = sorted(
        range(1, num_labels),
        key=lambda label: (stats[label, cv2.CC_STAT_LEFT], stats[label, cv2.CC_STAT_TOP]),
    )

    ox, oy = origin
    fragments: list[Fragment] = []
    for label in order:
        x = int(stats[label, cv2.CC_STAT_LEFT])
        y = int(stats[label, cv2.CC_STAT_TOP])
        w = int(stats[label, cv2.CC_STAT_WIDTH])
        h = int(stats[label, cv2.CC_STAT_HEIGHT])
        weight = int(stats[label, cv2.CC_STAT_AREA])
        cx, cy = centroids[label]

        mask = labels[y : y + h, x : x + w] == label
        fragments.append(
            arena.add(
                BoundingBox(x=x + ox, y=y + oy, w=w, h=h),
                weight,
                (float(cx) + ox, float(cy) + oy),
                mask,
            )
        )

    logger.debug("Built %d fragments at %s", len(fragments), origin)
    return fragments


def build_compound(parts: Iterable[Fragment]) -> CompoundGlyph:
    """Combine fragments into one transient compound glyph.

    Args:
        parts: Non-empty collection of fragments.

    Returns:
        A CompoundGlyph with union bounds, summed weight, weight-averaged
        centroid and merged mask. Its ``glyph_id`` is None.
    """
    parts = list(parts)
    if not parts:
        raise ValueError("A compound glyph needs at least one part")

    bounds = parts[0].bounds
    for part in parts[1:]:
        bounds = bounds.union(part.bounds)

    weight = sum(p.weight for p in parts)
    cx = sum(p.centroid[0] * p.weight for p in parts) / weight
    cy = sum(p.centroid[1] * p.weight for p in parts) / weight

    mask = np.zeros((bounds.h, bounds.w), dtype=bool)
    for part in parts:
        b = part.bounds
        if part.mask is None:
            continue
        mask[b.y - bounds.y : b.bottom - bounds.y + 1, b.x - bounds.x : b.right - bounds.x + 1] |= part.mask

    return CompoundGlyph(
        parts=frozenset(p.index for p in parts),
        bounds=bounds,
        weight=weight,
        centroid=(cx, cy),
        mask=mask,
    )
