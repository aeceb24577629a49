"""Region-of-interest model for the key-signature area.

The key ROI spans the key area vertically and is cut horizontally into
slots, one per expected alter. It knows how to hand out the pixels of the
whole area or of a single slot from a staff-free binary source.
"""

import numpy as np
from pydantic import BaseModel, Field

from key_extractor.models.core_models import CompoundGlyph, Slot


class KeyRoi(BaseModel):
    """Key-signature area with its ordered slots.

    Attributes:
        y: Top ordinate of the area.
        height: Height of the area in pixels.
        slots: Slots ordered by increasing abscissa.
    """

    y: int = Field(..., ge=0, description="Top ordinate of the area")
    height: int = Field(..., ge=1, description="Height of the area")
    slots: list[Slot] = Field(default_factory=list, description="Ordered slots")

    def __len__(self) -> int:
        return len(self.slots)

    def slice_of(self, x: float) -> Slot | None:
        """Return the slot whose horizontal span contains abscissa x, if any."""
        for slot in self.slots:
            if slot.rect.x <= x <= slot.rect.right:
                return slot
        return None

    def area_pixels(self, source: np.ndarray, start: int, stop: int) -> np.ndarray:
        """Copy the pixels of the key area between two abscissae (inclusive).

        Args:
            source: Staff-free binary image, foreground non-zero.
            start: First abscissa.
            stop: Last abscissa.

        Returns:
            A 2D array of shape (height, stop - start + 1).
        """
        return source[self.y : self.y + self.height, start : stop + 1].copy()

    def slice_pixels(
        self, source: np.ndarray, slot: Slot, crop_neighbors: bool
    ) -> np.ndarray:
        """Copy the pixels of one slot.

        When ``crop_neighbors`` is set, pixels that belong to the alter glyph
        of the previous or next slot are erased, so that a neighbor symbol
        leaking into this slot is not reconsidered.

        Args:
            source: Staff-free binary image, foreground non-zero.
            slot: The slot to extract.
            crop_neighbors: True to discard pixels of neighbor alters.

        Returns:
            A 2D array covering the slot rectangle.
        """
        rect = slot.rect
        buf = source[rect.y : rect.bottom + 1, rect.x : rect.right + 1].copy()

        if crop_neighbors:
            position = next(i for i, s in enumerate(self.slots) if s is slot)
            for neighbor_index in (position - 1, position + 1):
                if 0 <= neighbor_index < len(self.slots):
                    neighbor = self.slots[neighbor_index]
                    if neighbor.alter is not None:
                        _erase_glyph(buf, rect.x, rect.y, neighbor.alter.glyph)

        return buf


def _erase_glyph(buf: np.ndarray, x0: int, y0: int, glyph: CompoundGlyph) -> None:
    """Clear the glyph foreground pixels that fall within buf, located at (x0, y0)."""
    if glyph.mask is None:
        return
    box = glyph.bounds
    left = max(box.x, x0)
    top = max(box.y, y0)
    right = min(box.right, x0 + buf.shape[1] - 1)
    bottom = min(box.bottom, y0 + buf.shape[0] - 1)
    if left > right or top > bottom:
        return

    sub_mask = glyph.mask[top - box.y : bottom - box.y + 1, left - box.x : right - box.x + 1]
    region = buf[top - y0 : bottom - y0 + 1, left - x0 : right - x0 + 1]
    region[sub_mask] = 0
