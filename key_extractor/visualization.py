"""
Visualization functions for key extraction debugging.

Renders the key area of a staff-free source with the slots, peaks,
candidates and accepted alters drawn on top, so that the outcome of an
extraction pass can be inspected.
"""

from collections.abc import Sequence

import cv2
import numpy as np

from key_extractor.models import BoundingBox, Candidate, KeyRoi, Peak

SLOT_COLOR = (0, 128, 255)
PEAK_COLOR = (255, 0, 255)
CANDIDATE_COLOR = (255, 160, 0)
ALTER_COLOR = (0, 200, 0)


def _draw_box(canvas: np.ndarray, box: BoundingBox, x0: int, y0: int, color, thickness: int):
    cv2.rectangle(
        canvas,
        (box.x - x0, box.y - y0),
        (box.right - x0, box.bottom - y0),
        color,
        thickness,
    )


def draw_key_area(
    source: np.ndarray | None,
    roi: KeyRoi,
    candidates: Sequence[Candidate] = (),
    peaks: Sequence[Peak] = (),
) -> np.ndarray | None:
    """Draw the extraction state of a key area.

    Ink is drawn in black on a white canvas covering the ROI slots. Slot
    boundaries are outlined, peaks are vertical lines, candidate boxes are
    thin outlines and accepted alter boxes are thick outlines.

    Args:
        source: Staff-free binary image, foreground non-zero, or None.
        roi: Key area with its slots.
        candidates: Candidates to outline, typically from ``extract_all``.
        peaks: Peaks of the key area.

    Returns:
        RGB image as H×W×3 uint8 array covering the ROI, or None if the
        source is missing or empty, or the ROI has no slot.
    """
    if source is None or source.size == 0 or not roi.slots:
        return None

    x0 = min(slot.rect.x for slot in roi.slots)
    x1 = max(slot.rect.right for slot in roi.slots)
    y0 = roi.y

    region = source[y0 : y0 + roi.height, x0 : x1 + 1]
    gray = np.where(region > 0, 0, 255).astype(np.uint8)
    canvas = cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)
    height = canvas.shape[0]

    for slot in roi.slots:
        _draw_box(canvas, slot.rect, x0, y0, SLOT_COLOR, 1)

    for peak in peaks:
        x = int(round(peak.center)) - x0
        cv2.line(canvas, (x, 0), (x, height - 1), PEAK_COLOR, 1)

    for candidate in candidates:
        _draw_box(canvas, candidate.glyph.bounds, x0, y0, CANDIDATE_COLOR, 1)

    for slot in roi.slots:
        if slot.alter is not None:
            _draw_box(canvas, slot.alter.glyph.bounds, x0, y0, ALTER_COLOR, 2)

    return canvas
