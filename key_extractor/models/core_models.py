"""Core domain models for key-signature glyph extraction."""

import math
from enum import Enum

import numpy as np
from pydantic import BaseModel, Field


class Shape(str, Enum):
    """Shapes a key-signature alter can be recognized as.

    CLUTTER is never a target shape; it labels negative training samples.
    """

    SHARP = "SHARP"
    FLAT = "FLAT"
    NATURAL = "NATURAL"
    CLUTTER = "CLUTTER"


class BoundingBox(BaseModel):
    """Axis-aligned bounding box in absolute pixel coordinates.

    The coordinates follow standard computer vision conventions with (0,0)
    at the top-left. ``right`` and ``bottom`` are inclusive, so a box of
    width 1 has ``right == x``.

    Attributes:
        x: Left edge abscissa in pixels.
        y: Top edge ordinate in pixels.
        w: Width in pixels (positive integer).
        h: Height in pixels (positive integer).
    """

    x: int = Field(..., description="Left edge abscissa in pixels")
    y: int = Field(..., description="Top edge ordinate in pixels")
    w: int = Field(..., ge=1, description="Width in pixels")
    h: int = Field(..., ge=1, description="Height in pixels")

    @property
    def right(self) -> int:
        return self.x + self.w - 1

    @property
    def bottom(self) -> int:
        return self.y + self.h - 1

    @property
    def cx(self) -> float:
        """Calculate the horizontal center coordinate of the bounding box."""
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        """Calculate the vertical center coordinate of the bounding box."""
        return self.y + self.h / 2

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Return the smallest box containing both boxes."""
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return BoundingBox(x=x, y=y, w=right - x + 1, h=bottom - y + 1)

    def gap_to(self, other: "BoundingBox") -> float:
        """Euclidean distance between the two boxes.

        Returns:
            0.0 when the boxes overlap or touch (adjacent pixels), otherwise
            the distance between their closest pixel edges.
        """
        dx = max(0, other.x - self.right - 1, self.x - other.right - 1)
        dy = max(0, other.y - self.bottom - 1, self.y - other.bottom - 1)
        return math.hypot(dx, dy)

    def x_embraces(self, abscissa: float) -> bool:
        """Report whether the box horizontal span contains the abscissa."""
        return self.x <= abscissa <= self.right


class Fragment(BaseModel):
    """Atomic connected-component glyph produced by the fragment source.

    Attributes:
        index: Position of the fragment in the pass arena.
        bounds: Bounding box in absolute coordinates.
        weight: Number of foreground pixels.
        centroid: Pixel centroid as (x, y) in absolute coordinates.
        mask: Boolean array of shape (h, w) covering the bounding box.
    """

    index: int = Field(..., ge=0, description="Position in the pass arena")
    bounds: BoundingBox
    weight: int = Field(..., ge=1, description="Foreground pixel count")
    centroid: tuple[float, float]
    mask: np.ndarray | None = Field(None, description="Pixel mask of the box")

    class Config:
        arbitrary_types_allowed = True
        frozen = True


class CompoundGlyph(BaseModel):
    """A candidate symbol made of one or more fragments.

    The combined bounds, weight, centroid and mask are derived from the parts
    by ``fragments.build_compound``. ``glyph_id`` stays ``None`` until the
    arena promotes the glyph on its first evaluation trial.

    Attributes:
        parts: Indices of the fragments composing the glyph (non-empty).
        bounds: Union of the part bounding boxes.
        weight: Total pixel weight of the parts.
        centroid: Weight-averaged centroid as (x, y).
        mask: Boolean array of shape (h, w) covering ``bounds``.
        glyph_id: Persistent identity, assigned on promotion.
    """

    parts: frozenset[int] = Field(..., min_length=1)
    bounds: BoundingBox
    weight: int = Field(..., ge=1)
    centroid: tuple[float, float]
    mask: np.ndarray | None = None
    glyph_id: int | None = None

    class Config:
        arbitrary_types_allowed = True

    @property
    def width(self) -> int:
        return self.bounds.w

    @property
    def height(self) -> int:
        return self.bounds.h


class Evaluation(BaseModel):
    """One classifier verdict: a shape with its raw grade."""

    shape: Shape
    grade: float = Field(..., ge=0.0, le=1.0, description="Raw classifier grade")

    def __str__(self) -> str:
        return f"{self.shape.value}({self.grade:.3f})"


class Peak(BaseModel):
    """Expected stem-like landmark of the key area."""

    center: float = Field(..., description="Horizontal center abscissa")


class Candidate(BaseModel):
    """A compound glyph together with its best matching evaluation.

    Candidates compete with each other when they share fragments. Ordering
    uses the raw evaluation grade.
    """

    glyph: CompoundGlyph
    evaluation: Evaluation

    @property
    def parts(self) -> frozenset[int]:
        return self.glyph.parts

    @property
    def grade(self) -> float:
        return self.evaluation.grade

    def __str__(self) -> str:
        return f"Candidate{{#{self.glyph.glyph_id} {self.evaluation}}}"


class KeyAlter(BaseModel):
    """Accepted key-signature alter for a slot.

    Attributes:
        glyph: The compound glyph recognized as the alter.
        shape: Recognized shape.
        grade: Intrinsic grade, i.e. the raw grade discounted by the
            intrinsic ratio.
        staff_id: Identifier of the staff the key belongs to.
    """

    glyph: CompoundGlyph
    shape: Shape
    grade: float = Field(..., ge=0.0, le=1.0)
    staff_id: int = 0


class Slot(BaseModel):
    """One expected symbol position (slice) of the key area.

    ``evaluation`` and ``glyph`` hold the running best found so far, while
    ``alter`` holds the accepted result once created.
    """

    index: int = Field(..., ge=0)
    rect: BoundingBox
    evaluation: Evaluation | None = None
    glyph: CompoundGlyph | None = None
    alter: KeyAlter | None = None

    def offer(self, glyph: CompoundGlyph, evaluation: Evaluation) -> bool:
        """Keep the glyph if it beats the running best.

        Returns:
            True if the slot content was replaced.
        """
        if self.evaluation is None or self.evaluation.grade < evaluation.grade:
            self.evaluation = evaluation
            self.glyph = glyph
            return True
        return False

    def __str__(self) -> str:
        glyph_id = self.glyph.glyph_id if self.glyph is not None else None
        return (
            f"Slot#{self.index}[{self.rect.x}..{self.rect.right}]"
            f" glyph#{glyph_id} {self.evaluation}"
        )
