"""Parameter models for extraction configuration.

This module defines the pydantic models that hold the tunable constants of
the key extractor. Constants are expressed as fractions of the staff
interline so that they adapt to the scan resolution; ``Parameters`` holds
their pixel values for one given interline.
"""

from pydantic import BaseModel, Field


class StaffInfo(BaseModel):
    """Geometry of the staff the key area belongs to.

    Attributes:
        staff_id: Identifier used in logs and on created alters.
        interline: Distance between two staff lines, in pixels.
        mid_line_y: Ordinate of the middle staff line, used for pitch.
    """

    staff_id: int = Field(0, ge=0, description="Staff identifier")
    interline: int = Field(..., ge=1, description="Staff interline in pixels")
    mid_line_y: float = Field(0.0, description="Ordinate of the middle line")

    def pitch_position_of(self, y: float) -> float:
        """Pitch position of an ordinate, 0 on the middle line, positive downward."""
        return (y - self.mid_line_y) / (self.interline / 2)


class KeyRange(BaseModel):
    """Horizontal extent of the key-signature area, inclusive bounds."""

    start: int = Field(..., ge=0, description="First abscissa of the key area")
    stop: int = Field(..., ge=0, description="Last abscissa of the key area")

    @property
    def width(self) -> int:
        return self.stop - self.start + 1


class ExtractionConstants(BaseModel):
    """Scale-independent constants of the extractor.

    Weights are area fractions (multiplied by interline squared), the other
    lengths are line fractions (multiplied by interline).

    Attributes:
        max_part_count: Maximum number of parts considered for an alter symbol.
        min_part_weight: Minimum weight for an alter part.
        max_part_gap: Maximum distance between two parts of a single alter.
        min_glyph_width: Minimum glyph width.
        max_glyph_width: Maximum glyph width.
        min_glyph_height: Minimum glyph height.
        max_glyph_height: Maximum glyph height.
        min_glyph_weight: Minimum glyph weight.
        max_glyph_weight: Maximum glyph weight.
    """

    max_part_count: int = Field(8, ge=1, description="Maximum parts per alter")
    min_part_weight: float = Field(0.01, ge=0.0, description="Area fraction")
    max_part_gap: float = Field(1.5, ge=0.0, description="Line fraction")
    min_glyph_width: float = Field(0.5, ge=0.0, description="Line fraction")
    max_glyph_width: float = Field(2.0, gt=0.0, description="Line fraction")
    min_glyph_height: float = Field(1.0, ge=0.0, description="Line fraction")
    max_glyph_height: float = Field(3.5, gt=0.0, description="Line fraction")
    min_glyph_weight: float = Field(0.2, ge=0.0, description="Area fraction")
    max_glyph_weight: float = Field(2.9, gt=0.0, description="Area fraction")

    class Config:
        frozen = True


class Parameters(BaseModel):
    """Pixel thresholds derived from the constants for one interline.

    Built once per staff scale through ``cache.cached_parameters`` and
    read-only for the lifetime of an extraction pass.
    """

    max_part_count: int = Field(..., ge=1)
    min_part_weight: int = Field(..., ge=0)
    max_part_gap: float = Field(..., ge=0.0)
    min_glyph_width: float = Field(..., ge=0.0)
    max_glyph_width: float = Field(..., ge=0.0)
    min_glyph_height: float = Field(..., ge=0.0)
    max_glyph_height: float = Field(..., ge=0.0)
    min_glyph_weight: int = Field(..., ge=0)
    max_glyph_weight: int = Field(..., ge=0)

    class Config:
        frozen = True

    @classmethod
    def from_scale(cls, interline: int, constants: ExtractionConstants) -> "Parameters":
        """Convert the constants into pixel values for the given interline.

        Area fractions are rounded half-up to whole pixel counts; line
        fractions keep their floating-point value.

        Args:
            interline: Staff interline in pixels (positive).
            constants: Scale-independent constants.

        Returns:
            The pixel parameters.
        """
        if interline <= 0:
            raise ValueError(f"Interline must be positive, got {interline}")

        def area(fraction: float) -> int:
            return int(fraction * interline * interline + 0.5)

        def line(fraction: float) -> float:
            return fraction * interline

        return cls(
            max_part_count=constants.max_part_count,
            min_part_weight=area(constants.min_part_weight),
            max_part_gap=line(constants.max_part_gap),
            min_glyph_width=line(constants.min_glyph_width),
            max_glyph_width=line(constants.max_glyph_width),
            min_glyph_height=line(constants.min_glyph_height),
            max_glyph_height=line(constants.max_glyph_height),
            min_glyph_weight=area(constants.min_glyph_weight),
            max_glyph_weight=area(constants.max_glyph_weight),
        )


class ExtractionSettings(BaseModel):
    """Complete configuration of a key extractor.

    Attributes:
        constants: Scale-independent thresholds.
        intrinsic_ratio: Discount applied to raw classifier grades (0-1).
        whole_area_min_grade: Minimum intrinsic grade for candidates found
            by the whole-area search.
        max_workers: Number of threads used to evaluate independent
            subgraphs; 1 evaluates them sequentially.
    """

    constants: ExtractionConstants = Field(
        default_factory=ExtractionConstants, description="Scale fractions"
    )
    intrinsic_ratio: float = Field(
        0.8, gt=0.0, le=1.0, description="Discount on raw classifier grades"
    )
    whole_area_min_grade: float = Field(
        0.3, ge=0.0, le=1.0, description="Minimum grade for whole-area search"
    )
    max_workers: int = Field(1, ge=1, le=32, description="Subgraph worker threads")
