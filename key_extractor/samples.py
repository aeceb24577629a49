"""Training-sample recorders.

Glyphs used while building a key can be recorded as training samples:
accepted alters as positive samples of the key shape, and the other glyphs
submitted to the classifier as CLUTTER. Recorders are plain sinks that
implement the ``SampleRecorder`` protocol.
"""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np
from pydantic import BaseModel, Field

from key_extractor.models import BoundingBox, CompoundGlyph, Shape

logger = logging.getLogger(__name__)


class SampleRecorder(Protocol):
    def add_sample(
        self, shape: Shape, glyph: CompoundGlyph, interline: int, pitch: float
    ) -> None: ...


class Sample(BaseModel):
    """One recorded training sample.

    Attributes:
        shape: Label assigned to the glyph.
        glyph_id: Identity of the glyph within its extraction pass.
        bounds: Glyph bounding box in the source image.
        weight: Glyph pixel weight.
        interline: Staff interline the glyph was found with.
        pitch: Staff pitch position of the glyph centroid.
    """

    shape: Shape
    glyph_id: int | None = None
    bounds: BoundingBox
    weight: int = Field(..., ge=1)
    interline: int = Field(..., ge=1)
    pitch: float


class MemorySampleRecorder:
    """Keeps samples in memory, mostly for inspection and tests."""

    def __init__(self):
        self.samples: list[Sample] = []

    def add_sample(
        self, shape: Shape, glyph: CompoundGlyph, interline: int, pitch: float
    ) -> None:
        self.samples.append(
            Sample(
                shape=shape,
                glyph_id=glyph.glyph_id,
                bounds=glyph.bounds,
                weight=glyph.weight,
                interline=interline,
                pitch=pitch,
            )
        )


class DirectorySampleRecorder:
    """Writes samples to a directory.

    Each sample mask is written as a PNG image (ink in black) and described
    by one JSON line appended to ``samples.jsonl``. Images are written
    atomically, through a temporary file then renamed.

    Attributes:
        directory: Target directory, created if needed.
        count: Number of samples written by this recorder.
    """

    INDEX_NAME = "samples.jsonl"

    def __init__(self, directory: str | Path, prefix: str = "sample"):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self.count = 0

    def add_sample(
        self, shape: Shape, glyph: CompoundGlyph, interline: int, pitch: float
    ) -> None:
        sample = Sample(
            shape=shape,
            glyph_id=glyph.glyph_id,
            bounds=glyph.bounds,
            weight=glyph.weight,
            interline=interline,
            pitch=pitch,
        )
        self.count += 1
        image_name = f"{self.prefix}-{self.count:05d}-{shape.value.lower()}.png"

        if glyph.mask is not None:
            image = np.where(glyph.mask, 0, 255).astype(np.uint8)
            self._write_image(self.directory / image_name, image)

        record = sample.model_dump(mode="json")
        record["image"] = image_name if glyph.mask is not None else None
        with open(self.directory / self.INDEX_NAME, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

        logger.debug("Recorded %s sample %s", shape.value, image_name)

    @staticmethod
    def _write_image(path: Path, image: np.ndarray) -> None:
        ok, encoded = cv2.imencode(".png", image)
        if not ok:
            raise OSError(f"Could not encode sample image {path.name}")

        temp_path = str(path) + ".tmp"
        with open(temp_path, "wb") as f:
            f.write(encoded.tobytes())

        # Atomic rename (overwrites existing file if present)
        os.replace(temp_path, path)

    def load_samples(self) -> list[Sample]:
        """Read back every sample described in the index."""
        index = self.directory / self.INDEX_NAME
        if not index.exists():
            return []
        with open(index, encoding="utf-8") as f:
            return [Sample.model_validate(json.loads(line)) for line in f if line.strip()]
