"""Shape classifiers for compound glyphs.

The extractor only depends on the ``Classifier`` protocol: any object able
to grade a glyph against the known shapes can be injected. Classifiers must
be read-only, since independent subgraphs may be evaluated concurrently.

``TemplateClassifier`` is a simple default that compares glyph masks to
reference masks with OpenCV normalized cross-correlation.
"""

import logging
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np

from key_extractor.models import CompoundGlyph, Shape

logger = logging.getLogger(__name__)


class Classifier(Protocol):
    def evaluate(self, glyph: CompoundGlyph, interline: int) -> dict[Shape, float]:
        """Grade the glyph against every known shape.

        Args:
            glyph: The compound glyph to classify.
            interline: Staff interline, as a scale hint.

        Returns:
            Mapping from shape to raw grade in [0, 1]. Shapes the classifier
            does not know may be missing.
        """
        ...


class TemplateClassifier:
    """Classifier matching glyph masks against one template per shape.

    The glyph mask is resized to each template size, then compared using
    ``cv2.TM_CCOEFF_NORMED``. The correlation is clipped to [0, 1].

    Attributes:
        templates: Binary template per shape, as float32 arrays.
    """

    def __init__(self, templates: dict[Shape, np.ndarray]):
        self.templates = {
            shape: (np.asarray(t) > 0).astype(np.float32) for shape, t in templates.items()
        }

    @classmethod
    def from_directory(cls, directory: str | Path) -> "TemplateClassifier":
        """Load templates named after shapes (e.g. ``sharp.png``, ``flat.png``).

        Dark pixels of the images are the template foreground. Shapes without
        a readable image are skipped.
        """
        directory = Path(directory)
        templates: dict[Shape, np.ndarray] = {}
        for shape in Shape:
            path = directory / f"{shape.value.lower()}.png"
            image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
            if image is None:
                continue
            _, binary = cv2.threshold(image, 127, 255, cv2.THRESH_BINARY_INV)
            templates[shape] = binary
        logger.info("Loaded %d shape templates from %s", len(templates), directory)
        return cls(templates)

    def evaluate(self, glyph: CompoundGlyph, interline: int) -> dict[Shape, float]:
        if glyph.mask is None:
            return {}

        sample = glyph.mask.astype(np.float32)
        grades: dict[Shape, float] = {}
        for shape, template in self.templates.items():
            th, tw = template.shape
            resized = cv2.resize(sample, (tw, th), interpolation=cv2.INTER_AREA)
            score = cv2.matchTemplate(resized, template, cv2.TM_CCOEFF_NORMED)[0, 0]
            # Flat images give NaN
            grades[shape] = float(np.clip(np.nan_to_num(score), 0.0, 1.0))
        return grades
