import cv2
import numpy as np
import pytest

from key_extractor.classifier import TemplateClassifier
from key_extractor.models import BoundingBox, CompoundGlyph, Shape


def sharp_like(h=30, w=10):
    t = np.zeros((h, w), dtype=np.uint8)
    t[:, 1:3] = 255
    t[:, w - 3 : w - 1] = 255
    t[h // 3 : h // 3 + 3, :] = 255
    t[2 * h // 3 : 2 * h // 3 + 3, :] = 255
    return t


def flat_like(h=30, w=10):
    t = np.zeros((h, w), dtype=np.uint8)
    t[:, 0:2] = 255
    cv2.ellipse(t, (2, 2 * h // 3), (w - 3, h // 5), 0, -90, 90, 255, 2)
    return t


def glyph_of(mask):
    h, w = mask.shape
    return CompoundGlyph(
        parts=frozenset({0}),
        bounds=BoundingBox(x=0, y=0, w=w, h=h),
        weight=int(np.count_nonzero(mask)),
        centroid=(w / 2, h / 2),
        mask=mask > 0,
    )


@pytest.fixture
def classifier():
    return TemplateClassifier({Shape.SHARP: sharp_like(), Shape.FLAT: flat_like()})


def test_identical_mask_grades_high(classifier):
    grades = classifier.evaluate(glyph_of(sharp_like()), interline=10)
    assert grades[Shape.SHARP] == pytest.approx(1.0, abs=1e-4)
    assert grades[Shape.SHARP] > grades[Shape.FLAT]


def test_scaled_mask_still_matches(classifier):
    grades = classifier.evaluate(glyph_of(sharp_like(h=60, w=20)), interline=20)
    assert grades[Shape.SHARP] > grades[Shape.FLAT]


def test_grades_within_bounds(classifier):
    full = np.full((12, 12), 255, dtype=np.uint8)  # uniform mask
    grades = classifier.evaluate(glyph_of(full), interline=10)
    assert set(grades) == {Shape.SHARP, Shape.FLAT}
    assert all(0.0 <= g <= 1.0 for g in grades.values())


def test_missing_mask(classifier):
    glyph = glyph_of(sharp_like()).model_copy(update={"mask": None})
    assert classifier.evaluate(glyph, interline=10) == {}


def test_from_directory(tmp_path):
    # Templates on disk are dark ink on white paper
    cv2.imwrite(str(tmp_path / "sharp.png"), 255 - sharp_like())
    classifier = TemplateClassifier.from_directory(tmp_path)
    assert set(classifier.templates) == {Shape.SHARP}
    grades = classifier.evaluate(glyph_of(sharp_like()), interline=10)
    assert grades[Shape.SHARP] == pytest.approx(1.0, abs=1e-4)
