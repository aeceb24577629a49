import numpy as np
import pytest

from key_extractor.models import (
    BoundingBox,
    Candidate,
    CompoundGlyph,
    Evaluation,
    Fragment,
    KeyRange,
    KeyRoi,
    Peak,
    Shape,
    Slot,
    StaffInfo,
)


class PartCountClassifier:
    """Deterministic classifier grading a glyph by its number of parts."""

    def __init__(self, grades_by_count, shape=Shape.SHARP):
        self.grades_by_count = grades_by_count
        self.shape = shape
        self.calls = 0

    def evaluate(self, glyph, interline):
        self.calls += 1
        return {self.shape: self.grades_by_count.get(len(glyph.parts), 0.0)}


@pytest.fixture
def make_fragment():
    def _make(index, x, y, w, h, weight=None):
        weight = weight if weight is not None else w * h
        return Fragment(
            index=index,
            bounds=BoundingBox(x=x, y=y, w=w, h=h),
            weight=weight,
            centroid=(x + w / 2, y + h / 2),
            mask=np.ones((h, w), dtype=bool),
        )

    return _make


@pytest.fixture
def make_candidate():
    def _make(parts, grade, x=0, w=8, shape=Shape.SHARP):
        glyph = CompoundGlyph(
            parts=frozenset(parts),
            bounds=BoundingBox(x=x, y=0, w=w, h=20),
            weight=100,
            centroid=(x + w / 2, 10.0),
            glyph_id=min(parts) + 1,
        )
        return Candidate(glyph=glyph, evaluation=Evaluation(shape=shape, grade=grade))

    return _make


@pytest.fixture
def two_sharps_image():
    # 60×60 staff-free area: two symbols, each made of two vertical bars
    img = np.zeros((60, 60), dtype=np.uint8)
    for x in (5, 11, 35, 41):
        img[10:40, x : x + 2] = 255
    return img


@pytest.fixture
def staff():
    return StaffInfo(staff_id=3, interline=10, mid_line_y=30.0)


@pytest.fixture
def key_range():
    return KeyRange(start=0, stop=59)


@pytest.fixture
def peaks():
    return [Peak(center=9.0), Peak(center=39.0)]


@pytest.fixture
def roi():
    return KeyRoi(
        y=0,
        height=60,
        slots=[
            Slot(index=0, rect=BoundingBox(x=0, y=0, w=30, h=60)),
            Slot(index=1, rect=BoundingBox(x=30, y=0, w=30, h=60)),
        ],
    )


@pytest.fixture
def part_count_classifier():
    return PartCountClassifier


@pytest.fixture
def pair_classifier():
    # Only two-bar combinations look like a sharp
    return PartCountClassifier({1: 0.2, 2: 0.9})


@pytest.fixture
def simple_blob():
    # 30×30 binary mask with one 5×5 square blob at (10,10)-(14,14)
    mask = np.zeros((30, 30), dtype=np.uint8)
    mask[10:15, 10:15] = 255
    return mask
