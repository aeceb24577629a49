import pytest
from key_extractor.models import BoundingBox, Evaluation, Shape


@pytest.fixture
def valid_box():
    return BoundingBox(x=1, y=2, w=3, h=4)


@pytest.fixture
def valid_evaluation():
    return Evaluation(shape=Shape.FLAT, grade=0.5)
