import numpy as np
import pytest

from key_extractor.extractor import InputError, KeyExtractor
from key_extractor.models import (
    BoundingBox,
    ExtractionSettings,
    KeyRange,
    KeyRoi,
    Peak,
    Shape,
    Slot,
)
from key_extractor.samples import MemorySampleRecorder


@pytest.fixture
def extractor(two_sharps_image, staff, key_range, peaks, roi, pair_classifier):
    return KeyExtractor(two_sharps_image, staff, key_range, peaks, roi, pair_classifier)


def summary(alters):
    return [(a.shape, round(a.grade, 6), a.glyph.bounds.x, a.glyph.bounds.w) for a in alters]


def test_assign_to_slots(extractor):
    alters = extractor.assign_to_slots(Shape.SHARP)

    assert len(alters) == 2
    first, second = alters
    assert first.shape == Shape.SHARP
    assert first.grade == pytest.approx(0.72)
    assert first.staff_id == 3
    assert (first.glyph.bounds.x, first.glyph.bounds.right) == (5, 12)
    assert (second.glyph.bounds.x, second.glyph.bounds.right) == (35, 42)
    assert extractor.roi.slots[0].alter is first
    assert extractor.roi.slots[1].alter is second


def test_extract_all_candidates(extractor, pair_classifier):
    candidates = extractor.extract_all({Shape.SHARP})

    assert [len(c.parts) for c in candidates] == [2, 2]
    assert candidates[0].parts.isdisjoint(candidates[1].parts)
    # Single bars are too narrow to be classified
    assert pair_classifier.calls == 2
    # Slots are not touched
    assert all(slot.evaluation is None for slot in extractor.roi.slots)


def test_extract_all_wrong_shape(extractor):
    assert extractor.extract_all({Shape.FLAT}) == []
    assert extractor.assign_to_slots(Shape.FLAT) == []
    assert all(slot.alter is None for slot in extractor.roi.slots)


def test_extract_all_empty_area(staff, key_range, peaks, roi, pair_classifier):
    blank = np.zeros((60, 60), dtype=np.uint8)
    extractor = KeyExtractor(blank, staff, key_range, peaks, roi, pair_classifier)
    assert extractor.extract_all({Shape.SHARP}) == []
    assert extractor.assign_to_slots(Shape.SHARP) == []


def test_extract_single(extractor):
    slot = extractor.roi.slots[1]

    alter = extractor.extract_single(slot, {Shape.SHARP}, 0.5, crop_neighbors=False)

    assert alter is not None
    assert alter is slot.alter
    assert (alter.glyph.bounds.x, alter.glyph.bounds.right) == (35, 42)
    assert extractor.roi.slots[0].alter is None


def test_extract_single_keeps_alter_of_same_glyph(extractor):
    slot = extractor.roi.slots[0]
    first = extractor.extract_single(slot, {Shape.SHARP}, 0.5, crop_neighbors=False)
    glyph = slot.glyph
    # Let the next pass offer its own glyph for the same pixels
    slot.evaluation = None
    slot.glyph = None

    again = extractor.extract_single(slot, {Shape.SHARP}, 0.5, crop_neighbors=False)

    assert slot.glyph is not glyph
    assert slot.glyph.glyph_id == glyph.glyph_id
    assert again is first


def test_extract_single_below_min_grade(extractor):
    slot = extractor.roi.slots[0]
    # Intrinsic grade 0.72 is below 0.75
    assert extractor.extract_single(slot, {Shape.SHARP}, 0.75, crop_neighbors=True) is None
    assert slot.alter is None


def test_extract_single_unknown_slot(extractor):
    foreign = Slot(index=0, rect=BoundingBox(x=0, y=0, w=30, h=60))
    with pytest.raises(InputError):
        extractor.extract_single(foreign, {Shape.SHARP}, 0.5, crop_neighbors=False)


def test_idempotence(two_sharps_image, staff, key_range, peaks, roi, pair_classifier):
    results = []
    for _ in range(2):
        fresh = roi.model_copy(deep=True)
        extractor = KeyExtractor(two_sharps_image, staff, key_range, peaks, fresh, pair_classifier)
        results.append(summary(extractor.assign_to_slots(Shape.SHARP)))
    assert results[0] == results[1]
    assert len(results[0]) == 2


def test_parallel_subgraphs_same_result(two_sharps_image, staff, key_range, peaks, roi, pair_classifier):
    sequential = KeyExtractor(
        two_sharps_image, staff, key_range, peaks, roi.model_copy(deep=True), pair_classifier
    )
    parallel = KeyExtractor(
        two_sharps_image,
        staff,
        key_range,
        peaks,
        roi.model_copy(deep=True),
        pair_classifier,
        ExtractionSettings(max_workers=4),
    )
    assert summary(sequential.assign_to_slots(Shape.SHARP)) == summary(
        parallel.assign_to_slots(Shape.SHARP)
    )


def test_peak_not_embraced_rejects_candidate(two_sharps_image, staff, key_range, roi, pair_classifier):
    # Slot 0 expects a stem at x=20, which the first symbol does not cover
    peaks = [Peak(center=20.0), Peak(center=39.0)]
    extractor = KeyExtractor(two_sharps_image, staff, key_range, peaks, roi, pair_classifier)

    alters = extractor.assign_to_slots(Shape.SHARP)

    assert len(alters) == 1
    assert extractor.roi.slots[0].alter is None


def test_has_sufficient_ink(extractor):
    # min_glyph_weight is 20 for an interline of 10
    assert extractor.has_sufficient_ink(BoundingBox(x=0, y=0, w=30, h=60))
    assert not extractor.has_sufficient_ink(BoundingBox(x=15, y=0, w=15, h=60))


def test_record_samples(staff, key_range, roi, pair_classifier):
    source = np.zeros((60, 60), dtype=np.uint8)
    source[10:40, 5:7] = 255
    source[10:40, 11:13] = 255
    source[45:57, 45:51] = 255  # isolated clutter, classified but rejected
    extractor = KeyExtractor(source, staff, key_range, [], roi, pair_classifier)
    extractor.assign_to_slots(Shape.SHARP)

    recorder = MemorySampleRecorder()
    extractor.record_samples(recorder, True, True, Shape.SHARP)

    assert [s.shape for s in recorder.samples] == [Shape.SHARP, Shape.CLUTTER]
    positive, negative = recorder.samples
    assert positive.bounds.x == 5
    assert positive.interline == 10
    assert positive.pitch == pytest.approx((24.5 - 30.0) / 5)
    assert negative.bounds.x == 45


def test_record_samples_negatives_only(extractor):
    extractor.assign_to_slots(Shape.SHARP)
    recorder = MemorySampleRecorder()

    extractor.record_samples(recorder, False, True, Shape.SHARP)

    # Both submitted glyphs became alters
    assert recorder.samples == []


def test_record_samples_without_recorder(extractor):
    extractor.assign_to_slots(Shape.SHARP)
    extractor.record_samples(None, True, True, Shape.SHARP)


def test_invalid_inputs(two_sharps_image, staff, key_range, peaks, roi, pair_classifier):
    with pytest.raises(InputError):
        KeyExtractor(np.zeros((4, 4, 3)), staff, key_range, peaks, roi, pair_classifier)
    with pytest.raises(InputError):
        KeyExtractor(two_sharps_image, staff, KeyRange(start=10, stop=5), peaks, roi, pair_classifier)
    with pytest.raises(InputError):
        KeyExtractor(two_sharps_image, staff, key_range, peaks, KeyRoi(y=0, height=60), pair_classifier)


def test_slot_retry_keeps_accepted_glyph_out_of_negatives(extractor):
    alters = extractor.assign_to_slots(Shape.SHARP)
    accepted = {a.glyph.glyph_id for a in alters}

    retried = extractor.extract_single(extractor.roi.slots[0], {Shape.SHARP}, 0.5, crop_neighbors=False)
    assert retried is alters[0]

    recorder = MemorySampleRecorder()
    extractor.record_samples(recorder, True, True, Shape.SHARP)

    assert [(s.shape, s.bounds.x) for s in recorder.samples] == [(Shape.SHARP, 5), (Shape.SHARP, 35)]
    assert {s.glyph_id for s in recorder.samples} == accepted
