"""
End-to-end labeling runs through DefaultLabeler.
"""

import pytest

from calpoint.assigner import FIRST_FOUR_POINT, TWO_POINT
from calpoint.concentration import estimate_boundaries
from calpoint.labeler import DefaultLabeler
from calpoint.vocabulary import Tier


def primary_labels(readings):
    return [reading.identifier_primary for reading in readings]


def test_shape_match_example(make_readings, notepad):
    readings = make_readings([10, 10, 90, 90, 10, 90])
    report = DefaultLabeler().label(readings, notepad)

    assert primary_labels(readings) == ["Z1", "Z2", "S1", "S2", "Z5", "S5"]
    assert all(reading.rule_matched for reading in readings)
    assert report.matched_blocks == {FIRST_FOUR_POINT: range(0, 4), TWO_POINT: range(4, 6)}
    assert report.fallback_filled == 0
    assert not notepad.has_errors(include_subsections=True)
    assert not notepad.has_warnings(include_subsections=True)


def test_apply_labels_returns_the_same_readings(make_readings, notepad):
    readings = make_readings([1, 9])
    assert DefaultLabeler().apply_labels(readings, notepad) is readings
    assert primary_labels(readings) == ["Z5", "S5"]


def test_time_and_value_are_untouched(make_readings, notepad):
    readings = make_readings(["10 mg/L", "90 mg/L"], secondary=["1", "2"])
    before = [(r.id, r.time, r.value, r.value_secondary) for r in readings]
    DefaultLabeler().apply_labels(readings, notepad)
    assert [(r.id, r.time, r.value, r.value_secondary) for r in readings] == before


def test_receipt_fallback_without_numbers(make_readings, notepad):
    readings = make_readings(["n/a", "n/a", "n/a"])
    report = DefaultLabeler(receipt_number="zszzsszzssmmm").label(readings, notepad)

    assert report.boundaries is None
    assert primary_labels(readings) == ["Z5", "S5", "Z1"]
    assert not any(reading.rule_matched for reading in readings)
    assert report.fallback_filled == 3
    assert any("No numeric values found" in w.message for w in notepad.warnings())


def test_receipt_fallback_respects_existing_labels(make_readings, notepad):
    readings = make_readings(["n/a"] * 3, identifiers=[None, "Z5", None])
    DefaultLabeler(receipt_number=" zszzsszzssmmm ").apply_labels(readings, notepad)
    assert primary_labels(readings) == ["S5", "Z5", "Z1"]


def test_shape_match_evicts_earlier_fallback_label(make_readings, notepad):
    readings = make_readings([1, 1, 9, 9, "x"], identifiers=[None, None, None, None, "Z1"])
    DefaultLabeler().apply_labels(readings, notepad)
    assert primary_labels(readings) == ["Z1", "Z2", "S1", "S2", None]


def test_custom_receipt_patterns(make_readings, notepad):
    readings = make_readings(["a", "b", "c", "d", "e"])
    labeler = DefaultLabeler(receipt_number="any", receipt_patterns=lambda _: ["Z1", None, "bogus", "Z2"])
    labeler.apply_labels(readings, notepad)
    assert primary_labels(readings) == ["Z1", "Z2", None, None, None]
    assert any("3 of 5 readings" in w.message for w in notepad.warnings())


def test_failing_receipt_patterns_are_reported(make_readings, notepad):
    def broken(receipt_number):
        raise KeyError(receipt_number)

    readings = make_readings(["a", "b"])
    DefaultLabeler(receipt_number="R-1", receipt_patterns=broken).apply_labels(readings, notepad)
    assert notepad.has_errors(include_subsections=True)
    assert primary_labels(readings) == [None, None]


def test_dual_channel_mirrors_shape_matches(make_readings, notepad):
    readings = make_readings([1, 1, 9, 9], secondary=[2, 2, 8, 8])
    DefaultLabeler(dual_channel=True).apply_labels(readings, notepad)
    assert primary_labels(readings) == ["Z1", "Z2", "S1", "S2"]
    assert [r.identifier_secondary for r in readings] == ["Z1P", "Z2P", "S1P", "S2P"]


def test_dual_channel_mirrors_fallback_labels(make_readings, notepad):
    readings = make_readings(["-"] * 4, secondary=["-"] * 4)
    DefaultLabeler(receipt_number="zszz", dual_channel=True).apply_labels(readings, notepad)
    assert primary_labels(readings) == ["Z5", "S5", "Z1", "Z2"]
    assert [r.identifier_secondary for r in readings] == ["Z5P", "S5P", "Z1P", "Z2P"]


def test_single_channel_leaves_secondary_alone(make_readings, notepad):
    readings = make_readings([1, 9])
    DefaultLabeler().apply_labels(readings, notepad)
    assert [r.identifier_secondary for r in readings] == [None, None]


def test_row_range_limits_the_run(make_readings, notepad):
    readings = make_readings(["5", "5", "1", "1", "9", "9"])
    report = DefaultLabeler().label(readings, notepad, start_row=3, end_row=6)

    assert report.rows == range(2, 6)
    assert primary_labels(readings) == [None, None, "Z1", "Z2", "S1", "S2"]
    assert report.matched_blocks[FIRST_FOUR_POINT] == range(2, 6)



def test_row_range_uses_boundaries_of_the_whole_job(make_readings, notepad):
    # 40 and 60 are both medium against the job boundaries, so no block fits
    readings = make_readings(["0", "100", "40", "60"])
    report = DefaultLabeler().label(readings, notepad, start_row=3, end_row=4)

    assert report.boundaries == estimate_boundaries(readings)
    assert report.boundaries.boundary1 == pytest.approx(100 / 3)
    assert report.tiers == [Tier.MEDIUM, Tier.MEDIUM]
    assert primary_labels(readings) == [None, None, None, None]
    assert report.matched_blocks == {}

@pytest.mark.parametrize("start_row, end_row", [(5, 2), (0, 3), (2, 9)])
def test_invalid_row_range_is_an_error(make_readings, notepad, start_row, end_row):
    readings = make_readings([1, 1, 9, 9])
    report = DefaultLabeler().label(readings, notepad, start_row=start_row, end_row=end_row)
    assert notepad.has_errors(include_subsections=True)
    assert len(report.rows) == 0
    assert primary_labels(readings) == [None] * 4


def test_empty_input(notepad):
    report = DefaultLabeler(receipt_number="zszz").label([], notepad)
    assert report.readings == []
    assert not notepad.has_errors(include_subsections=True)


def test_rerun_gives_the_same_labels(make_readings, notepad):
    readings = make_readings([10, 10, 90, 90, 10, 90, "n/a"])
    labeler = DefaultLabeler(receipt_number="zszzsszzssmmm")
    labeler.apply_labels(readings, notepad)
    first = [(r.identifier_primary, r.rule_matched) for r in readings]
    labeler.apply_labels(readings, notepad)
    assert [(r.identifier_primary, r.rule_matched) for r in readings] == first


def test_labels_are_unique(make_readings, notepad):
    readings = make_readings([1, 1, 9, 9, 5, 5, 5, 1, 9, 2, "x", 3, 4, 7])
    DefaultLabeler(receipt_number="zszzsszzssmmmzszszs").apply_labels(readings, notepad)
    labels = [label for label in primary_labels(readings) if label is not None]
    assert len(labels) == len(set(labels))
