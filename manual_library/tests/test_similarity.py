from __future__ import annotations

import pytest

from manual_library.catalog.similarity import edit_distance, similarity

PAIRS = [
    ("kitten", "sitting"),
    ("honda_cbr600", "honda_cbr_600"),
    ("", "abc"),
    ("Yamaha_R1", "yamaha_r1"),
    ("service manual", "owners manual"),
]


@pytest.mark.parametrize("value", ["", "a", "Honda_CBR600_2005", "éàü"])
def test_similarity_identity(value: str) -> None:
    assert similarity(value, value) == 1.0


@pytest.mark.parametrize(("a", "b"), PAIRS)
def test_similarity_is_symmetric(a: str, b: str) -> None:
    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity(a, b) <= 1.0


def test_empty_strings_are_identical() -> None:
    assert similarity("", "") == 1.0


def test_one_empty_string_scores_zero() -> None:
    assert similarity("", "manual") == 0.0


def test_edit_distance_classic_example() -> None:
    assert edit_distance("kitten", "sitting") == 3
    assert similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_single_insertion_clears_relocation_threshold() -> None:
    assert edit_distance("yamaha_r1", "yamahaa_r1") == 1
    assert similarity("yamaha_r1", "yamahaa_r1") > 0.7
