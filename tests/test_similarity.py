import pytest

from backend.campusbot.similarity import edit_distance, similarity

WORDS = ["", "a", "club", "Club", "clubs", "Robotics Club", "library", "kitten", "sitting", "Veg Sandwich"]


def test_identical_strings_are_one():
    for s in WORDS:
        assert similarity(s, s) == 1.0


def test_case_is_ignored():
    assert similarity("LIBRARY", "library") == 1.0


def test_both_empty_is_one():
    assert similarity("", "") == 1.0


def test_one_empty_is_zero():
    assert similarity("", "abc") == 0.0


def test_known_distance():
    assert edit_distance("kitten", "sitting") == 3
    assert similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_no_transposition_discount():
    assert edit_distance("ab", "ba") == 2


def test_edit_distance_basics():
    assert edit_distance("", "abc") == 3
    assert edit_distance("abc", "") == 3
    assert edit_distance("flaw", "lawn") == 2
    assert edit_distance("club", "clubs") == 1


@pytest.mark.parametrize("a", WORDS)
@pytest.mark.parametrize("b", WORDS)
def test_symmetric_and_bounded(a, b):
    s = similarity(a, b)
    assert s == similarity(b, a)
    assert 0.0 <= s <= 1.0
