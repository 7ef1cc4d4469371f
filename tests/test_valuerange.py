import pytest

from ffuf.valuerange import ValueRange, value_range_from_string


def test_single_value():
    assert value_range_from_string("42") == ValueRange(42, 42)


def test_range_value():
    assert value_range_from_string("100-200") == ValueRange(100, 200)


@pytest.mark.parametrize("text", ["200-100", "10-10"])
def test_range_min_must_be_smaller(text):
    with pytest.raises(ValueError, match="Minimum has to be smaller than maximum"):
        value_range_from_string(text)


@pytest.mark.parametrize("text", ["abc", "", "1-2-3", " 5", "5\n", "1.5"])
def test_invalid_values(text):
    with pytest.raises(ValueError, match="Invalid value"):
        value_range_from_string(text)


def test_range_bounds_are_inclusive_and_ordered():
    result = value_range_from_string("3-9")
    assert result.min < result.max
    assert (result.min, result.max) == (3, 9)


def test_overflow_rejected():
    with pytest.raises(ValueError):
        value_range_from_string("99999999999999999999")