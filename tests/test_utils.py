import math

from utils import (
    format_number,
    is_blank,
    levenshtein_distance,
    normalize_for_comparison,
    parse_numeric,
    round_half_up,
    string_similarity,
)


def test_normalize_trims_then_lowercases():
    assert normalize_for_comparison("  Foo Bar  ", False, True) == "foo bar"
    assert normalize_for_comparison("  Foo Bar  ", True, True) == "Foo Bar"
    assert normalize_for_comparison("  Foo Bar  ", False, False) == "  foo bar  "
    assert normalize_for_comparison(None, False, True) == ""


def test_parse_numeric():
    assert parse_numeric("12.34") == (12.34, True)
    assert parse_numeric(" 500 ") == (500.0, True)
    assert parse_numeric("1e3") == (1000.0, True)
    assert parse_numeric("-.5") == (-0.5, True)

    for value in ("abc", "", None, "nan", "inf", "12abc", "1,000"):
        parsed = parse_numeric(value)
        assert parsed.is_numeric is False
        assert math.isnan(parsed.num)


def test_levenshtein_and_similarity():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert string_similarity("kitten", "sitting") == 1 - 3 / 7
    assert string_similarity("abc", "abc") == 1.0
    assert string_similarity("abc", "xyz") == 0.0
    assert string_similarity("", "") == 1.0
    assert string_similarity("", "abcd") == 0.0


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4) == 2
    assert round_half_up(0) == 0


def test_format_number_and_blank():
    assert format_number(3.0) == "3"
    assert format_number(3.5) == "3.5"
    assert is_blank(None)
    assert is_blank("   ")
    assert not is_blank("0")


def test_overflowing_literals_are_not_numeric():
    for value in ("1e999", "-1e999", "1E400"):
        parsed = parse_numeric(value)
        assert parsed.is_numeric is False
        assert math.isnan(parsed.num)
    assert parse_numeric("1e300") == (1e300, True)
