"""Tests for quantity parsing from food text."""

from nutrition_estimator.services.quantities import (
    count_near,
    extract_count,
    leading_count,
    parse_grams,
)


def test_parse_grams_reads_compact_and_spelled_units() -> None:
    assert parse_grams("5g butter") == 5
    assert parse_grams("10 g oil") == 10
    assert parse_grams("oil 15 grams") == 15
    assert parse_grams("200gm rice") == 200


def test_parse_grams_ignores_other_units_and_out_of_range() -> None:
    assert parse_grams("1kg chicken") is None
    assert parse_grams("2 eggs") is None
    assert parse_grams("5000g rice") is None
    assert parse_grams("0g sugar") is None
    assert parse_grams("") is None


def test_count_near_allows_one_descriptive_word() -> None:
    assert count_near("3 boiled eggs", r"eggs?\b") == 3
    assert count_near("toast with 2 eggs", r"eggs?\b") == 2
    assert count_near("2eggs", r"eggs?\b") == 2


def test_count_near_skips_weights() -> None:
    assert count_near("5g fried eggs", r"eggs?\b") is None
    assert count_near("10g butter and 2 eggs", r"eggs?\b") == 2


def test_leading_count_ignores_weights() -> None:
    assert leading_count("3 omelettes") == 3
    assert leading_count("50g paneer") is None
    assert leading_count("paneer 2") is None


def test_extract_count_defaults_and_clamps() -> None:
    assert extract_count("egg bhurji", r"eggs?\b", default=1, maximum=20) == 1
    assert extract_count("50 eggs", r"eggs?\b", default=1, maximum=20) == 20
    assert extract_count("0 eggs", r"eggs?\b", default=1, maximum=20) == 1
    assert extract_count("roti", r"rotis?\b", default=2, maximum=10) == 2
