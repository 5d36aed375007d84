import pytest

from tradekit.mathutil import to_fixed, to_fixed_e5, to_fixed_e5p


def test_to_fixed_e5_from_source():
    assert to_fixed_e5(10000.51) == 10000.5


@pytest.mark.parametrize(
    "value, expected",
    [(10000.0, 10000.0), (10000.2, 10000.0), (10000.3, 10000.5), (10000.8, 10001.0), (10000.74, 10000.5)],
)
def test_to_fixed_e5_steps(value, expected):
    assert to_fixed_e5(value) == expected


def test_to_fixed_rounds_to_precision():
    assert to_fixed(1.23456, 2) == pytest.approx(1.23)
    assert to_fixed(1.235, 0) == 1.0


def test_to_fixed_half_goes_away_from_zero():
    assert to_fixed(2.5, 0) == 3.0
    assert to_fixed(-2.5, 0) == -3.0


def test_to_fixed_e5p_zero_precision_matches_e5():
    assert to_fixed_e5p(10000.51, 0) == to_fixed_e5(10000.51)


def test_to_fixed_e5p_one_decimal():
    assert to_fixed_e5p(0.123, 1) == pytest.approx(0.1)
    assert to_fixed_e5p(0.148, 1) == pytest.approx(0.15)