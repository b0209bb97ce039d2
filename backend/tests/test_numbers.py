"""Tests for the shared numeric helpers."""
import pytest

from coach.services.agents.compute.numbers import round_half_up, to_fixed


class TestToFixed:

    @pytest.mark.parametrize("value,expected", [
        (0.125, "0.13"),
        (1.5, "1.50"),
        (-0.125, "-0.13"),
        (1e-26, "0.00"),
        (1e20, "100000000000000000000.00"),
    ])
    def test_fixed_point(self, value, expected):
        assert to_fixed(value) == expected

    def test_large_values_use_exponent_form(self):
        assert to_fixed(1.2e30) == "1.2e+30"
        assert to_fixed(-1e21) == "-1e+21"

    def test_non_finite(self):
        assert to_fixed(float("inf")) == "Infinity"
        assert to_fixed(float("-inf")) == "-Infinity"
        assert to_fixed(float("nan")) == "NaN"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
