"""Tests for shared numeric helpers."""

from __future__ import annotations

import pytest

from sheetwise.core.stats import mean_confidence, round_half_up


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,ndigits,expected", [
        (8.25, 1, 8.3),
        (8.24, 1, 8.2),
        (2.5, 0, 3),
        (12.5, 0, 13),
        (0, 1, 0),
    ])
    def test_ties_round_up(self, value, ndigits, expected):
        assert round_half_up(value, ndigits) == expected


class TestMeanConfidence:
    def test_empty_is_zero(self):
        assert mean_confidence([]) == 0

    def test_rounds_to_one_decimal(self):
        assert mean_confidence([8, 8, 8, 9]) == 8.3
        assert mean_confidence([7, 8]) == 7.5
