"""Tests for the windowed constraint solver."""

from __future__ import annotations

import math
from datetime import timedelta

import pytest

from helpers import make_device, make_series
from spot_scheduler.optimisation.constraints import satisfy_constraints

# A realistic day: cheap night, morning and evening peaks.
DAY_PRICES = [
    42.1, 38.0, 35.5, 33.2, 34.9, 40.3, 61.7, 88.4, 95.0, 90.2, 75.1, 70.0,
    66.3, 64.8, 69.9, 77.7, 92.5, 120.4, 131.0, 110.2, 85.6, 60.1, 50.3, 45.0,
]


def _indices(series, enabled) -> set[int]:
    return {i for i, p in enumerate(series) if p.timestamp in enabled}


class TestScenarios:
    def test_threshold_with_ratio_max(self) -> None:
        series = make_series([10, 5, 8, 2])
        device = make_device(threshold=6, ratio_max=0.5, window=timedelta(hours=2))
        assert _indices(series, satisfy_constraints(series, device)) == {1, 3}

    def test_ratio_min_only(self) -> None:
        series = make_series([10, 5, 8, 2])
        device = make_device(ratio_min=0.5, window=timedelta(hours=2))
        assert _indices(series, satisfy_constraints(series, device)) == {1, 3}


class TestThreshold:
    def test_threshold_only_is_exact(self) -> None:
        series = make_series(DAY_PRICES)
        device = make_device(threshold=60.0)
        enabled = satisfy_constraints(series, device)
        assert enabled == frozenset(p.timestamp for p in series if p.price <= 60.0)

    def test_threshold_is_inclusive(self) -> None:
        series = make_series([5.0, 6.0, 7.0])
        assert _indices(series, satisfy_constraints(series, make_device(threshold=6.0))) == {0, 1}

    def test_no_rules_enables_nothing(self) -> None:
        series = make_series(DAY_PRICES)
        assert satisfy_constraints(series, make_device()) == frozenset()


class TestRatioMax:
    def test_caps_each_window(self) -> None:
        series = make_series([1, 2, 3, 4, 5, 6])
        device = make_device(threshold=100, ratio_max=0.5, window=timedelta(hours=2))
        # Every pair keeps only its cheaper slot: the first one.
        assert _indices(series, satisfy_constraints(series, device)) == {0}

    def test_whole_day_window_by_default(self) -> None:
        series = make_series([4, 3, 2, 1])
        device = make_device(threshold=100, ratio_max=0.5)
        assert _indices(series, satisfy_constraints(series, device)) == {2, 3}

    def test_ties_keep_earlier_slot(self) -> None:
        series = make_series([5, 5, 5])
        device = make_device(threshold=5, ratio_max=1 / 3)
        assert _indices(series, satisfy_constraints(series, device)) == {0}

    def test_never_adds_slots(self) -> None:
        series = make_series(DAY_PRICES)
        threshold_only = satisfy_constraints(series, make_device(threshold=70.0))
        capped = satisfy_constraints(
            series, make_device(threshold=70.0, ratio_max=0.25, window=timedelta(hours=6))
        )
        assert capped <= threshold_only

    def test_zero_ratio_disables_everything_in_windows(self) -> None:
        series = make_series([1, 2, 3])
        device = make_device(threshold=100, ratio_max=0.0)
        assert satisfy_constraints(series, device) == frozenset()


class TestRatioMin:
    def test_guarantee_holds_in_every_window(self) -> None:
        series = make_series(DAY_PRICES)
        window = timedelta(hours=6)
        device = make_device(threshold=50.0, ratio_min=0.25, ratio_max=0.5, window=window)
        enabled = satisfy_constraints(series, device)

        size = series.window_size(window)
        need = math.ceil(0.25 * size)
        for w in series.windows(size):
            assert sum(1 for p in w if p.timestamp in enabled) >= need

    def test_ties_keep_earlier_slot(self) -> None:
        series = make_series([5, 5, 5])
        device = make_device(ratio_min=1 / 3)
        assert _indices(series, satisfy_constraints(series, device)) == {0}

    def test_enables_above_threshold(self) -> None:
        series = make_series([50, 60, 70])
        device = make_device(threshold=10, ratio_min=0.5)
        # need = ceil(1.5) = 2 cheapest of the whole day
        assert _indices(series, satisfy_constraints(series, device)) == {0, 1}

    def test_runs_after_ratio_max(self) -> None:
        series = make_series([1, 2, 3, 4])
        device = make_device(threshold=10, ratio_min=0.5, ratio_max=0.75)
        # ratio_max keeps three slots, ratio_min adds nothing new
        assert _indices(series, satisfy_constraints(series, device)) == {0, 1, 2}

    def test_min_re_enables_slot_removed_by_max(self) -> None:
        series = make_series([1, 2, 3, 4])
        # cap = floor(0.3 * 4) = 1, need = ceil(0.3 * 4) = 2
        capped = make_device(threshold=10, ratio_max=0.3)
        both = make_device(threshold=10, ratio_min=0.3, ratio_max=0.3)
        assert _indices(series, satisfy_constraints(series, capped)) == {0}
        assert _indices(series, satisfy_constraints(series, both)) == {0, 1}

    def test_float_ratio_does_not_round_up(self) -> None:
        series = make_series(list(range(10)))
        device = make_device(ratio_min=0.3)
        assert len(satisfy_constraints(series, device)) == 3


class TestEdgeCases:
    def test_window_longer_than_series_leaves_threshold_result(self) -> None:
        series = make_series([10, 5, 8, 2])
        device = make_device(
            threshold=8, ratio_min=0.5, ratio_max=0.5, window=timedelta(hours=5)
        )
        assert _indices(series, satisfy_constraints(series, device)) == {1, 2, 3}

    def test_window_longer_than_series_without_threshold_is_empty(self) -> None:
        series = make_series([10, 5, 8, 2])
        device = make_device(ratio_min=1.0, window=timedelta(hours=5))
        assert satisfy_constraints(series, device) == frozenset()

    def test_window_shorter_than_interval_is_no_op(self) -> None:
        series = make_series([10, 5, 8, 2])
        device = make_device(ratio_min=1.0, window=timedelta(minutes=30))
        assert satisfy_constraints(series, device) == frozenset()

    def test_single_point_series(self) -> None:
        series = make_series([42.0])
        device = make_device(ratio_min=0.5, window=timedelta(hours=2))
        assert satisfy_constraints(series, device) == series.timestamps()

    def test_quarter_hour_series(self) -> None:
        series = make_series([4, 3, 2, 1, 1, 2, 3, 4], step=timedelta(minutes=15))
        device = make_device(ratio_min=0.25, window=timedelta(hours=1))
        enabled = _indices(series, satisfy_constraints(series, device))
        # windows of 4 slots, one cheapest each
        assert enabled == {3, 4}


class TestProperties:
    @pytest.mark.parametrize(
        "rules",
        [
            {"threshold": 60.0},
            {"ratio_min": 0.3, "window": timedelta(hours=4)},
            {"threshold": 80.0, "ratio_max": 0.4, "window": timedelta(hours=8)},
            {"threshold": 40.0, "ratio_min": 0.2, "ratio_max": 0.6, "window": timedelta(hours=3)},
            {"threshold": 40.0, "ratio_min": 0.1},
        ],
    )
    def test_subset_and_deterministic(self, rules: dict) -> None:
        series = make_series(DAY_PRICES)
        device = make_device(**rules)
        first = satisfy_constraints(series, device)
        assert first <= series.timestamps()
        assert satisfy_constraints(series, device) == first
