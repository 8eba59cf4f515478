"""Tests for TrendAnalyzer early-warning signals."""
from datetime import datetime, timedelta

import pytest

from mindcheck.shared.models import TrendEntry, TriggerCategory
from mindcheck.services.observer_service.trend_analyzer import (
    TrendAnalyzer,
    TrendConfig,
    analyze,
)

START = datetime(2024, 3, 1, 9, 0)


def make_window(levels, triggers=None):
    """Build a window oldest to newest, one entry per day."""
    triggers = triggers or [TriggerCategory.OTHER] * len(levels)
    return [
        TrendEntry(
            stress_level=level,
            trigger_category=trigger,
            timestamp=START + timedelta(days=i),
        )
        for i, (level, trigger) in enumerate(zip(levels, triggers))
    ]


def rotating_triggers(n):
    """Triggers that never repeat five times within n <= 24 entries."""
    cycle = list(TriggerCategory)
    return [cycle[i % len(cycle)] for i in range(n)]


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


class TestInsufficientHistory:

    @pytest.mark.parametrize("levels", [[], [10], [10, 10]])
    def test_short_window_has_no_warning(self, analyzer, levels):
        """Fewer than three entries never warn, regardless of content."""
        verdict = analyzer.analyze(make_window(levels, [TriggerCategory.WORKLOAD] * len(levels)))

        assert verdict.has_warning_sign is False
        assert verdict.indicators is None

    def test_three_entries_are_analyzed(self, analyzer):
        verdict = analyzer.analyze(make_window([2, 3, 2], rotating_triggers(3)))

        assert verdict.indicators is not None
        assert verdict.has_warning_sign is False


class TestRecentHighStress:

    def test_last_five_all_high(self, analyzer):
        levels = [3, 3, 8, 9, 8, 10, 8]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.recent_high_stress is True
        assert verdict.has_warning_sign is True

    def test_four_of_last_five_is_enough(self, analyzer):
        levels = [8, 8, 7, 9, 9]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.recent_high_stress is True

    def test_seven_is_not_high(self, analyzer):
        """Only ratings strictly above 7 count."""
        levels = [7, 7, 8, 8, 8]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.recent_high_stress is False

    def test_older_high_entries_ignored(self, analyzer):
        levels = [9, 9, 9, 9, 2, 2, 2, 2, 9]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.recent_high_stress is False


class TestRapidIncrease:

    def test_recent_week_well_above_first_week(self, analyzer):
        levels = [3] * 7 + [6] * 7
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.rapid_increase is True
        assert verdict.indicators.average_recent_stress == pytest.approx(6.0)

    def test_exact_threshold_counts(self, analyzer):
        levels = [4] * 7 + [6] * 7
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.rapid_increase is True

    def test_baseline_is_start_of_window(self, analyzer):
        """The baseline is the earliest entries, not the ones just before the recent span."""
        levels = [1, 1, 1, 1, 1, 1, 1] + [5, 5, 5] + [4, 4, 4, 4, 4, 4, 4]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        # recent 4.0 vs earliest 1.0; a trailing split would compare against 2.71
        assert verdict.indicators.rapid_increase is True

    def test_short_window_compares_overlapping_spans(self, analyzer):
        levels = [2, 5, 9]
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.rapid_increase is False
        assert verdict.indicators.average_recent_stress == pytest.approx(16 / 3)

    def test_decrease_is_not_flagged(self, analyzer):
        levels = [9] * 7 + [3] * 7
        verdict = analyzer.analyze(make_window(levels, rotating_triggers(len(levels))))

        assert verdict.indicators.rapid_increase is False


class TestRepeatedTrigger:

    def test_dominant_trigger_reported(self, analyzer):
        triggers = [TriggerCategory.WORKLOAD] * 5 + [TriggerCategory.MEETINGS] * 2
        verdict = analyzer.analyze(make_window([4] * 7, triggers))

        assert verdict.indicators.repeated_trigger is TriggerCategory.WORKLOAD
        assert verdict.has_warning_sign is True

    def test_below_minimum_is_none(self, analyzer):
        triggers = [TriggerCategory.WORKLOAD] * 4 + [TriggerCategory.MEETINGS] * 3
        verdict = analyzer.analyze(make_window([4] * 7, triggers))

        assert verdict.indicators.repeated_trigger is None
        assert verdict.has_warning_sign is False

    def test_tie_goes_to_first_encountered(self, analyzer):
        triggers = (
            [TriggerCategory.PERSONAL, TriggerCategory.MEETINGS] * 5
        )
        verdict = analyzer.analyze(make_window([4] * 10, triggers))

        assert verdict.indicators.repeated_trigger is TriggerCategory.PERSONAL


class TestDeterminism:

    def test_window_not_mutated(self, analyzer):
        window = make_window([3, 9, 9, 9, 9, 9], [TriggerCategory.WORKLOAD] * 6)
        snapshot = list(window)

        analyzer.analyze(window)

        assert window == snapshot

    def test_identical_windows_identical_verdicts(self, analyzer):
        window = tuple(make_window([5, 6, 8, 9, 9, 8], rotating_triggers(6)))

        assert analyzer.analyze(window) == analyzer.analyze(window)

    def test_module_level_analyze(self):
        assert analyze(make_window([1, 2])).has_warning_sign is False

    def test_custom_thresholds(self):
        analyzer = TrendAnalyzer(TrendConfig(repeated_trigger_min=3))
        verdict = analyzer.analyze(make_window([2, 2, 2], [TriggerCategory.PERSONAL] * 3))

        assert verdict.indicators.repeated_trigger is TriggerCategory.PERSONAL

    def test_to_dict(self, analyzer):
        verdict = analyzer.analyze(make_window([8, 8, 8, 8, 8], [TriggerCategory.WORKLOAD] * 5))

        assert verdict.to_dict() == {
            "has_warning_sign": True,
            "indicators": {
                "recent_high_stress": True,
                "rapid_increase": False,
                "repeated_trigger": "workload",
                "average_recent_stress": 8.0,
            },
        }
