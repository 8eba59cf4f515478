"""Trend analyzer - slow-building risk detection over a check-in window.

Computes three independent signals over the same window:
- recent_high_stress: most of the last few check-ins rated high
- rapid_increase: recent average well above the start of the window
- repeated_trigger: one trigger category dominating the window

The rapid-increase baseline is the earliest entries of the lookback
window, not the entries just before the recent span. With a 14-day
window this compares the last week to the first week; with shorter
windows the two spans overlap. Product review pending on whether a
trailing split was intended.
"""
import logging
import os
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence

from mindcheck.shared.models import (
    TrendEntry,
    TrendIndicators,
    TrendVerdict,
    TriggerCategory,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendConfig:
    """Thresholds for trend analysis."""
    lookback_days: int = 14
    min_entries: int = 3
    recent_count: int = 5
    recent_high_min: int = 4
    high_stress_threshold: int = 7    # strictly greater counts as high
    average_span: int = 7
    rapid_increase_delta: float = 2.0
    repeated_trigger_min: int = 5

    @classmethod
    def from_env(cls) -> "TrendConfig":
        return cls(
            lookback_days=int(os.getenv("TREND_LOOKBACK_DAYS", "14")),
            rapid_increase_delta=float(os.getenv("TREND_RAPID_INCREASE_DELTA", "2.0")),
            repeated_trigger_min=int(os.getenv("TREND_REPEATED_TRIGGER_MIN", "5")),
        )


def _mean_stress(entries: Sequence[TrendEntry]) -> float:
    return sum(e.stress_level for e in entries) / len(entries)


class TrendAnalyzer:
    """Derives an early-warning verdict from a subject's trend window.

    Read-only and deterministic: identical windows give identical
    verdicts and the window is never modified.
    """

    def __init__(self, config: Optional[TrendConfig] = None):
        self.config = config or TrendConfig()

    def analyze(self, window: Sequence[TrendEntry]) -> TrendVerdict:
        """Analyze a window ordered oldest to newest.

        Args:
            window: Trend entries covering the lookback period

        Returns:
            TrendVerdict; no indicators when the window is too short
        """
        if len(window) < self.config.min_entries:
            logger.info(
                "TREND_INSUFFICIENT_HISTORY",
                extra={"entry_count": len(window), "min_entries": self.config.min_entries}
            )
            return TrendVerdict.insufficient()

        recent_high_stress = self._recent_high_stress(window)
        average_recent = _mean_stress(window[-self.config.average_span:])
        average_baseline = _mean_stress(window[:self.config.average_span])
        rapid_increase = (average_recent - average_baseline) >= self.config.rapid_increase_delta
        repeated_trigger = self._repeated_trigger(window)

        indicators = TrendIndicators(
            recent_high_stress=recent_high_stress,
            rapid_increase=rapid_increase,
            repeated_trigger=repeated_trigger,
            average_recent_stress=average_recent,
        )
        has_warning_sign = recent_high_stress or rapid_increase or repeated_trigger is not None

        logger.info(
            "TREND_ANALYZED",
            extra={
                "entry_count": len(window),
                "has_warning_sign": has_warning_sign,
                "recent_high_stress": recent_high_stress,
                "rapid_increase": rapid_increase,
                "repeated_trigger": repeated_trigger.value if repeated_trigger else None,
                "average_recent_stress": round(average_recent, 2),
                "average_baseline_stress": round(average_baseline, 2),
            }
        )

        return TrendVerdict(has_warning_sign=has_warning_sign, indicators=indicators)

    def _recent_high_stress(self, window: Sequence[TrendEntry]) -> bool:
        recent = window[-self.config.recent_count:]
        high = sum(1 for e in recent if e.stress_level > self.config.high_stress_threshold)
        return high >= self.config.recent_high_min

    def _repeated_trigger(self, window: Sequence[TrendEntry]) -> Optional[TriggerCategory]:
        # Counter.most_common keeps first-seen order among equal counts.
        counts = Counter(e.trigger_category for e in window)
        category, count = counts.most_common(1)[0]
        if count >= self.config.repeated_trigger_min:
            return category
        return None


_default_analyzer: Optional[TrendAnalyzer] = None


def analyze(window: Sequence[TrendEntry]) -> TrendVerdict:
    """Analyze with the default thresholds."""
    global _default_analyzer
    if _default_analyzer is None:
        _default_analyzer = TrendAnalyzer()
    return _default_analyzer.analyze(window)
