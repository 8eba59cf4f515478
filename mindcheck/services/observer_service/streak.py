"""Check-in streak and history statistics for dashboards."""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from mindcheck.shared.models import TrendEntry


def current_streak(checkin_dates: Iterable[date], today: date) -> int:
    """Count consecutive check-in days ending at the latest check-in.

    The streak is live only while the latest check-in is from today or
    yesterday; otherwise it is 0. Duplicate dates count once.

    Args:
        checkin_dates: Calendar dates the subject checked in
        today: Reference date

    Returns:
        Length of the live streak
    """
    days = sorted(set(checkin_dates), reverse=True)
    if not days or days[0] < today - timedelta(days=1):
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


@dataclass(frozen=True)
class HistoryStats:
    average_stress: Optional[float]
    total_checkins: int
    days_tracked: int
    current_streak: int

    def to_dict(self) -> dict:
        return {
            "average_stress": self.average_stress,
            "total_checkins": self.total_checkins,
            "days_tracked": self.days_tracked,
            "current_streak": self.current_streak,
        }


def summarize_history(
    entries: Sequence[TrendEntry],
    today: date,
    checkin_dates: Optional[Iterable[date]] = None,
) -> HistoryStats:
    """Dashboard summary of a subject's recent check-ins.

    Average and counts cover `entries`. The streak runs over
    `checkin_dates` (the full history) when given, otherwise over the
    entries themselves.
    """
    dates = [e.timestamp.date() for e in entries]
    average = (
        round(sum(e.stress_level for e in entries) / len(entries), 1)
        if entries else None
    )
    return HistoryStats(
        average_stress=average,
        total_checkins=len(entries),
        days_tracked=len(set(dates)),
        current_streak=current_streak(
            checkin_dates if checkin_dates is not None else dates, today
        ),
    )
