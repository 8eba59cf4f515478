"""Observer Service: longitudinal check-in analysis.

Runs on demand (dashboard and admin drill-down), not on every check-in.

Components:
- trend_analyzer.py: TrendAnalyzer early-warning signals
- streak.py: streak and history statistics
- checkin_repository.py: PostgreSQL storage of check-ins and trend windows
"""

from .checkin_repository import CheckInRepository
from .streak import HistoryStats, current_streak, summarize_history
from .trend_analyzer import TrendAnalyzer, TrendConfig, analyze

__all__ = [
    "CheckInRepository",
    "HistoryStats",
    "current_streak",
    "summarize_history",
    "TrendAnalyzer",
    "TrendConfig",
    "analyze",
]
