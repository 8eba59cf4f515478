"""Severity and trend risk domain models.

This file defines the core enums and verdicts produced by crisis
classification and trend analysis. Verdicts are computed per call and
never persisted by the engine itself.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .checkin import TriggerCategory


class SeverityTier(Enum):
    """Crisis severity tiers, totally ordered none < medium < high < critical.

    NONE stands in for "no crisis" so that a verdict can never claim a
    crisis without a tier.
    """
    NONE = "none"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    SeverityTier.NONE: 0,
    SeverityTier.MEDIUM: 1,
    SeverityTier.HIGH: 2,
    SeverityTier.CRITICAL: 3,
}


@dataclass(frozen=True)
class SeverityVerdict:
    """Outcome of classifying one check-in.

    Immutable - a verdict cannot be modified after classification.
    """
    severity: SeverityTier = SeverityTier.NONE
    matched_phrases: List[str] = field(default_factory=list)
    reason: str = ""

    def __post_init__(self):
        if self.severity is not SeverityTier.NONE and not self.matched_phrases:
            raise ValueError(
                f"Severity {self.severity.value} requires at least one contributing signal"
            )

    @property
    def is_crisis(self) -> bool:
        return self.severity is not SeverityTier.NONE

    @classmethod
    def not_crisis(cls) -> "SeverityVerdict":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        if not self.is_crisis:
            return {"is_crisis": False, "severity": None, "matched_phrases": [], "reason": ""}
        return {
            "is_crisis": True,
            "severity": self.severity.value,
            "matched_phrases": list(self.matched_phrases),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TrendIndicators:
    """The three independent trend signals plus the recent average."""
    recent_high_stress: bool
    rapid_increase: bool
    repeated_trigger: Optional[TriggerCategory]
    average_recent_stress: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recent_high_stress": self.recent_high_stress,
            "rapid_increase": self.rapid_increase,
            "repeated_trigger": self.repeated_trigger.value if self.repeated_trigger else None,
            "average_recent_stress": round(self.average_recent_stress, 2),
        }


@dataclass(frozen=True)
class TrendVerdict:
    """Early-warning verdict over a subject's trend window.

    indicators is None when the window was too short to judge.
    """
    has_warning_sign: bool
    indicators: Optional[TrendIndicators] = None

    @classmethod
    def insufficient(cls) -> "TrendVerdict":
        return cls(has_warning_sign=False)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"has_warning_sign": self.has_warning_sign}
        if self.indicators is not None:
            result["indicators"] = self.indicators.to_dict()
        return result
