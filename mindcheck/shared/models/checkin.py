"""Check-in and trend window domain models.

A check-in is one subject-submitted stress report. Trend entries are the
slimmed-down view of past check-ins that trend analysis consumes.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence

MIN_STRESS_LEVEL = 1
MAX_STRESS_LEVEL = 10


class TriggerCategory(Enum):
    """What the subject reported as the source of their stress."""
    WORKLOAD = "workload"
    MEETINGS = "meetings"
    TEAM_CONFLICT = "team_conflict"
    UNCLEAR_GOALS = "unclear_goals"
    PERSONAL = "personal"
    OTHER = "other"


def clamp_stress_level(value: int) -> int:
    """Clamp a stored stress rating into the 1-10 scale."""
    return max(MIN_STRESS_LEVEL, min(MAX_STRESS_LEVEL, int(value)))


def validate_stress_level(value: Any) -> int:
    """Validate a stress rating at an input boundary.

    Args:
        value: Raw value supplied by a caller

    Returns:
        The rating as an int

    Raises:
        ValueError: If the value is not an integer within 1-10
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Stress level must be an integer, got {value!r}")
    if not MIN_STRESS_LEVEL <= value <= MAX_STRESS_LEVEL:
        raise ValueError(
            f"Stress level must be {MIN_STRESS_LEVEL}-{MAX_STRESS_LEVEL}, got {value}"
        )
    return value


@dataclass(frozen=True)
class CheckIn:
    """One check-in submitted by a subject.

    Immutable once created; the only post-hoc change is attaching the
    intervention that was shown, which produces a new instance.
    """
    id: str
    subject_id: str
    stress_level: int
    trigger_category: TriggerCategory
    free_text: Optional[str] = None
    previous_helper_hint: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    intervention_shown: Optional[str] = None

    def __post_init__(self):
        validate_stress_level(self.stress_level)
        if not isinstance(self.trigger_category, TriggerCategory):
            raise ValueError(
                f"Unknown trigger category: {self.trigger_category!r}"
            )

    def with_intervention(self, intervention_name: str) -> "CheckIn":
        """Return a copy carrying the intervention that was shown."""
        return replace(self, intervention_shown=intervention_name)

    def to_trend_entry(self) -> "TrendEntry":
        return TrendEntry(
            stress_level=self.stress_level,
            trigger_category=self.trigger_category,
            timestamp=self.timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "stress_level": self.stress_level,
            "trigger_category": self.trigger_category.value,
            "previous_helper_hint": self.previous_helper_hint,
            "timestamp": self.timestamp.isoformat(),
            "intervention_shown": self.intervention_shown,
        }


@dataclass(frozen=True)
class TrendEntry:
    """A single point of a subject's trend window."""
    stress_level: int
    trigger_category: TriggerCategory
    timestamp: datetime


# Ordered oldest to newest.
TrendWindow = Sequence[TrendEntry]
