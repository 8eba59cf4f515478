"""Intervention catalog, feedback and recommendation models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .checkin import MAX_STRESS_LEVEL, MIN_STRESS_LEVEL, validate_stress_level


class InterventionType(Enum):
    """Kinds of coping activity in the catalog."""
    BREATHING = "breathing"
    MEDITATION = "meditation"
    ACTIVITY = "activity"
    JOURNALING = "journaling"
    SOCIAL = "social"
    BREAK = "break"


def _check_unit_score(name: str, value: Optional[float]) -> None:
    if value is not None and not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be 0.0-1.0, got {value}")


@dataclass(frozen=True)
class InterventionCandidate:
    """A catalogued coping activity with its effectiveness statistics.

    global_effectiveness_score only changes through recomputation from
    feedback; every write-back bumps version and updated_at.
    personal_effectiveness_score is derived per subject at read time.
    """
    id: str
    name: str
    type: InterventionType
    applicable_stress_range: Tuple[int, int]
    duration_minutes: int
    global_effectiveness_score: float = 0.5
    personal_effectiveness_score: Optional[float] = None
    content: Optional[str] = None
    version: int = 1
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        low, high = self.applicable_stress_range
        if not MIN_STRESS_LEVEL <= low <= high <= MAX_STRESS_LEVEL:
            raise ValueError(
                f"Invalid applicable stress range: {self.applicable_stress_range}"
            )
        _check_unit_score("Global effectiveness", self.global_effectiveness_score)
        _check_unit_score("Personal effectiveness", self.personal_effectiveness_score)

    def applies_to(self, stress_level: int) -> bool:
        low, high = self.applicable_stress_range
        return low <= stress_level <= high

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "applicable_stress_range": list(self.applicable_stress_range),
            "duration_minutes": self.duration_minutes,
            "content": self.content,
            "effectiveness_score": round(self.global_effectiveness_score * 100),
            "personal_effectiveness_score": (
                round(self.personal_effectiveness_score * 100)
                if self.personal_effectiveness_score is not None else None
            ),
        }


@dataclass(frozen=True)
class FeedbackEvent:
    """One piece of feedback about an intervention. Append-only."""
    intervention_id: str
    subject_id: str
    checkin_id: Optional[str] = None
    helpful: Optional[bool] = None
    completed: Optional[bool] = None
    follow_up_stress_level: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if self.follow_up_stress_level is not None:
            validate_stress_level(self.follow_up_stress_level)
        for name in ("helpful", "completed"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class RankedRecommendation:
    """A scored candidate in a recommendation ranking."""
    intervention: InterventionCandidate
    score: float
    reason_tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = self.intervention.to_dict()
        result["score"] = round(self.score, 3)
        result["reason_tags"] = list(self.reason_tags)
        return result
