"""Shared domain models for the MindCheck platform."""
from .checkin import (
    MAX_STRESS_LEVEL,
    MIN_STRESS_LEVEL,
    CheckIn,
    TrendEntry,
    TrendWindow,
    TriggerCategory,
    clamp_stress_level,
    validate_stress_level,
)
from .intervention import (
    FeedbackEvent,
    InterventionCandidate,
    InterventionType,
    RankedRecommendation,
)
from .risk import (
    SeverityTier,
    SeverityVerdict,
    TrendIndicators,
    TrendVerdict,
)

__all__ = [
    "MAX_STRESS_LEVEL",
    "MIN_STRESS_LEVEL",
    "CheckIn",
    "TrendEntry",
    "TrendWindow",
    "TriggerCategory",
    "clamp_stress_level",
    "validate_stress_level",
    "FeedbackEvent",
    "InterventionCandidate",
    "InterventionType",
    "RankedRecommendation",
    "SeverityTier",
    "SeverityVerdict",
    "TrendIndicators",
    "TrendVerdict",
]
