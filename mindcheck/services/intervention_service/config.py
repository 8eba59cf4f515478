"""Intervention scoring policies and weights.

Bucket policies and the trigger map are data; the scorer only reads them.
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet

from mindcheck.shared.models import InterventionType, TriggerCategory


class StressBucket(Enum):
    HIGH_STRESS = "high_stress"       # 8-10
    MEDIUM_STRESS = "medium_stress"   # 5-7
    LOW_STRESS = "low_stress"         # 1-4


def stress_bucket(stress_level: int) -> StressBucket:
    if stress_level >= 8:
        return StressBucket.HIGH_STRESS
    if stress_level <= 4:
        return StressBucket.LOW_STRESS
    return StressBucket.MEDIUM_STRESS


@dataclass(frozen=True)
class BucketPolicy:
    """Preferred types earn a bonus; excluded types are filtered out."""
    preferred: FrozenSet[InterventionType]
    excluded: FrozenSet[InterventionType]


BUCKET_POLICIES: Dict[StressBucket, BucketPolicy] = {
    StressBucket.HIGH_STRESS: BucketPolicy(
        preferred=frozenset({
            InterventionType.BREATHING,
            InterventionType.MEDITATION,
            InterventionType.BREAK,
        }),
        # Too stimulating at high stress
        excluded=frozenset({InterventionType.ACTIVITY}),
    ),
    StressBucket.MEDIUM_STRESS: BucketPolicy(
        preferred=frozenset({
            InterventionType.ACTIVITY,
            InterventionType.MEDITATION,
            InterventionType.SOCIAL,
        }),
        excluded=frozenset(),
    ),
    StressBucket.LOW_STRESS: BucketPolicy(
        preferred=frozenset({
            InterventionType.JOURNALING,
            InterventionType.ACTIVITY,
            InterventionType.SOCIAL,
        }),
        # Unnecessary at low stress
        excluded=frozenset({InterventionType.BREATHING}),
    ),
}

TRIGGER_PREFERENCES: Dict[TriggerCategory, FrozenSet[InterventionType]] = {
    TriggerCategory.WORKLOAD: frozenset({
        InterventionType.BREAK, InterventionType.BREATHING, InterventionType.ACTIVITY,
    }),
    TriggerCategory.MEETINGS: frozenset({
        InterventionType.BREATHING, InterventionType.MEDITATION, InterventionType.BREAK,
    }),
    TriggerCategory.TEAM_CONFLICT: frozenset({
        InterventionType.SOCIAL, InterventionType.JOURNALING, InterventionType.MEDITATION,
    }),
    TriggerCategory.UNCLEAR_GOALS: frozenset({
        InterventionType.JOURNALING, InterventionType.BREAK, InterventionType.SOCIAL,
    }),
    TriggerCategory.PERSONAL: frozenset({
        InterventionType.MEDITATION, InterventionType.SOCIAL, InterventionType.JOURNALING,
    }),
    TriggerCategory.OTHER: frozenset({
        InterventionType.MEDITATION, InterventionType.BREATHING, InterventionType.ACTIVITY,
    }),
}

TRIGGER_REASONS: Dict[TriggerCategory, str] = {
    TriggerCategory.WORKLOAD: "Effective for workload-related stress",
    TriggerCategory.MEETINGS: "Helps decompress after meetings",
    TriggerCategory.TEAM_CONFLICT: "Supports emotional regulation",
    TriggerCategory.UNCLEAR_GOALS: "Provides clarity and focus",
    TriggerCategory.PERSONAL: "Addresses personal stressors",
    TriggerCategory.OTHER: "General stress relief",
}


@dataclass(frozen=True)
class ScoringWeights:
    """Additive weights for the recommendation score."""
    effectiveness_multiplier: float = 100.0
    bucket_bonus: float = 20.0
    trigger_bonus: float = 15.0
    repeat_penalty: float = 10.0
    max_jitter: float = 10.0    # 0 disables exploration

    @classmethod
    def from_env(cls) -> "ScoringWeights":
        return cls(max_jitter=float(os.getenv("RECOMMENDATION_MAX_JITTER", "10.0")))


@dataclass(frozen=True)
class EffectivenessConfig:
    # Score reported when no rated feedback exists
    neutral_score: float = 0.5
    # Minimum rated samples before a trigger/type group is reported
    min_sample_size: int = 5
