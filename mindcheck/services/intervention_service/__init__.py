"""Intervention Service: adaptive coping recommendations.

Components:
- config.py: stress buckets, type policies and scoring weights
- scorer.py: InterventionScorer weighted ranking
- effectiveness.py: effectiveness recomputation from feedback
- stats.py: per-trigger effectiveness and per-intervention usage analytics
- intervention_repository.py: catalog and feedback storage
"""

from .config import (
    BUCKET_POLICIES,
    TRIGGER_PREFERENCES,
    EffectivenessConfig,
    ScoringWeights,
    StressBucket,
    stress_bucket,
)
from .effectiveness import (
    FeedbackSummary,
    PersonalStats,
    personal_effectiveness,
    rank_personalized,
    recompute,
    summarize_feedback,
)
from .intervention_repository import InterventionRepository
from .scorer import InterventionScorer, recommend, recommendation_reason
from .stats import (
    InterventionUsage,
    ShownInterventionRow,
    TriggerUsageRow,
    TypeEffectiveness,
    UsageSummary,
    effectiveness_by_trigger,
    intervention_usage_stats,
    usage_summary,
)

__all__ = [
    "BUCKET_POLICIES",
    "TRIGGER_PREFERENCES",
    "EffectivenessConfig",
    "ScoringWeights",
    "StressBucket",
    "stress_bucket",
    "FeedbackSummary",
    "PersonalStats",
    "personal_effectiveness",
    "rank_personalized",
    "recompute",
    "summarize_feedback",
    "InterventionRepository",
    "InterventionScorer",
    "recommend",
    "recommendation_reason",
    "InterventionUsage",
    "ShownInterventionRow",
    "TriggerUsageRow",
    "TypeEffectiveness",
    "UsageSummary",
    "effectiveness_by_trigger",
    "intervention_usage_stats",
    "usage_summary",
]
