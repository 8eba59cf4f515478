"""Intervention scorer - ranks coping activities for a check-in.

Scoring is additive:
    global effectiveness * 100
    + 20 if the type suits the stress bucket
    + 15 if the type suits the reported trigger
    - 10 if it is what the subject said helped last time (variety)
    + uniform jitter in [0, 10) for exploration

The jitter source is injectable so callers can seed it or turn it off.
Ties after jitter keep catalog order.
"""
import logging
import random
from typing import List, Optional, Protocol, Sequence

from mindcheck.shared.models import (
    InterventionCandidate,
    RankedRecommendation,
    TriggerCategory,
)
from .config import (
    BUCKET_POLICIES,
    TRIGGER_PREFERENCES,
    TRIGGER_REASONS,
    ScoringWeights,
    StressBucket,
    stress_bucket,
)

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...


class InterventionScorer:
    """Weighted ranking of intervention candidates."""

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        rng: Optional[RandomSource] = None,
    ):
        """Initialize scorer.

        Args:
            weights: Score weights; max_jitter=0 makes ranking deterministic
            rng: Jitter source with a random() method (seeded in tests)
        """
        self.weights = weights or ScoringWeights()
        self.rng = rng or random.Random()

    def recommend(
        self,
        stress_level: int,
        trigger_category: Optional[TriggerCategory],
        previous_helper_hint: Optional[str],
        candidates: Sequence[InterventionCandidate],
    ) -> List[RankedRecommendation]:
        """Rank candidates for one check-in.

        Args:
            stress_level: Stress rating 1-10
            trigger_category: Reported trigger, if any
            previous_helper_hint: Name of what helped last time, if any
            candidates: Catalog slice in catalog order

        Returns:
            Recommendations sorted best first; empty when nothing applies
        """
        bucket = stress_bucket(stress_level)
        policy = BUCKET_POLICIES[bucket]
        trigger_types = TRIGGER_PREFERENCES.get(trigger_category, frozenset())

        eligible = [
            c for c in candidates
            if c.applies_to(stress_level) and c.type not in policy.excluded
        ]

        ranked = []
        for candidate in eligible:
            score = candidate.global_effectiveness_score * self.weights.effectiveness_multiplier
            tags = ["global_effectiveness"]

            if candidate.type in policy.preferred:
                score += self.weights.bucket_bonus
                tags.append("stress_bucket_match")
            if candidate.type in trigger_types:
                score += self.weights.trigger_bonus
                tags.append("trigger_match")
            if previous_helper_hint is not None and candidate.name == previous_helper_hint:
                score -= self.weights.repeat_penalty
                tags.append("repeat_penalty")
            if self.weights.max_jitter > 0:
                score += self.rng.random() * self.weights.max_jitter
                tags.append("exploration")

            ranked.append(RankedRecommendation(intervention=candidate, score=score, reason_tags=tags))

        # sorted() is stable, so equal scores keep catalog order.
        ranked = sorted(ranked, key=lambda r: r.score, reverse=True)

        logger.info(
            "RECOMMENDATION_RANKED",
            extra={
                "stress_bucket": bucket.value,
                "trigger_category": trigger_category.value if trigger_category else None,
                "candidate_count": len(candidates),
                "eligible_count": len(eligible),
                "top_intervention_id": ranked[0].intervention.id if ranked else None,
            }
        )
        return ranked

    def recommend_top(
        self,
        stress_level: int,
        trigger_category: Optional[TriggerCategory],
        previous_helper_hint: Optional[str],
        candidates: Sequence[InterventionCandidate],
        limit: int = 3,
        max_duration_minutes: Optional[int] = None,
    ) -> List[RankedRecommendation]:
        """Top recommendations for an explicit request.

        max_duration_minutes is a hard filter applied before scoring.
        """
        if max_duration_minutes is not None:
            candidates = [c for c in candidates if c.duration_minutes <= max_duration_minutes]
        return self.recommend(
            stress_level, trigger_category, previous_helper_hint, candidates
        )[:limit]


_default_scorer: Optional[InterventionScorer] = None


def recommend(
    stress_level: int,
    trigger_category: Optional[TriggerCategory],
    previous_helper_hint: Optional[str],
    candidates: Sequence[InterventionCandidate],
) -> List[RankedRecommendation]:
    """Rank with default weights and an unseeded jitter source."""
    global _default_scorer
    if _default_scorer is None:
        _default_scorer = InterventionScorer()
    return _default_scorer.recommend(
        stress_level, trigger_category, previous_helper_hint, candidates
    )


def recommendation_reason(
    candidate: InterventionCandidate,
    stress_level: int,
    trigger_category: Optional[TriggerCategory] = None,
) -> str:
    """Human-readable explanation shown next to a recommendation."""
    reasons = []

    bucket = stress_bucket(stress_level)
    if bucket is StressBucket.HIGH_STRESS:
        reasons.append("Helps manage high stress levels")
    elif bucket is StressBucket.LOW_STRESS:
        reasons.append("Maintains your positive state")

    if trigger_category is not None:
        reasons.append(TRIGGER_REASONS[trigger_category])

    if candidate.duration_minutes <= 5:
        reasons.append("Quick and easy to complete")

    return ". ".join(reasons)
