"""Effectiveness updater.

Global effectiveness of an intervention is the share of rated feedback
that says it helped. With no rated feedback the neutral score applies.
The updater is a pure computation; persisting the result and invalidating
caches is the caller's job (see CheckInProcessor.record_feedback).
"""
import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

from mindcheck.shared.models import FeedbackEvent, InterventionCandidate
from mindcheck.shared.utils import hash_pii
from .config import EffectivenessConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackSummary:
    """Aggregate counts over a set of feedback events."""
    total_count: int
    rated_count: int
    helpful_count: int
    completed_count: int
    average_follow_up_stress: Optional[float]
    score: float

    def to_dict(self) -> dict:
        return {
            "total_count": self.total_count,
            "rated_count": self.rated_count,
            "helpful_count": self.helpful_count,
            "completed_count": self.completed_count,
            "average_follow_up_stress": self.average_follow_up_stress,
            "score": round(self.score, 4),
        }


def summarize_feedback(
    events: Iterable[FeedbackEvent],
    config: Optional[EffectivenessConfig] = None,
) -> FeedbackSummary:
    config = config or EffectivenessConfig()
    total = rated = helpful = completed = 0
    follow_ups = []

    for event in events:
        total += 1
        if event.helpful is not None:
            rated += 1
            if event.helpful:
                helpful += 1
        if event.completed:
            completed += 1
        if event.follow_up_stress_level is not None:
            follow_ups.append(event.follow_up_stress_level)

    return FeedbackSummary(
        total_count=total,
        rated_count=rated,
        helpful_count=helpful,
        completed_count=completed,
        average_follow_up_stress=(
            round(sum(follow_ups) / len(follow_ups), 1) if follow_ups else None
        ),
        score=helpful / rated if rated else config.neutral_score,
    )


def recompute(
    intervention_id: str,
    feedback: Sequence[FeedbackEvent],
    config: Optional[EffectivenessConfig] = None,
) -> float:
    """Recompute the global effectiveness score for one intervention.

    Args:
        intervention_id: Intervention the feedback belongs to
        feedback: All feedback events loaded for that intervention
        config: Neutral score configuration

    Returns:
        helpful / rated in [0, 1], or the neutral score when nothing is rated
    """
    matching = [e for e in feedback if e.intervention_id == intervention_id]
    if len(matching) != len(feedback):
        logger.warning(
            "EFFECTIVENESS_FOREIGN_FEEDBACK_IGNORED",
            extra={
                "intervention_id": intervention_id,
                "ignored_count": len(feedback) - len(matching),
            }
        )

    summary = summarize_feedback(matching, config)

    logger.info(
        "EFFECTIVENESS_RECOMPUTED",
        extra={
            "intervention_id": intervention_id,
            "rated_count": summary.rated_count,
            "helpful_count": summary.helpful_count,
            "score": summary.score,
        }
    )
    return summary.score


@dataclass(frozen=True)
class PersonalStats:
    """One subject's history with one intervention."""
    usage_count: int
    score: Optional[float]    # None when the subject never rated it


def personal_effectiveness(subject_feedback: Iterable[FeedbackEvent]) -> Dict[str, PersonalStats]:
    """Per-intervention effectiveness for a single subject's feedback."""
    grouped: Dict[str, List[FeedbackEvent]] = {}
    for event in subject_feedback:
        grouped.setdefault(event.intervention_id, []).append(event)

    stats = {}
    for intervention_id, events in grouped.items():
        rated = [e for e in events if e.helpful is not None]
        helpful = sum(1 for e in rated if e.helpful)
        stats[intervention_id] = PersonalStats(
            usage_count=len(events),
            score=helpful / len(rated) if rated else None,
        )
    return stats


def rank_personalized(
    candidates: Sequence[InterventionCandidate],
    subject_feedback: Sequence[FeedbackEvent],
    limit: int = 5,
    subject_id: Optional[str] = None,
) -> List[InterventionCandidate]:
    """Order the catalog for one subject.

    The combined score is the subject's own effectiveness where they have
    rated the intervention, otherwise the global score. Ties go to the
    intervention the subject has used more.

    Returns:
        Up to `limit` candidates with personal_effectiveness_score filled in
    """
    stats = personal_effectiveness(subject_feedback)

    def combined(candidate: InterventionCandidate) -> float:
        personal = stats.get(candidate.id)
        if personal is not None and personal.score is not None:
            return personal.score
        return candidate.global_effectiveness_score

    def usage(candidate: InterventionCandidate) -> int:
        personal = stats.get(candidate.id)
        return personal.usage_count if personal else 0

    ordered = sorted(candidates, key=lambda c: (combined(c), usage(c)), reverse=True)

    result = [
        replace(
            c,
            personal_effectiveness_score=(
                stats[c.id].score if c.id in stats else None
            ),
        )
        for c in ordered[:limit]
    ]

    if subject_id is not None:
        logger.info(
            "PERSONALIZED_RANKING_BUILT",
            extra={
                "subject_hash": hash_pii(subject_id),
                "rated_interventions": sum(1 for s in stats.values() if s.score is not None),
                "returned_count": len(result),
            }
        )
    return result
