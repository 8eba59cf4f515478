"""Check-in processor - orchestrates the engine for one request.

Flow for a submitted check-in:
    store -> classify -> escalate (crisis only) -> recommend top-1
    -> attach intervention -> invalidate subject caches

The engine components stay pure; this is the only place that wires them
to storage, alerts and the cache.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from mindcheck.shared.cache import RecommendationCache
from mindcheck.shared.database import RepositoryError
from mindcheck.shared.models import (
    CheckIn,
    FeedbackEvent,
    InterventionType,
    RankedRecommendation,
    SeverityVerdict,
    TrendVerdict,
    TriggerCategory,
    validate_stress_level,
)
from mindcheck.shared.utils import hash_pii
from mindcheck.services.crisis_engine import (
    CrisisHandler,
    CrisisResources,
    EscalationResult,
    get_crisis_resources,
)
from mindcheck.services.intervention_service import (
    InterventionRepository,
    InterventionScorer,
    InterventionUsage,
    TypeEffectiveness,
    UsageSummary,
    effectiveness_by_trigger,
    intervention_usage_stats,
    rank_personalized,
    recommendation_reason,
    recompute,
    usage_summary,
)
from mindcheck.services.observer_service import (
    CheckInRepository,
    HistoryStats,
    TrendAnalyzer,
    TrendConfig,
    summarize_history,
)
from mindcheck.services.safety_service import SeverityClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInOutcome:
    """Everything the subject sees after submitting a check-in."""
    checkin: CheckIn
    verdict: SeverityVerdict
    recommendation: Optional[RankedRecommendation] = None
    escalation: Optional[EscalationResult] = None
    resources: Optional[CrisisResources] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkin": self.checkin.to_dict(),
            "crisis": self.verdict.to_dict(),
            "intervention": self.recommendation.to_dict() if self.recommendation else None,
            "crisis_resources": self.resources.to_dict() if self.resources else None,
        }


@dataclass(frozen=True)
class ExplainedRecommendation:
    recommendation: RankedRecommendation
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        result = self.recommendation.to_dict()
        result["reason"] = self.reason
        return result


@dataclass(frozen=True)
class FeedbackOutcome:
    intervention_id: str
    effectiveness_score: float
    written: bool = field(default=True)


@dataclass(frozen=True)
class InterventionReport:
    """Intervention usage and effectiveness for one organization."""
    period_days: int
    interventions: List[InterventionUsage]
    by_trigger: Dict[TriggerCategory, List[TypeEffectiveness]]
    summary: UsageSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_days": self.period_days,
            "interventions": [u.to_dict() for u in self.interventions],
            "by_trigger": {
                trigger.value: [entry.to_dict() for entry in entries]
                for trigger, entries in self.by_trigger.items()
            },
            "summary": self.summary.to_dict(),
        }


class CheckInProcessor:
    """Wires classifier, crisis handler, scorer and analyzer to storage."""

    def __init__(
        self,
        checkins: CheckInRepository,
        interventions: InterventionRepository,
        crisis_handler: CrisisHandler,
        classifier: Optional[SeverityClassifier] = None,
        scorer: Optional[InterventionScorer] = None,
        analyzer: Optional[TrendAnalyzer] = None,
        cache: Optional[RecommendationCache] = None,
        trend_config: Optional[TrendConfig] = None,
    ):
        """Initialize processor.

        Args:
            checkins: Check-in storage and trend windows
            interventions: Catalog and feedback storage
            crisis_handler: Escalation to administrators
            classifier: Severity classifier (default lexicon)
            scorer: Intervention scorer (unseeded jitter)
            analyzer: Trend analyzer
            cache: Recommendation cache; None disables invalidation
            trend_config: Lookback settings for on-demand analysis
        """
        self.checkins = checkins
        self.interventions = interventions
        self.crisis_handler = crisis_handler
        self.classifier = classifier or SeverityClassifier()
        self.scorer = scorer or InterventionScorer()
        self.trend_config = trend_config or TrendConfig()
        self.analyzer = analyzer or TrendAnalyzer(self.trend_config)
        self.cache = cache

    def submit(self, checkin: CheckIn, organization_id: str) -> CheckInOutcome:
        """Process a newly submitted check-in.

        A catalog or storage failure while recommending leaves the
        recommendation empty; the verdict and crisis resources are still
        returned.

        Raises:
            DuplicateError: If the subject already checked in today
        """
        self.checkins.create(checkin, organization_id)

        verdict = self.classifier.classify(checkin.free_text, checkin.stress_level)

        escalation = None
        resources = None
        if verdict.is_crisis:
            escalation = self.crisis_handler.escalate(checkin, verdict, organization_id)
            resources = get_crisis_resources(verdict.severity)

        recommendation = None
        try:
            candidates = self.interventions.load_candidates(checkin.stress_level)
            ranked = self.scorer.recommend(
                checkin.stress_level,
                checkin.trigger_category,
                checkin.previous_helper_hint,
                candidates,
            )
            if ranked:
                recommendation = ranked[0]
                name = recommendation.intervention.name
                self.checkins.attach_intervention(checkin.id, name)
                checkin = checkin.with_intervention(name)
        except RepositoryError as e:
            # Check-in is already stored; respond without an intervention.
            logger.error(
                "CHECKIN_RECOMMENDATION_FAILED",
                extra={
                    "checkin_id": checkin.id,
                    "is_crisis": verdict.is_crisis,
                    "error": str(e),
                }
            )

        if self.cache is not None:
            self.cache.invalidate_subject(checkin.subject_id)

        logger.info(
            "CHECKIN_PROCESSED",
            extra={
                "checkin_id": checkin.id,
                "subject_id_hash": hash_pii(checkin.subject_id),
                "stress_level": checkin.stress_level,
                "is_crisis": verdict.is_crisis,
                "intervention_id": (
                    recommendation.intervention.id if recommendation else None
                ),
            }
        )

        return CheckInOutcome(
            checkin=checkin,
            verdict=verdict,
            recommendation=recommendation,
            escalation=escalation,
            resources=resources,
        )

    def recommend_for(
        self,
        stress_level: int,
        trigger_category: Optional[TriggerCategory] = None,
        previous_helper_hint: Optional[str] = None,
        limit: int = 3,
        max_duration_minutes: Optional[int] = None,
    ) -> List[ExplainedRecommendation]:
        """Explicit recommendation request outside of a check-in."""
        validate_stress_level(stress_level)
        candidates = self.interventions.load_candidates(stress_level)
        ranked = self.scorer.recommend_top(
            stress_level,
            trigger_category,
            previous_helper_hint,
            candidates,
            limit=limit,
            max_duration_minutes=max_duration_minutes,
        )
        return [
            ExplainedRecommendation(
                recommendation=r,
                reason=recommendation_reason(r.intervention, stress_level, trigger_category),
            )
            for r in ranked
        ]

    def recompute_intervention(self, intervention_id: str) -> FeedbackOutcome:
        """Recompute and write back one intervention's global score."""
        feedback = self.interventions.load_feedback(intervention_id)
        score = recompute(intervention_id, feedback)
        written = self.interventions.update_effectiveness(intervention_id, score)

        if self.cache is not None:
            self.cache.invalidate_interventions()

        return FeedbackOutcome(
            intervention_id=intervention_id,
            effectiveness_score=score,
            written=written,
        )

    def record_feedback(self, event: FeedbackEvent) -> FeedbackOutcome:
        """Append feedback and refresh the intervention's effectiveness."""
        self.interventions.append_feedback(event)
        outcome = self.recompute_intervention(event.intervention_id)

        if self.cache is not None:
            self.cache.invalidate_subject(event.subject_id)
        return outcome

    def analyze_subject(self, subject_id: str) -> TrendVerdict:
        window = self.checkins.load_trend_window(subject_id, self.trend_config.lookback_days)
        return self.analyzer.analyze(window)

    def history_for(self, subject_id: str, today: Optional[date] = None) -> HistoryStats:
        """Recent averages plus the streak over the subject's whole history."""
        if self.cache is not None:
            cached = self.cache.get_history(subject_id)
            if cached is not None:
                return HistoryStats(**cached)

        window = self.checkins.load_trend_window(subject_id, self.trend_config.lookback_days)
        stats = summarize_history(
            window,
            today or date.today(),
            checkin_dates=self.checkins.load_checkin_dates(subject_id),
        )

        if self.cache is not None:
            self.cache.set_history(subject_id, stats.to_dict())
        return stats

    def catalog(self, intervention_type: Optional[InterventionType] = None) -> List[Dict[str, Any]]:
        type_key = intervention_type.value if intervention_type is not None else None
        if self.cache is not None:
            cached = self.cache.get_catalog(type_key)
            if cached is not None:
                return cached

        payload = [c.to_dict() for c in self.interventions.load_catalog(intervention_type)]

        if self.cache is not None:
            self.cache.set_catalog(payload, type_key)
        return payload

    def personalized_for(self, subject_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Subject's best interventions by personal then global effectiveness."""
        if self.cache is not None:
            cached = self.cache.get_personalized(subject_id)
            if cached is not None:
                return cached

        ranked = rank_personalized(
            self.interventions.load_catalog(),
            self.interventions.load_subject_feedback(subject_id),
            limit=limit,
            subject_id=subject_id,
        )
        payload = [c.to_dict() for c in ranked]

        if self.cache is not None:
            self.cache.set_personalized(subject_id, payload)
        return payload

    def trigger_analysis(self, organization_id: str) -> Dict[TriggerCategory, List[TypeEffectiveness]]:
        return effectiveness_by_trigger(self.interventions.load_trigger_usage(organization_id))

    def intervention_report(self, organization_id: str, period_days: int = 30) -> InterventionReport:
        """Organization-wide intervention usage over the last `period_days`."""
        usage = intervention_usage_stats(
            self.interventions.load_intervention_usage(organization_id, period_days)
        )
        return InterventionReport(
            period_days=period_days,
            interventions=usage,
            by_trigger=self.trigger_analysis(organization_id),
            summary=usage_summary(usage),
        )
