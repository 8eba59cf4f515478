"""Tests for CheckInProcessor orchestration."""
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from mindcheck.shared.database import DuplicateError, RepositoryError
from mindcheck.shared.models import (
    CheckIn,
    FeedbackEvent,
    InterventionCandidate,
    InterventionType,
    SeverityTier,
    TrendEntry,
    TriggerCategory,
)
from mindcheck.shared.utils import configure_pii_salt
from mindcheck.services.checkin_service.processor import CheckInProcessor
from mindcheck.services.intervention_service import InterventionScorer, ScoringWeights
from mindcheck.services.intervention_service.stats import ShownInterventionRow, TriggerUsageRow


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


def candidate(cid, itype, score=0.5, duration=5):
    return InterventionCandidate(
        id=cid,
        name=f"Intervention {cid}",
        type=itype,
        applicable_stress_range=(1, 10),
        duration_minutes=duration,
        global_effectiveness_score=score,
    )


@pytest.fixture
def catalog():
    return [
        candidate("walk", InterventionType.ACTIVITY, 0.9),
        candidate("box", InterventionType.BREATHING, 0.6, duration=3),
        candidate("scan", InterventionType.MEDITATION, 0.7, duration=15),
    ]


@pytest.fixture
def checkins():
    return MagicMock()


@pytest.fixture
def interventions(catalog):
    repo = MagicMock()
    repo.load_candidates.return_value = catalog
    repo.load_catalog.return_value = catalog
    repo.update_effectiveness.return_value = True
    return repo


@pytest.fixture
def crisis_handler():
    return MagicMock()


@pytest.fixture
def cache():
    c = MagicMock()
    c.get_personalized.return_value = None
    c.get_history.return_value = None
    c.get_catalog.return_value = None
    return c


@pytest.fixture
def processor(checkins, interventions, crisis_handler, cache):
    return CheckInProcessor(
        checkins=checkins,
        interventions=interventions,
        crisis_handler=crisis_handler,
        scorer=InterventionScorer(ScoringWeights(max_jitter=0)),
        cache=cache,
    )


def make_checkin(stress=8, text=None, trigger=TriggerCategory.WORKLOAD):
    return CheckIn(
        id="chk_1",
        subject_id="emp_1",
        stress_level=stress,
        trigger_category=trigger,
        free_text=text,
    )


class TestSubmit:

    def test_calm_checkin(self, processor, checkins, crisis_handler, cache):
        outcome = processor.submit(make_checkin(stress=8), "org_1")

        checkins.create.assert_called_once()
        crisis_handler.escalate.assert_not_called()
        assert outcome.verdict.is_crisis is False
        assert outcome.resources is None
        # box: 60 + 20 bucket + 15 trigger beats scan: 70 + 20; walk excluded
        assert outcome.recommendation.intervention.id == "box"
        assert outcome.checkin.intervention_shown == "Intervention box"
        checkins.attach_intervention.assert_called_once_with("chk_1", "Intervention box")
        cache.invalidate_subject.assert_called_once_with("emp_1")

    def test_crisis_checkin_escalates(self, processor, crisis_handler):
        outcome = processor.submit(make_checkin(text="I feel hopeless"), "org_1")

        assert outcome.verdict.severity is SeverityTier.HIGH
        crisis_handler.escalate.assert_called_once()
        args = crisis_handler.escalate.call_args[0]
        assert args[1] is outcome.verdict
        assert args[2] == "org_1"
        assert outcome.resources.message == "We're concerned about you. Support is available."

    def test_crisis_still_gets_intervention(self, processor):
        outcome = processor.submit(make_checkin(text="I want to die"), "org_1")

        assert outcome.recommendation is not None

    def test_no_applicable_intervention(self, processor, interventions, checkins):
        interventions.load_candidates.return_value = [candidate("walk", InterventionType.ACTIVITY)]

        outcome = processor.submit(make_checkin(stress=9), "org_1")

        assert outcome.recommendation is None
        assert outcome.checkin.intervention_shown is None
        checkins.attach_intervention.assert_not_called()

    def test_duplicate_propagates(self, processor, checkins, crisis_handler):
        checkins.create.side_effect = DuplicateError("dup")

        with pytest.raises(DuplicateError):
            processor.submit(make_checkin(text="I want to die"), "org_1")

        crisis_handler.escalate.assert_not_called()

    def test_catalog_failure_keeps_crisis_response(self, processor, interventions, checkins, crisis_handler, cache):
        interventions.load_candidates.side_effect = RepositoryError("catalog down")

        outcome = processor.submit(make_checkin(text="I want to kill myself"), "org_1")

        assert outcome.verdict.severity is SeverityTier.CRITICAL
        crisis_handler.escalate.assert_called_once()
        assert outcome.resources is not None
        assert outcome.recommendation is None
        assert outcome.to_dict()["crisis_resources"]["hotline"] == "988"
        checkins.attach_intervention.assert_not_called()
        cache.invalidate_subject.assert_called_once_with("emp_1")

    def test_attach_failure_still_returns_recommendation(self, processor, checkins):
        checkins.attach_intervention.side_effect = RepositoryError("write failed")

        outcome = processor.submit(make_checkin(), "org_1")

        assert outcome.recommendation.intervention.id == "box"
        assert outcome.checkin.intervention_shown is None

    def test_unexpected_errors_propagate(self, processor, interventions):
        interventions.load_candidates.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            processor.submit(make_checkin(), "org_1")

    def test_to_dict(self, processor):
        payload = processor.submit(make_checkin(), "org_1").to_dict()

        assert payload["crisis"]["is_crisis"] is False
        assert payload["intervention"]["id"] == "box"
        assert payload["crisis_resources"] is None


class TestRecommendFor:

    def test_top_three_with_reasons(self, processor):
        results = processor.recommend_for(6, TriggerCategory.MEETINGS)

        assert len(results) == 3
        assert all(r.reason for r in results)
        assert "reason" in results[0].to_dict()

    def test_duration_filter(self, processor):
        results = processor.recommend_for(6, None, max_duration_minutes=5)

        assert "scan" not in [r.recommendation.intervention.id for r in results]

    def test_invalid_stress_level(self, processor):
        with pytest.raises(ValueError):
            processor.recommend_for(11)


class TestFeedback:

    def test_record_feedback_recomputes_and_invalidates(self, processor, interventions, cache):
        event = FeedbackEvent(intervention_id="box", subject_id="emp_1", helpful=True)
        interventions.load_feedback.return_value = [
            event,
            FeedbackEvent(intervention_id="box", subject_id="emp_2", helpful=True),
            FeedbackEvent(intervention_id="box", subject_id="emp_3", helpful=True),
            FeedbackEvent(intervention_id="box", subject_id="emp_4", helpful=False),
        ]

        outcome = processor.record_feedback(event)

        interventions.append_feedback.assert_called_once_with(event)
        interventions.update_effectiveness.assert_called_once_with("box", 0.75)
        assert outcome.effectiveness_score == 0.75
        cache.invalidate_interventions.assert_called_once()
        cache.invalidate_subject.assert_called_once_with("emp_1")

    def test_recompute_without_feedback(self, processor, interventions):
        interventions.load_feedback.return_value = []

        outcome = processor.recompute_intervention("box")

        assert outcome.effectiveness_score == 0.5


class TestAnalysis:

    def test_analyze_subject_uses_lookback(self, processor, checkins):
        checkins.load_trend_window.return_value = [
            TrendEntry(9, TriggerCategory.WORKLOAD, datetime(2024, 5, d)) for d in range(1, 6)
        ]

        verdict = processor.analyze_subject("emp_1")

        checkins.load_trend_window.assert_called_once_with("emp_1", 14)
        assert verdict.has_warning_sign is True

    def test_history_for(self, processor, checkins, cache):
        checkins.load_trend_window.return_value = [
            TrendEntry(4, TriggerCategory.WORKLOAD, datetime(2024, 5, 9)),
            TrendEntry(6, TriggerCategory.WORKLOAD, datetime(2024, 5, 10)),
        ]
        checkins.load_checkin_dates.return_value = [date(2024, 5, 10), date(2024, 5, 9)]

        stats = processor.history_for("emp_1", today=date(2024, 5, 10))

        assert stats.average_stress == 5.0
        assert stats.current_streak == 2
        cache.set_history.assert_called_once_with("emp_1", stats.to_dict())

    def test_streak_longer_than_lookback(self, processor, checkins):
        today = date(2024, 5, 30)
        days = [today - timedelta(days=n) for n in range(30)]
        checkins.load_trend_window.return_value = [
            TrendEntry(5, TriggerCategory.WORKLOAD, datetime(d.year, d.month, d.day, 9))
            for d in sorted(days)[-15:]
        ]
        checkins.load_checkin_dates.return_value = days

        stats = processor.history_for("emp_1", today=today)

        assert stats.total_checkins == 15
        assert stats.current_streak == 30
        checkins.load_checkin_dates.assert_called_once_with("emp_1")

    def test_history_cache_hit(self, processor, checkins, cache):
        cache.get_history.return_value = {
            "average_stress": 4.5,
            "total_checkins": 6,
            "days_tracked": 6,
            "current_streak": 3,
        }

        stats = processor.history_for("emp_1")

        assert stats.current_streak == 3
        checkins.load_trend_window.assert_not_called()

    def test_trigger_analysis(self, processor, interventions):
        interventions.load_trigger_usage.return_value = [
            TriggerUsageRow(TriggerCategory.MEETINGS, InterventionType.BREATHING, True)
        ] * 5

        analysis = processor.trigger_analysis("org_1")

        assert analysis[TriggerCategory.MEETINGS][0].effectiveness == 100


class TestPersonalized:

    def test_cache_hit(self, processor, cache, interventions):
        cache.get_personalized.return_value = [{"id": "box"}]

        assert processor.personalized_for("emp_1") == [{"id": "box"}]
        interventions.load_catalog.assert_not_called()

    def test_cache_miss_populates(self, processor, cache, interventions):
        interventions.load_subject_feedback.return_value = [
            FeedbackEvent(intervention_id="box", subject_id="emp_1", helpful=True),
        ]

        payload = processor.personalized_for("emp_1")

        assert payload[0]["id"] == "box"
        cache.set_personalized.assert_called_once_with("emp_1", payload)

    def test_ranks_whole_catalog(self, processor, interventions):
        processor.personalized_for("emp_1")

        interventions.load_catalog.assert_called_once_with()


class TestCatalog:

    def test_cache_miss_loads_and_stores(self, processor, interventions, cache):
        payload = processor.catalog(InterventionType.BREATHING)

        interventions.load_catalog.assert_called_once_with(InterventionType.BREATHING)
        assert [p["id"] for p in payload] == ["walk", "box", "scan"]
        cache.set_catalog.assert_called_once_with(payload, "breathing")

    def test_cache_hit(self, processor, interventions, cache):
        cache.get_catalog.return_value = [{"id": "box"}]

        assert processor.catalog() == [{"id": "box"}]
        cache.get_catalog.assert_called_once_with(None)
        interventions.load_catalog.assert_not_called()


class TestInterventionReport:

    def test_report(self, processor, interventions):
        interventions.load_intervention_usage.return_value = [
            ShownInterventionRow("chk_1", "Box breathing", InterventionType.BREATHING, 8, True, True, 5),
            ShownInterventionRow("chk_2", "Box breathing", InterventionType.BREATHING, 6, False),
        ]
        interventions.load_trigger_usage.return_value = []

        report = processor.intervention_report("org_1", period_days=7)

        interventions.load_intervention_usage.assert_called_once_with("org_1", 7)
        payload = report.to_dict()
        assert payload["period_days"] == 7
        assert payload["interventions"][0]["times_shown"] == 2
        assert payload["interventions"][0]["click_rate"] == 50
        assert payload["summary"]["most_used"] == "Box breathing"
        assert payload["by_trigger"] == {}
