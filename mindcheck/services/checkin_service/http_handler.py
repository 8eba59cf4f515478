"""Check-in Service HTTP handler.

Thin Flask boundary over CheckInProcessor. Request bodies are validated
here (stress level 1-10, known trigger category, duration 1-60 minutes)
so the engine only ever sees well-formed input.
"""
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from mindcheck.shared.cache import CacheConfig, RecommendationCache
from mindcheck.shared.database import DuplicateError, get_connection_manager
from mindcheck.shared.models import (
    CheckIn,
    FeedbackEvent,
    InterventionType,
    TriggerCategory,
    validate_stress_level,
)
from mindcheck.shared.utils import configure_pii_salt, hash_pii
from mindcheck.services.crisis_engine import (
    AdminNotifier,
    CrisisHandler,
    FlaggedResponseRepository,
    NotifierConfig,
    get_crisis_resources,
)
from mindcheck.services.intervention_service import (
    InterventionRepository,
    InterventionScorer,
    ScoringWeights,
)
from mindcheck.services.observer_service import CheckInRepository, TrendConfig
from mindcheck.services.safety_service import SafetyConfig, SeverityClassifier
from .processor import CheckInProcessor

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 60
DEFAULT_RECOMMENDATION_LIMIT = 3
DEFAULT_REPORT_PERIOD_DAYS = 30
MAX_REPORT_PERIOD_DAYS = 365

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

classifier = SeverityClassifier(SafetyConfig.from_env())

_processor: Optional[CheckInProcessor] = None


def get_processor() -> CheckInProcessor:
    """Build the processor on first use from environment configuration."""
    global _processor
    if _processor is None:
        manager = get_connection_manager()
        trend_config = TrendConfig.from_env()
        _processor = CheckInProcessor(
            checkins=CheckInRepository(manager),
            interventions=InterventionRepository(manager),
            crisis_handler=CrisisHandler(
                repository=FlaggedResponseRepository(manager),
                notifier=AdminNotifier(NotifierConfig.from_env()),
            ),
            classifier=classifier,
            scorer=InterventionScorer(ScoringWeights.from_env()),
            cache=RecommendationCache(config=CacheConfig.from_env()),
            trend_config=trend_config,
        )
        logger.info("CHECKIN_PROCESSOR_INITIALIZED")
    return _processor


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None or data == {}:
        raise ValueError("Request body required")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _require(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"Missing {key}")
    return value


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _optional_bool(data: Dict[str, Any], key: str) -> Optional[bool]:
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _parse_trigger(value: Optional[str]) -> Optional[TriggerCategory]:
    if value is None:
        return None
    try:
        return TriggerCategory(value)
    except ValueError:
        raise ValueError(f"Invalid stress trigger: {value}")


def _parse_duration(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("time_available must be an integer")
    if not MIN_DURATION_MINUTES <= value <= MAX_DURATION_MINUTES:
        raise ValueError(
            f"time_available must be {MIN_DURATION_MINUTES}-{MAX_DURATION_MINUTES}, got {value}"
        )
    return value


def _parse_intervention_type(value: Optional[str]) -> Optional[InterventionType]:
    if not value:
        return None
    try:
        return InterventionType(value)
    except ValueError:
        raise ValueError(f"Invalid intervention type: {value}")


def _parse_period(value: Any) -> int:
    if value is None:
        return DEFAULT_REPORT_PERIOD_DAYS
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("period must be an integer")
    if not 1 <= value <= MAX_REPORT_PERIOD_DAYS:
        raise ValueError(f"period must be 1-{MAX_REPORT_PERIOD_DAYS} days, got {value}")
    return value


def _bad_request(error: Exception):
    return jsonify({"error": str(error)}), 400


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "checkin-service",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - database must answer."""
    try:
        status = get_connection_manager().health_check()
    except Exception as e:
        logger.error("READINESS_CHECK_FAILED", extra={"error": str(e)})
        return jsonify({"status": "not_ready"}), 503

    if not status.get("healthy"):
        return jsonify({"status": "not_ready", "database": status.get("status")}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/classify", methods=["POST"])
def classify():
    """Classify free text without storing anything.

    Request Body:
        {"free_text": "...", "stress_level": 7}

    Response:
        {"is_crisis": true, "severity": "high", "matched_phrases": [...],
         "reason": "...", "crisis_resources": {...}}
    """
    try:
        data = _body()
        stress_level = validate_stress_level(_require(data, "stress_level"))
        free_text = _optional_text(data, "free_text")

        verdict = classifier.classify(free_text, stress_level)

        payload = verdict.to_dict()
        if verdict.is_crisis:
            payload["crisis_resources"] = get_crisis_resources(verdict.severity).to_dict()
        return jsonify(payload), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("CLASSIFY_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to classify"}), 500


@app.route("/checkins", methods=["POST"])
def submit_checkin():
    """Submit today's check-in.

    Request Body:
        {
            "subject_id": "emp_001",
            "organization_id": "org_001",
            "stress_level": 7,
            "stress_trigger": "workload",
            "free_text": "optional",
            "previous_helper_hint": "optional"
        }
    """
    try:
        data = _body()
        checkin = CheckIn(
            id=data.get("id") or f"chk_{uuid.uuid4().hex[:12]}",
            subject_id=_require(data, "subject_id"),
            stress_level=validate_stress_level(_require(data, "stress_level")),
            trigger_category=_parse_trigger(_require(data, "stress_trigger")),
            free_text=_optional_text(data, "free_text"),
            previous_helper_hint=_optional_text(data, "previous_helper_hint"),
        )
        organization_id = _require(data, "organization_id")

        outcome = get_processor().submit(checkin, organization_id)
        return jsonify(outcome.to_dict()), 201

    except DuplicateError:
        return jsonify({"error": "You have already checked in today"}), 409
    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("CHECKIN_SUBMIT_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to submit check-in"}), 500


@app.route("/analyze", methods=["POST"])
def analyze():
    """Trend analysis over the subject's recent check-ins.

    Request Body:
        {"subject_id": "emp_001"}
    """
    try:
        subject_id = _require(_body(), "subject_id")
        verdict = get_processor().analyze_subject(subject_id)
        return jsonify(verdict.to_dict()), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("ANALYZE_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to analyze trends"}), 500


@app.route("/history", methods=["POST"])
def history():
    """Average stress, check-in count and current streak for a subject."""
    try:
        subject_id = _require(_body(), "subject_id")
        stats = get_processor().history_for(subject_id)
        return jsonify({
            "average_stress": stats.average_stress,
            "total_checkins": stats.total_checkins,
            "days_tracked": stats.days_tracked,
            "current_streak": stats.current_streak,
        }), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("HISTORY_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to load history"}), 500


@app.route("/recommend", methods=["POST"])
def recommend():
    """Explicit recommendation request.

    Request Body:
        {
            "stress_level": 8,
            "stress_trigger": "meetings",          (optional)
            "time_available": 10,                  (optional, minutes 1-60)
            "previous_helper_hint": "Box breathing" (optional)
        }
    """
    try:
        data = _body()
        stress_level = validate_stress_level(_require(data, "stress_level"))
        trigger = _parse_trigger(data.get("stress_trigger"))
        max_duration = _parse_duration(data.get("time_available"))

        recommendations = get_processor().recommend_for(
            stress_level,
            trigger,
            _optional_text(data, "previous_helper_hint"),
            limit=DEFAULT_RECOMMENDATION_LIMIT,
            max_duration_minutes=max_duration,
        )
        return jsonify({
            "recommendations": [r.to_dict() for r in recommendations],
            "context": {
                "stress_level": stress_level,
                "stress_trigger": trigger.value if trigger else None,
                "time_available": max_duration,
            },
        }), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("RECOMMEND_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to get recommendations"}), 500


@app.route("/interventions", methods=["GET"])
def list_interventions():
    """Intervention catalog, best first.

    Query:
        type: optional intervention type filter
    """
    try:
        intervention_type = _parse_intervention_type(request.args.get("type"))
        return jsonify({"interventions": get_processor().catalog(intervention_type)}), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("CATALOG_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to list interventions"}), 500


@app.route("/personalized", methods=["POST"])
def personalized():
    """Subject's interventions ordered by personal effectiveness."""
    try:
        subject_id = _require(_body(), "subject_id")
        return jsonify({"interventions": get_processor().personalized_for(subject_id)}), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("PERSONALIZED_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to get interventions"}), 500


@app.route("/feedback", methods=["POST"])
def feedback():
    """Record feedback on a shown intervention.

    Request Body:
        {
            "intervention_id": "int_001",
            "subject_id": "emp_001",
            "checkin_id": "chk_001",
            "helpful": true,
            "completed": true,
            "follow_up_stress_level": 4
        }
    """
    try:
        data = _body()
        event = FeedbackEvent(
            intervention_id=_require(data, "intervention_id"),
            subject_id=_require(data, "subject_id"),
            checkin_id=_optional_text(data, "checkin_id"),
            helpful=_optional_bool(data, "helpful"),
            completed=_optional_bool(data, "completed"),
            follow_up_stress_level=data.get("follow_up_stress_level"),
            created_at=datetime.utcnow(),
        )

        outcome = get_processor().record_feedback(event)

        logger.info(
            "FEEDBACK_RECORDED",
            extra={
                "intervention_id": event.intervention_id,
                "subject_id_hash": hash_pii(event.subject_id),
            }
        )
        return jsonify({
            "intervention_id": outcome.intervention_id,
            "effectiveness_score": outcome.effectiveness_score,
        }), 201

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("FEEDBACK_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to record feedback"}), 500


@app.route("/recompute", methods=["POST"])
def recompute():
    """Recompute an intervention's effectiveness from all its feedback.

    Request Body:
        {"intervention_id": "int_001"}
    """
    try:
        intervention_id = _require(_body(), "intervention_id")
        outcome = get_processor().recompute_intervention(intervention_id)
        if not outcome.written:
            return jsonify({"error": "Intervention not found"}), 404
        return jsonify({
            "intervention_id": outcome.intervention_id,
            "effectiveness_score": outcome.effectiveness_score,
        }), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("RECOMPUTE_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to recompute effectiveness"}), 500


@app.route("/analytics/triggers", methods=["POST"])
def trigger_analytics():
    """Effectiveness of intervention types per stress trigger."""
    try:
        organization_id = _require(_body(), "organization_id")
        analysis = get_processor().trigger_analysis(organization_id)
        return jsonify({
            trigger.value: [entry.to_dict() for entry in entries]
            for trigger, entries in analysis.items()
        }), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("TRIGGER_ANALYTICS_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to analyze interventions"}), 500


@app.route("/analytics/interventions", methods=["POST"])
def intervention_analytics():
    """Per-intervention usage, trigger breakdown and headline summary.

    Request Body:
        {"organization_id": "org_001", "period": 30}
    """
    try:
        data = _body()
        organization_id = _require(data, "organization_id")
        period_days = _parse_period(data.get("period"))

        report = get_processor().intervention_report(organization_id, period_days)
        return jsonify(report.to_dict()), 200

    except ValueError as e:
        return _bad_request(e)
    except Exception as e:
        logger.error("INTERVENTION_ANALYTICS_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to load intervention statistics"}), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8080"))
    app.run(host="0.0.0.0", port=port, debug=False)
