"""Intervention catalog and feedback repository.

The catalog lives in the interventions table; feedback is append-only in
intervention_feedback. Effectiveness write-backs bump the row version so
readers can tell a recomputed score from a stale cached one.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from mindcheck.shared.database import BaseRepository, ConnectionManager
from mindcheck.shared.models import (
    FeedbackEvent,
    InterventionCandidate,
    InterventionType,
    TriggerCategory,
    clamp_stress_level,
)
from mindcheck.shared.utils import hash_pii
from .stats import ShownInterventionRow, TriggerUsageRow

logger = logging.getLogger(__name__)

FEEDBACK_TABLE = "intervention_feedback"
FEEDBACK_COLUMNS = (
    "intervention_id, subject_id, checkin_id, helpful, completed, "
    "follow_up_stress_level, created_at"
)


class InterventionRepository(BaseRepository[InterventionCandidate]):
    """Repository for the intervention catalog and its feedback."""

    select_columns = (
        "id, name, type, min_stress_level, max_stress_level, duration_minutes, "
        "effectiveness_score, content, version, updated_at"
    )

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "interventions")

    def _row_to_entity(self, row: tuple) -> InterventionCandidate:
        """Convert database row to InterventionCandidate.

        Expected columns:
            0: id
            1: name
            2: type
            3: min_stress_level
            4: max_stress_level
            5: duration_minutes
            6: effectiveness_score
            7: content
            8: version
            9: updated_at
        """
        score = row[6]
        return InterventionCandidate(
            id=str(row[0]),
            name=row[1],
            type=InterventionType(row[2]),
            applicable_stress_range=(clamp_stress_level(row[3]), clamp_stress_level(row[4])),
            duration_minutes=row[5],
            global_effectiveness_score=float(score) if score is not None else 0.5,
            content=row[7],
            version=row[8],
            updated_at=row[9],
        )

    def _entity_to_params(self, entity: InterventionCandidate) -> Dict[str, Any]:
        low, high = entity.applicable_stress_range
        return {
            "id": entity.id,
            "name": entity.name,
            "type": entity.type.value,
            "min_stress_level": low,
            "max_stress_level": high,
            "duration_minutes": entity.duration_minutes,
            "effectiveness_score": entity.global_effectiveness_score,
            "content": entity.content,
            "version": entity.version,
            "updated_at": entity.updated_at,
        }

    def load_candidates(self, stress_level: int) -> List[InterventionCandidate]:
        """Catalog entries applicable to a stress level, best first."""
        rows = self._fetch_all(
            f"SELECT {self.select_columns} FROM {self.table_name} "
            "WHERE min_stress_level <= %s AND max_stress_level >= %s "
            "ORDER BY effectiveness_score DESC",
            (stress_level, stress_level),
        )
        return [self._row_to_entity(row) for row in rows]

    def load_catalog(self, intervention_type: Optional[InterventionType] = None) -> List[InterventionCandidate]:
        """Whole catalog, or one type of it, best first."""
        where = "WHERE type = %s " if intervention_type is not None else ""
        params = (intervention_type.value,) if intervention_type is not None else ()
        rows = self._fetch_all(
            f"SELECT {self.select_columns} FROM {self.table_name} {where}"
            "ORDER BY effectiveness_score DESC, name ASC",
            params,
        )
        return [self._row_to_entity(row) for row in rows]

    @staticmethod
    def _row_to_feedback(row: tuple) -> FeedbackEvent:
        follow_up = row[5]
        return FeedbackEvent(
            intervention_id=str(row[0]),
            subject_id=str(row[1]),
            checkin_id=str(row[2]) if row[2] is not None else None,
            helpful=row[3],
            completed=row[4],
            follow_up_stress_level=(
                clamp_stress_level(follow_up) if follow_up is not None else None
            ),
            created_at=row[6],
        )

    def load_feedback(self, intervention_id: str) -> List[FeedbackEvent]:
        rows = self._fetch_all(
            f"SELECT {FEEDBACK_COLUMNS} FROM {FEEDBACK_TABLE} "
            "WHERE intervention_id = %s ORDER BY created_at ASC",
            (intervention_id,),
        )
        return [self._row_to_feedback(row) for row in rows]

    def load_subject_feedback(self, subject_id: str) -> List[FeedbackEvent]:
        rows = self._fetch_all(
            f"SELECT {FEEDBACK_COLUMNS} FROM {FEEDBACK_TABLE} "
            "WHERE subject_id = %s ORDER BY created_at ASC",
            (subject_id,),
        )
        return [self._row_to_feedback(row) for row in rows]

    def append_feedback(self, event: FeedbackEvent) -> FeedbackEvent:
        """Append a feedback event. Existing events are never updated."""
        self._execute(
            f"INSERT INTO {FEEDBACK_TABLE} ({FEEDBACK_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s)",
            (
                event.intervention_id,
                event.subject_id,
                event.checkin_id,
                event.helpful,
                event.completed,
                event.follow_up_stress_level,
                event.created_at,
            ),
        )
        logger.info(
            "FEEDBACK_APPENDED",
            extra={
                "intervention_id": event.intervention_id,
                "subject_id_hash": hash_pii(event.subject_id),
                "helpful": event.helpful,
            }
        )
        return event

    def update_effectiveness(
        self,
        intervention_id: str,
        score: float,
        now: Optional[datetime] = None,
    ) -> bool:
        """Write back a recomputed score, bumping version and updated_at."""
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"Effectiveness score must be 0.0-1.0, got {score}")

        updated = self._execute(
            f"UPDATE {self.table_name} "
            "SET effectiveness_score = %s, version = version + 1, updated_at = %s "
            "WHERE id = %s",
            (score, now or datetime.utcnow(), intervention_id),
        ) > 0

        if updated:
            logger.info(
                "EFFECTIVENESS_WRITTEN",
                extra={"intervention_id": intervention_id, "score": score}
            )
        else:
            logger.warning(
                "EFFECTIVENESS_TARGET_MISSING",
                extra={"intervention_id": intervention_id}
            )
        return updated

    def load_trigger_usage(self, organization_id: str) -> List[TriggerUsageRow]:
        """Rated check-ins joined to the type of intervention they were shown."""
        rows = self._fetch_all(
            "SELECT c.trigger_category, i.type, f.helpful "
            "FROM checkins c "
            f"JOIN {self.table_name} i ON c.intervention_shown = i.name "
            f"JOIN {FEEDBACK_TABLE} f ON c.id = f.checkin_id "
            "WHERE c.organization_id = %s AND f.helpful IS NOT NULL",
            (organization_id,),
        )
        return [
            TriggerUsageRow(
                trigger_category=TriggerCategory(row[0]),
                intervention_type=InterventionType(row[1]),
                helpful=bool(row[2]),
            )
            for row in rows
        ]

    def load_intervention_usage(
        self,
        organization_id: str,
        period_days: int = 30,
        now: Optional[datetime] = None,
    ) -> List[ShownInterventionRow]:
        """Check-ins shown an intervention in the period, with their feedback."""
        since = (now or datetime.utcnow()) - timedelta(days=period_days)
        rows = self._fetch_all(
            "SELECT c.id, i.name, i.type, c.stress_level, f.checkin_id IS NOT NULL, "
            "f.helpful, f.follow_up_stress_level "
            "FROM checkins c "
            f"JOIN {self.table_name} i ON c.intervention_shown = i.name "
            f"LEFT JOIN {FEEDBACK_TABLE} f ON c.id = f.checkin_id "
            "WHERE c.organization_id = %s AND c.created_at >= %s "
            "ORDER BY c.created_at ASC, f.created_at ASC",
            (organization_id, since),
        )
        return [
            ShownInterventionRow(
                checkin_id=str(row[0]),
                intervention_name=row[1],
                intervention_type=InterventionType(row[2]),
                stress_level=clamp_stress_level(row[3]),
                clicked=bool(row[4]),
                helpful=row[5],
                follow_up_stress_level=(
                    clamp_stress_level(row[6]) if row[6] is not None else None
                ),
            )
            for row in rows
        ]
