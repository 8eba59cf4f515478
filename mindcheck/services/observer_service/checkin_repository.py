"""Check-in repository.

Stores check-ins in PostgreSQL and supplies the trend windows and
check-in dates the observer service analyzes.

One check-in per subject per calendar day is enforced by the
checkins_subject_day_key unique index; a second insert for the same day
surfaces as DuplicateError.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from mindcheck.shared.database import BaseRepository, ConnectionManager, DuplicateError
from mindcheck.shared.models import (
    CheckIn,
    TrendEntry,
    TriggerCategory,
    clamp_stress_level,
)
from mindcheck.shared.utils import hash_pii

logger = logging.getLogger(__name__)


class CheckInRepository(BaseRepository[CheckIn]):
    """Repository for check-ins."""

    select_columns = (
        "id, subject_id, stress_level, trigger_category, free_text, "
        "previous_helper_hint, created_at, intervention_shown"
    )

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "checkins")

    def _row_to_entity(self, row: tuple) -> CheckIn:
        """Convert database row to CheckIn.

        Expected columns:
            0: id
            1: subject_id
            2: stress_level
            3: trigger_category
            4: free_text
            5: previous_helper_hint
            6: created_at
            7: intervention_shown
        """
        return CheckIn(
            id=str(row[0]),
            subject_id=str(row[1]),
            stress_level=clamp_stress_level(row[2]),
            trigger_category=TriggerCategory(row[3]),
            free_text=row[4],
            previous_helper_hint=row[5],
            timestamp=row[6],
            intervention_shown=row[7],
        )

    def _entity_to_params(self, entity: CheckIn) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "subject_id": entity.subject_id,
            "stress_level": entity.stress_level,
            "trigger_category": entity.trigger_category.value,
            "free_text": entity.free_text,
            "previous_helper_hint": entity.previous_helper_hint,
            "created_at": entity.timestamp,
            "intervention_shown": entity.intervention_shown,
        }

    def create(self, checkin: CheckIn, organization_id: str) -> CheckIn:
        """Insert a new check-in.

        Raises:
            DuplicateError: If the subject already checked in that day
        """
        params = self._entity_to_params(checkin)
        params["organization_id"] = organization_id
        columns = list(params.keys())

        try:
            self._execute(
                f"INSERT INTO {self.table_name} ({', '.join(columns)}) "
                f"VALUES ({', '.join(['%s'] * len(columns))})",
                list(params.values()),
            )
        except DuplicateError:
            logger.warning(
                "CHECKIN_DUPLICATE_FOR_DAY",
                extra={
                    "subject_id_hash": hash_pii(checkin.subject_id),
                    "day": checkin.timestamp.date().isoformat(),
                }
            )
            raise

        logger.info(
            "CHECKIN_CREATED",
            extra={
                "checkin_id": checkin.id,
                "subject_id_hash": hash_pii(checkin.subject_id),
                "stress_level": checkin.stress_level,
            }
        )
        return checkin

    def attach_intervention(self, checkin_id: str, intervention_name: str) -> bool:
        """Record which intervention was shown with a check-in."""
        return self._execute(
            f"UPDATE {self.table_name} SET intervention_shown = %s WHERE id = %s",
            (intervention_name, checkin_id),
        ) > 0

    def load_trend_window(
        self,
        subject_id: str,
        lookback_days: int,
        now: Optional[datetime] = None,
    ) -> List[TrendEntry]:
        """Load a subject's check-ins for the lookback period, oldest first."""
        since = (now or datetime.utcnow()) - timedelta(days=lookback_days)
        rows = self._fetch_all(
            f"SELECT stress_level, trigger_category, created_at FROM {self.table_name} "
            "WHERE subject_id = %s AND created_at >= %s "
            "ORDER BY created_at ASC",
            (subject_id, since),
        )
        return [
            TrendEntry(
                stress_level=clamp_stress_level(row[0]),
                trigger_category=TriggerCategory(row[1]),
                timestamp=row[2],
            )
            for row in rows
        ]

    def load_checkin_dates(self, subject_id: str) -> List[date]:
        """Distinct calendar days on which the subject checked in, newest first."""
        rows = self._fetch_all(
            f"SELECT DISTINCT DATE(created_at) AS day FROM {self.table_name} "
            "WHERE subject_id = %s ORDER BY day DESC",
            (subject_id,),
        )
        return [row[0] for row in rows]
