"""Flagged response repository plus administrator lookups."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from mindcheck.shared.database import BaseRepository, ConnectionManager
from mindcheck.shared.models import SeverityTier
from .models import AdminContact, CrisisState, FlaggedResponse

logger = logging.getLogger(__name__)


class FlaggedResponseRepository(BaseRepository[FlaggedResponse]):
    """Repository for flagged responses."""

    select_columns = (
        "id, checkin_id, subject_id, organization_id, severity, matched_phrases, "
        "reason, flagged_content, state, flagged_at, acknowledged_at, acknowledged_by, "
        "resolved_at, resolved_by, resolution_notes"
    )

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "flagged_responses")

    def _row_to_entity(self, row: tuple) -> FlaggedResponse:
        return FlaggedResponse(
            id=str(row[0]),
            checkin_id=str(row[1]),
            subject_id=str(row[2]),
            organization_id=str(row[3]),
            severity=SeverityTier(row[4]),
            matched_phrases=list(row[5] or []),
            reason=row[6],
            flagged_content=row[7],
            state=CrisisState(row[8]),
            flagged_at=row[9],
            acknowledged_at=row[10],
            acknowledged_by=row[11],
            resolved_at=row[12],
            resolved_by=row[13],
            resolution_notes=row[14],
        )

    def _entity_to_params(self, entity: FlaggedResponse) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "checkin_id": entity.checkin_id,
            "subject_id": entity.subject_id,
            "organization_id": entity.organization_id,
            "severity": entity.severity.value,
            "matched_phrases": list(entity.matched_phrases),
            "reason": entity.reason,
            "flagged_content": entity.flagged_content,
            "state": entity.state.value,
            "flagged_at": entity.flagged_at,
            "acknowledged_at": entity.acknowledged_at,
            "acknowledged_by": entity.acknowledged_by,
            "resolved_at": entity.resolved_at,
            "resolved_by": entity.resolved_by,
            "resolution_notes": entity.resolution_notes,
        }

    def save_flag(self, flag: FlaggedResponse) -> FlaggedResponse:
        self.save(flag)
        logger.info(
            "FLAGGED_RESPONSE_SAVED",
            extra={"flag_id": flag.id, "state": flag.state.value}
        )
        return flag

    def update_status(
        self,
        flag_id: str,
        state: CrisisState,
        reviewer: Optional[str] = None,
        notes: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> bool:
        """Move a flag to a new state, stamping reviewer fields where relevant."""
        at = at or datetime.utcnow()
        if state is CrisisState.ACKNOWLEDGED:
            query = (
                f"UPDATE {self.table_name} "
                "SET state = %s, acknowledged_at = %s, acknowledged_by = %s WHERE id = %s"
            )
            params = (state.value, at, reviewer, flag_id)
        elif state is CrisisState.RESOLVED:
            query = (
                f"UPDATE {self.table_name} "
                "SET state = %s, resolved_at = %s, resolved_by = %s, resolution_notes = %s "
                "WHERE id = %s"
            )
            params = (state.value, at, reviewer, notes, flag_id)
        else:
            query = f"UPDATE {self.table_name} SET state = %s WHERE id = %s"
            params = (state.value, flag_id)
        return self._execute(query, params) > 0

    def find_active_admins(self, organization_id: str) -> List[AdminContact]:
        rows = self._fetch_all(
            "SELECT id, email, first_name, last_name FROM employees "
            "WHERE organization_id = %s AND is_admin = true AND is_active = true",
            (organization_id,),
        )
        return [
            AdminContact(
                id=str(row[0]),
                email=row[1],
                first_name=row[2] or "",
                last_name=row[3] or "",
            )
            for row in rows
        ]

    def find_subject_name(self, subject_id: str) -> Optional[str]:
        row = self._fetch_one(
            "SELECT first_name, last_name FROM employees WHERE id = %s",
            (subject_id,),
        )
        if row is None:
            return None
        return f"{row[0] or ''} {row[1] or ''}".strip() or None
