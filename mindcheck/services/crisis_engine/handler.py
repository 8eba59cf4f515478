"""Crisis handler - orchestrates escalation of flagged check-ins.

Receives crisis verdicts from the check-in flow, records a flagged
response and alerts every active administrator of the subject's
organization. Reviewers then acknowledge and resolve the flag.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from mindcheck.shared.models import CheckIn, SeverityVerdict
from mindcheck.shared.utils import hash_pii
from .flag_repository import FlaggedResponseRepository
from .models import AdminContact, CrisisState, EscalationResult, FlaggedResponse
from .notifier import AdminNotifier, DeliveryError

logger = logging.getLogger(__name__)

UNKNOWN_SUBJECT_NAME = "Unknown employee"


class CrisisHandler:
    """Handles crisis verdicts and orchestrates the human response.

    Delivery is best effort per administrator but never silent: every
    failed recipient is logged and returned, and a flag nobody could be
    told about ends in DELIVERY_FAILED with a CRITICAL log.
    """

    def __init__(
        self,
        repository: FlaggedResponseRepository,
        notifier: Optional[AdminNotifier] = None,
    ):
        """Initialize handler with dependencies.

        Args:
            repository: Storage for flags and administrator lookups
            notifier: Alert delivery (SES by default)
        """
        self.repository = repository
        self.notifier = notifier or AdminNotifier()

        logger.info("CRISIS_HANDLER_INITIALIZED")

    def escalate(
        self,
        checkin: CheckIn,
        verdict: SeverityVerdict,
        organization_id: str,
    ) -> Optional[EscalationResult]:
        """Flag a check-in and alert administrators.

        Args:
            checkin: The check-in the verdict was produced for
            verdict: Classifier verdict
            organization_id: Organization whose admins are alerted

        Returns:
            EscalationResult, or None when the verdict is not a crisis

        Logs:
            - CRISIS_ESCALATION_STARTED: On entry (critical)
            - CRISIS_ALERT_UNDELIVERED: When no admin was reached (critical)
        """
        if not verdict.is_crisis:
            return None

        subject_hash = hash_pii(checkin.subject_id)
        flag = FlaggedResponse(
            id=f"flag_{uuid.uuid4().hex[:12]}",
            checkin_id=checkin.id,
            subject_id=checkin.subject_id,
            organization_id=organization_id,
            severity=verdict.severity,
            matched_phrases=list(verdict.matched_phrases),
            reason=verdict.reason,
            flagged_content=checkin.free_text,
        )

        logger.critical(
            "CRISIS_ESCALATION_STARTED",
            extra={
                "flag_id": flag.id,
                "checkin_id": checkin.id,
                "subject_id_hash": subject_hash,
                "severity": flag.severity.value,
                "organization_id": organization_id,
                "action": "IMMEDIATE_ESCALATION",
            }
        )

        persisted = self._persist(flag)

        admins: List[AdminContact] = []
        subject_name = UNKNOWN_SUBJECT_NAME
        try:
            admins = self.repository.find_active_admins(organization_id)
            subject_name = self.repository.find_subject_name(checkin.subject_id) or subject_name
        except Exception as e:
            logger.critical(
                "CRISIS_ADMIN_LOOKUP_FAILED",
                extra={"flag_id": flag.id, "error": str(e)}
            )

        flag.state = CrisisState.NOTIFYING
        notified: List[str] = []
        failed: List[str] = []

        for admin in admins:
            try:
                self.notifier.send_crisis_alert(admin, flag, subject_name)
                notified.append(admin.id)
            except DeliveryError as e:
                logger.error(
                    "CRISIS_ALERT_RECIPIENT_FAILED",
                    extra={
                        "flag_id": flag.id,
                        "admin_hash": hash_pii(admin.id),
                        "error": e.reason,
                    }
                )
                failed.append(admin.id)

        if notified:
            flag.state = CrisisState.NOTIFIED
            logger.warning(
                "CRISIS_ALERTS_SENT",
                extra={
                    "flag_id": flag.id,
                    "severity": flag.severity.value,
                    "admins_notified": len(notified),
                    "admins_failed": len(failed),
                }
            )
        else:
            flag.state = CrisisState.DELIVERY_FAILED
            logger.critical(
                "CRISIS_ALERT_UNDELIVERED",
                extra={
                    "flag_id": flag.id,
                    "subject_id_hash": subject_hash,
                    "severity": flag.severity.value,
                    "admin_count": len(admins),
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )

        if persisted:
            self._record_state(flag)

        return EscalationResult(flag=flag, notified=notified, failed_recipients=failed)

    def _record_state(self, flag: FlaggedResponse) -> None:
        """Store the post-delivery state; alerts have already gone out."""
        try:
            self.repository.update_status(flag.id, flag.state)
        except Exception as e:
            logger.critical(
                "CRISIS_STATUS_UPDATE_FAILED",
                extra={
                    "flag_id": flag.id,
                    "state": flag.state.value,
                    "error": str(e),
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )

    def _persist(self, flag: FlaggedResponse) -> bool:
        """Save the flag; a storage outage must not stop the alerts."""
        try:
            self.repository.save_flag(flag)
            return True
        except Exception as e:
            logger.critical(
                "CRISIS_FLAG_PERSIST_FAILED",
                extra={
                    "flag_id": flag.id,
                    "error": str(e),
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )
            return False

    def acknowledge(
        self,
        flag_id: str,
        reviewer: str,
    ) -> Optional[FlaggedResponse]:
        """Acknowledge a flag.

        Called when an administrator has seen the alert.

        Returns:
            Updated FlaggedResponse or None if not found
        """
        flag = self.repository.find_by_id(flag_id)
        if not flag:
            logger.warning(
                "CRISIS_ACKNOWLEDGE_NOT_FOUND",
                extra={"flag_id": flag_id}
            )
            return None

        flag.state = CrisisState.ACKNOWLEDGED
        flag.acknowledged_at = datetime.utcnow()
        flag.acknowledged_by = reviewer
        self.repository.update_status(
            flag_id, flag.state, reviewer=reviewer, at=flag.acknowledged_at
        )

        logger.info(
            "CRISIS_ACKNOWLEDGED",
            extra={
                "flag_id": flag_id,
                "acknowledged_by": reviewer,
                "time_to_acknowledge_seconds": (
                    flag.acknowledged_at - flag.flagged_at
                ).total_seconds(),
            }
        )
        return flag

    def resolve(
        self,
        flag_id: str,
        reviewer: str,
        notes: str,
    ) -> Optional[FlaggedResponse]:
        """Resolve a flag once the administrator has followed up.

        Returns:
            Updated FlaggedResponse or None if not found
        """
        flag = self.repository.find_by_id(flag_id)
        if not flag:
            logger.warning(
                "CRISIS_RESOLVE_NOT_FOUND",
                extra={"flag_id": flag_id}
            )
            return None

        flag.state = CrisisState.RESOLVED
        flag.resolved_at = datetime.utcnow()
        flag.resolved_by = reviewer
        flag.resolution_notes = notes
        self.repository.update_status(
            flag_id, flag.state, reviewer=reviewer, notes=notes, at=flag.resolved_at
        )

        logger.info(
            "CRISIS_RESOLVED",
            extra={
                "flag_id": flag_id,
                "resolved_by": reviewer,
                "time_to_resolve_seconds": (
                    flag.resolved_at - flag.flagged_at
                ).total_seconds(),
            }
        )
        return flag
