"""Crisis escalation records.

A FlaggedResponse is created for every check-in whose free text the
classifier marked as a crisis. It is mutable because reviewers move it
through its lifecycle; the verdict it was created from is not.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from mindcheck.shared.models import SeverityTier


class CrisisState(Enum):
    """State machine for a flagged response."""
    DETECTED = "detected"
    NOTIFYING = "notifying"
    NOTIFIED = "notified"
    DELIVERY_FAILED = "delivery_failed"   # No admin could be reached
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class AdminContact:
    """An active administrator of the subject's organization."""
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email


@dataclass
class FlaggedResponse:
    """Mutable record tracking a flagged check-in through review."""
    id: str
    checkin_id: str
    subject_id: str
    organization_id: str
    severity: SeverityTier
    matched_phrases: List[str]
    reason: str
    flagged_content: Optional[str] = None
    state: CrisisState = CrisisState.DETECTED
    flagged_at: datetime = field(default_factory=datetime.utcnow)
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Reviewer-facing view. Excludes the flagged text itself."""
        return {
            "id": self.id,
            "checkin_id": self.checkin_id,
            "severity": self.severity.value,
            "matched_phrases": list(self.matched_phrases),
            "reason": self.reason,
            "state": self.state.value,
            "flagged_at": self.flagged_at.isoformat(),
            "acknowledged_at": self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            "acknowledged_by": self.acknowledged_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolved_by": self.resolved_by,
        }


@dataclass(frozen=True)
class EscalationResult:
    """Outcome of fanning a flag out to administrators."""
    flag: FlaggedResponse
    notified: List[str] = field(default_factory=list)
    failed_recipients: List[str] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return bool(self.notified)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flag_id": self.flag.id,
            "state": self.flag.state.value,
            "admins_notified": len(self.notified),
            "admins_failed": len(self.failed_recipients),
        }
