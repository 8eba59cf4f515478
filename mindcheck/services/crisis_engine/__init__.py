"""Crisis Engine: escalation of flagged check-ins to human reviewers.

Components:
- models.py: FlaggedResponse record and its CrisisState lifecycle
- handler.py: CrisisHandler escalation, acknowledgement and resolution
- notifier.py: AdminNotifier crisis emails via SES
- flag_repository.py: PostgreSQL storage of flags and admin lookups
- resources.py: support resources shown to the subject
"""

from .flag_repository import FlaggedResponseRepository
from .handler import CrisisHandler
from .models import AdminContact, CrisisState, EscalationResult, FlaggedResponse
from .notifier import AdminNotifier, DeliveryError, NotifierConfig
from .resources import CrisisResources, get_crisis_resources

__all__ = [
    "FlaggedResponseRepository",
    "CrisisHandler",
    "AdminContact",
    "CrisisState",
    "EscalationResult",
    "FlaggedResponse",
    "AdminNotifier",
    "DeliveryError",
    "NotifierConfig",
    "CrisisResources",
    "get_crisis_resources",
]
