"""Administrator crisis alerts over Amazon SES.

One email per administrator. A failure to reach one administrator raises
DeliveryError for that recipient only; the handler decides what to do
with the rest of the fan-out.
"""
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from mindcheck.shared.models import SeverityTier
from mindcheck.shared.utils import hash_pii
from .models import AdminContact, FlaggedResponse

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """An alert could not be handed to the mail service."""

    def __init__(self, recipient: str, reason: str):
        super().__init__(f"Alert delivery to {recipient} failed: {reason}")
        self.recipient = recipient
        self.reason = reason


SUBJECT_LINES: Dict[SeverityTier, str] = {
    SeverityTier.CRITICAL: "URGENT: Crisis Response Needed",
    SeverityTier.HIGH: "Crisis Alert: Prompt Follow-up Needed",
    SeverityTier.MEDIUM: "Wellbeing Alert: Follow-up Recommended",
}


@dataclass(frozen=True)
class NotifierConfig:
    sender: str = "MindCheck <alerts@mindcheck.com>"
    region: str = "us-east-1"
    web_app_url: str = "http://localhost:3000"
    enabled: bool = True
    crisis_hotline: str = "988"

    @classmethod
    def from_env(cls) -> "NotifierConfig":
        return cls(
            sender=os.getenv("ALERT_SENDER", cls.sender),
            region=os.getenv("AWS_REGION", cls.region),
            web_app_url=os.getenv("WEB_APP_URL", cls.web_app_url),
            enabled=os.getenv("ALERTS_ENABLED", "true").lower() == "true",
            crisis_hotline=os.getenv("CRISIS_HOTLINE", cls.crisis_hotline),
        )


def render_alert_body(
    flag: FlaggedResponse,
    subject_name: str,
    config: NotifierConfig,
) -> str:
    content = flag.flagged_content or "(no text provided)"
    return "\n".join([
        "Crisis Alert - Immediate Action Required",
        "",
        f"Employee: {subject_name}",
        f"Severity: {flag.severity.value}",
        f"Time: {flag.flagged_at.strftime('%Y-%m-%d %H:%M UTC')}",
        "",
        "Flagged Content:",
        f'"{content}"',
        "",
        "Immediate Actions:",
        "1. Log into the MindCheck admin dashboard to view full details",
        "2. Contact the employee immediately",
        "3. If unable to reach, contact their emergency contact",
        f"4. Consider calling {config.crisis_hotline} for guidance",
        "",
        f"View in Dashboard: {config.web_app_url}/admin/alerts",
        "",
        "This is an automated alert from MindCheck. "
        "Please treat this information as confidential.",
    ])


class AdminNotifier:
    """Sends crisis alerts to administrators via SES."""

    def __init__(
        self,
        config: Optional[NotifierConfig] = None,
        ses_client=None,
    ):
        """Initialize notifier.

        Args:
            config: Sender, region and dashboard settings
            ses_client: Pre-built SES client (tests); created lazily otherwise
        """
        self.config = config or NotifierConfig.from_env()
        self._ses_client = ses_client

        logger.info(
            "ADMIN_NOTIFIER_INITIALIZED",
            extra={"enabled": self.config.enabled, "region": self.config.region}
        )

    @property
    def ses_client(self):
        """Lazy initialization of SES client."""
        if self._ses_client is None and self.config.enabled:
            try:
                import boto3
                self._ses_client = boto3.client("ses", region_name=self.config.region)
            except Exception as e:
                logger.error(
                    "SES_CLIENT_INIT_FAILED",
                    extra={"error": str(e)}
                )
        return self._ses_client

    def send_crisis_alert(
        self,
        admin: AdminContact,
        flag: FlaggedResponse,
        subject_name: str,
    ) -> Optional[str]:
        """Email one administrator about a flagged response.

        Returns:
            SES message id, or None when alerts are disabled

        Raises:
            DeliveryError: If SES is unavailable or rejects the message
        """
        if not self.config.enabled:
            logger.warning(
                "ALERT_DELIVERY_DISABLED",
                extra={"flag_id": flag.id, "admin_hash": hash_pii(admin.id)}
            )
            return None

        client = self.ses_client
        if client is None:
            raise DeliveryError(admin.email, "SES client unavailable")

        try:
            response = client.send_email(
                Source=self.config.sender,
                Destination={"ToAddresses": [admin.email]},
                Message={
                    "Subject": {"Data": SUBJECT_LINES[flag.severity]},
                    "Body": {
                        "Text": {"Data": render_alert_body(flag, subject_name, self.config)},
                    },
                },
            )
        except Exception as e:
            logger.error(
                "ALERT_DELIVERY_FAILED",
                extra={
                    "flag_id": flag.id,
                    "admin_hash": hash_pii(admin.id),
                    "error": str(e),
                }
            )
            raise DeliveryError(admin.email, str(e)) from e

        message_id = response.get("MessageId")
        logger.warning(
            "CRISIS_ALERT_SENT",
            extra={
                "flag_id": flag.id,
                "admin_hash": hash_pii(admin.id),
                "severity": flag.severity.value,
                "message_id": message_id,
            }
        )
        return message_id
