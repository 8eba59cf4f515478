"""Support resources returned to a subject whose check-in was flagged."""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mindcheck.shared.models import SeverityTier

EMERGENCY_NUMBER = "911"


@dataclass(frozen=True)
class CrisisResources:
    hotline: str
    text_line: str
    emergency: str = EMERGENCY_NUMBER
    message: Optional[str] = None
    actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "hotline": self.hotline,
            "text_line": self.text_line,
            "emergency": self.emergency,
        }
        if self.message is not None:
            result["message"] = self.message
            result["actions"] = list(self.actions)
        return result


def get_crisis_resources(severity: SeverityTier) -> CrisisResources:
    """Hotline numbers plus a message and next steps for the severity.

    The none tier gets the bare numbers with no message.
    """
    hotline = os.getenv("CRISIS_HOTLINE", "988")
    text_line = os.getenv("CRISIS_TEXT_LINE", "741741")

    if severity is SeverityTier.CRITICAL:
        return CrisisResources(
            hotline=hotline,
            text_line=text_line,
            message="Your safety is our top priority. Please reach out for immediate help.",
            actions=[
                f"Call the crisis hotline: {hotline}",
                f'Text "HELLO" to {text_line}',
                f"Call {EMERGENCY_NUMBER} if you are in immediate danger",
                "Reach out to a trusted friend or family member",
            ],
        )
    if severity is SeverityTier.HIGH:
        return CrisisResources(
            hotline=hotline,
            text_line=text_line,
            message="We're concerned about you. Support is available.",
            actions=[
                f"Crisis hotline: {hotline}",
                f"Text support: {text_line}",
                "Talk to your manager or HR",
                "Contact your company's EAP provider",
            ],
        )
    if severity is SeverityTier.MEDIUM:
        return CrisisResources(
            hotline=hotline,
            text_line=text_line,
            message="It sounds like you're going through a tough time.",
            actions=[
                "Consider talking to someone you trust",
                "Try a calming intervention from the app",
                f"Support is available at {hotline}",
                "Your company EAP can provide counseling",
            ],
        )
    return CrisisResources(hotline=hotline, text_line=text_line)
