"""Severity classifier - decides whether a check-in needs human review.

Tiers are tried most to least severe and evaluation stops at the first
tier with any match, so a medium phrase never masks a critical one. When
no phrase matches, an extreme stress rating combined with concerning
language still yields a medium verdict.

The classifier has no side effects beyond logging. Persisting the flag
and alerting admins is the crisis engine's job.
"""
import logging
from typing import Optional

from mindcheck.shared.models import SeverityTier, SeverityVerdict
from mindcheck.shared.utils import hash_text_for_audit
from .config import SafetyConfig
from .lexicon import TIER_PRIORITY, Lexicon

logger = logging.getLogger(__name__)


class SeverityClassifier:
    """Classifies free text plus stress rating into a severity verdict."""

    def __init__(
        self,
        config: Optional[SafetyConfig] = None,
        lexicon: Optional[Lexicon] = None,
    ):
        """Initialize classifier.

        Args:
            config: Classification settings
            lexicon: Phrase data (injected for testing)
        """
        self.config = config or SafetyConfig()
        self.lexicon = lexicon or Lexicon()

    def classify(self, free_text: Optional[str], stress_level: int) -> SeverityVerdict:
        """Classify one check-in.

        Args:
            free_text: Optional note from the subject
            stress_level: Stress rating 1-10

        Returns:
            SeverityVerdict; severity NONE when nothing fired

        Raises:
            TypeError: If free_text is neither None nor a string
        """
        if free_text is not None and not isinstance(free_text, str):
            raise TypeError(f"free_text must be a string, got {type(free_text).__name__}")
        if not free_text:
            return SeverityVerdict.not_crisis()

        lowered = free_text.lower()
        severity = SeverityTier.NONE
        matched = []

        for tier in TIER_PRIORITY:
            matched = self.lexicon.match_phrases(lowered, tier)
            if matched:
                severity = tier
                break

        if (
            severity is SeverityTier.NONE
            and stress_level == self.config.extreme_stress_level
            and self.lexicon.matches_concerning_pattern(lowered)
        ):
            severity = SeverityTier.MEDIUM
            matched = [self.config.extreme_stress_sentinel]

        if severity is SeverityTier.NONE:
            return SeverityVerdict.not_crisis()

        verdict = SeverityVerdict(
            severity=severity,
            matched_phrases=matched,
            reason=f"Detected {severity.value} severity crisis indicators",
        )

        logger.critical(
            "SEVERITY_CRISIS_DETECTED",
            extra={
                "severity": severity.value,
                "match_count": len(matched),
                "stress_level": stress_level,
                "text_hash": hash_text_for_audit(free_text),
                "lexicon_version": self.config.lexicon_version,
            }
        )
        return verdict


_default_classifier: Optional[SeverityClassifier] = None


def classify(free_text: Optional[str], stress_level: int) -> SeverityVerdict:
    """Classify with the default lexicon."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = SeverityClassifier()
    return _default_classifier.classify(free_text, stress_level)
