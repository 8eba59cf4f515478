"""Safety Service configuration and crisis lexicon data.

The phrase tiers and concerning-language patterns are plain data so the
lexicon can be reviewed and edited without touching classifier logic.
Tiers are checked most to least severe; phrases within a tier keep
their listed order in match results.
"""
import os
from dataclasses import dataclass
from typing import Dict, Tuple

from mindcheck.shared.models import SeverityTier


@dataclass(frozen=True)
class SafetyConfig:
    """Configuration for severity classification."""

    # Stress rating that, combined with concerning language, flags medium
    extreme_stress_level: int = 10

    # Recorded in place of a phrase when the stress/pattern fallback fires
    extreme_stress_sentinel: str = "extreme stress level"

    # Version tracking for flagged-response review
    lexicon_version: str = "2024.06.01"

    @classmethod
    def from_env(cls) -> "SafetyConfig":
        return cls(lexicon_version=os.getenv("LEXICON_VERSION", cls.lexicon_version))


# Updated: 2024-06-01 - initial tiers from clinical advisory review
CRISIS_PHRASES: Dict[SeverityTier, Tuple[str, ...]] = {
    # ==========================================================================
    # CRITICAL - explicit suicidal ideation
    # ==========================================================================
    SeverityTier.CRITICAL: (
        "kill myself",
        "end my life",
        "suicide",
        "suicidal",
        "want to die",
        "better off dead",
        "no reason to live",
        "end it all",
    ),

    # ==========================================================================
    # HIGH - self-harm and hopelessness
    # ==========================================================================
    SeverityTier.HIGH: (
        "hurt myself",
        "self harm",
        "self-harm",
        "cutting",
        "can't take it anymore",
        "can't go on",
        "hopeless",
        "no way out",
        "give up",
        "worthless",
    ),

    # ==========================================================================
    # MEDIUM - distress and isolation
    # ==========================================================================
    SeverityTier.MEDIUM: (
        "hate my life",
        "hate myself",
        "no one cares",
        "nobody cares",
        "all alone",
        "can't cope",
        "breaking down",
        "falling apart",
        "losing it",
    ),
}

# Only consulted together with an extreme stress rating.
CONCERNING_PATTERNS: Tuple[str, ...] = (
    r"i (can't|cannot|don't|do not) (take|handle|deal|cope)",
    r"nothing (matters|helps|works)",
    r"no one (understands|gets it|listens)",
    r"(everyone|everything) (hates|is against)",
    r"i('m| am) (done|finished|through)",
)
