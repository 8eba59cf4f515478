"""Safety Service: crisis language detection for check-ins.

Every check-in carrying free text passes through the classifier before a
response is returned to the subject.

Components:
- config.py: SafetyConfig plus the tiered phrase and pattern data
- lexicon.py: Lexicon matching primitives
- classifier.py: SeverityClassifier producing SeverityVerdict

Usage:
    from mindcheck.services.safety_service import SeverityClassifier
    verdict = SeverityClassifier().classify("I can't cope", 6)
"""

from .classifier import SeverityClassifier, classify
from .config import CONCERNING_PATTERNS, CRISIS_PHRASES, SafetyConfig
from .lexicon import TIER_PRIORITY, Lexicon

__all__ = [
    "SeverityClassifier",
    "classify",
    "SafetyConfig",
    "CRISIS_PHRASES",
    "CONCERNING_PATTERNS",
    "Lexicon",
    "TIER_PRIORITY",
]
