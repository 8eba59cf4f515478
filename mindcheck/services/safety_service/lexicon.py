"""Crisis lexicon - tiered phrases and concerning-language patterns.

Pure matching primitives over immutable data. Phrase matching is
case-insensitive substring containment; there is no stemming or
normalization beyond lower-casing.
"""
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from mindcheck.shared.models import SeverityTier
from .config import CONCERNING_PATTERNS, CRISIS_PHRASES

logger = logging.getLogger(__name__)

# Most severe first.
TIER_PRIORITY: Tuple[SeverityTier, ...] = (
    SeverityTier.CRITICAL,
    SeverityTier.HIGH,
    SeverityTier.MEDIUM,
)


class Lexicon:
    """Holds the phrase tiers and concerning patterns.

    Args:
        phrases: Tier -> ordered phrases. Defaults to CRISIS_PHRASES.
        patterns: Regular expressions. Defaults to CONCERNING_PATTERNS.

    Raises:
        ValueError: If a phrase is listed under more than one tier or a
            tier other than medium/high/critical is supplied
    """

    def __init__(
        self,
        phrases: Optional[Mapping[SeverityTier, Iterable[str]]] = None,
        patterns: Optional[Iterable[str]] = None,
    ):
        source = CRISIS_PHRASES if phrases is None else phrases
        if SeverityTier.NONE in source:
            raise ValueError("The none tier cannot carry phrases")

        self._phrases: Dict[SeverityTier, Tuple[str, ...]] = {
            tier: tuple(p.lower() for p in source.get(tier, ()))
            for tier in TIER_PRIORITY
        }
        self._check_disjoint()

        self._patterns: List[re.Pattern] = [
            re.compile(p, re.IGNORECASE)
            for p in (CONCERNING_PATTERNS if patterns is None else patterns)
        ]

        logger.info(
            "LEXICON_LOADED",
            extra={
                "critical_count": len(self._phrases[SeverityTier.CRITICAL]),
                "high_count": len(self._phrases[SeverityTier.HIGH]),
                "medium_count": len(self._phrases[SeverityTier.MEDIUM]),
                "pattern_count": len(self._patterns),
            }
        )

    def _check_disjoint(self) -> None:
        seen: Dict[str, SeverityTier] = {}
        for tier in TIER_PRIORITY:
            for phrase in self._phrases[tier]:
                if phrase in seen and seen[phrase] is not tier:
                    raise ValueError(
                        f"Phrase {phrase!r} listed under both "
                        f"{seen[phrase].value} and {tier.value}"
                    )
                seen[phrase] = tier

    def phrases(self, tier: SeverityTier) -> Tuple[str, ...]:
        return self._phrases.get(tier, ())

    def match_phrases(self, text: str, tier: SeverityTier) -> List[str]:
        """Return every phrase of a tier contained in the text.

        Args:
            text: Free text to search
            tier: Which tier's phrases to try

        Returns:
            Matched phrases in lexicon order (empty if none)
        """
        lowered = text.lower()
        return [phrase for phrase in self.phrases(tier) if phrase in lowered]

    def matches_concerning_pattern(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self._patterns)
