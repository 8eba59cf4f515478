"""Tests for the crisis Lexicon."""
import pytest

from mindcheck.shared.models import SeverityTier
from mindcheck.services.safety_service.config import CRISIS_PHRASES
from mindcheck.services.safety_service.lexicon import TIER_PRIORITY, Lexicon


@pytest.fixture
def lexicon():
    return Lexicon()


class TestPhraseData:
    """The shipped phrase data."""

    def test_tiers_are_disjoint(self):
        seen = set()
        for tier in TIER_PRIORITY:
            phrases = set(CRISIS_PHRASES[tier])
            assert not phrases & seen
            seen |= phrases

    def test_priority_order(self):
        assert TIER_PRIORITY == (SeverityTier.CRITICAL, SeverityTier.HIGH, SeverityTier.MEDIUM)

    def test_overlapping_tiers_rejected(self):
        with pytest.raises(ValueError):
            Lexicon(phrases={
                SeverityTier.HIGH: ("give up",),
                SeverityTier.MEDIUM: ("Give Up",),
            })

    def test_none_tier_rejected(self):
        with pytest.raises(ValueError):
            Lexicon(phrases={SeverityTier.NONE: ("fine",)})


class TestMatchPhrases:

    def test_substring_containment(self, lexicon):
        """Phrases match anywhere in the text, not only on word boundaries."""
        assert lexicon.match_phrases("stop cutting corners", SeverityTier.HIGH) == ["cutting"]

    def test_case_insensitive(self, lexicon):
        assert lexicon.match_phrases("NOBODY CARES", SeverityTier.MEDIUM) == ["nobody cares"]

    def test_only_requested_tier(self, lexicon):
        assert lexicon.match_phrases("I want to die", SeverityTier.MEDIUM) == []

    def test_no_match(self, lexicon):
        assert lexicon.match_phrases("great standup today", SeverityTier.CRITICAL) == []


class TestConcerningPatterns:

    @pytest.mark.parametrize("text", [
        "I can't handle the deadlines",
        "i do not cope well with this",
        "Nothing helps",
        "no one listens to me",
        "everything is against me",
        "I'm done",
        "i am finished with this",
    ])
    def test_concerning_language(self, lexicon, text):
        assert lexicon.matches_concerning_pattern(text) is True

    @pytest.mark.parametrize("text", [
        "I can handle it",
        "everything is fine",
        "done with the report",
    ])
    def test_benign_language(self, lexicon, text):
        assert lexicon.matches_concerning_pattern(text) is False
