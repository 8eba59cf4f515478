"""Tests for SeverityClassifier - safety-critical code.

Covers tier priority, the extreme-stress fallback and the invariant that
a crisis verdict always names a contributing signal.
"""
import pytest

from mindcheck.shared.models import SeverityTier, SeverityVerdict
from mindcheck.services.safety_service.classifier import SeverityClassifier, classify
from mindcheck.services.safety_service.config import SafetyConfig
from mindcheck.services.safety_service.lexicon import Lexicon


@pytest.fixture
def classifier():
    """Create a SeverityClassifier with the default lexicon."""
    return SeverityClassifier()


class TestNoCrisis:
    """Inputs that must never escalate."""

    @pytest.mark.parametrize("stress_level", range(1, 11))
    def test_empty_text_is_never_crisis(self, classifier, stress_level):
        """Empty text returns not-crisis at every stress level."""
        assert classifier.classify("", stress_level).is_crisis is False
        assert classifier.classify(None, stress_level).is_crisis is False

    def test_ordinary_note(self, classifier):
        verdict = classifier.classify("Busy sprint, lots of meetings", 6)

        assert verdict.is_crisis is False
        assert verdict.severity is SeverityTier.NONE
        assert verdict.matched_phrases == []

    def test_concerning_language_below_extreme_stress(self, classifier):
        """Stress 9 disables the concerning-language fallback."""
        verdict = classifier.classify("nothing matters anymore", 9)

        assert verdict.is_crisis is False


class TestTierDetection:
    """Tiered phrase matches."""

    def test_critical_phrase(self, classifier):
        verdict = classifier.classify("I want to kill myself", 5)

        assert verdict.is_crisis is True
        assert verdict.severity is SeverityTier.CRITICAL
        assert "kill myself" in verdict.matched_phrases
        assert verdict.reason == "Detected critical severity crisis indicators"

    def test_high_phrase(self, classifier):
        verdict = classifier.classify("Honestly I feel worthless at work", 4)

        assert verdict.severity is SeverityTier.HIGH
        assert verdict.matched_phrases == ["worthless"]

    def test_medium_phrase(self, classifier):
        verdict = classifier.classify("I hate my life lately", 3)

        assert verdict.severity is SeverityTier.MEDIUM
        assert verdict.matched_phrases == ["hate my life"]

    def test_matching_is_case_insensitive(self, classifier):
        verdict = classifier.classify("I Want To DIE", 2)

        assert verdict.severity is SeverityTier.CRITICAL
        assert verdict.matched_phrases == ["want to die"]

    def test_all_critical_matches_collected(self, classifier):
        """Every critical phrase present is reported, in lexicon order."""
        verdict = classifier.classify(
            "I am suicidal and want to die, I might end it all", 8
        )

        assert verdict.severity is SeverityTier.CRITICAL
        assert verdict.matched_phrases == ["suicidal", "want to die", "end it all"]

    def test_higher_tier_wins_over_lower(self, classifier):
        """A medium phrase never masks a critical one."""
        verdict = classifier.classify("I hate my life and I want to die", 4)

        assert verdict.severity is SeverityTier.CRITICAL
        assert "hate my life" not in verdict.matched_phrases

    def test_evaluation_stops_at_first_matching_tier(self, classifier):
        verdict = classifier.classify("feeling hopeless and all alone", 6)

        assert verdict.severity is SeverityTier.HIGH
        assert verdict.matched_phrases == ["hopeless"]


class TestExtremeStressFallback:
    """Stress 10 combined with concerning language."""

    def test_fallback_yields_medium_with_sentinel(self, classifier):
        verdict = classifier.classify("nothing matters anymore", 10)

        assert verdict.is_crisis is True
        assert verdict.severity is SeverityTier.MEDIUM
        assert verdict.matched_phrases == ["extreme stress level"]

    def test_fallback_requires_pattern(self, classifier):
        verdict = classifier.classify("rough day but fine", 10)

        assert verdict.is_crisis is False

    def test_tier_match_takes_precedence_over_fallback(self, classifier):
        verdict = classifier.classify("I can't handle this, I'm falling apart", 10)

        assert verdict.severity is SeverityTier.MEDIUM
        assert verdict.matched_phrases == ["falling apart"]

    def test_custom_sentinel(self):
        classifier = SeverityClassifier(
            config=SafetyConfig(extreme_stress_sentinel="stress ceiling")
        )

        verdict = classifier.classify("I'm done", 10)

        assert verdict.matched_phrases == ["stress ceiling"]


class TestContract:
    """Caller contract and verdict invariants."""

    def test_non_string_text_rejected(self, classifier):
        with pytest.raises(TypeError):
            classifier.classify(42, 5)

    def test_verdict_without_signal_is_unrepresentable(self):
        with pytest.raises(ValueError):
            SeverityVerdict(severity=SeverityTier.HIGH, matched_phrases=[])

    def test_to_dict_for_non_crisis(self, classifier):
        data = classifier.classify("", 3).to_dict()

        assert data == {"is_crisis": False, "severity": None, "matched_phrases": [], "reason": ""}

    def test_injected_lexicon(self):
        lexicon = Lexicon(phrases={SeverityTier.HIGH: ("burnt out",)}, patterns=())
        classifier = SeverityClassifier(lexicon=lexicon)

        assert classifier.classify("totally burnt out", 5).severity is SeverityTier.HIGH
        assert classifier.classify("I want to die", 5).is_crisis is False

    def test_module_level_classify(self):
        assert classify("suicide", 1).severity is SeverityTier.CRITICAL

    def test_classification_is_repeatable(self, classifier):
        first = classifier.classify("I give up, no way out", 7)
        second = classifier.classify("I give up, no way out", 7)

        assert first == second
        assert first.matched_phrases == ["no way out", "give up"]
