import json

import numpy as np
import pytest

from wastesort.classifiers.result import ClassificationResult, NoMatch, describe
from wastesort.classifiers.rules import IMAGE_RULES, Rule, RuleBasedClassifier
from wastesort.classifiers.text import KeywordClassifier
from wastesort.classifiers.fallback import FallbackHandler
from wastesort.data.categories import CATEGORY_NAMES, RECYCLABLE_CATEGORIES
from wastesort.data.loader import InvalidInputError
from wastesort.features.extractor import FeatureVector

RULE_CASES = {
    'Plastic': FeatureVector.from_stats(220, 220, 220, 10, 0.03),
    'Paper': FeatureVector.from_stats(200, 150, 80, 30, 0.02),
    'Glass': FeatureVector.from_stats(200, 200, 200, 10, 0.12),
    'Metal': FeatureVector.from_stats(150, 150, 150, 5, 0.25),
    'Electronic': FeatureVector.from_stats(40, 40, 40, 70, 0.30),
    'Organic': FeatureVector.from_stats(60, 150, 60, 45, 0.05),
    'Hazardous': FeatureVector.from_stats(40, 40, 40, 55, 0.18),
}

def confidence_band(category: str) -> tuple:
    rule = next(r for r in IMAGE_RULES if r.category == category)
    return rule.base_confidence, rule.base_confidence + rule.jitter

class TestRuleBasedClassifier:

    def test_params_list_rules_in_evaluation_order(self):
        params = RuleBasedClassifier().get_params()

        assert params['rules'] == ['Plastic', 'Paper', 'Glass', 'Metal',
                                   'Electronic', 'Organic', 'Hazardous']
        assert params['default_category'] == 'Mixed'
        assert params['default_confidence'] == 0.75

    def test_bright_smooth_image_is_plastic(self):
        classifier = RuleBasedClassifier(random_state=0)

        features = FeatureVector.from_stats(220, 220, 220, 10, 0.03)
        result = classifier.classify(features)

        assert result.category == 'Plastic'
        assert 0.88 <= result.confidence <= 0.98
        assert result.recyclable is True

    def test_gray_high_edge_image_is_metal(self):
        classifier = RuleBasedClassifier(random_state=0)

        features = FeatureVector.from_stats(150, 150, 150, 5, 0.25)
        result = classifier.classify(features)

        assert features.is_gray
        assert result.category == 'Metal'
        assert result.recyclable is True

    def test_unmatched_features_default_to_mixed(self):
        classifier = RuleBasedClassifier(random_state=0)

        features = FeatureVector(avg_r=128, avg_g=128, avg_b=128, brightness=128,
                                 variance=0, edge_density=0)
        result = classifier.classify(features)

        assert result.category == 'Mixed'
        assert result.confidence == 0.75
        assert result.recyclable is False

    @pytest.mark.parametrize('category', list(RULE_CASES))
    def test_each_rule_matches_its_category(self, category):
        classifier = RuleBasedClassifier(random_state=1)

        result = classifier.classify(RULE_CASES[category])

        assert result.category == category

    @pytest.mark.parametrize('category', list(RULE_CASES))
    def test_confidence_stays_within_rule_band(self, category):
        classifier = RuleBasedClassifier(random_state=2)
        low, high = confidence_band(category)

        for _ in range(50):
            confidence = classifier.classify(RULE_CASES[category]).confidence
            assert low <= confidence <= high
            assert 0.75 <= confidence <= 1.0

    def test_first_matching_rule_wins(self):
        classifier = RuleBasedClassifier(random_state=0)

        # satisfies both the plastic and the glass predicates
        overlap = FeatureVector.from_stats(220, 220, 220, 10, 0.07)
        assert IMAGE_RULES[0].matches(overlap)
        assert IMAGE_RULES[2].matches(overlap)
        assert classifier.classify(overlap).category == 'Plastic'

        # satisfies both the electronic and the hazardous predicates
        dark_busy = FeatureVector.from_stats(40, 40, 40, 70, 0.30)
        assert IMAGE_RULES[4].matches(dark_busy)
        assert IMAGE_RULES[6].matches(dark_busy)
        assert classifier.classify(dark_busy).category == 'Electronic'

    def test_evaluation_stops_at_first_match(self):
        calls = []

        def later_predicate(features):
            calls.append(features)
            return True

        classifier = RuleBasedClassifier(rules=[
            Rule('Glass', lambda f: True, 0.5),
            Rule('Metal', later_predicate, 0.6),
        ])

        result = classifier.classify(FeatureVector.from_stats(0, 0, 0, 0, 0))

        assert result.category == 'Glass'
        assert result.confidence == 0.5
        assert calls == []

    def test_seeded_classifiers_agree(self):
        features = RULE_CASES['Organic']

        first = RuleBasedClassifier(random_state=123).classify(features)
        second = RuleBasedClassifier(random_state=123).classify(features)

        assert first.confidence == second.confidence

    def test_accepts_generator_as_random_state(self):
        rng = np.random.default_rng(5)
        classifier = RuleBasedClassifier(random_state=rng)

        assert classifier.rng is rng

    def test_results_respect_category_invariants(self):
        classifier = RuleBasedClassifier(random_state=9)
        rng = np.random.default_rng(0)

        for _ in range(300):
            avg = rng.uniform(0, 255, size=3)
            features = FeatureVector.from_stats(
                avg[0], avg[1], avg[2], rng.uniform(0, 120), rng.uniform(0, 0.5)
            )
            result = classifier.classify(features)

            assert result.category in CATEGORY_NAMES
            assert result.recyclable == (result.category in RECYCLABLE_CATEGORIES)
            assert 0.75 <= result.confidence <= 1.0

    def test_unknown_rule_category_raises_error(self):
        with pytest.raises(ValueError):
            RuleBasedClassifier(rules=[Rule('Styrofoam', lambda f: True, 0.8)])

    def test_confidence_band_above_one_raises_error(self):
        with pytest.raises(ValueError):
            RuleBasedClassifier(rules=[Rule('Glass', lambda f: True, 0.95, 0.1)])

class TestKeywordClassifier:

    def test_keyword_matching_is_case_insensitive(self):
        classifier = KeywordClassifier()

        upper = classifier.classify("PLASTIC bottle")
        lower = classifier.classify("plastic bottle")

        assert upper.category == lower.category == 'Plastic'

    def test_electronic_description(self):
        classifier = KeywordClassifier()

        result = classifier.classify("I have some old batteries and a broken phone")

        assert result.category == 'Electronic'
        assert result.recyclable is False
        assert result.confidence == 0.83

    def test_empty_text_is_no_match(self):
        classifier = KeywordClassifier()

        outcome = classifier.classify("")

        assert isinstance(outcome, NoMatch)
        assert "upload an image" in outcome.message

    def test_unrecognized_text_is_no_match(self):
        classifier = KeywordClassifier()

        assert isinstance(classifier.classify("banana peel"), NoMatch)

    def test_priority_order_resolves_shared_keywords(self):
        classifier = KeywordClassifier()

        # "bottle" appears in both plastic and glass vocabularies
        assert classifier.classify("a glass bottle").category == 'Plastic'
        assert classifier.classify("an empty jam jar").category == 'Glass'

    def test_category_confidences(self):
        classifier = KeywordClassifier()

        assert classifier.classify("cardboard").confidence == 0.88
        assert classifier.classify("aluminum foil").confidence == 0.87
        assert classifier.classify("leftover pizza").confidence == 0.89
        assert classifier.classify("paint thinner").confidence == 0.82

    def test_match_keyword_reports_keyword(self):
        classifier = KeywordClassifier()

        assert classifier.match_keyword("Some Compost") == ('Organic', 0.89, 'compost')
        assert classifier.match_keyword("nothing useful here") is None

    def test_text_results_share_profile_instructions(self):
        classifier = KeywordClassifier()

        result = classifier.classify("toxic chemical")

        assert result.category == 'Hazardous'
        assert result.instructions.startswith('Take to a hazardous waste facility')
        assert result.source == 'text'

    def test_unknown_table_category_raises_error(self):
        with pytest.raises(ValueError):
            KeywordClassifier(table=[('Textile', 0.8, ('shirt',))])

class TestFallbackHandler:

    def test_decode_failure_becomes_low_confidence_mixed(self):
        handler = FallbackHandler()

        result = handler.handle(InvalidInputError("broken image"))

        assert result.category == 'Mixed'
        assert result.confidence == 0.7
        assert result.recyclable is False
        assert result.instructions.startswith('Separate components')
        assert handler.is_fallback(result)

    def test_regular_results_are_not_fallbacks(self):
        handler = FallbackHandler()

        result = ClassificationResult.for_category('Mixed', 0.75)

        assert not handler.is_fallback(result)

    def test_invalid_confidence_raises_error(self):
        with pytest.raises(ValueError):
            FallbackHandler(confidence=1.5)

    def test_params_report_category_and_confidence(self):
        handler = FallbackHandler(confidence=0.6)

        assert handler.get_params() == {'confidence': 0.6, 'category': 'Mixed'}

class TestClassificationResult:

    def test_serialized_contract_fields(self):
        result = ClassificationResult.for_category('glass', 0.9)

        payload = json.loads(result.to_json())

        assert payload == {
            'category': 'Glass',
            'confidence': 0.9,
            'recyclable': True,
            'instructions': 'Rinse container and place in the glass recycling bin.',
        }

    def test_confidence_is_clamped(self):
        assert ClassificationResult.for_category('Metal', 1.3).confidence == 1.0
        assert ClassificationResult.for_category('Metal', -0.2).confidence == 0.0

    def test_unknown_category_raises_error(self):
        with pytest.raises(KeyError):
            ClassificationResult.for_category('Styrofoam', 0.5)

    def test_reply_text(self):
        image_result = ClassificationResult.for_category('Paper', 0.9, source='image')
        text_result = ClassificationResult.for_category('Paper', 0.9, source='text')

        assert describe(image_result) == "I've analyzed your image and detected: Paper"
        assert describe(text_result) == "Based on your description, this appears to be: Paper"
        assert describe(NoMatch(text="")) == NoMatch(text="").message
