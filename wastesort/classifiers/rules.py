import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

import numpy as np

from wastesort.classifiers.result import ClassificationResult
from wastesort.data.categories import CATEGORY_PROFILES, MIXED
from wastesort.features.extractor import FeatureVector

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Rule:
    category: str
    predicate: Callable[[FeatureVector], bool]
    base_confidence: float
    jitter: float = 0.0

    def matches(self, features: FeatureVector) -> bool:
        return bool(self.predicate(features))

    def confidence(self, rng: np.random.Generator) -> float:
        if self.jitter <= 0:
            return self.base_confidence
        return self.base_confidence + float(rng.uniform(0.0, self.jitter))

# Evaluated top to bottom, first match wins.
IMAGE_RULES = (
    Rule('Plastic',
         lambda f: (f.is_blue or f.brightness > 200) and f.variance < 30 and f.edge_density < 0.10,
         0.88, 0.10),
    Rule('Paper',
         lambda f: (f.is_brown or f.brightness > 200) and 20 < f.variance < 50 and f.edge_density < 0.08,
         0.90, 0.08),
    Rule('Glass',
         lambda f: f.variance < 15 and f.brightness > 180 and 0.05 < f.edge_density < 0.15,
         0.87, 0.10),
    Rule('Metal',
         lambda f: f.is_gray and f.variance < 30 and f.edge_density > 0.10,
         0.92, 0.07),
    Rule('Electronic',
         lambda f: f.variance > 60 and f.edge_density > 0.20,
         0.82, 0.10),
    Rule('Organic',
         lambda f: (f.is_green or f.is_brown) and f.variance > 40,
         0.85, 0.10),
    Rule('Hazardous',
         lambda f: f.is_dark and f.variance > 50 and f.edge_density > 0.15,
         0.79, 0.10),
)

class RuleBasedClassifier:

    def __init__(
        self,
        rules: Sequence[Rule] = IMAGE_RULES,
        default_category: str = MIXED,
        default_confidence: float = 0.75,
        random_state: Union[int, np.random.Generator, None] = None
    ):
        for rule in rules:
            if rule.category not in CATEGORY_PROFILES:
                raise ValueError(f"Rule targets unknown category: {rule.category}")
            if rule.base_confidence < 0 or rule.base_confidence + rule.jitter > 1.0:
                raise ValueError(
                    f"Confidence band for {rule.category} must lie within [0, 1]"
                )
        if default_category not in CATEGORY_PROFILES:
            raise ValueError(f"Unknown default category: {default_category}")

        self.rules = tuple(rules)
        self.default_category = default_category
        self.default_confidence = default_confidence
        self.rng = np.random.default_rng(random_state)

    def match(self, features: FeatureVector) -> Optional[Rule]:
        for rule in self.rules:
            if rule.matches(features):
                return rule
        return None

    def classify(self, features: FeatureVector) -> ClassificationResult:
        rule = self.match(features)

        if rule is None:
            logger.debug(f"No rule matched, defaulting to {self.default_category}")
            return ClassificationResult.for_category(
                self.default_category, self.default_confidence, source='image'
            )

        logger.debug(f"Matched rule for {rule.category}")
        return ClassificationResult.for_category(
            rule.category, rule.confidence(self.rng), source='image'
        )

    def get_params(self) -> dict:
        return {
            'rules': [rule.category for rule in self.rules],
            'default_category': self.default_category,
            'default_confidence': self.default_confidence
        }
