import logging

from wastesort.classifiers.result import ClassificationResult
from wastesort.data.categories import MIXED

logger = logging.getLogger(__name__)

class FallbackHandler:

    FALLBACK_SOURCE = 'fallback'

    def __init__(self, confidence: float = 0.7, category: str = MIXED):
        if not 0.0 <= confidence <= 1.0:
            raise ValueError("Fallback confidence must lie within [0, 1]")
        self.confidence = confidence
        self.category = category

    def handle(self, error: Exception) -> ClassificationResult:
        logger.warning(f"Image could not be classified, falling back to {self.category}: {error}")
        return ClassificationResult.for_category(
            self.category, self.confidence, source=self.FALLBACK_SOURCE
        )

    def is_fallback(self, result: ClassificationResult) -> bool:
        return result.source == self.FALLBACK_SOURCE

    def get_params(self) -> dict:
        return {
            'confidence': self.confidence,
            'category': self.category
        }
