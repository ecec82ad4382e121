import logging
from typing import Optional, Sequence, Tuple, Union

from wastesort.classifiers.result import ClassificationResult, NoMatch
from wastesort.data.categories import CATEGORY_PROFILES

logger = logging.getLogger(__name__)

# (category, confidence, keywords) in priority order
KEYWORD_TABLE = (
    ('Plastic', 0.85, ('plastic', 'bottle', 'container', 'packaging', 'wrapper', 'bag')),
    ('Paper', 0.88, ('paper', 'cardboard', 'newspaper', 'magazine', 'box', 'carton')),
    ('Glass', 0.90, ('glass', 'bottle', 'jar', 'window')),
    ('Metal', 0.87, ('metal', 'can', 'aluminum', 'tin', 'steel', 'foil')),
    ('Electronic', 0.83, ('electronic', 'device', 'computer', 'phone', 'laptop',
                          'battery', 'charger', 'cord', 'appliance')),
    ('Organic', 0.89, ('food', 'organic', 'vegetable', 'fruit', 'leftover',
                       'garden', 'leaf', 'plant', 'compost')),
    ('Hazardous', 0.82, ('hazardous', 'chemical', 'paint', 'oil', 'solvent',
                         'cleaner', 'toxic', 'poison')),
)

class KeywordClassifier:
    """Matches free text against per-category keyword lists.

    Keywords are matched as substrings of the lowercased text, so "bottles"
    hits "bottle". Unrecognized text is reported as NoMatch instead of
    being guessed as Mixed.
    """

    def __init__(self, table: Sequence[Tuple[str, float, Sequence[str]]] = KEYWORD_TABLE):
        for category, confidence, _ in table:
            if category not in CATEGORY_PROFILES:
                raise ValueError(f"Keyword table targets unknown category: {category}")
            if not 0.0 <= confidence <= 1.0:
                raise ValueError(f"Confidence for {category} must lie within [0, 1]")

        self.table = tuple(
            (category, confidence, tuple(k.lower() for k in keywords))
            for category, confidence, keywords in table
        )

    def match_keyword(self, text: str) -> Optional[Tuple[str, float, str]]:
        lower_text = text.lower()

        for category, confidence, keywords in self.table:
            for keyword in keywords:
                if keyword in lower_text:
                    return category, confidence, keyword

        return None

    def classify(self, text: str) -> Union[ClassificationResult, NoMatch]:
        match = self.match_keyword(text)

        if match is None:
            logger.debug("No keyword matched the description")
            return NoMatch(text=text.lower())

        category, confidence, keyword = match
        logger.debug(f"Keyword '{keyword}' matched category {category}")
        return ClassificationResult.for_category(category, confidence, source='text')
