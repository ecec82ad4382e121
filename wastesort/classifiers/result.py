import json
from dataclasses import dataclass, field

from wastesort.data.categories import get_profile

NO_MATCH_MESSAGE = ("I couldn't identify the waste type from your description. "
                    "Please upload an image for more accurate classification.")

@dataclass(frozen=True)
class ClassificationResult:
    category: str
    confidence: float
    recyclable: bool
    instructions: str
    source: str = field(default='image', compare=False)

    @classmethod
    def for_category(cls, name: str, confidence: float,
                     source: str = 'image') -> 'ClassificationResult':
        profile = get_profile(name)
        return cls(
            category=profile.name,
            confidence=min(max(float(confidence), 0.0), 1.0),
            recyclable=profile.recyclable,
            instructions=profile.instructions,
            source=source,
        )

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'confidence': self.confidence,
            'recyclable': self.recyclable,
            'instructions': self.instructions,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

@dataclass(frozen=True)
class NoMatch:
    text: str
    message: str = NO_MATCH_MESSAGE

def describe(outcome) -> str:
    """Chat reply line for a classification outcome."""
    if isinstance(outcome, NoMatch):
        return outcome.message
    if outcome.source == 'text':
        return f"Based on your description, this appears to be: {outcome.category}"
    return f"I've analyzed your image and detected: {outcome.category}"
