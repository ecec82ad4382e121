from .result import ClassificationResult, NoMatch, describe
from .rules import Rule, RuleBasedClassifier, IMAGE_RULES
from .text import KeywordClassifier, KEYWORD_TABLE
from .fallback import FallbackHandler

__all__ = ['ClassificationResult', 'NoMatch', 'describe', 'Rule', 'RuleBasedClassifier',
           'IMAGE_RULES', 'KeywordClassifier', 'KEYWORD_TABLE', 'FallbackHandler']
