from wastesort.data.loader import InvalidInputError
from wastesort.classifiers.result import ClassificationResult, NoMatch, describe
from wastesort.pipeline.inference import ClassificationPipeline

__all__ = ['ClassificationPipeline', 'ClassificationResult', 'NoMatch', 'InvalidInputError',
           'describe']
