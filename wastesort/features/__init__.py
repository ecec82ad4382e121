from .extractor import FeatureExtractor, FeatureVector, ColorStats
from .edges import EdgeDensityEstimator

__all__ = ['FeatureExtractor', 'FeatureVector', 'ColorStats', 'EdgeDensityEstimator']
