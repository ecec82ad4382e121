"""Classification pipeline for the heuristic waste classifier."""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Union

import joblib
import numpy as np
from tqdm import tqdm

from wastesort.data.loader import ImageLoader, InvalidInputError, PixelGrid
from wastesort.features.extractor import FeatureExtractor, FeatureVector
from wastesort.features.edges import EdgeDensityEstimator
from wastesort.classifiers.result import ClassificationResult, NoMatch
from wastesort.classifiers.rules import RuleBasedClassifier
from wastesort.classifiers.text import KeywordClassifier
from wastesort.classifiers.fallback import FallbackHandler

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'max_dimension': 1024,
    'edge_threshold': 30.0,
    'fallback_confidence': 0.7,
    'parallel_features': False,
    'fetch_timeout': 10.0,
}


class ConfigLoadError(Exception):
    """Raised when a configuration file cannot be loaded or is invalid."""
    pass


def load_config(path: str) -> Dict[str, Any]:
    """Load a joblib-serialized configuration dictionary.

    Args:
        path: Path to the configuration file.

    Returns:
        The stored configuration dictionary.

    Raises:
        ConfigLoadError: If the file is missing, unreadable or not a dict.
    """
    if not os.path.exists(path):
        raise ConfigLoadError(f"Config file not found: {path}")
    try:
        config = joblib.load(path)
    except Exception as e:
        raise ConfigLoadError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigLoadError(f"Config in {path} must be a dict, got {type(config).__name__}")
    return config


def save_config(config: Dict[str, Any], path: str) -> None:
    """Persist a configuration dictionary with joblib."""
    _validate_config(config)
    joblib.dump(dict(config), path)


def _validate_config(config: Dict[str, Any]) -> None:
    unknown = set(config) - set(DEFAULT_CONFIG)
    if unknown:
        raise ConfigLoadError(f"Unknown config keys: {sorted(unknown)}")


def resolve_config(
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None
) -> Dict[str, Any]:
    """Merge defaults, an optional config file and explicit overrides.

    Args:
        config: Overrides applied last.
        config_path: Optional joblib config file applied over the defaults.

    Returns:
        A new, complete configuration dictionary.
    """
    resolved = DEFAULT_CONFIG.copy()
    if config_path:
        file_config = load_config(config_path)
        _validate_config(file_config)
        resolved.update(file_config)
    if config:
        _validate_config(config)
        resolved.update(config)
    return resolved


class ClassificationPipeline:
    """End-to-end waste classification from an image or a text description.

    The image path decodes the input, downscales it, extracts colour and
    edge features and runs the ordered rule table. The text path matches
    keywords and returns NoMatch when nothing is recognized.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        random_state: Union[int, np.random.Generator, None] = None
    ):
        """Build the pipeline components from configuration.

        Args:
            config: Configuration overrides (see DEFAULT_CONFIG).
            config_path: Path to a joblib config file. Values from `config`
                take precedence over the file.
            random_state: Seed or Generator for the confidence jitter.
                None draws fresh entropy.
        """
        self.config = resolve_config(config, config_path)

        self.loader = ImageLoader(
            max_dimension=self.config['max_dimension'],
            fetch_timeout=self.config['fetch_timeout']
        )
        self.edge_estimator = EdgeDensityEstimator(threshold=self.config['edge_threshold'])
        self.feature_extractor = FeatureExtractor(edge_estimator=self.edge_estimator)
        self.image_classifier = RuleBasedClassifier(random_state=random_state)
        self.text_classifier = KeywordClassifier()
        self.fallback_handler = FallbackHandler(confidence=self.config['fallback_confidence'])
        self.parallel_features = bool(self.config['parallel_features'])

        logger.info(f"Classification pipeline initialized: max_dimension={self.config['max_dimension']}, "
                    f"edge_threshold={self.config['edge_threshold']}, "
                    f"parallel_features={self.parallel_features}")

    def _features_from_grid(self, grid: PixelGrid) -> FeatureVector:
        if not self.parallel_features:
            return self.feature_extractor.extract(grid)

        # Colour statistics and edge density only read the grid
        with ThreadPoolExecutor(max_workers=2) as executor:
            stats_future = executor.submit(self.feature_extractor.extract_color_stats, grid)
            edges_future = executor.submit(self.edge_estimator.estimate, grid)
            return self.feature_extractor.combine(stats_future.result(), edges_future.result())

    def extract_features(self, source: Any) -> FeatureVector:
        """Decode an image source and compute its feature vector.

        Args:
            source: Bytes, file-like object, path, URL, data URI, numpy
                array or PixelGrid.

        Returns:
            The FeatureVector for the (possibly downscaled) image.

        Raises:
            InvalidInputError: If the source cannot be decoded or is empty.
        """
        grid = self.loader.load(source)
        features = self._features_from_grid(grid)
        logger.debug(f"Features for {grid.width}x{grid.height} image: {features.to_dict()}")
        return features

    def classify_features(self, features: FeatureVector) -> ClassificationResult:
        return self.image_classifier.classify(features)

    def classify_image(self, source: Any) -> ClassificationResult:
        """Classify an image.

        Raises:
            InvalidInputError: If the image cannot be decoded. The rule
                engine is never invoked in that case.
        """
        result = self.classify_features(self.extract_features(source))
        logger.info(f"Image classified as {result.category} ({result.confidence:.2f})")
        return result

    def classify_image_safe(self, source: Any) -> ClassificationResult:
        """Classify an image, degrading to a low-confidence Mixed result on bad input."""
        try:
            return self.classify_image(source)
        except InvalidInputError as e:
            return self.fallback_handler.handle(e)

    def classify_text(self, text: str) -> Union[ClassificationResult, NoMatch]:
        """Classify a free-text description.

        Returns:
            A ClassificationResult, or NoMatch when no keyword is found.
        """
        outcome = self.text_classifier.classify(text)
        if isinstance(outcome, NoMatch):
            logger.info("Text description not recognized, asking for an image")
        else:
            logger.info(f"Text classified as {outcome.category} ({outcome.confidence:.2f})")
        return outcome

    def classify_batch(
        self,
        sources: Iterable[Any],
        show_progress: bool = False
    ) -> List[ClassificationResult]:
        """Classify several images with the safe image path."""
        items = list(sources)
        iterator = tqdm(items, desc="Classifying") if show_progress else items
        return [self.classify_image_safe(source) for source in iterator]

    def is_fallback(self, result: ClassificationResult) -> bool:
        return self.fallback_handler.is_fallback(result)
