from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np

from wastesort.data.loader import InvalidInputError, PixelGrid
from wastesort.features.edges import EdgeDensityEstimator

@dataclass(frozen=True)
class ColorStats:
    avg_r: float
    avg_g: float
    avg_b: float
    variance: float

@dataclass(frozen=True)
class FeatureVector:
    avg_r: float
    avg_g: float
    avg_b: float
    brightness: float
    variance: float
    edge_density: float
    is_dark: bool = False
    is_green: bool = False
    is_blue: bool = False
    is_brown: bool = False
    is_gray: bool = False

    @classmethod
    def from_stats(cls, avg_r: float, avg_g: float, avg_b: float,
                   variance: float, edge_density: float) -> 'FeatureVector':
        brightness = (avg_r + avg_g + avg_b) / 3
        t = FeatureExtractor

        return cls(
            avg_r=avg_r,
            avg_g=avg_g,
            avg_b=avg_b,
            brightness=brightness,
            variance=variance,
            edge_density=edge_density,
            is_dark=bool(brightness < t.DARK_BRIGHTNESS),
            is_green=bool(avg_g > avg_r and avg_g > avg_b),
            is_blue=bool(avg_b > avg_r and avg_b > avg_g),
            is_brown=bool(avg_r > avg_g > avg_b
                          and avg_r > t.BROWN_MIN_RED
                          and avg_g > t.BROWN_MIN_GREEN
                          and avg_b < t.BROWN_MAX_BLUE),
            is_gray=bool(abs(avg_r - avg_g) < t.GRAY_MAX_CHANNEL_DIFF
                         and abs(avg_g - avg_b) < t.GRAY_MAX_CHANNEL_DIFF
                         and abs(avg_r - avg_b) < t.GRAY_MAX_CHANNEL_DIFF),
        )

    def to_dict(self) -> dict:
        return asdict(self)

class FeatureExtractor:
    """Summarizes a pixel grid into channel averages, texture and edge density.

    Colour flags are derived from the channel averages with the thresholds
    below (all on the 0-255 scale):

    - dark: brightness below DARK_BRIGHTNESS
    - green / blue: that channel strictly dominates the other two
    - brown: R > G > B with R above BROWN_MIN_RED, G above BROWN_MIN_GREEN
      and B below BROWN_MAX_BLUE
    - gray: every pairwise channel difference below GRAY_MAX_CHANNEL_DIFF
    """

    DARK_BRIGHTNESS = 128
    BROWN_MIN_RED = 128
    BROWN_MIN_GREEN = 64
    BROWN_MAX_BLUE = 100
    GRAY_MAX_CHANNEL_DIFF = 20

    def __init__(self, edge_estimator: Optional[EdgeDensityEstimator] = None):
        self.edge_estimator = edge_estimator or EdgeDensityEstimator()

    def extract_color_stats(self, grid: PixelGrid) -> ColorStats:
        if grid.pixel_count == 0:
            raise InvalidInputError("Cannot extract features from an image with no pixels")

        rgb = grid.rgb.reshape(-1, 3)
        means = rgb.mean(axis=0)
        # RMS deviation pooled over all pixels and all three channels
        variance = np.sqrt(np.mean((rgb - means) ** 2))

        return ColorStats(
            avg_r=float(means[0]),
            avg_g=float(means[1]),
            avg_b=float(means[2]),
            variance=float(variance),
        )

    def combine(self, stats: ColorStats, edge_density: float) -> FeatureVector:
        return FeatureVector.from_stats(
            stats.avg_r, stats.avg_g, stats.avg_b, stats.variance, edge_density
        )

    def extract(self, grid: PixelGrid, edge_density: Optional[float] = None) -> FeatureVector:
        stats = self.extract_color_stats(grid)
        if edge_density is None:
            edge_density = self.edge_estimator.estimate(grid)

        return self.combine(stats, edge_density)
