import cv2
import numpy as np

from wastesort.data.loader import InvalidInputError, PixelGrid

class EdgeDensityEstimator:
    """Counts Sobel edge pixels on the RGB-mean grayscale image.

    Only interior pixels are tested, but the density is normalized by the
    full pixel count so images of different sizes stay comparable.
    """

    def __init__(self, threshold: float = 30.0):
        self.threshold = threshold

    def gradient_magnitude(self, grid: PixelGrid) -> np.ndarray:
        """Sobel magnitude for interior pixels, shape (H - 2, W - 2)."""
        if grid.height < 3 or grid.width < 3:
            return np.zeros((max(grid.height - 2, 0), max(grid.width - 2, 0)))

        gray = grid.gray
        grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)
        grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)
        grad_mag = np.sqrt(grad_x**2 + grad_y**2)

        return grad_mag[1:-1, 1:-1]

    def count_edges(self, grid: PixelGrid) -> int:
        if grid.pixel_count == 0:
            raise InvalidInputError("Cannot detect edges in an image with no pixels")

        return int(np.count_nonzero(self.gradient_magnitude(grid) > self.threshold))

    def estimate(self, grid: PixelGrid) -> float:
        return self.count_edges(grid) / grid.pixel_count
