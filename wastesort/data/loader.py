import base64
import binascii
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple
from urllib.parse import unquote, urlparse

import cv2
import numpy as np
import requests

from wastesort.data.categories import CATEGORY_NAMES

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.webp')

class InvalidInputError(Exception):
    pass

def _to_uint8(image: np.ndarray) -> np.ndarray:
    """Bring any sample type onto the 0-255 uint8 scale."""
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)

    is_float = np.issubdtype(image.dtype, np.floating)
    samples = np.nan_to_num(image.astype(np.float64), nan=0.0, posinf=255.0, neginf=0.0)
    if is_float and samples.size and samples.max() <= 1.0:
        samples = samples * 255
    return np.clip(np.round(samples), 0, 255).astype(np.uint8)

@dataclass(frozen=True, eq=False)
class PixelGrid:
    """Decoded RGBA image, shape (height, width, 4), dtype uint8.

    The grid keeps its own read-only copy of the samples.
    """

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 samples, got {self.pixels.dtype}")
        pixels = np.array(self.pixels, dtype=np.uint8, order='C', copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, 'pixels', pixels)

    @classmethod
    def from_array(cls, image: np.ndarray) -> 'PixelGrid':
        """Build a grid from an RGB(A) or grayscale array without touching the input."""
        image = _to_uint8(np.asarray(image))

        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]

        if image.ndim == 2:
            alpha = np.full(image.shape, 255, dtype=np.uint8)
            rgba = np.dstack([image, image, image, alpha])
        elif image.ndim == 3 and image.shape[2] == 3:
            alpha = np.full(image.shape[:2], 255, dtype=np.uint8)
            rgba = np.dstack([image, alpha])
        elif image.ndim == 3 and image.shape[2] == 4:
            rgba = image
        else:
            raise InvalidInputError(f"Unsupported image array shape: {image.shape}")

        return cls(rgba)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def rgb(self) -> np.ndarray:
        rgb = self.pixels[:, :, :3].astype(np.float64)
        # fully transparent pixels read back as black
        rgb[self.pixels[:, :, 3] == 0] = 0.0
        return rgb

    @property
    def gray(self) -> np.ndarray:
        return self.rgb.mean(axis=2)

def decode_bytes(data: bytes) -> PixelGrid:
    buffer = np.frombuffer(bytes(data), dtype=np.uint8)
    if buffer.size == 0:
        raise InvalidInputError("Empty image data")

    try:
        img = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise InvalidInputError(f"Failed to decode image: {e}") from e
    if img is None:
        raise InvalidInputError("Failed to decode image: unrecognized format")

    img = _to_uint8(img)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]

    try:
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
        elif img.ndim == 3 and img.shape[2] == 2:
            gray, alpha = img[:, :, 0], img[:, :, 1]
            img = np.dstack([gray, gray, gray, alpha])
        elif img.ndim == 3 and img.shape[2] == 3:
            img = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
        elif img.ndim == 3 and img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        else:
            raise InvalidInputError(f"Unsupported decoded image shape: {img.shape}")
    except cv2.error as e:
        raise InvalidInputError(f"Failed to convert decoded image to RGBA: {e}") from e

    return PixelGrid(img)

def _decode_data_uri(uri: str) -> PixelGrid:
    header, sep, payload = uri.partition(',')
    if not sep or ';base64' not in header:
        raise InvalidInputError("Only base64-encoded data URIs are supported")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Invalid base64 payload in data URI: {e}") from e
    return decode_bytes(data)

def _fetch_url(url: str, timeout: float) -> PixelGrid:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise InvalidInputError(f"Failed to fetch image from {url}: {e}") from e
    return decode_bytes(response.content)

def _read_file(path: str) -> PixelGrid:
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise InvalidInputError(f"Failed to read image file {path}: {e}") from e
    return decode_bytes(data)

def load_image(source: Any, fetch_timeout: float = 10.0) -> PixelGrid:
    if isinstance(source, PixelGrid):
        return source
    if isinstance(source, np.ndarray):
        return PixelGrid.from_array(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return decode_bytes(source)
    if isinstance(source, Path):
        return _read_file(str(source))
    if isinstance(source, str):
        scheme = urlparse(source).scheme.lower()
        if scheme == 'data':
            return _decode_data_uri(source)
        if scheme in ('http', 'https'):
            return _fetch_url(source, fetch_timeout)
        if scheme == 'file':
            return _read_file(unquote(urlparse(source).path))
        return _read_file(source)
    if hasattr(source, 'read'):
        data = source.read()
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInputError("Image streams must be opened in binary mode")
        return decode_bytes(data)

    raise InvalidInputError(f"Unsupported image source type: {type(source).__name__}")

def downscale(grid: PixelGrid, max_dimension: Optional[int]) -> PixelGrid:
    if max_dimension is None or max(grid.width, grid.height) <= max_dimension:
        return grid

    scale = max_dimension / max(grid.width, grid.height)
    size = (max(1, round(grid.width * scale)), max(1, round(grid.height * scale)))
    resized = cv2.resize(grid.pixels, size, interpolation=cv2.INTER_AREA)
    logger.debug(f"Downscaled image from {grid.width}x{grid.height} to {size[0]}x{size[1]}")
    return PixelGrid(np.ascontiguousarray(resized))

class ImageLoader:

    def __init__(self, max_dimension: Optional[int] = 1024, fetch_timeout: float = 10.0):
        if max_dimension is not None and max_dimension < 3:
            raise ValueError("max_dimension must be at least 3 pixels")
        self.max_dimension = max_dimension
        self.fetch_timeout = fetch_timeout

    def load(self, source: Any) -> PixelGrid:
        grid = load_image(source, fetch_timeout=self.fetch_timeout)
        if grid.pixel_count == 0:
            raise InvalidInputError("Image has no pixels")
        return downscale(grid, self.max_dimension)

class DatasetLoader:
    """Lists labelled images stored as one sub-folder per waste category."""

    def __init__(self, dataset_path: str):
        self.dataset_path = dataset_path
        self._class_mapping = {name.lower(): name for name in CATEGORY_NAMES}

    def get_class_mapping(self) -> dict:
        return self._class_mapping.copy()

    def list_samples(self) -> List[Tuple[str, str]]:
        samples = []

        if not os.path.isdir(self.dataset_path):
            logger.warning(f"Dataset folder not found: {self.dataset_path}")
            return samples

        for folder in sorted(os.listdir(self.dataset_path)):
            class_folder = os.path.join(self.dataset_path, folder)
            if not os.path.isdir(class_folder):
                continue

            category = self._class_mapping.get(folder.lower())
            if category is None:
                logger.warning(f"Skipping folder with unknown category: {class_folder}")
                continue

            image_files = sorted(
                f for f in os.listdir(class_folder)
                if f.lower().endswith(IMAGE_EXTENSIONS)
            )

            logger.info(f"Found {len(image_files)} images for category '{category}'")

            for filename in image_files:
                samples.append((os.path.join(class_folder, filename), category))

        if len(samples) == 0:
            logger.warning("No images found in dataset")

        return samples
