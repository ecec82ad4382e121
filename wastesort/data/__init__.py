from .categories import (
    CategoryProfile,
    CATEGORY_PROFILES,
    CATEGORY_NAMES,
    RECYCLABLE_CATEGORIES,
    get_profile,
)
from .loader import PixelGrid, ImageLoader, DatasetLoader, InvalidInputError, load_image

__all__ = ['CategoryProfile', 'CATEGORY_PROFILES', 'CATEGORY_NAMES', 'RECYCLABLE_CATEGORIES',
           'get_profile', 'PixelGrid', 'ImageLoader', 'DatasetLoader', 'InvalidInputError',
           'load_image']
