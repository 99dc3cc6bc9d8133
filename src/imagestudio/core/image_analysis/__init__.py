"""
Image analysis (image description) for imagestudio.

Public API: describe_image, get_description, clear_description_cache.
"""

from imagestudio.core.image_analysis.api import (
    clear_description_cache,
    describe_image,
    get_description,
)

__all__ = ["clear_description_cache", "describe_image", "get_description"]
