"""
Common types shared across the extraction pipeline and its boundary helpers.
"""

from edge_roi.common.types import BBox, ImageBuffer, as_uint8_pixels

__all__ = ["ImageBuffer", "BBox", "as_uint8_pixels"]
