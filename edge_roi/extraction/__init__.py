"""
Edge ROI Extraction

Locates quadrilateral fiducials in a grayscale image and extracts, for each
one, a band-shaped ROI offset from a chosen edge for SFR/sharpness analysis.

Pipeline stages:
1. Adaptive binarization (+ optional morphology)
2. External contour detection
3. Quadrilateral filtering (area band, convexity, 4 vertices)
4. Selection polygon construction from the selected edge
5. ROI extraction (axis-aligned crop or perspective warp)
6. Result aggregation
"""

from edge_roi.extraction.config_loader import load_config, validate_config
from edge_roi.extraction.processor import (
    EdgeROIProcessor,
    extract_rois,
    extract_rois_from_color,
    extract_rois_from_file,
)
from edge_roi.extraction.types import (
    ConfigError,
    ErrorType,
    ExtractionConfig,
    ExtractionMode,
    ROIRecord,
    RunResult,
    SkipReason,
)

__all__ = [
    "EdgeROIProcessor",
    "extract_rois",
    "extract_rois_from_color",
    "extract_rois_from_file",
    "load_config",
    "validate_config",
    "ConfigError",
    "ErrorType",
    "ExtractionConfig",
    "ExtractionMode",
    "ROIRecord",
    "RunResult",
    "SkipReason",
]
