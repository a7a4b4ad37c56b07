"""
ROI pixel extraction.

Materializes the pixels inside a selection polygon with one of two
strategies:

- crop: axis-aligned bounding box of the polygon, clamped to the image and
  copied as-is. The edge keeps its original angle and no resampling happens,
  which keeps the frequency content intact for SFR measurement.
- warp: projective mapping of the polygon onto a fixed-size rectangle. The
  output size is independent of the edge rotation, at the cost of
  resampling.
"""

import logging
import math
from typing import Optional, Tuple

import cv2
import numpy as np

from edge_roi.common.types import BBox
from edge_roi.extraction.types import (
    ExtractionConfig,
    ExtractionMode,
    Quadrilateral,
    ROIRecord,
    SelectionGeometry,
    SkipReason,
)

logger = logging.getLogger(__name__)

INTERPOLATION_FLAGS = {
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "nearest": cv2.INTER_NEAREST,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


def calculate_crop_box(
    polygon: np.ndarray, image_width: int, image_height: int
) -> Optional[BBox]:
    """
    Bounding box of a polygon clamped to the image.

    Coordinates are floored/ceiled outwards before clamping, so a polygon
    spanning x 30.0-70.0 gives a 40 pixel wide box.

    Args:
        polygon: Polygon vertices (N, 2).
        image_width: Source image width.
        image_height: Source image height.

    Returns:
        The clamped box, or None if it has no pixels inside the image.

    Example:
        >>> polygon = np.array([[30, 20], [70, 20], [70, 30], [30, 30]], dtype=np.float32)
        >>> calculate_crop_box(polygon, 100, 100).to_tuple()
        (30, 20, 70, 30)
    """
    polygon = np.asarray(polygon, dtype=np.float64)

    x_min = max(0, int(math.floor(polygon[:, 0].min())))
    y_min = max(0, int(math.floor(polygon[:, 1].min())))
    x_max = min(image_width, int(math.ceil(polygon[:, 0].max())))
    y_max = min(image_height, int(math.ceil(polygon[:, 1].max())))

    if x_max - x_min <= 0 or y_max - y_min <= 0:
        return None

    return BBox(x_min=x_min, y_min=y_min, x_max=x_max, y_max=y_max)


def crop_roi(
    image_gray: np.ndarray, polygon: np.ndarray
) -> Tuple[Optional[np.ndarray], Optional[BBox]]:
    """
    Crop the clamped bounding box of `polygon` from the image.

    Args:
        image_gray: Source grayscale image (H x W).
        polygon: Selection polygon (4, 2).

    Returns:
        Tuple of (pixels, box), or (None, None) if the clamped box is empty.
    """
    height, width = image_gray.shape[:2]
    bbox = calculate_crop_box(polygon, width, height)
    if bbox is None:
        return None, None

    roi = image_gray[bbox.y_min : bbox.y_max, bbox.x_min : bbox.x_max].copy()

    logger.debug(f"Cropped ROI {bbox}")

    return roi, bbox


def warp_roi(
    image_gray: np.ndarray,
    polygon: np.ndarray,
    output_width: int,
    output_height: int,
    interpolation: str = "linear",
) -> np.ndarray:
    """
    Rectify the selection polygon to an output_width x output_height image.

    Polygon vertices map to (0, 0), (W, 0), (W, H), (0, H) in order, so the
    first two vertices (the offset side of the band) become the top row.

    Args:
        image_gray: Source grayscale image (H x W).
        polygon: Selection polygon (4, 2).
        output_width: Output width (along the edge).
        output_height: Output height (across the edge).
        interpolation: One of INTERPOLATION_FLAGS.

    Returns:
        Rectified ROI with shape (output_height, output_width).

    Raises:
        ValueError: If the output size is not positive.
    """
    if output_width <= 0 or output_height <= 0:
        raise ValueError(
            f"ROI dimensions must be positive: width={output_width}, "
            f"height={output_height}"
        )

    src = np.asarray(polygon, dtype=np.float32).reshape(4, 2)
    dst = np.array(
        [
            [0, 0],
            [output_width, 0],
            [output_width, output_height],
            [0, output_height],
        ],
        dtype=np.float32,
    )

    M = cv2.getPerspectiveTransform(src, dst)

    rectified = cv2.warpPerspective(
        image_gray,
        M,
        (output_width, output_height),
        flags=INTERPOLATION_FLAGS[interpolation],
    )

    logger.debug(f"Rectified ROI to {output_width}x{output_height}")

    return rectified


def extract_roi(
    image_gray: np.ndarray,
    quad: Quadrilateral,
    geometry: SelectionGeometry,
    config: ExtractionConfig,
) -> Tuple[Optional[ROIRecord], SkipReason]:
    """
    Extract the ROI for one quadrilateral with the configured strategy.

    Args:
        image_gray: Source grayscale image (H x W).
        quad: Source quadrilateral.
        geometry: Selection geometry from `build_selection_polygon`.
        config: Extraction configuration (extraction_mode selects the strategy).

    Returns:
        Tuple of (record, SkipReason). Record is None unless the reason is
        SkipReason.NONE.

    Raises:
        ValueError: If config.extraction_mode is not an ExtractionMode.
    """
    if not isinstance(config.extraction_mode, ExtractionMode):
        raise ValueError(f"Unknown extraction mode: {config.extraction_mode!r}")

    polygon = geometry.polygon

    try:
        if config.extraction_mode == ExtractionMode.CROP:
            roi, bbox = crop_roi(image_gray, polygon)
            if roi is None:
                logger.warning("Skipping quadrilateral: crop box outside image")
                return None, SkipReason.EMPTY_CROP
            roi_location = (float(bbox.x_min), float(bbox.y_min))
        else:
            output_width = int(
                round(geometry.edge_length * config.extension_length / 100.0)
            )
            output_height = int(config.extension_width)
            if output_width <= 0 or output_height <= 0:
                logger.warning(
                    f"Skipping quadrilateral: warp size "
                    f"{output_width}x{output_height} is empty"
                )
                return None, SkipReason.EMPTY_WARP
            roi = warp_roi(
                image_gray,
                polygon,
                output_width,
                output_height,
                config.warp_interpolation,
            )
            roi_location = (float(polygon[0][0]), float(polygon[0][1]))
    except cv2.error as e:
        logger.warning(f"Skipping quadrilateral: ROI extraction failed: {e}")
        return None, SkipReason.EXTRACTION_FAILED

    record = ROIRecord(
        image_data=roi,
        width=int(roi.shape[1]),
        height=int(roi.shape[0]),
        center=geometry.center,
        edge_index=geometry.edge_index,
        quadrilateral=quad.points.astype(np.float32),
        selection_area=polygon.copy(),
        roi_location=roi_location,
        area=quad.area,
    )

    return record, SkipReason.NONE
