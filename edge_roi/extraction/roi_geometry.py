"""
ROI geometry built from one edge of a quadrilateral.

The selection polygon keeps the true rotation of the physical edge instead of
snapping to the pixel axes; downstream sharpness measurement depends on the
edge angle.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from edge_roi.extraction.types import (
    ExtractionConfig,
    Quadrilateral,
    SelectionGeometry,
    SkipReason,
)

logger = logging.getLogger(__name__)

# Edges shorter than this give an unreliable direction/normal
MIN_EDGE_LENGTH_PX = 10.0
EPSILON = 1e-6


def calculate_centroid(points: np.ndarray) -> Optional[Tuple[float, float]]:
    """
    Centroid of a polygon from its first-order moments.

    Args:
        points: Polygon vertices with shape (N, 2).

    Returns:
        (cx, cy), or None if the polygon has (near) zero area.

    Example:
        >>> square = np.array([[30, 30], [70, 30], [70, 70], [30, 70]])
        >>> calculate_centroid(square)
        (50.0, 50.0)
    """
    moments = cv2.moments(np.asarray(points, dtype=np.float32).reshape(-1, 1, 2))
    if abs(moments["m00"]) < EPSILON:
        return None

    return (
        float(moments["m10"] / moments["m00"]),
        float(moments["m01"] / moments["m00"]),
    )


def calculate_edge_lengths(
    quad: Quadrilateral,
) -> Tuple[float, float, float, float]:
    """
    Length of all 4 edges, in edge index order (p1->p2, p2->p3, p3->p4, p4->p1).

    Example:
        >>> quad = Quadrilateral(np.array([[0, 0], [100, 0], [100, 50], [0, 50]]), 5000.0)
        >>> calculate_edge_lengths(quad)
        (100.0, 50.0, 100.0, 50.0)
    """
    points = quad.points.astype(np.float64)
    lengths = [
        float(np.linalg.norm(points[(i + 1) % 4] - points[i])) for i in range(4)
    ]
    return tuple(lengths)


def calculate_unit_normal(direction: np.ndarray) -> Optional[np.ndarray]:
    """
    Unit vector perpendicular to `direction`, rotated by +90 degrees: (-dy, dx).

    Returns:
        The unit normal, or None if `direction` has (near) zero length.
    """
    normal = np.array([-direction[1], direction[0]], dtype=np.float64)
    normal_length = float(np.linalg.norm(normal))
    if normal_length < EPSILON:
        return None
    return normal / normal_length


def build_selection_polygon(
    quad: Quadrilateral, config: ExtractionConfig
) -> Tuple[Optional[SelectionGeometry], SkipReason]:
    """
    Build the oriented ROI polygon offset from the selected edge.

    The selected edge is scaled about its midpoint to
    `extension_length` percent of its length, then pushed along its unit
    normal by `extension_width` pixels. The normal is (-dy, dx); the band
    goes against it when `extend_inwards` is set, which is the interior side
    for the winding OpenCV produces for external contours.

    The band covers one side of the edge only: the scaled edge itself is the
    band's inner long side, so the band is exactly `extension_width` px
    thick rather than extending that far to both sides of the edge.

    Polygon vertex order: [offset start, offset end, scaled end, scaled start].

    Args:
        quad: Accepted quadrilateral.
        config: Extraction configuration.

    Returns:
        Tuple of (geometry, SkipReason). Geometry is None unless the reason is
        SkipReason.NONE.

    Example:
        >>> quad = Quadrilateral(np.array([[30, 30], [70, 30], [70, 70], [30, 70]]), 1600.0)
        >>> config = ExtractionConfig(extension_width=10, extension_length=100)
        >>> geometry, reason = build_selection_polygon(quad, config)
        >>> geometry.polygon.tolist()
        [[30.0, 20.0], [70.0, 20.0], [70.0, 30.0], [30.0, 30.0]]
    """
    center = calculate_centroid(quad.points)
    if center is None:
        logger.warning("Skipping quadrilateral: zero moment (degenerate polygon)")
        return None, SkipReason.ZERO_MOMENT

    edge_index = config.edge_index
    start, end = (p.astype(np.float64) for p in quad.edge(edge_index))

    direction = end - start
    edge_length = float(np.linalg.norm(direction))
    if edge_length < MIN_EDGE_LENGTH_PX:
        logger.warning(
            f"Skipping quadrilateral: edge {edge_index} length {edge_length:.1f}px "
            f"< {MIN_EDGE_LENGTH_PX:.0f}px"
        )
        return None, SkipReason.SHORT_EDGE

    normal_unit = calculate_unit_normal(direction)
    if normal_unit is None:
        logger.warning("Skipping quadrilateral: zero-length edge normal")
        return None, SkipReason.ZERO_NORMAL

    direction_sign = -1.0 if config.extend_inwards else 1.0

    midpoint = (start + end) / 2.0
    length_scale = config.extension_length / 100.0
    scaled_start = midpoint + (start - midpoint) * length_scale
    scaled_end = midpoint + (end - midpoint) * length_scale

    offset = normal_unit * direction_sign * config.extension_width

    polygon = np.array(
        [
            scaled_start + offset,
            scaled_end + offset,
            scaled_end,
            scaled_start,
        ],
        dtype=np.float32,
    )

    logger.debug(
        f"Selection polygon on edge {edge_index} "
        f"(length {edge_length:.1f}px): {polygon.tolist()}"
    )

    return (
        SelectionGeometry(
            polygon=polygon,
            center=center,
            edge_index=edge_index,
            edge_length=edge_length,
        ),
        SkipReason.NONE,
    )
