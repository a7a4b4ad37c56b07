"""
Quadrilateral filtering of detected contours.

Each contour is judged on its own: area band, polygon approximation,
convexity and vertex count. No contour influences another.
"""

import logging
from typing import Iterable, List, Optional

import cv2
import numpy as np

from edge_roi.extraction.types import Quadrilateral

logger = logging.getLogger(__name__)


def approximate_quadrilateral(
    contour: np.ndarray,
    min_area: float,
    max_area: float,
    accuracy: float,
) -> Optional[Quadrilateral]:
    """
    Approximate a contour and accept it if it is a convex quadrilateral.

    Args:
        contour: Contour from `find_external_contours`, shape (N, 1, 2).
        min_area: Smallest accepted contour area.
        max_area: Largest accepted contour area.
        accuracy: approxPolyDP tolerance as a fraction of the perimeter.
            Larger values give fewer vertices.

    Returns:
        Quadrilateral with the contour area recorded, or None if rejected.

    Example:
        >>> contour = np.array([[[30, 30]], [[30, 69]], [[69, 69]], [[69, 30]]])
        >>> quad = approximate_quadrilateral(contour, 800, 20000, 0.03)
        >>> print(quad.area)
        1521.0
    """
    area = float(cv2.contourArea(contour))
    if area < min_area or area > max_area:
        logger.debug(f"Contour rejected: area {area:.0f} outside [{min_area}, {max_area}]")
        return None

    perimeter = cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, accuracy * perimeter, True)

    if not cv2.isContourConvex(approx):
        logger.debug(f"Contour rejected: approximation with {len(approx)} vertices is not convex")
        return None

    if len(approx) != 4:
        logger.debug(f"Contour rejected: approximation has {len(approx)} vertices")
        return None

    return Quadrilateral(points=approx.reshape(4, 2), area=area)


def filter_quadrilaterals(
    contours: Iterable[np.ndarray],
    min_area: float,
    max_area: float,
    accuracy: float,
) -> List[Quadrilateral]:
    """
    Keep the contours that approximate to convex quadrilaterals.

    Args:
        contours: Contours in detector traversal order.
        min_area: Smallest accepted contour area.
        max_area: Largest accepted contour area.
        accuracy: approxPolyDP tolerance factor.

    Returns:
        Accepted quadrilaterals, in the same order as the contours.
    """
    quadrilaterals = []
    for contour in contours:
        quad = approximate_quadrilateral(contour, min_area, max_area, accuracy)
        if quad is not None:
            quadrilaterals.append(quad)

    logger.info(f"Accepted {len(quadrilaterals)} quadrilateral(s)")

    return quadrilaterals
