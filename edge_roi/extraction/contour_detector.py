"""
Contour extraction from a binary foreground mask.
"""

import logging
from typing import List, Sequence

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def find_external_contours(binary: np.ndarray) -> List[np.ndarray]:
    """
    Extract the outer boundary of each connected foreground region.

    Holes and nested contours are dropped and collinear points are removed
    (CHAIN_APPROX_SIMPLE). Contours come back in detector traversal order,
    which carries no spatial meaning.

    Args:
        binary: Binary mask from `binarize`.

    Returns:
        List of contours, each an int32 array of shape (N, 1, 2).
    """
    contours: Sequence[np.ndarray]
    contours, _ = cv2.findContours(
        binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
    )

    logger.debug(f"Found {len(contours)} external contours")

    return list(contours)
