"""
Adaptive binarization of grayscale images.

Turns a grayscale image into a foreground mask for contour detection.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def binarize(
    image_gray: np.ndarray,
    block_size: int,
    constant: float,
    enable_morphology: bool = True,
    open_kernel_size: int = 3,
    close_kernel_size: int = 5,
) -> np.ndarray:
    """
    Build a binary foreground mask with a local Gaussian threshold.

    Polarity is inverted: pixels darker than their local weighted mean minus
    `constant` become foreground (255). With morphology enabled the mask is
    opened (speckle removal) and then closed (gap filling); the order changes
    contour shape and must not be swapped.

    Args:
        image_gray: Grayscale image (H x W, dtype uint8). Not modified.
        block_size: Odd neighbourhood size (> 1) for the local threshold.
        constant: Value subtracted from the local weighted mean.
        enable_morphology: Apply opening then closing.
        open_kernel_size: Square kernel size for the opening.
        close_kernel_size: Square kernel size for the closing.

    Returns:
        Binary mask (H x W, dtype uint8) with values 0 and 255.
    """
    binary = cv2.adaptiveThreshold(
        image_gray,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY_INV,
        block_size,
        constant,
    )

    if enable_morphology:
        open_kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (open_kernel_size, open_kernel_size)
        )
        binary = cv2.morphologyEx(binary, cv2.MORPH_OPEN, open_kernel, iterations=1)

        close_kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (close_kernel_size, close_kernel_size)
        )
        binary = cv2.morphologyEx(
            binary, cv2.MORPH_CLOSE, close_kernel, iterations=1
        )

    logger.debug(
        f"Binarized {image_gray.shape[1]}x{image_gray.shape[0]} image: "
        f"{int(np.count_nonzero(binary))} foreground pixels"
    )

    return binary
