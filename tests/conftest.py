"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest


@pytest.fixture
def square_image():
    """100x100 white image with one filled dark 40x40 square at (30, 30)-(69, 69)."""
    import cv2
    import numpy as np

    image = np.full((100, 100), 255, dtype=np.uint8)
    cv2.rectangle(image, (30, 30), (69, 69), 0, -1)
    return image


@pytest.fixture
def rotated_square_image():
    """160x160 white image with a dark 50x50 square rotated by 30 degrees."""
    import cv2
    import numpy as np

    image = np.full((160, 160), 255, dtype=np.uint8)
    box = cv2.boxPoints(((80, 80), (50, 50), 30)).astype(np.int32)
    cv2.fillPoly(image, [box], 0)
    return image


@pytest.fixture
def scenario_quad():
    """Axis-aligned square (30,30),(70,30),(70,70),(30,70); edge 0 is the top edge."""
    import numpy as np

    from edge_roi.extraction.types import Quadrilateral

    return Quadrilateral(
        points=np.array([[30, 30], [70, 30], [70, 70], [30, 70]], dtype=np.int32),
        area=1600.0,
    )


@pytest.fixture
def scenario_config():
    """10 px band over the full edge, inwards, edge 0."""
    from edge_roi.extraction.types import ExtractionConfig

    return ExtractionConfig(
        extension_width=10,
        extension_length=100,
        extend_inwards=True,
        selected_edge_index=0,
    )
