"""
Unit tests for quadrilateral_filter module.
"""

import numpy as np

from edge_roi.extraction.quadrilateral_filter import (
    approximate_quadrilateral,
    filter_quadrilaterals,
)


def _contour(points):
    return np.array(points, dtype=np.int32).reshape(-1, 1, 2)


SQUARE = _contour([[30, 30], [30, 69], [69, 69], [69, 30]])
LARGE_SQUARE = _contour([[100, 100], [100, 199], [199, 199], [199, 100]])
TRIANGLE = _contour([[0, 0], [50, 80], [100, 0]])
# Four vertices, reflex angle at (30, 50)
DART = _contour([[0, 0], [30, 50], [0, 100], [100, 50]])


class TestApproximateQuadrilateral:
    """Tests for approximate_quadrilateral function."""

    def test_square_accepted(self):
        """Test that a convex 4-vertex contour is accepted."""
        quad = approximate_quadrilateral(SQUARE, 800, 20000, 0.03)

        assert quad is not None
        assert quad.points.shape == (4, 2)
        assert quad.area == 1521.0
        assert {tuple(p) for p in quad.points.tolist()} == {
            (30, 30),
            (30, 69),
            (69, 69),
            (69, 30),
        }

    def test_area_below_band_rejected(self):
        """Test that contours smaller than min_area are rejected."""
        assert approximate_quadrilateral(SQUARE, 2000, 20000, 0.03) is None

    def test_area_above_band_rejected(self):
        """Test that contours larger than max_area are rejected."""
        assert approximate_quadrilateral(SQUARE, 100, 1000, 0.03) is None

    def test_area_band_is_inclusive(self):
        """Test that an area exactly on the band limits is accepted."""
        assert approximate_quadrilateral(SQUARE, 1521, 1521.5, 0.03) is not None
        assert approximate_quadrilateral(SQUARE, 1000, 1521, 0.03) is not None

    def test_triangle_rejected(self):
        """Test that a 3-vertex approximation is rejected."""
        assert approximate_quadrilateral(TRIANGLE, 800, 20000, 0.03) is None

    def test_non_convex_rejected(self):
        """Test that a concave 4-vertex approximation is rejected."""
        assert approximate_quadrilateral(DART, 800, 20000, 0.03) is None


class TestFilterQuadrilaterals:
    """Tests for filter_quadrilaterals function."""

    def test_keeps_order_and_drops_rejects(self):
        """Test that accepted quadrilaterals keep contour order."""
        quads = filter_quadrilaterals(
            [LARGE_SQUARE, TRIANGLE, SQUARE, DART], 800, 20000, 0.03
        )

        assert len(quads) == 2
        assert quads[0].area == 99 * 99
        assert quads[1].area == 39 * 39

    def test_each_contour_judged_independently(self):
        """Test that results for one contour do not depend on the others."""
        alone = filter_quadrilaterals([SQUARE], 800, 20000, 0.03)
        mixed = filter_quadrilaterals([TRIANGLE, SQUARE, DART], 800, 20000, 0.03)

        assert len(alone) == len(mixed) == 1
        assert np.array_equal(alone[0].points, mixed[0].points)

    def test_no_contours(self):
        """Test empty input."""
        assert filter_quadrilaterals([], 800, 20000, 0.03) == []
