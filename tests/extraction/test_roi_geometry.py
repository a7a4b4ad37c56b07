"""
Unit tests for roi_geometry module.
"""

import dataclasses

import cv2
import numpy as np
import pytest

from edge_roi.extraction.roi_geometry import (
    build_selection_polygon,
    calculate_centroid,
    calculate_edge_lengths,
    calculate_unit_normal,
)
from edge_roi.extraction.types import ExtractionConfig, Quadrilateral, SkipReason


class TestCalculateCentroid:
    """Tests for calculate_centroid function."""

    def test_square_centroid(self, scenario_quad):
        """Test centroid of an axis-aligned square."""
        cx, cy = calculate_centroid(scenario_quad.points)

        assert cx == pytest.approx(50.0)
        assert cy == pytest.approx(50.0)

    def test_degenerate_polygon(self):
        """Test that a zero-area polygon has no centroid."""
        points = np.array([[0, 0], [50, 0], [100, 0], [50, 0]])

        assert calculate_centroid(points) is None


class TestEdgeHelpers:
    """Tests for calculate_edge_lengths and calculate_unit_normal."""

    def test_edge_lengths(self):
        """Test edge lengths follow edge index order."""
        quad = Quadrilateral(
            points=np.array([[0, 0], [100, 0], [100, 50], [0, 50]]), area=5000.0
        )

        assert calculate_edge_lengths(quad) == (100.0, 50.0, 100.0, 50.0)

    def test_unit_normal(self):
        """Test the normal is (-dy, dx) normalized."""
        normal = calculate_unit_normal(np.array([40.0, 0.0]))

        assert np.allclose(normal, [0.0, 1.0])

    def test_zero_direction_has_no_normal(self):
        """Test that a zero vector has no normal."""
        assert calculate_unit_normal(np.array([0.0, 0.0])) is None


class TestBuildSelectionPolygon:
    """Tests for build_selection_polygon function."""

    def test_inward_band_on_first_edge(self, scenario_quad, scenario_config):
        """Test the band along the full top edge, 10 px against the normal."""
        geometry, reason = build_selection_polygon(scenario_quad, scenario_config)

        assert reason == SkipReason.NONE
        assert geometry.polygon.dtype == np.float32
        assert geometry.polygon.tolist() == [
            [30.0, 20.0],
            [70.0, 20.0],
            [70.0, 30.0],
            [30.0, 30.0],
        ]
        assert geometry.center == pytest.approx((50.0, 50.0))
        assert geometry.edge_index == 0
        assert geometry.edge_length == pytest.approx(40.0)

    def test_outward_flips_offset(self, scenario_quad, scenario_config):
        """Test that extend_inwards=False offsets along the normal."""
        config = dataclasses.replace(scenario_config, extend_inwards=False)

        geometry, _ = build_selection_polygon(scenario_quad, config)

        assert geometry.polygon.tolist() == [
            [30.0, 40.0],
            [70.0, 40.0],
            [70.0, 30.0],
            [30.0, 30.0],
        ]

    def test_length_scaled_about_midpoint(self, scenario_quad, scenario_config):
        """Test that extension_length shortens the edge symmetrically."""
        config = dataclasses.replace(scenario_config, extension_length=50)

        geometry, _ = build_selection_polygon(scenario_quad, config)

        assert geometry.polygon.tolist() == [
            [40.0, 20.0],
            [60.0, 20.0],
            [60.0, 30.0],
            [40.0, 30.0],
        ]

    @pytest.mark.parametrize("index, clamped", [(7, 3), (-2, 0)])
    def test_edge_index_is_clamped(self, scenario_quad, scenario_config, index, clamped):
        """Test out-of-range edge indices select the nearest valid edge."""
        config = dataclasses.replace(scenario_config, selected_edge_index=index)
        expected, _ = build_selection_polygon(
            scenario_quad, dataclasses.replace(scenario_config, selected_edge_index=clamped)
        )

        geometry, reason = build_selection_polygon(scenario_quad, config)

        assert reason == SkipReason.NONE
        assert geometry.edge_index == clamped
        assert np.array_equal(geometry.polygon, expected.polygon)

    def test_last_edge_wraps_to_first_vertex(self, scenario_quad, scenario_config):
        """Test that edge 3 runs from p4 back to p1."""
        config = dataclasses.replace(scenario_config, selected_edge_index=3)

        geometry, _ = build_selection_polygon(scenario_quad, config)

        assert geometry.polygon.tolist() == [
            [20.0, 70.0],
            [20.0, 30.0],
            [30.0, 30.0],
            [30.0, 70.0],
        ]

    def test_rotated_band_keeps_edge_angle(self, scenario_config):
        """Test band width and length on a rotated quadrilateral."""
        box = cv2.boxPoints(((100, 100), (60, 60), 30))
        quad = Quadrilateral(points=box, area=3600.0)
        config = dataclasses.replace(scenario_config, extension_width=12, extension_length=50)

        geometry, reason = build_selection_polygon(quad, config)
        polygon = geometry.polygon.astype(np.float64)

        assert reason == SkipReason.NONE
        # Offset side to edge side is exactly the band width
        assert np.linalg.norm(polygon[0] - polygon[3]) == pytest.approx(12.0, abs=1e-3)
        assert np.linalg.norm(polygon[1] - polygon[2]) == pytest.approx(12.0, abs=1e-3)
        # Band runs along half the edge
        assert np.linalg.norm(polygon[2] - polygon[3]) == pytest.approx(30.0, abs=1e-3)
        edge = box[1] - box[0]
        band = polygon[2] - polygon[3]
        # Parallel to the source edge
        assert edge[0] * band[1] - edge[1] * band[0] == pytest.approx(0.0, abs=1e-2)

    def test_short_edge_skipped(self, scenario_config):
        """Test that an edge shorter than 10 px is skipped."""
        quad = Quadrilateral(
            points=np.array([[0, 0], [5, 0], [5, 50], [0, 50]]), area=250.0
        )

        geometry, reason = build_selection_polygon(quad, scenario_config)

        assert geometry is None
        assert reason == SkipReason.SHORT_EDGE

    def test_zero_area_skipped(self, scenario_config):
        """Test that a degenerate quadrilateral is skipped."""
        quad = Quadrilateral(
            points=np.array([[0, 0], [50, 0], [100, 0], [50, 0]]), area=0.0
        )

        geometry, reason = build_selection_polygon(quad, scenario_config)

        assert geometry is None
        assert reason == SkipReason.ZERO_MOMENT

    def test_default_config(self, scenario_quad):
        """Test default geometry: 30 px wide, 80% of the edge."""
        geometry, _ = build_selection_polygon(scenario_quad, ExtractionConfig())

        assert geometry.polygon.tolist() == [
            [34.0, 0.0],
            [66.0, 0.0],
            [66.0, 30.0],
            [34.0, 30.0],
        ]
