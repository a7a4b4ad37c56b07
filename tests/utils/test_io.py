"""
Unit tests for I/O utilities.
"""

import cv2
import numpy as np
import pytest

from edge_roi.extraction import EdgeROIProcessor, ExtractionConfig
from edge_roi.extraction.result_aggregator import ResultAggregator
from edge_roi.extraction.types import ErrorType
from edge_roi.utils.io import (
    encode_params,
    load_grayscale,
    save_all_rois,
    save_image,
    save_roi,
    to_export_records,
)


@pytest.fixture
def scenario_result(square_image):
    config = ExtractionConfig(extension_width=10, extension_length=100)
    return EdgeROIProcessor(config=config).process(square_image.tobytes(), 100, 100)


class TestEncodeParams:
    """Tests for encode_params function."""

    def test_jpeg_quality(self):
        """Test that JPEG uses the quality directly."""
        assert encode_params("out.JPG", 80) == [cv2.IMWRITE_JPEG_QUALITY, 80]

    @pytest.mark.parametrize("quality, level", [(95, 0), (50, 4), (1, 9), (100, 0)])
    def test_png_compression(self, quality, level):
        """Test the quality to PNG compression mapping."""
        assert encode_params("out.png", quality) == [cv2.IMWRITE_PNG_COMPRESSION, level]

    def test_other_formats(self):
        """Test that other formats get no parameters."""
        assert encode_params("out.bmp", 95) == []


class TestLoadAndSave:
    """Tests for load_grayscale and save_image."""

    def test_round_trip(self, square_image, tmp_path):
        """Test saving then loading a lossless image."""
        path = tmp_path / "nested" / "image.png"

        assert save_image(path, square_image)
        loaded = load_grayscale(path)

        assert np.array_equal(loaded, square_image)

    def test_load_color_as_grayscale(self, tmp_path):
        """Test that color files are decoded to one channel."""
        path = tmp_path / "color.png"
        cv2.imwrite(str(path), np.full((8, 6, 3), 100, dtype=np.uint8))

        assert load_grayscale(path).shape == (8, 6)

    def test_load_missing(self, tmp_path):
        """Test that a missing file returns None."""
        assert load_grayscale(tmp_path / "missing.png") is None


class TestSaveRois:
    """Tests for save_roi and save_all_rois."""

    def test_save_all_rois(self, scenario_result, tmp_path):
        """Test that every ROI is written with a sequential name."""
        saved = save_all_rois(scenario_result, tmp_path / "rois")

        assert saved == [tmp_path / "rois" / "roi_000.bmp"]
        loaded = load_grayscale(saved[0])
        assert np.array_equal(loaded, scenario_result.results[0].image_data)

    def test_failed_result_saves_nothing(self, tmp_path):
        """Test that a failed run writes no files."""
        result = ResultAggregator().fail(ErrorType.INPUT, "bad input")

        assert save_all_rois(result, tmp_path / "rois") == []
        assert not (tmp_path / "rois").exists()

    def test_save_roi_without_record(self, tmp_path):
        """Test that a missing record is reported as not saved."""
        assert save_roi(None, tmp_path / "roi.bmp") is False


class TestExportRecords:
    """Tests for to_export_records function."""

    def test_records(self, scenario_result):
        """Test the flattened record fields."""
        records = to_export_records(scenario_result)

        assert len(records) == 1
        record = records[0]
        roi = scenario_result.results[0]
        assert record["width"] == roi.width
        assert record["height"] == roi.height
        assert len(record["buffer"]) == roi.width * roi.height
        assert record["center_x"] == pytest.approx(49.5)
        assert record["center_y"] == pytest.approx(49.5)
        assert record["edge_index"] == roi.edge_index

    def test_failed_result(self):
        """Test that a failed run exports nothing."""
        result = ResultAggregator().fail(ErrorType.CONFIG, "bad config")

        assert to_export_records(result) == []
