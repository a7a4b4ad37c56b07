"""
Main processor for the Extraction module.

Orchestrates the complete pipeline:
1. Adaptive binarization (+ optional opening/closing)
2. External contour detection
3. Quadrilateral filtering
4. Selection polygon construction per quadrilateral
5. ROI extraction (crop or warp)
6. Result aggregation

Input, configuration and processing errors end the run with a failed
RunResult; a degenerate quadrilateral is skipped and the run continues.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

from edge_roi.common.types import ImageBuffer, RawPixels, as_uint8_pixels
from edge_roi.extraction.binarizer import binarize
from edge_roi.extraction.config_loader import load_config, validate_config
from edge_roi.extraction.contour_detector import find_external_contours
from edge_roi.extraction.quadrilateral_filter import filter_quadrilaterals
from edge_roi.extraction.result_aggregator import ResultAggregator
from edge_roi.extraction.roi_extractor import extract_roi
from edge_roi.extraction.roi_geometry import build_selection_polygon
from edge_roi.extraction.types import (
    ErrorType,
    ExtractionConfig,
    ExtractionMode,
    Quadrilateral,
    ROIRecord,
    RunResult,
    SkipReason,
)
from edge_roi.utils.io import load_grayscale, save_image
from edge_roi.utils.visualization import render_overlay, resolve_overlay_path

logger = logging.getLogger(__name__)


class EdgeROIProcessor:
    """
    Detects quadrilateral fiducials and extracts an edge ROI from each.

    The processor holds only its (immutable) configuration, so one instance
    can serve any number of independent calls.

    Example:
        >>> processor = EdgeROIProcessor()
        >>> image = cv2.imread("chart.png", cv2.IMREAD_GRAYSCALE)
        >>> result = processor.process(image.tobytes(), image.shape[1], image.shape[0])
        >>> if result.success:
        ...     for roi in result.results:
        ...         print(roi)
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the extraction processor.

        Args:
            config: Pre-built configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def process(
        self,
        image_data: Union[RawPixels, ImageBuffer],
        width: Optional[int] = None,
        height: Optional[int] = None,
        config: Optional[ExtractionConfig] = None,
    ) -> RunResult:
        """
        Run the pipeline on a grayscale buffer.

        Args:
            image_data: Row-major 8-bit grayscale pixels (bytes, sequence or
                numpy array), or an ImageBuffer.
            width: Image width. Taken from the buffer when omitted for an
                ImageBuffer or a 2D array.
            height: Image height. Same rule as width.
            config: Per-call configuration override.

        Returns:
            RunResult; check `success` before using the records.
        """
        config = config or self.config
        aggregator = ResultAggregator(image_size=(width or 0, height or 0))

        try:
            buffer = _as_image_buffer(image_data, width, height)
        except ValueError as e:
            return aggregator.fail(ErrorType.INPUT, str(e))
        aggregator.result.image_size = (buffer.width, buffer.height)

        config_error = validate_config(config)
        if config_error is not None:
            return aggregator.fail(ErrorType.CONFIG, config_error.value)

        logger.info(
            f"Extracting ROIs from {buffer.width}x{buffer.height} image "
            f"(edge {config.edge_index}, mode {config.extraction_mode.value})"
        )

        image_gray = buffer.to_numpy()

        try:
            quadrilaterals = self._detect_quadrilaterals(image_gray, config)
        except Exception as e:
            return aggregator.fail(
                ErrorType.PROCESSING, f"Error while processing image: {e}"
            )

        for record, reason in self._iter_outcomes(image_gray, quadrilaterals, config):
            aggregator.count_quadrilateral()
            if record is None:
                aggregator.skip(reason)
                continue
            aggregator.add(record)

        result = aggregator.finalize()

        logger.info(
            f"Extracted {len(result.results)} ROI(s) from "
            f"{result.quadrilateral_count} quadrilateral(s) "
            f"in {result.processing_time_ms:.1f}ms"
        )

        if result.results and (
            config.save_visualization or config.return_visualization_data
        ):
            self._attach_visualization(image_gray, result, config)

        return result

    def process_color(
        self,
        image_data: Union[RawPixels, np.ndarray],
        width: int,
        height: int,
        channels: int,
        config: Optional[ExtractionConfig] = None,
    ) -> RunResult:
        """
        Run the pipeline on a 3-channel (BGR) or 4-channel (BGRA) buffer.

        The color buffer is converted to grayscale with cv2.cvtColor before
        the grayscale pipeline runs.
        """
        aggregator = ResultAggregator(image_size=(width, height))

        try:
            pixels = as_uint8_pixels(image_data)
        except ValueError as e:
            return aggregator.fail(ErrorType.INPUT, str(e))

        if pixels.size == 0:
            return aggregator.fail(ErrorType.INPUT, "Image data is empty")

        if channels not in (3, 4):
            return aggregator.fail(
                ErrorType.INPUT,
                f"Only 3 or 4 channel color images are supported, got {channels}",
            )

        if width <= 0 or height <= 0:
            return aggregator.fail(
                ErrorType.INPUT, f"Invalid image size: {width}x{height}"
            )

        if pixels.size != width * height * channels:
            return aggregator.fail(
                ErrorType.INPUT,
                f"Image data length {pixels.size} does not match "
                f"{width}x{height}x{channels} = {width * height * channels}",
            )

        color = pixels.reshape(height, width, channels)
        code = cv2.COLOR_BGR2GRAY if channels == 3 else cv2.COLOR_BGRA2GRAY
        gray = cv2.cvtColor(color, code)

        return self.process(gray, width, height, config)

    def process_file(
        self, file_path: Union[str, Path], config: Optional[ExtractionConfig] = None
    ) -> RunResult:
        """Decode an image file as grayscale and run the pipeline on it."""
        file_path = Path(file_path)
        if not file_path.is_file():
            return ResultAggregator().fail(
                ErrorType.INPUT, f"File does not exist: {file_path}"
            )

        image = load_grayscale(file_path)
        if image is None:
            return ResultAggregator().fail(
                ErrorType.INPUT, f"Could not read image: {file_path}"
            )

        return self.process(image, image.shape[1], image.shape[0], config)

    def _detect_quadrilaterals(
        self, image_gray: np.ndarray, config: ExtractionConfig
    ) -> List[Quadrilateral]:
        """Binarize, find external contours and keep convex quadrilaterals."""
        binary = binarize(
            image_gray,
            block_size=config.adaptive_block_size,
            constant=config.adaptive_constant,
            enable_morphology=config.enable_morphology,
            open_kernel_size=config.open_kernel_size,
            close_kernel_size=config.close_kernel_size,
        )
        contours = find_external_contours(binary)
        return filter_quadrilaterals(
            contours,
            min_area=config.min_area,
            max_area=config.max_area,
            accuracy=config.approximation_accuracy,
        )

    def _iter_outcomes(
        self,
        image_gray: np.ndarray,
        quadrilaterals: List[Quadrilateral],
        config: ExtractionConfig,
    ) -> Iterator[Tuple[Optional[ROIRecord], SkipReason]]:
        """Yield (record, SkipReason) per quadrilateral, in detection order."""
        for quad in quadrilaterals:
            geometry, reason = build_selection_polygon(quad, config)
            if geometry is None:
                yield None, reason
                continue
            yield extract_roi(image_gray, quad, geometry, config)

    def _attach_visualization(
        self, image_gray: np.ndarray, result: RunResult, config: ExtractionConfig
    ) -> None:
        """Render the debug overlay and return and/or save it as configured."""
        overlay = render_overlay(image_gray, result, config)
        if overlay is None:
            return

        if config.return_visualization_data:
            result.visualization_image = overlay

        if config.save_visualization:
            save_path = resolve_overlay_path(config)
            try:
                saved = save_image(save_path, overlay, config.image_quality)
            except (cv2.error, OSError) as e:
                logger.error(f"Error saving visualization to {save_path}: {e}")
                return
            if saved:
                logger.info(f"Visualization saved to: {save_path}")
                result.visualization_path = str(save_path)


def _as_image_buffer(
    image_data: Union[RawPixels, ImageBuffer],
    width: Optional[int],
    height: Optional[int],
) -> ImageBuffer:
    """Validate input pixels into an owned ImageBuffer (raises ValueError)."""
    if isinstance(image_data, ImageBuffer):
        if width is not None and height is not None and (
            (width, height) != (image_data.width, image_data.height)
        ):
            raise ValueError(
                f"ImageBuffer is {image_data.width}x{image_data.height}, "
                f"expected {width}x{height}"
            )
        return image_data

    if isinstance(image_data, np.ndarray) and image_data.ndim == 2:
        rows, cols = image_data.shape
        width = cols if width is None else width
        height = rows if height is None else height

    if width is None or height is None:
        raise ValueError("Image width and height are required for raw pixel data")

    return ImageBuffer.from_bytes(image_data, width, height)


def _facade_config(
    extension_width: int,
    extension_length: int,
    extend_inwards: bool,
    selected_edge_index: int,
    extraction_mode: Union[str, ExtractionMode],
    save_visualization: bool,
    output_path: str,
) -> ExtractionConfig:
    try:
        mode = ExtractionMode(extraction_mode)
    except (TypeError, ValueError):
        # Unknown names are reported by validate_config as a ConfigError
        mode = extraction_mode

    return ExtractionConfig(
        extension_width=extension_width,
        extension_length=extension_length,
        extend_inwards=extend_inwards,
        selected_edge_index=selected_edge_index,
        extraction_mode=mode,
        save_visualization=save_visualization,
        visualization_path=output_path,
    )


def extract_rois(
    image_data: RawPixels,
    width: int,
    height: int,
    extension_width: int = 30,
    extension_length: int = 80,
    extend_inwards: bool = True,
    selected_edge_index: int = 0,
    extraction_mode: Union[str, ExtractionMode] = ExtractionMode.CROP,
    save_visualization: bool = False,
    output_path: str = "",
) -> RunResult:
    """
    Convenience function for one-shot extraction from a grayscale buffer.

    Detection parameters use their defaults; only the ROI geometry and the
    extraction strategy are exposed.

    Example:
        >>> result = extract_rois(image.tobytes(), 640, 480, extension_width=20)
        >>> print(result)
        2 ROI(s) found, Time: 4ms
    """
    config = _facade_config(
        extension_width,
        extension_length,
        extend_inwards,
        selected_edge_index,
        extraction_mode,
        save_visualization,
        output_path,
    )
    return EdgeROIProcessor(config=config).process(image_data, width, height)


def extract_rois_from_color(
    image_data: RawPixels,
    width: int,
    height: int,
    channels: int = 3,
    extension_width: int = 30,
    extension_length: int = 80,
    extend_inwards: bool = True,
    selected_edge_index: int = 0,
    extraction_mode: Union[str, ExtractionMode] = ExtractionMode.CROP,
    save_visualization: bool = False,
    output_path: str = "",
) -> RunResult:
    """Convenience function for one-shot extraction from a BGR/BGRA buffer."""
    config = _facade_config(
        extension_width,
        extension_length,
        extend_inwards,
        selected_edge_index,
        extraction_mode,
        save_visualization,
        output_path,
    )
    return EdgeROIProcessor(config=config).process_color(
        image_data, width, height, channels
    )


def extract_rois_from_file(
    file_path: Union[str, Path],
    extension_width: int = 30,
    extension_length: int = 80,
    extend_inwards: bool = True,
    selected_edge_index: int = 0,
    extraction_mode: Union[str, ExtractionMode] = ExtractionMode.CROP,
    save_visualization: bool = False,
    output_path: str = "",
) -> RunResult:
    """Convenience function for one-shot extraction from an image file."""
    config = _facade_config(
        extension_width,
        extension_length,
        extend_inwards,
        selected_edge_index,
        extraction_mode,
        save_visualization,
        output_path,
    )
    return EdgeROIProcessor(config=config).process_file(file_path)
