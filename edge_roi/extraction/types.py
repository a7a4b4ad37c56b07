"""
Data types and structures for the Extraction module.

Provides type-safe containers for configuration, intermediate geometry and
results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


class ExtractionMode(Enum):
    """How the pixels inside a selection polygon are materialized."""

    CROP = "crop"  # Axis-aligned crop, no resampling
    WARP = "warp"  # Perspective-rectified resample to a fixed size


class ErrorType(Enum):
    """Fatal error categories for a pipeline run."""

    INPUT = "Input Error"
    CONFIG = "Config Error"
    PROCESSING = "Processing Error"
    NONE = "None"


class ConfigError(Enum):
    """Configuration validation failures (value is the message)."""

    NON_POSITIVE_WIDTH = "extension_width must be greater than 0"
    NON_POSITIVE_LENGTH = "extension_length must be greater than 0"
    EVEN_BLOCK_SIZE = "adaptive_block_size must be odd"
    SMALL_BLOCK_SIZE = "adaptive_block_size must be greater than 1"
    NON_POSITIVE_MIN_AREA = "min_area must be greater than 0"
    AREA_ORDER = "max_area must be greater than min_area"
    ACCURACY_RANGE = "approximation_accuracy must be in (0, 1]"
    KERNEL_SIZE = "open_kernel_size and close_kernel_size must be greater than 0"
    QUALITY_RANGE = "image_quality must be between 1 and 100"
    INTERPOLATION = (
        "warp_interpolation must be one of linear, cubic, nearest, area, lanczos"
    )
    EXTRACTION_MODE = "extraction_mode must be an ExtractionMode (crop or warp)"


class SkipReason(Enum):
    """Reasons a single quadrilateral is dropped without failing the run."""

    ZERO_MOMENT = "Zero Moment"  # Degenerate (zero-area) polygon
    SHORT_EDGE = "Short Edge"  # Selected edge shorter than 10 px
    ZERO_NORMAL = "Zero Normal"  # Normal vector could not be normalized
    EMPTY_CROP = "Empty Crop"  # Clamped crop box has no pixels
    EMPTY_WARP = "Empty Warp"  # Warp target has no pixels
    EXTRACTION_FAILED = "Extraction Failed"  # OpenCV failure inside extraction
    NONE = "None"  # Not skipped


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Complete extraction pipeline configuration.

    Geometry:
        extension_width: Width of the ROI band perpendicular to the edge (px).
        extension_length: Length of the band along the edge, in percent of
            the edge length (100 = full edge).
        extend_inwards: Offset the band toward the quadrilateral interior.
        selected_edge_index: Edge to use (0: p1->p2 ... 3: p4->p1). Values
            outside 0-3 are clamped.

    Detection:
        min_area / max_area: Contour area acceptance band (px^2).
        adaptive_block_size: Local threshold window (odd, > 1).
        adaptive_constant: Constant subtracted from the local mean.
        approximation_accuracy: approxPolyDP tolerance as a fraction of the
            contour perimeter.
        enable_morphology: Apply opening then closing to the binary mask.
        open_kernel_size / close_kernel_size: Square kernel sizes.

    Output:
        extraction_mode: Crop (no resampling) or warp (rectified).
        warp_interpolation: Resampling method for the warp strategy.
        image_quality: JPEG quality / PNG compression hint (1-100).
        save_visualization, return_visualization_data, visualization_path,
        visualization_file_name, show_parameters_on_image: overlay options.
    """

    extension_width: int = 30
    extension_length: int = 80
    extend_inwards: bool = True
    selected_edge_index: int = 0

    min_area: float = 800.0
    max_area: float = 20000.0
    adaptive_block_size: int = 31
    adaptive_constant: float = 7.0
    approximation_accuracy: float = 0.03
    enable_morphology: bool = True
    open_kernel_size: int = 3
    close_kernel_size: int = 5

    extraction_mode: ExtractionMode = ExtractionMode.CROP
    warp_interpolation: str = "linear"
    image_quality: int = 95
    save_visualization: bool = False
    return_visualization_data: bool = False
    visualization_path: str = ""
    visualization_file_name: str = "edge_roi_result.png"
    show_parameters_on_image: bool = True

    @property
    def edge_index(self) -> int:
        """Selected edge index clamped into [0, 3]."""
        return min(max(int(self.selected_edge_index), 0), 3)


@dataclass
class Quadrilateral:
    """
    A convex 4-vertex polygon accepted by the quadrilateral filter.

    Attributes:
        points: Vertices p1..p4 with shape (4, 2), in contour traversal order.
        area: Area of the source contour (px^2).
    """

    points: np.ndarray
    area: float

    def __post_init__(self):
        self.points = np.asarray(self.points).reshape(-1, 2)
        if self.points.shape != (4, 2):
            raise ValueError(
                f"Expected 4 vertices with shape (4, 2), got {self.points.shape}"
            )

    def edge(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        """Start and end vertex of edge `index` (0: p1->p2 ... 3: p4->p1)."""
        return self.points[index], self.points[(index + 1) % 4]


@dataclass
class SelectionGeometry:
    """
    Oriented ROI region built from one quadrilateral edge.

    Attributes:
        polygon: Selection polygon, float32 (4, 2).
        center: Quadrilateral centroid (x, y).
        edge_index: Clamped edge index the polygon was built from.
        edge_length: Length of the (unscaled) selected edge in pixels.
    """

    polygon: np.ndarray
    center: Tuple[float, float]
    edge_index: int
    edge_length: float


@dataclass
class ROIRecord:
    """
    One extracted ROI.

    Attributes:
        image_data: Extracted pixels, uint8 (height, width), row-major.
        width: Output width in pixels.
        height: Output height in pixels.
        center: Source quadrilateral centroid (x, y).
        edge_index: Edge the ROI was built from.
        quadrilateral: Source quadrilateral vertices (4, 2).
        selection_area: Selection polygon vertices (4, 2).
        roi_location: ROI top-left in source image coordinates (x, y).
        area: Source contour area.
    """

    image_data: np.ndarray
    width: int
    height: int
    center: Tuple[float, float]
    edge_index: int
    quadrilateral: np.ndarray
    selection_area: np.ndarray
    roi_location: Tuple[float, float]
    area: float = 0.0

    def to_bytes(self) -> bytes:
        """ROI pixels as row-major bytes."""
        return np.ascontiguousarray(self.image_data).tobytes()

    def __str__(self) -> str:
        return (
            f"ROI: {self.width}x{self.height}, "
            f"Center: ({self.center[0]:.1f},{self.center[1]:.1f}), "
            f"Edge: {self.edge_index}"
        )


@dataclass
class RunResult:
    """
    Output from one pipeline run.

    Attributes:
        results: ROI records in detection order.
        success: False only when a fatal (input, config or processing) error
            aborted the run.
        error_message: Human-readable message for the fatal error, if any.
        error_type: Category of the fatal error (ErrorType.NONE on success).
        quadrilateral_count: Quadrilaterals accepted by the filter, including
            the ones later skipped. It is not the number of ROIs produced;
            use len(results) for that.
        skipped_count: Accepted quadrilaterals dropped by geometry/extraction,
            so quadrilateral_count == len(results) + skipped_count.
        processing_time_ms: Wall time of the run in milliseconds.
        image_size: Source (width, height).
        visualization_image: Overlay image (BGR), when requested.
        visualization_path: Path of the saved overlay, when saved.
    """

    results: List[ROIRecord] = field(default_factory=list)
    success: bool = True
    error_message: Optional[str] = None
    error_type: ErrorType = ErrorType.NONE
    quadrilateral_count: int = 0
    skipped_count: int = 0
    processing_time_ms: float = 0.0
    image_size: Tuple[int, int] = (0, 0)
    visualization_image: Optional[np.ndarray] = None
    visualization_path: Optional[str] = None

    def is_success(self) -> bool:
        """Check if the run completed without a fatal error."""
        return self.success

    def __str__(self) -> str:
        if not self.success:
            return f"Failed ({self.error_type.value}): {self.error_message}"
        return (
            f"{len(self.results)} ROI(s) found, "
            f"Time: {self.processing_time_ms:.0f}ms"
        )
