"""
Visualization Utilities

Debug overlay of detected quadrilaterals and selection polygons.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import cv2
import numpy as np

if TYPE_CHECKING:
    from edge_roi.extraction.types import ExtractionConfig, RunResult

logger = logging.getLogger(__name__)

# BGR colors
QUAD_COLOR = (255, 0, 0)
SELECTION_COLOR = (0, 255, 0)
EDGE_COLOR = (0, 0, 255)
VERTEX_COLOR = (255, 255, 0)
TEXT_COLOR = (255, 255, 255)
BANNER_COLOR = (0, 0, 0)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _to_int_points(points: np.ndarray) -> np.ndarray:
    return np.round(np.asarray(points, dtype=np.float64)).astype(np.int32).reshape(-1, 2)


def render_overlay(
    image_gray: np.ndarray, result: "RunResult", config: "ExtractionConfig"
) -> Optional[np.ndarray]:
    """
    Draw quadrilaterals, selection polygons and labels on a color copy.

    Per ROI: quadrilateral outline (blue), selection polygon with a 30%
    green fill and outline, the selected edge (red, thick), the centroid, the
    vertices labelled P1..P4 and the ROI index. With
    `config.show_parameters_on_image` a banner lists the parameters and the
    result summary.

    Args:
        image_gray: Source grayscale image (H x W).
        result: Pipeline output.
        config: Configuration used for the run.

    Returns:
        BGR overlay image, or None if there is nothing to draw.
    """
    if image_gray is None or image_gray.size == 0 or not result.results:
        return None

    canvas = cv2.cvtColor(image_gray, cv2.COLOR_GRAY2BGR)

    for i, roi in enumerate(result.results):
        quad = _to_int_points(roi.quadrilateral)
        selection = _to_int_points(roi.selection_area)

        cv2.polylines(canvas, [quad], True, QUAD_COLOR, 2)

        overlay = canvas.copy()
        cv2.fillPoly(overlay, [selection], SELECTION_COLOR)
        canvas = cv2.addWeighted(overlay, 0.3, canvas, 0.7, 0)
        cv2.polylines(canvas, [selection], True, SELECTION_COLOR, 2)

        start = tuple(int(v) for v in quad[roi.edge_index])
        end = tuple(int(v) for v in quad[(roi.edge_index + 1) % 4])
        cv2.line(canvas, start, end, EDGE_COLOR, 3)

        center = (int(roi.center[0]), int(roi.center[1]))
        cv2.circle(canvas, center, 6, EDGE_COLOR, -1)

        for k, (x, y) in enumerate(quad):
            cv2.circle(canvas, (int(x), int(y)), 5, VERTEX_COLOR, -1)
            cv2.putText(
                canvas, f"P{k + 1}", (int(x) + 5, int(y) - 5), FONT, 0.5, VERTEX_COLOR, 1
            )

        cv2.putText(
            canvas, f"#{i}", (center[0] - 10, center[1] + 5), FONT, 0.7, EDGE_COLOR, 2
        )

    if config.show_parameters_on_image:
        lines = [
            f"Width: {config.extension_width}, Length: {config.extension_length}, "
            f"Edge: E{config.edge_index}, Inward: {config.extend_inwards}",
            f"Found: {len(result.results)} ROI(s), "
            f"Time: {result.processing_time_ms:.0f}ms",
        ]
        y = 10
        for line in lines:
            (text_w, text_h), baseline = cv2.getTextSize(line, FONT, 0.6, 1)
            cv2.rectangle(
                canvas,
                (10, y),
                (10 + text_w + 10, y + text_h + baseline + 10),
                BANNER_COLOR,
                -1,
            )
            cv2.putText(canvas, line, (15, y + 5 + text_h), FONT, 0.6, TEXT_COLOR, 1)
            y += text_h + baseline + 20

    return canvas


def resolve_overlay_path(config: "ExtractionConfig") -> Path:
    """
    Output path for the overlay image.

    An explicit `visualization_path` wins. Otherwise the file name is placed
    in the working directory, with a .png extension added when missing and a
    timestamp suffix when the file already exists.
    """
    if config.visualization_path:
        return Path(config.visualization_path)

    file_name = Path(config.visualization_file_name or "edge_roi_result.png")
    if not file_name.suffix:
        file_name = file_name.with_suffix(".png")

    save_path = Path.cwd() / file_name
    if save_path.exists():
        time_stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        save_path = save_path.with_name(f"{file_name.stem}_{time_stamp}{file_name.suffix}")

    return save_path
