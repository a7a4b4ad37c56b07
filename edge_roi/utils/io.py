"""
I/O Utilities

Image decoding/encoding, per-ROI batch saving and plain-data export of
run results.
"""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import cv2
import numpy as np

if TYPE_CHECKING:
    from edge_roi.extraction.types import ROIRecord, RunResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_grayscale(file_path: PathLike) -> Optional[np.ndarray]:
    """
    Decode an image file as 8-bit grayscale.

    Returns:
        Image array (H x W, uint8), or None if the file cannot be decoded.
    """
    image = cv2.imread(str(file_path), cv2.IMREAD_GRAYSCALE)
    if image is None or image.size == 0:
        logger.error(f"Could not read image: {file_path}")
        return None
    return image


def encode_params(file_path: PathLike, quality: int) -> List[int]:
    """
    cv2.imwrite parameters for a 1-100 quality value.

    JPEG uses the quality directly; PNG maps it to a compression level
    9 - quality // 10, clamped to 0-9. Other formats get no parameters.
    """
    extension = Path(file_path).suffix.lower()
    if extension in (".jpg", ".jpeg"):
        return [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    if extension == ".png":
        compression = max(0, min(9, 9 - int(quality) // 10))
        return [cv2.IMWRITE_PNG_COMPRESSION, compression]
    return []


def save_image(file_path: PathLike, image: np.ndarray, quality: int = 95) -> bool:
    """Encode an image to disk, creating parent directories."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    saved = cv2.imwrite(str(file_path), image, encode_params(file_path, quality))
    if not saved:
        logger.error(f"Failed to save image: {file_path}")
    return bool(saved)


def save_roi(record: "ROIRecord", file_path: PathLike) -> bool:
    """
    Save a single ROI image.

    Returns:
        True if the file was written.
    """
    if record is None or record.image_data is None or not str(file_path):
        return False

    try:
        return save_image(file_path, record.image_data)
    except (cv2.error, OSError) as e:
        logger.error(f"Error saving ROI to {file_path}: {e}")
        return False


def save_all_rois(result: "RunResult", output_dir: PathLike) -> List[Path]:
    """
    Save every ROI of a successful run as roi_000.bmp, roi_001.bmp, ...

    Args:
        result: Pipeline output.
        output_dir: Directory to write to (created if missing).

    Returns:
        Paths of the files actually written. Empty for failed or empty runs.
    """
    if result is None or not result.success or not result.results:
        return []

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved_paths = []
    for i, record in enumerate(result.results):
        file_path = output_dir / f"roi_{i:03d}.bmp"
        if save_roi(record, file_path):
            saved_paths.append(file_path)

    logger.info(f"Saved {len(saved_paths)}/{len(result.results)} ROI(s) to {output_dir}")

    return saved_paths


def to_export_records(result: "RunResult") -> List[Dict[str, Any]]:
    """
    Flatten ROIs into plain records for callers that consume raw buffers.

    Each record holds `buffer` (row-major bytes), `width`, `height`,
    `center_x`, `center_y` and `edge_index`.
    """
    if result is None or not result.success:
        return []

    return [
        {
            "buffer": record.to_bytes(),
            "width": record.width,
            "height": record.height,
            "center_x": float(record.center[0]),
            "center_y": float(record.center[1]),
            "edge_index": record.edge_index,
        }
        for record in result.results
    ]


def save_json(data: Dict[str, Any], file_path: Path, indent: int = 2):
    """Save data to JSON file."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w') as f:
        json.dump(data, f, indent=indent)
