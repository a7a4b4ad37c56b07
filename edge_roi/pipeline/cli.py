"""
Command-line entry point.

Runs edge ROI extraction on one image or a directory of images and writes
the ROI files, an optional overlay and a JSON summary per image.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from edge_roi.extraction.config_loader import DEFAULT_CONFIG_PATH, load_config
from edge_roi.extraction.processor import EdgeROIProcessor
from edge_roi.extraction.types import ExtractionConfig, ExtractionMode, RunResult
from edge_roi.utils.io import save_all_rois, save_json

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract edge ROIs from quadrilateral fiducials for SFR analysis"
    )
    parser.add_argument('--input', type=str, required=True, help='Input image or directory')
    parser.add_argument('--output', type=str, default='results', help='Output directory')
    parser.add_argument('--config', type=str, default=str(DEFAULT_CONFIG_PATH), help='Configuration file')
    parser.add_argument('--width', type=int, default=None, help='Band width perpendicular to the edge (px)')
    parser.add_argument('--length', type=int, default=None, help='Band length along the edge (%% of edge)')
    parser.add_argument('--edge', type=int, default=None, help='Selected edge index (0-3)')
    parser.add_argument('--outwards', action='store_true', help='Offset the band away from the interior')
    parser.add_argument('--mode', choices=[m.value for m in ExtractionMode], default=None, help='Extraction strategy')
    parser.add_argument('--save-visualization', action='store_true', help='Write a debug overlay per image')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser


def apply_overrides(config: ExtractionConfig, args: argparse.Namespace) -> ExtractionConfig:
    """Return a copy of `config` with the command-line overrides applied."""
    overrides: Dict[str, Any] = {}
    if args.width is not None:
        overrides["extension_width"] = args.width
    if args.length is not None:
        overrides["extension_length"] = args.length
    if args.edge is not None:
        overrides["selected_edge_index"] = args.edge
    if args.outwards:
        overrides["extend_inwards"] = False
    if args.mode is not None:
        overrides["extraction_mode"] = ExtractionMode(args.mode)
    if args.save_visualization:
        overrides["save_visualization"] = True
    return dataclasses.replace(config, **overrides)


def collect_images(input_path: Path) -> List[Path]:
    if input_path.is_dir():
        return sorted(
            p for p in input_path.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS
        )
    return [input_path]


def summarize(
    image_path: Path, result: RunResult, output_dir: Path, saved: List[Path]
) -> Dict[str, Any]:
    rois = []
    for i, roi in enumerate(result.results):
        roi_path = output_dir / f"roi_{i:03d}.bmp"
        rois.append(
            {
                "file": str(roi_path) if roi_path in saved else None,
                "width": roi.width,
                "height": roi.height,
                "center": [round(float(c), 3) for c in roi.center],
                "edge_index": roi.edge_index,
                "area": roi.area,
                "roi_location": [round(float(c), 3) for c in roi.roi_location],
                "quadrilateral": roi.quadrilateral.tolist(),
                "selection_area": roi.selection_area.tolist(),
            }
        )

    return {
        "image": str(image_path),
        "success": result.success,
        "error_type": result.error_type.value,
        "error_message": result.error_message,
        "quadrilateral_count": result.quadrilateral_count,
        "skipped_count": result.skipped_count,
        "processing_time_ms": round(result.processing_time_ms, 3),
        "rois": rois,
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = apply_overrides(load_config(Path(args.config)), args)

    input_path = Path(args.input)
    output_dir = Path(args.output)
    images = collect_images(input_path)
    if not images:
        logger.error(f"No images found in {input_path}")
        return 1

    processor = EdgeROIProcessor(config=config)
    failures = 0

    for image_path in images:
        image_output = output_dir / image_path.stem
        image_config = config
        if config.save_visualization and not config.visualization_path:
            image_config = dataclasses.replace(
                config, visualization_path=str(image_output / "overlay.png")
            )

        result = processor.process_file(image_path, image_config)
        if not result.success:
            failures += 1
            logger.error(f"{image_path.name}: {result.error_message}")

        saved = save_all_rois(result, image_output)
        save_json(summarize(image_path, result, image_output, saved), image_output / "summary.json")
        logger.info(f"{image_path.name}: {result}")

    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
