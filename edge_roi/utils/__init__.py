"""
Shared Utilities

Image I/O, batch ROI saving and debug overlays used around the pipeline.
"""

from edge_roi.utils.io import load_grayscale, save_all_rois, save_roi, to_export_records
from edge_roi.utils.visualization import render_overlay

__all__ = [
    "load_grayscale",
    "save_all_rois",
    "save_roi",
    "to_export_records",
    "render_overlay",
]
