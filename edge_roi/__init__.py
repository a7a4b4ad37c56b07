"""
Edge ROI extraction for SFR/sharpness analysis.
"""

__version__ = "1.0.0"
