"""
Common type definitions for the edge ROI extraction pipeline.

This module provides Pydantic-based type definitions for the two data
structures that cross the pipeline boundary: the owned grayscale pixel
buffer and integer pixel rectangles.

These types provide:
- Type validation and conversion
- Explicit width/height for raw row-major buffers
- Integration with numpy arrays and OpenCV
"""

from typing import Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

RawPixels = Union[bytes, bytearray, memoryview, Sequence[int], np.ndarray]


def as_uint8_pixels(data: RawPixels) -> np.ndarray:
    """
    Flatten raw pixel data into a 1D uint8 array.

    Byte-like data is taken as-is. Arrays and sequences must hold integer
    (or integral float) values in [0, 255]; nothing is wrapped or clipped.

    Raises:
        ValueError: If the data is None or not 8-bit pixel values.

    Example:
        >>> as_uint8_pixels([0, 128, 255]).dtype
        dtype('uint8')
    """
    if data is None:
        raise ValueError("Image data is empty")

    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(data), dtype=np.uint8)

    try:
        values = np.asarray(data)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValueError(f"Image data must be 8-bit pixel values: {e}") from e

    if values.dtype == np.uint8:
        return values.reshape(-1)

    if values.size == 0:
        return np.empty(0, dtype=np.uint8)

    if values.dtype.kind not in "iuf":
        raise ValueError(
            f"Image data must be 8-bit pixel values, got dtype {values.dtype}"
        )

    if not np.all(np.isfinite(values)) or values.min() < 0 or values.max() > 255:
        raise ValueError("Image data must be 8-bit pixel values in [0, 255]")

    if values.dtype.kind == "f" and not np.array_equal(values, np.round(values)):
        raise ValueError("Image data must be 8-bit pixel values, got fractions")

    return values.astype(np.uint8).reshape(-1)


class ImageBuffer(BaseModel):
    """
    Owned, explicitly-sized 8-bit grayscale pixel buffer.

    The pipeline never works on the caller's memory directly: the buffer is
    copied into a (height, width) uint8 array when the ImageBuffer is built,
    and released when the pipeline call returns.

    Attributes:
        data: Pixel data with shape (H, W) and dtype uint8.

    Example:
        >>> raw = bytes(100 * 100)
        >>> buffer = ImageBuffer.from_bytes(raw, width=100, height=100)
        >>> print(buffer.width, buffer.height)  # 100, 100
    """

    data: np.ndarray = Field(..., description="Grayscale pixels, shape (H, W)")

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is a grayscale 8-bit image.

        Raises:
            ValueError: If array is not a valid grayscale image.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image data is empty")

        if v.ndim != 2:
            raise ValueError(f"Expected 2D grayscale image, got shape {v.shape}")

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return v

    @classmethod
    def from_bytes(cls, data: RawPixels, width: int, height: int) -> "ImageBuffer":
        """
        Build a buffer from row-major grayscale pixels.

        Args:
            data: Raw pixel values, one byte per pixel, row-major.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            ImageBuffer owning a copy of the pixels.

        Raises:
            ValueError: If the data is empty, the dimensions are not positive,
                or the data length does not equal width * height.
        """
        pixels = as_uint8_pixels(data)
        if pixels.size == 0:
            raise ValueError("Image data is empty")

        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid image size: {width}x{height}")

        if pixels.size != width * height:
            raise ValueError(
                f"Image data length {pixels.size} does not match "
                f"{width}x{height} = {width * height}"
            )

        return cls(data=pixels.reshape(height, width).copy())

    @property
    def shape(self) -> Tuple[int, int]:
        """Get image shape (H, W)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    def to_numpy(self) -> np.ndarray:
        """Get underlying numpy array."""
        return self.data

    def to_bytes(self) -> bytes:
        """Get the pixels as row-major bytes."""
        return self.data.tobytes()

    def __repr__(self) -> str:
        """String representation of ImageBuffer."""
        return f"ImageBuffer(width={self.width}, height={self.height})"


class BBox(BaseModel):
    """
    Type-safe representation of a pixel rectangle [x_min, y_min, x_max, y_max).

    x_max and y_max are exclusive, so width and height are plain differences.

    Example:
        >>> bbox = BBox(x_min=30, y_min=20, x_max=70, y_max=30)
        >>> print(bbox.width, bbox.height)  # 40, 10
    """

    x_min: int = Field(..., description="Minimum X-coordinate (left edge)")
    y_min: int = Field(..., description="Minimum Y-coordinate (top edge)")
    x_max: int = Field(..., description="Maximum X-coordinate (exclusive)")
    y_max: int = Field(..., description="Maximum Y-coordinate (exclusive)")

    @field_validator("x_min", "y_min", "x_max", "y_max", mode="before")
    @classmethod
    def _convert_to_int(cls, v: Union[int, float]) -> int:
        """Convert coordinate to int, rounding if float."""
        if isinstance(v, (int, float, np.integer, np.floating)):
            return int(round(float(v)))
        raise ValueError(f"Coordinate must be numeric, got {type(v)}")

    @model_validator(mode="after")
    def _validate_bbox(self) -> "BBox":
        """
        Validate bbox coordinates after initialization.

        Raises:
            ValueError: If the box is empty or has negative coordinates.
        """
        if self.x_min >= self.x_max:
            raise ValueError(
                f"Invalid bbox: x_min ({self.x_min}) must be < x_max ({self.x_max})"
            )
        if self.y_min >= self.y_max:
            raise ValueError(
                f"Invalid bbox: y_min ({self.y_min}) must be < y_max ({self.y_max})"
            )

        if self.x_min < 0 or self.y_min < 0:
            raise ValueError(
                f"Invalid bbox: coordinates must be non-negative, "
                f"got x_min={self.x_min}, y_min={self.y_min}"
            )

        return self

    @property
    def width(self) -> int:
        """Get bounding box width (x_max - x_min)."""
        return self.x_max - self.x_min

    @property
    def height(self) -> int:
        """Get bounding box height (y_max - y_min)."""
        return self.y_max - self.y_min

    @property
    def top_left(self) -> Tuple[int, int]:
        """Get top-left corner (x, y)."""
        return (self.x_min, self.y_min)

    def to_tuple(self) -> Tuple[int, int, int, int]:
        """Convert BBox to tuple (x_min, y_min, x_max, y_max)."""
        return (self.x_min, self.y_min, self.x_max, self.y_max)

    def __repr__(self) -> str:
        """String representation of BBox."""
        return (
            f"BBox(x_min={self.x_min}, y_min={self.y_min}, "
            f"x_max={self.x_max}, y_max={self.y_max}, "
            f"width={self.width}, height={self.height})"
        )
