"""
Configuration loader for the Extraction module.

Loads configuration from config.yaml and validates it. Validation is a single
function returning an enumerated error so the processor can report it in a
RunResult instead of raising.
"""

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from edge_roi.extraction.types import ConfigError, ExtractionConfig, ExtractionMode

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

VALID_INTERPOLATIONS = ["linear", "cubic", "nearest", "area", "lanczos"]

# YAML section each config field is read from
_SECTIONS = {
    "roi": (
        "extension_width",
        "extension_length",
        "extend_inwards",
        "selected_edge_index",
    ),
    "detection": (
        "min_area",
        "max_area",
        "adaptive_block_size",
        "adaptive_constant",
        "approximation_accuracy",
        "enable_morphology",
        "open_kernel_size",
        "close_kernel_size",
    ),
    "output": (
        "extraction_mode",
        "warp_interpolation",
        "image_quality",
        "save_visualization",
        "return_visualization_data",
        "visualization_path",
        "visualization_file_name",
        "show_parameters_on_image",
    ),
}


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ExtractionConfig:
    """
    Load extraction configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated ExtractionConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid.

    Example:
        >>> config = load_config()
        >>> print(config.adaptive_block_size)
        31
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading extraction config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded extraction configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> ExtractionConfig:
    """Parse raw dictionary into an ExtractionConfig, keeping defaults for missing keys."""
    if not isinstance(raw, dict):
        raise TypeError(f"Expected a mapping at top level, got {type(raw).__name__}")

    types = {f.name: f.type for f in fields(ExtractionConfig)}
    values: Dict[str, Any] = {}

    for section, names in _SECTIONS.items():
        section_raw = raw.get(section) or {}
        for name in names:
            if name in section_raw:
                values[name] = _coerce(name, section_raw[name], types[name])

    return ExtractionConfig(**values)


def _coerce(name: str, value: Any, annotation: Any) -> Any:
    """Convert a YAML scalar to the type declared on ExtractionConfig."""
    if name == "extraction_mode":
        return ExtractionMode(str(value).lower())
    if annotation in (bool, "bool"):
        if not isinstance(value, bool):
            raise TypeError(f"{name} must be a boolean, got {value!r}")
        return value
    if annotation in (int, "int"):
        return int(value)
    if annotation in (float, "float"):
        return float(value)
    return str(value)


def validate_config(config: ExtractionConfig) -> Optional[ConfigError]:
    """
    Check configuration values for logical consistency.

    The selected edge index is not validated: it is clamped when used.

    Args:
        config: Configuration to check.

    Returns:
        The first failing ConfigError, or None if the configuration is valid.

    Example:
        >>> validate_config(ExtractionConfig(adaptive_block_size=30))
        <ConfigError.EVEN_BLOCK_SIZE: 'adaptive_block_size must be odd'>
    """
    if config.extension_width <= 0:
        return ConfigError.NON_POSITIVE_WIDTH
    if config.extension_length <= 0:
        return ConfigError.NON_POSITIVE_LENGTH
    if config.adaptive_block_size % 2 == 0:
        return ConfigError.EVEN_BLOCK_SIZE
    if config.adaptive_block_size <= 1:
        return ConfigError.SMALL_BLOCK_SIZE
    if config.min_area <= 0:
        return ConfigError.NON_POSITIVE_MIN_AREA
    if config.max_area <= config.min_area:
        return ConfigError.AREA_ORDER
    if not 0 < config.approximation_accuracy <= 1:
        return ConfigError.ACCURACY_RANGE
    if config.open_kernel_size <= 0 or config.close_kernel_size <= 0:
        return ConfigError.KERNEL_SIZE
    if not 1 <= config.image_quality <= 100:
        return ConfigError.QUALITY_RANGE
    if config.warp_interpolation not in VALID_INTERPOLATIONS:
        return ConfigError.INTERPOLATION
    if not isinstance(config.extraction_mode, ExtractionMode):
        return ConfigError.EXTRACTION_MODE
    return None


def _validate_config(config: ExtractionConfig) -> None:
    """
    Validate a loaded configuration.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    error = validate_config(config)
    if error is not None:
        raise ValueError(error.value)

    if not 0 <= config.selected_edge_index <= 3:
        logger.warning(
            f"selected_edge_index {config.selected_edge_index} out of range, "
            f"will be clamped to {config.edge_index}"
        )

    logger.debug("Configuration validation passed")
