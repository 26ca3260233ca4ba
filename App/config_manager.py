"""Configuration persistence manager for rectanglify.

This module handles loading and saving of the front-end configuration to/from
JSON files.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, OutputFormat, RectanglifyConfig, validate_rects_per_pixel

logger = logging.getLogger(__name__)


class ConfigManager:
    """Handles loading and saving of rectanglify configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.rectanglify_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> RectanglifyConfig:
        """Load configuration from file, returning defaults if not found.

        Invalid values fall back to their defaults individually.

        Returns:
            RectanglifyConfig with loaded or default values
        """
        config = RectanglifyConfig()

        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return config

        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: not a JSON object", self.config_path)
            return config

        try:
            config.rects_per_pixel = validate_rects_per_pixel(
                data.get("rects_per_pixel", config.rects_per_pixel)
            )
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring rects_per_pixel from config: %s", e)

        try:
            config.output_format = OutputFormat(
                data.get("output_format", config.output_format.value)
            )
        except ValueError as e:
            logger.warning("Ignoring output_format from config: %s", e)

        config.export_svg = bool(data.get("export_svg", config.export_svg))

        logger.info("Loaded configuration from %s", self.config_path)
        return config

    def save(self, config: RectanglifyConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            config: RectanglifyConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        data = {
            "rects_per_pixel": config.rects_per_pixel,
            "output_format": config.output_format.value,
            "export_svg": config.export_svg,
        }
        try:
            with open(self.config_path, "w") as f:
                json.dump(data, f, indent=2)
            return True, None
        except OSError as e:
            return False, str(e)
