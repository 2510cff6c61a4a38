"""
Input/Output Manager (JSON)
Reads and writes the configuration object in its JSON shape.
"""
import json
import logging
import os
from importlib.metadata import version, PackageNotFoundError

from configurator.model.catalog import Configuration
from configurator.model.errors import ConfigurationError

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("product-configurator")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class IOManager:

    @staticmethod
    def load_configuration(filepath: str) -> Configuration:
        logger.info(f"Loading configuration from: {filepath}")
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"File '{filepath}' is not valid UTF-8 JSON: {e}"
            logger.error(msg)
            raise ConfigurationError(msg) from e

        configuration = Configuration.from_dict(data)
        logger.info(f"Loaded {len(configuration.chapters)} chapters "
                    f"and {len(configuration.scene.focus_targets)} focus targets.")
        return configuration

    @staticmethod
    def save_configuration(configuration: Configuration, filepath: str) -> None:
        logger.info(f"Saving configuration to: {filepath}")
        data = configuration.to_dict()
        data["version"] = APP_VERSION
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.exception(f"Failed to save configuration: {e}")
            raise
        logger.info(f"Configuration saved to: {filepath}")
