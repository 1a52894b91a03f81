import json
import os
import logging
from typing import Dict, Any

from eventify.core.config import settings

logger = logging.getLogger("eventify")

def load_studio_config(path: str = None) -> Dict[str, Any]:
    """
    Loads studio configuration (name, owner e-mail, notification templates) from JSON file.
    Raises FileNotFoundError if config is missing.
    Returns: Dict containing config.
    """
    config_path = path or settings.STUDIO_CONFIG_PATH

    if not os.path.exists(config_path):
        logger.critical(f"❌ Studio config '{config_path}' not found! The application cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.debug(f"✅ Studio config loaded for: {config.get('studio_name', 'Unknown')}")
            return config
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in studio config: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")

def get_notification_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Helper to get the notifications block (toggles + templates).
    Returns an empty dict when the block is absent.
    """
    return config.get("notifications", {}) or {}
