import json
import os
import logging
from typing import Dict, Any

from dobao.core.config import settings

logger = logging.getLogger("dobao")

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_CONFIG_PATH = os.path.join(BASE_DIR, "data", "venue_config.json")


def get_config_path() -> str:
    return settings.VENUE_CONFIG_PATH or DEFAULT_CONFIG_PATH


def load_venue_config() -> Dict[str, Any]:
    """
    Loads venue configuration (capacity, default price, owner email,
    notification templates) from the JSON file.
    Raises FileNotFoundError if config is missing.
    Returns: Dict containing config.
    """
    config_path = get_config_path()
    if not os.path.exists(config_path):
        logger.critical(f"❌ Venue config '{config_path}' not found! The application cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.info(f"✅ Venue config loaded for: {config.get('venue_name', 'Unknown')}")
            return config
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in venue config: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")


def get_max_capacity(config: Dict[str, Any]) -> int:
    return int(config.get("max_capacity", 35))


def get_default_price(config: Dict[str, Any]) -> float:
    return float(config.get("price_per_day", 180))
