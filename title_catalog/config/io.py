"""Config I/O utilities."""

from __future__ import annotations

import json
import os
import logging
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError
from .models import CatalogSettings, validate_settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TITLE_CATALOG_CONFIG"


def get_config_path() -> str:
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return override
    return os.path.join(os.getcwd(), "config", "title_catalog.json")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Read the raw settings dict; missing or unreadable files yield ``{}``."""
    if config_path is None:
        config_path = get_config_path()
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Config could not be read from %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config root in %s is not an object, ignoring it", config_path)
        return {}
    return data


def save_config(config_data: Dict[str, Any], config_path: Optional[str] = None) -> bool:
    if config_path is None:
        config_path = get_config_path()
    try:
        parent = os.path.dirname(config_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(dict(config_data or {}), f, indent=2)
        return True
    except OSError as exc:
        logger.warning("Config could not be written to %s: %s", config_path, exc)
        return False


def load_settings(config_path: Optional[str] = None) -> CatalogSettings:
    path = config_path or get_config_path()
    data = load_config(path)
    try:
        return validate_settings(data)
    except ConfigurationError as exc:
        exc.details.setdefault("file_path", path)
        raise


def save_settings(settings: CatalogSettings, config_path: Optional[str] = None) -> bool:
    return save_config(settings.model_dump(mode="json"), config_path)
