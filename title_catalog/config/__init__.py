# ruff: noqa: F401
"""Title Catalog - configuration package.

Settings are plain JSON on disk, validated into pydantic models.
"""

from typing import Any, Dict, Optional

from .config_service import ConfigService
from .io import get_config_path, load_config, load_settings, save_config, save_settings
from .models import CatalogSettings, LoggingSettings, validate_settings


class Config:
    """Simple raw-dict wrapper for callers that want untyped keys."""

    def __init__(self, config_data: Optional[Dict[str, Any]] = None):
        self.config_data = config_data or {}

    def load_config(self, config_path: Optional[str] = None) -> "Config":
        self.config_data = load_config(config_path)
        return self

    def get(self, key, default=None):
        return self.config_data.get(key, default)

    def set(self, key, value) -> None:
        self.config_data[key] = value

    def save(self, config_path: Optional[str] = None) -> bool:
        return save_config(self.config_data, config_path)

    def to_settings(self) -> CatalogSettings:
        return validate_settings(self.config_data)


def file_config_service(config_path: Optional[str] = None) -> ConfigService:
    """ConfigService bound to a JSON file on disk."""
    path = config_path or get_config_path()
    return ConfigService(lambda: load_config(path), lambda data: save_config(data, path))


__all__ = [
    'CatalogSettings',
    'Config',
    'ConfigService',
    'LoggingSettings',
    'file_config_service',
    'get_config_path',
    'load_config',
    'load_settings',
    'save_config',
    'save_settings',
    'validate_settings',
]
