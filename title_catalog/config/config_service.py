from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict

from .models import CatalogSettings, validate_settings


@dataclass
class ConfigService:
    _loader: Callable[[], Dict[str, Any] | None]
    _saver: Callable[[Dict[str, Any]], Any]

    def load(self) -> Dict[str, Any] | None:
        return self._loader()

    def save(self, data: Dict[str, Any]) -> None:
        self._saver(data)

    def load_validated(self) -> CatalogSettings:
        return validate_settings(self._loader() or {})

    def save_settings(self, settings: CatalogSettings) -> None:
        self._saver(settings.model_dump(mode="json"))

    def update(self, **changes: Any) -> CatalogSettings:
        """Apply ``changes`` on top of the stored settings and persist them."""
        payload = dict(self._loader() or {})
        payload.update(changes)
        settings = validate_settings(payload)
        self.save_settings(settings)
        return settings
