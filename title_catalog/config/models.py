"""Pydantic settings models for the catalog."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError


class _BaseConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class LoggingSettings(_BaseConfigModel):
    level: str = "INFO"
    json_output: bool = False
    log_dir: Optional[str] = None
    enable_file_logging: bool = False
    max_log_size: str = "10MB"
    backup_count: int = 3


class CatalogSettings(_BaseConfigModel):
    # Ordinal of SortPolicy; unknown values leave the catalog unsorted.
    sort_apps_by: int = 0
    filter_invalid_files: bool = True
    select_action: bool = False
    refresh_required: bool = False
    search_locations: List[str] = Field(default_factory=list)
    system_language: str = "en-US"
    cache_path: Optional[str] = None
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("search_locations")
    @classmethod
    def _dedupe_locations(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for entry in value:
            text = str(entry).strip()
            if text and text not in seen:
                seen.append(text)
        return seen


def validate_settings(payload: Dict[str, Any]) -> CatalogSettings:
    try:
        return cast(CatalogSettings, CatalogSettings.model_validate(payload or {}))
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field_name = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid catalog settings: {first.get('msg', exc)}",
            field_name=field_name or None,
            details={"errors": exc.error_count()},
        ) from exc
