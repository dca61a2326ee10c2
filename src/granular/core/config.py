# src/granular/core/config.py
"""Configuration for the granular search compiler."""

from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Categories compared as numbers, dates or blobs. A non-numeric search term
# against one of these is skipped instead of producing an invalid comparison.
DEFAULT_NON_STRING_CATEGORIES: List[str] = [
    "array",
    "binary",
    "boolean",
    "date",
    "datetime",
    "float",
    "integer",
    "interval",
    "json",
    "numeric",
    "time",
    "uuid",
    "geometry",
    "geometrycollection",
    "point",
    "multipoint",
    "polygon",
    "multipolygon",
]

# Column kinds the reflection layer reports badly, remapped before classification.
DEFAULT_TYPE_OVERRIDES: Dict[str, Dict[str, str]] = {
    "mysql": {
        "linestring": "string",
        "multilinestring": "string",
        "enum": "string",
        "geometry": "float",
        "geometrycollection": "float",
        "point": "float",
        "multipoint": "float",
        "polygon": "float",
        "multipolygon": "float",
    },
}


class GranularConfig(BaseSettings):
    """Process-wide settings, read from ``GRANULAR_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GRANULAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    q_alias: str = "q"
    allowed_drivers: List[str] = Field(default_factory=list)
    non_string_categories: Dict[str, List[str]] = Field(default_factory=dict)
    type_overrides: Dict[str, Dict[str, str]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_TYPE_OVERRIDES.items()}
    )
    max_depth: int = 16
    default_time_zone: str = "UTC"
    default_time_column: str = "created_at"
    log_level: str = "WARNING"

    @field_validator("q_alias")
    @classmethod
    def q_alias_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("q_alias must not be blank")
        return value.strip()

    @field_validator("max_depth")
    @classmethod
    def max_depth_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_depth must be at least 1")
        return value

    def non_string_for(self, driver: str) -> List[str]:
        """Non-string categories for a driver, falling back to the defaults."""
        return self.non_string_categories.get(driver, DEFAULT_NON_STRING_CATEGORIES)

    def overrides_for(self, driver: str) -> Dict[str, str]:
        return {k.lower(): v.lower() for k, v in self.type_overrides.get(driver, {}).items()}

    def is_driver_allowed(self, driver: str) -> bool:
        return not self.allowed_drivers or driver in self.allowed_drivers
