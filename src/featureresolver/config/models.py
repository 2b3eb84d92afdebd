"""Configuration models for the feature resolver.

This module contains the Pydantic models describing the tool configuration.
"""

import re

from pydantic import BaseModel, Field, field_validator

EDITION_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)*$")


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "WARNING"
    json_logs: bool | None = None  # None = auto-detect from FEATURERESOLVER_JSON_LOGS
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "feature-resolver"})


class ResolverConfig(BaseModel):
    """Defaults used by the feature-defaults command line tool."""

    feature_set: str = "features.FeatureSet"  # Fully qualified root feature set type
    minimum_edition: str = "2023"
    maximum_edition: str = "2024"

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("minimum_edition", "maximum_edition", mode="before")
    @classmethod
    def validate_edition(cls, v: object) -> str:
        """Validate edition format (dot-separated numerals)."""
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not EDITION_PATTERN.match(v):
            raise ValueError(
                f"Invalid edition {v!r}. Must be dot-separated numerals, e.g. '2023' or '2023.1'."
            )
        return v
