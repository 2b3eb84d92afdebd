"""Compiled feature set defaults.

The artifact maps each edition at which some default changes to the complete
feature set value for that edition. It is produced once per schema build and
shipped as YAML::

    minimum_edition: '2023'
    maximum_edition: '2024'
    defaults:
      - edition: '2023'
        features:
          field_presence: EXPLICIT
          '[lang.cpp]': {legacy_closed_enum: true}
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from featureresolver.errors import FeatureResolutionError
from featureresolver.schema.descriptors import MessageType
from featureresolver.schema.registry import DescriptorPool
from featureresolver.values.message import FeatureValue


def _edition_string(value: Any) -> Any:
    # Unquoted single-segment editions load from YAML as integers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class FeatureSetEditionDefault(BaseModel):
    """Complete feature values in effect from ``edition`` onwards.

    The model is frozen but ``features`` is a mutable FeatureValue. The entry
    takes its own copy on construction; consumers that need to change the
    values should work on ``features.copy()``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    edition: str
    features: FeatureValue

    @field_validator("edition", mode="before")
    @classmethod
    def coerce_edition(cls, v: Any) -> Any:
        return _edition_string(v)

    @field_validator("features")
    @classmethod
    def copy_features(cls, v: FeatureValue) -> FeatureValue:
        return v.copy()


class FeatureSetDefaults(BaseModel):
    """Per-edition defaults compiled for the range [minimum, maximum]."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    minimum_edition: str
    maximum_edition: str
    defaults: tuple[FeatureSetEditionDefault, ...] = ()

    @field_validator("minimum_edition", "maximum_edition", mode="before")
    @classmethod
    def coerce_edition(cls, v: Any) -> Any:
        """Accept numeric editions from YAML."""
        return _edition_string(v)

    @property
    def editions(self) -> list[str]:
        return [edition_default.edition for edition_default in self.defaults]

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain data for YAML or JSON serialization."""
        return {
            "minimum_edition": self.minimum_edition,
            "maximum_edition": self.maximum_edition,
            "defaults": [
                {"edition": d.edition, "features": d.features.to_dict()} for d in self.defaults
            ],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        feature_set: MessageType,
        pool: DescriptorPool | None = None,
    ) -> "FeatureSetDefaults":
        """Rebuild an artifact from its plain-data form.

        Args:
            data: Output of to_dict (or the equivalent YAML)
            feature_set: The feature set type the features are values of
            pool: Registry used to resolve extension payloads

        Returns:
            FeatureSetDefaults: The artifact

        Raises:
            FeatureResolutionError: If the data does not match the feature set type
        """
        try:
            return cls(
                minimum_edition=data["minimum_edition"],
                maximum_edition=data["maximum_edition"],
                defaults=tuple(
                    FeatureSetEditionDefault(
                        edition=entry["edition"],
                        features=FeatureValue.from_dict(
                            feature_set, entry.get("features") or {}, pool
                        ),
                    )
                    for entry in data.get("defaults") or []
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise FeatureResolutionError(f"Invalid compiled feature set defaults: {e}") from e


def dump_defaults(defaults: FeatureSetDefaults, path: Path | None = None) -> str:
    """Serialize an artifact to YAML, optionally writing it to ``path``."""
    text = yaml.safe_dump(defaults.to_dict(), default_flow_style=False, sort_keys=False)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return text


def load_defaults(
    path: Path, feature_set: MessageType, pool: DescriptorPool | None = None
) -> FeatureSetDefaults:
    """Load an artifact written by dump_defaults."""
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise FeatureResolutionError(f"Could not parse compiled defaults {path}: {e}") from e
    if not isinstance(data, dict):
        raise FeatureResolutionError(f"Compiled defaults {path} must contain a mapping.")
    return FeatureSetDefaults.from_dict(data, feature_set, pool)
