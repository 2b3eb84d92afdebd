"""Configuration loading and saving."""

import logging
import shutil
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from featureresolver.config.models import ResolverConfig
from featureresolver.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and saving."""

    def __init__(
        self, path_resolver: PathResolver | None = None, config_path: Path | None = None
    ):
        """Initialize ConfigManager.

        Args:
            path_resolver: Optional PathResolver instance. If None, creates a new one.
            config_path: Optional explicit config file, overriding the resolver's path.
        """
        self.path_resolver = path_resolver or PathResolver()
        self.config_path = config_path or self.path_resolver.get_config_path()

    def load(self) -> ResolverConfig:
        """Load configuration, falling back to defaults when no file exists.

        Returns:
            ResolverConfig: Loaded and validated configuration

        Raises:
            ValueError: If the file is not valid YAML or fails validation
        """
        if not self.config_path.exists():
            return ResolverConfig()

        raw_config = self._read_yaml()
        try:
            return ResolverConfig(**raw_config)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            raise ValueError(f"Configuration validation failed: {', '.join(errors)}") from e

    def save(self, config: ResolverConfig) -> None:
        """Save configuration to file with backup.

        Args:
            config: Configuration to save
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            backup_path = self.config_path.with_suffix(".yaml.backup")
            try:
                shutil.copy2(self.config_path, backup_path)
            except PermissionError:
                logger.warning("Could not create backup at %s", backup_path)

        config_yaml = yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False)
        self.config_path.write_text(config_yaml)
        logger.info("Configuration saved successfully to %s", self.config_path)

    def _read_yaml(self) -> dict[str, Any]:
        """Read YAML config file.

        Returns:
            dict: Raw configuration dictionary
        """
        try:
            raw_config = yaml.safe_load(self.config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Could not parse configuration file {self.config_path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file {self.config_path} must contain a mapping.")
        return raw_config
