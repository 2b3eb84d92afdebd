import os
from pathlib import Path


class PathResolver:
    """Central authority for file path resolution in the feature resolver.

    Uses environment variables for configuration with sensible defaults.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.home_dir = Path(
            os.getenv("FEATURERESOLVER_HOME", str(Path.home() / ".feature-resolver"))
        )

    def get_home_dir(self) -> Path:
        """Get the directory holding the tool's configuration."""
        return self.home_dir

    def get_config_path(self) -> Path:
        """Get the path to the configuration file.

        Checks FEATURERESOLVER_CONFIG environment variable first, then falls back to default.
        """
        config_path = os.getenv("FEATURERESOLVER_CONFIG")
        if config_path:
            return Path(config_path)

        return self.get_home_dir() / "config.yaml"
