"""Feature resolver configuration package.

Provides the typed configuration model and a manager that loads and saves it
as YAML.
"""

from .manager import ConfigManager
from .models import LoggingConfig, ResolverConfig

__all__ = [
    "ConfigManager",
    "LoggingConfig",
    "ResolverConfig",
]
