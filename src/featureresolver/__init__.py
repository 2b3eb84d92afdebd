"""Edition-scoped feature defaults.

Validates feature set types, compiles per-edition defaults and resolves the
features applicable to a single edition.
"""

from featureresolver.defaults import FeatureSetDefaults, compile_defaults
from featureresolver.errors import FeatureResolutionError
from featureresolver.resolver import FeatureResolver

__all__ = [
    "FeatureResolutionError",
    "FeatureResolver",
    "FeatureSetDefaults",
    "compile_defaults",
]
