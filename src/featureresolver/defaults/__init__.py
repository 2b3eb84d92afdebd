"""Compiled per-edition feature set defaults."""

from .artifact import FeatureSetDefaults, FeatureSetEditionDefault, dump_defaults, load_defaults
from .compiler import collect_editions, compile_defaults, fill_defaults

__all__ = [
    "FeatureSetDefaults",
    "FeatureSetEditionDefault",
    "collect_editions",
    "compile_defaults",
    "dump_defaults",
    "fill_defaults",
    "load_defaults",
]
