"""Resolution of features for a single edition."""

from .feature_resolver import FeatureResolver, validate_merged_features

__all__ = ["FeatureResolver", "validate_merged_features"]
