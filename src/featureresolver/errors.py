"""Errors raised while validating, compiling and resolving features.

Every failure is reported through a single exception carrying a message that
names the offending type, field or edition. All of them are ``ValueError``
subclasses so callers that only care about "bad input" can catch that.
"""


class FeatureResolutionError(ValueError):
    """Base class for all feature resolution failures."""


class DescriptorError(FeatureResolutionError):
    """The schema description handed to the registry is malformed."""


class SchemaValidationError(FeatureResolutionError):
    """A feature set type or extension is not shaped legally."""


class MissingDefaultError(FeatureResolutionError):
    """No default exists at or before the requested edition."""


class LiteralParseError(FeatureResolutionError):
    """A default literal could not be parsed into its field's type."""


class EditionOrderError(FeatureResolutionError):
    """Editions are out of order or outside the supported range."""


class FeatureMergeError(FeatureResolutionError):
    """Merged features failed validation or could not be merged."""
