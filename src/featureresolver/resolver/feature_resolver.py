"""Feature resolution for a single edition.

A FeatureResolver is created once per edition from compiled defaults and then
merges parent and child features on top of that edition's defaults. The
resolver never changes after construction, so one instance can serve any
number of concurrent merges.
"""

from bisect import bisect_right

import structlog

from featureresolver.defaults.artifact import FeatureSetDefaults
from featureresolver.editions.ordering import edition_key, editions_less_than
from featureresolver.errors import EditionOrderError, FeatureMergeError, MissingDefaultError
from featureresolver.values.message import FeatureValue

logger = structlog.get_logger(__name__)


def _validate_enum_fields(features: FeatureValue) -> None:
    for feature_field in features.descriptor.fields:
        if feature_field.enum_type is None:
            continue
        number = features.get(feature_field.name)
        name = feature_field.enum_type.find_name_by_number(number)
        if number == 0 or name is None:
            raise FeatureMergeError(
                f"Feature field {feature_field.full_name} must resolve to a known value, "
                f"found {name or number}"
            )


def validate_merged_features(features: FeatureValue) -> None:
    """Check that every enum feature resolved to a real (non-zero) value.

    Enum fields of the feature set and of each present extension payload are
    checked.

    Raises:
        FeatureMergeError: If an enum field holds its zero enumerant
    """
    _validate_enum_fields(features)
    for _extension, payload in features.list_extensions():
        _validate_enum_fields(payload)


class FeatureResolver:
    """Merges features on top of the defaults of one edition."""

    def __init__(self, defaults: FeatureValue) -> None:
        """Initialize the resolver.

        Args:
            defaults: Complete default features for the resolver's edition
        """
        self._defaults = defaults.copy()

    @classmethod
    def create(cls, edition: str, compiled_defaults: FeatureSetDefaults) -> "FeatureResolver":
        """Create a resolver for ``edition`` from compiled defaults.

        Args:
            edition: Edition to resolve features for
            compiled_defaults: Output of compile_defaults

        Returns:
            FeatureResolver: Resolver holding the closest defaults at or before ``edition``

        Raises:
            EditionOrderError: If ``edition`` is outside the supported range or
                the compiled defaults are not strictly increasing
            MissingDefaultError: If no compiled default precedes ``edition``
        """
        if editions_less_than(edition, compiled_defaults.minimum_edition):
            raise EditionOrderError(
                f"Edition {edition} is earlier than the minimum supported edition "
                f"{compiled_defaults.minimum_edition}"
            )
        if editions_less_than(compiled_defaults.maximum_edition, edition):
            raise EditionOrderError(
                f"Edition {edition} is later than the maximum supported edition "
                f"{compiled_defaults.maximum_edition}"
            )

        prev_edition: str | None = None
        for edition_default in compiled_defaults.defaults:
            if prev_edition is not None and not editions_less_than(
                prev_edition, edition_default.edition
            ):
                raise EditionOrderError(
                    "Feature set defaults are not strictly increasing. "
                    f"Edition {prev_edition} is greater than or equal to edition "
                    f"{edition_default.edition}."
                )
            prev_edition = edition_default.edition

        first_nonmatch = bisect_right(
            compiled_defaults.defaults,
            edition_key(edition),
            key=lambda d: edition_key(d.edition),
        )
        if first_nonmatch == 0:
            raise MissingDefaultError(f"No valid default found for edition {edition}")

        selected = compiled_defaults.defaults[first_nonmatch - 1]
        logger.debug(
            "Selected feature defaults", edition=edition, defaults_edition=selected.edition
        )
        return cls(selected.features)

    @property
    def defaults(self) -> FeatureValue:
        """A copy of the edition defaults this resolver merges onto."""
        return self._defaults.copy()

    def merge_features(
        self, merged_parent: FeatureValue, unmerged_child: FeatureValue
    ) -> FeatureValue:
        """Merge parent and child features onto the edition defaults.

        Fields set on the child win over the parent, which wins over the
        defaults.

        Args:
            merged_parent: Fully resolved features of the parent
            unmerged_child: Features set directly on the child

        Returns:
            FeatureValue: New, fully resolved features for the child

        Raises:
            FeatureMergeError: If a value has the wrong type or an enum
                feature resolves to its zero value
        """
        merged = self._defaults.copy()
        for features in (merged_parent, unmerged_child):
            if features.descriptor is not merged.descriptor:
                raise FeatureMergeError(
                    f"Cannot merge {features.descriptor.full_name} features into "
                    f"{merged.descriptor.full_name}."
                )
            merged.merge_from(features)

        validate_merged_features(merged)
        return merged
