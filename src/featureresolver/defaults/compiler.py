"""Compilation of per-edition feature set defaults.

For every edition at which some field's default changes, the compiler builds
the complete feature set value for that edition. Scalar and enum fields take
the latest applicable default only. Record fields apply every applicable
default in edition order, so later editions can add sub-field defaults
without restating earlier ones.
"""

from bisect import bisect_right
from collections.abc import Sequence

import structlog

from featureresolver.defaults.artifact import FeatureSetDefaults, FeatureSetEditionDefault
from featureresolver.editions.ordering import edition_key, editions_less_than, sort_editions
from featureresolver.errors import MissingDefaultError, SchemaValidationError
from featureresolver.schema.descriptors import FieldDescriptor, MessageType
from featureresolver.schema.validation import validate_descriptor, validate_extension
from featureresolver.values.literals import merge_from_literal, parse_field_value
from featureresolver.values.message import FeatureValue

logger = structlog.get_logger(__name__)


def collect_editions(message_type: MessageType, maximum_edition: str) -> set[str]:
    """Collect the editions of every default of a type's fields.

    Editions later than ``maximum_edition`` are skipped.
    """
    editions = set()
    for feature_field in message_type.fields:
        for edition_default in feature_field.edition_defaults:
            if editions_less_than(maximum_edition, edition_default.edition):
                continue
            editions.add(edition_default.edition)
    return editions


def fill_defaults(edition: str, value: FeatureValue) -> None:
    """Set every field of ``value`` to its default at ``edition``.

    Args:
        edition: Edition to compute defaults for
        value: Value to fill; any field already set is replaced

    Raises:
        MissingDefaultError: If a field has no default at or before ``edition``
        LiteralParseError: If a default literal does not fit its field
    """
    for feature_field in value.descriptor.fields:
        value.clear(feature_field.name)

        defaults = sorted(feature_field.edition_defaults, key=lambda d: edition_key(d.edition))
        first_nonmatch = bisect_right(
            defaults, edition_key(edition), key=lambda d: edition_key(d.edition)
        )
        if first_nonmatch == 0:
            raise MissingDefaultError(
                f"No valid default found for edition {edition} "
                f"in feature field {feature_field.full_name}"
            )

        if feature_field.is_message:
            target = value.mutable(feature_field.name)
            for edition_default in defaults[:first_nonmatch]:
                merge_from_literal(edition_default.value, feature_field, target)
        else:
            parse_field_value(defaults[first_nonmatch - 1].value, feature_field, value)


def compile_defaults(
    feature_set: MessageType | None,
    extensions: Sequence[FieldDescriptor | None],
    minimum_edition: str,
    maximum_edition: str,
) -> FeatureSetDefaults:
    """Compile the defaults of a feature set and its extensions.

    Args:
        feature_set: The root feature set type
        extensions: Extensions of ``feature_set`` whose payloads get defaults too
        minimum_edition: Earliest edition the artifact supports
        maximum_edition: Latest edition the artifact supports

    Returns:
        FeatureSetDefaults: One complete value per edition, in increasing order

    Raises:
        FeatureResolutionError: If a type is malformed, a default is missing
            or a literal cannot be parsed
    """
    if feature_set is None:
        raise SchemaValidationError(
            "Unable to find definition of the feature set type in the descriptor pool."
        )
    validate_descriptor(feature_set)

    payload_types = []
    for extension in extensions:
        payload_type = validate_extension(feature_set, extension)
        validate_descriptor(payload_type)
        payload_types.append(payload_type)

    editions = collect_editions(feature_set, maximum_edition)
    for payload_type in payload_types:
        editions |= collect_editions(payload_type, maximum_edition)
    ordered_editions = sort_editions(editions)
    logger.debug(
        "Collected feature default editions",
        feature_set=feature_set.full_name,
        editions=ordered_editions,
    )

    edition_defaults = []
    for edition in ordered_editions:
        features = FeatureValue(feature_set)
        fill_defaults(edition, features)
        for extension in extensions:
            fill_defaults(edition, features.mutable_extension(extension))
        edition_defaults.append(FeatureSetEditionDefault(edition=edition, features=features))

    compiled = FeatureSetDefaults(
        minimum_edition=minimum_edition,
        maximum_edition=maximum_edition,
        defaults=tuple(edition_defaults),
    )
    logger.info(
        "Compiled feature set defaults",
        feature_set=feature_set.full_name,
        extensions=[extension.full_name for extension in extensions],
        editions=compiled.editions,
        minimum_edition=minimum_edition,
        maximum_edition=maximum_edition,
    )
    return compiled
