"""Shape checks for feature set types and their extensions."""

from featureresolver.errors import SchemaValidationError
from featureresolver.schema.descriptors import FieldDescriptor, MessageType


def validate_descriptor(message_type: MessageType) -> None:
    """Validate that a feature set type can carry edition defaults.

    Args:
        message_type: The feature set type or an extension's payload type

    Raises:
        SchemaValidationError: If the type has a oneof, or any field is
            required, repeated or declares no targets
    """
    if message_type.oneofs:
        raise SchemaValidationError(
            f"Type {message_type.full_name} contains unsupported oneof feature fields."
        )

    for feature_field in message_type.fields:
        if feature_field.is_required:
            raise SchemaValidationError(
                f"Feature field {feature_field.full_name} is an unsupported required field."
            )
        if feature_field.is_repeated:
            raise SchemaValidationError(
                f"Feature field {feature_field.full_name} is an unsupported repeated field."
            )
        if not feature_field.targets:
            raise SchemaValidationError(
                f"Feature field {feature_field.full_name} has no target specified."
            )


def validate_extension(
    feature_set: MessageType, extension: FieldDescriptor | None
) -> MessageType:
    """Validate an extension attached to the feature set type.

    The extension's payload type is not checked here; callers run
    validate_descriptor on the returned type separately.

    Returns:
        MessageType: The extension's payload type

    Raises:
        SchemaValidationError: If the extension is missing, extends another
            type, is not a record, is repeated, or its record type is itself
            extensible
    """
    if extension is None:
        raise SchemaValidationError(f"Unknown extension of {feature_set.full_name}.")

    if extension.containing_type is not feature_set:
        raise SchemaValidationError(
            f"Extension {extension.full_name} is not an extension of {feature_set.full_name}."
        )

    if extension.message_type is None:
        raise SchemaValidationError(
            f"Feature set extension {extension.full_name} is not of message type. "
            "Feature extensions should always use messages to allow for evolution."
        )

    if extension.is_repeated:
        raise SchemaValidationError(
            "Only singular features extensions are supported. "
            f"Found repeated extension {extension.full_name}"
        )

    if extension.message_type.extensions or extension.message_type.extension_ranges:
        raise SchemaValidationError(
            f"Nested extensions in feature extension {extension.full_name} are not supported."
        )
    return extension.message_type
