"""Registry of feature set schema descriptors.

Schemas are described as plain mappings, usually loaded from YAML::

    enums:
      - name: features.FieldPresence
        values: {FIELD_PRESENCE_UNKNOWN: 0, EXPLICIT: 1, IMPLICIT: 2}
    messages:
      - name: features.FeatureSet
        extension_ranges: [[1000, 9999]]
        fields:
          - name: field_presence
            type: enum
            enum: features.FieldPresence
            targets: [TARGET_TYPE_FIELD]
            edition_defaults:
              - {edition: "2023", value: EXPLICIT}
    extensions:
      - name: lang.cpp
        extendee: features.FeatureSet
        type: message
        message: lang.CppFeatures

Type references are resolved once all declarations have been read, so
declaration order does not matter.
"""

import json
from pathlib import Path
from typing import Any

import structlog
import yaml

from featureresolver.errors import DescriptorError
from featureresolver.schema.descriptors import (
    EditionDefault,
    EnumType,
    FieldDescriptor,
    FieldKind,
    FieldLabel,
    MessageType,
    ScalarType,
)

logger = structlog.get_logger(__name__)


class DescriptorPool:
    """Holds enums, record types and extensions by fully qualified name."""

    def __init__(self) -> None:
        """Initialize an empty pool."""
        self._enums: dict[str, EnumType] = {}
        self._messages: dict[str, MessageType] = {}
        self._extensions: dict[str, FieldDescriptor] = {}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DescriptorPool":
        """Build a pool from a schema mapping."""
        pool = cls()
        pool.add_schema(data)
        return pool

    @classmethod
    def from_yaml(cls, path: Path | str) -> "DescriptorPool":
        """Build a pool from a YAML schema file.

        Args:
            path: Path to the schema file

        Returns:
            DescriptorPool: Pool with every declaration linked

        Raises:
            DescriptorError: If the file is not valid YAML or not a mapping
        """
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except yaml.YAMLError as e:
            raise DescriptorError(f"Could not parse schema file {path}: {e}") from e
        if not isinstance(data, dict):
            raise DescriptorError(f"Schema file {path} must contain a mapping.")
        return cls.from_dict(data)

    def add_schema(self, data: dict[str, Any]) -> None:
        """Register every declaration in ``data`` and link type references."""
        pending: list[tuple[FieldDescriptor, dict[str, Any]]] = []

        for enum_spec in data.get("enums") or []:
            enum_type = EnumType(
                full_name=_require(enum_spec, "name", "enum"),
                values=_enum_values(enum_spec),
            )
            self._register(self._enums, enum_type.full_name, enum_type)

        for message_spec in data.get("messages") or []:
            message = MessageType(
                full_name=_require(message_spec, "name", "message"),
                extension_ranges=_extension_ranges(message_spec),
            )
            for field_spec in message_spec.get("fields") or []:
                message_field = self._build_field(field_spec)
                message_field.containing_type = message
                message_field.full_name = f"{message.full_name}.{message_field.name}"
                message.fields.append(message_field)
                pending.append((message_field, field_spec))
            for extension_spec in message_spec.get("extensions") or []:
                extension = self._build_extension(extension_spec, scope=message.full_name)
                message.extensions.append(extension)
                pending.append((extension, extension_spec))
            self._register(self._messages, message.full_name, message)

        for extension_spec in data.get("extensions") or []:
            pending.append((self._build_extension(extension_spec), extension_spec))

        for descriptor, spec in pending:
            self._link(descriptor, spec)

        logger.debug(
            "Schema registered",
            enums=len(self._enums),
            messages=len(self._messages),
            extensions=len(self._extensions),
        )

    def find_message(self, full_name: str) -> MessageType | None:
        return self._messages.get(full_name)

    def find_enum(self, full_name: str) -> EnumType | None:
        return self._enums.get(full_name)

    def find_extension(self, full_name: str) -> FieldDescriptor | None:
        return self._extensions.get(full_name)

    def extensions_of(self, message_type: MessageType) -> list[FieldDescriptor]:
        """List registered extensions whose extendee is ``message_type``."""
        return [
            extension
            for extension in self._extensions.values()
            if extension.containing_type is message_type
        ]

    def _register(self, table: dict[str, Any], full_name: str, item: Any) -> None:
        if full_name in self._enums or full_name in self._messages or full_name in self._extensions:
            raise DescriptorError(f"Duplicate definition of {full_name}.")
        table[full_name] = item

    def _build_field(self, spec: dict[str, Any]) -> FieldDescriptor:
        name = _require(spec, "name", "field")
        type_name = str(spec.get("type", ""))
        if type_name == "enum":
            kind, scalar_type = FieldKind.ENUM, None
        elif type_name == "message":
            kind, scalar_type = FieldKind.MESSAGE, None
        else:
            try:
                kind, scalar_type = FieldKind.SCALAR, ScalarType(type_name)
            except ValueError:
                raise DescriptorError(f"Field {name} has unknown type {type_name!r}.") from None

        try:
            label = FieldLabel(spec.get("label") or FieldLabel.OPTIONAL)
        except ValueError:
            raise DescriptorError(
                f"Field {name} has unknown label {spec.get('label')!r}."
            ) from None

        defaults = []
        for default_spec in spec.get("edition_defaults") or []:
            if "edition" not in default_spec or "value" not in default_spec:
                raise DescriptorError(f"Edition default of field {name} needs edition and value.")
            defaults.append(
                EditionDefault(
                    edition=_edition(default_spec["edition"], name),
                    value=_literal_text(default_spec["value"]),
                )
            )

        return FieldDescriptor(
            name=name,
            kind=kind,
            scalar_type=scalar_type,
            label=label,
            oneof=spec.get("oneof"),
            targets=tuple(str(target) for target in spec.get("targets") or []),
            edition_defaults=tuple(defaults),
        )

    def _build_extension(self, spec: dict[str, Any], scope: str | None = None) -> FieldDescriptor:
        extension = self._build_field(spec)
        extension.is_extension = True
        extension.full_name = f"{scope}.{extension.name}" if scope else extension.name
        self._register(self._extensions, extension.full_name, extension)
        return extension

    def _link(self, descriptor: FieldDescriptor, spec: dict[str, Any]) -> None:
        if descriptor.kind is FieldKind.ENUM:
            descriptor.enum_type = self._enums.get(str(spec.get("enum")))
            if descriptor.enum_type is None:
                raise DescriptorError(
                    f"Field {descriptor.full_name} refers to unknown enum {spec.get('enum')!r}."
                )
        elif descriptor.kind is FieldKind.MESSAGE:
            descriptor.message_type = self._messages.get(str(spec.get("message")))
            if descriptor.message_type is None:
                raise DescriptorError(
                    f"Field {descriptor.full_name} refers to unknown message "
                    f"{spec.get('message')!r}."
                )

        if descriptor.is_extension:
            descriptor.containing_type = self._messages.get(str(spec.get("extendee")))
            if descriptor.containing_type is None:
                raise DescriptorError(
                    f"Extension {descriptor.full_name} extends unknown message "
                    f"{spec.get('extendee')!r}."
                )


def _require(spec: dict[str, Any], key: str, what: str) -> str:
    if not isinstance(spec, dict) or not spec.get(key):
        raise DescriptorError(f"Every {what} declaration needs a {key!r}.")
    return str(spec[key])


def _literal_text(value: Any) -> str:
    """Normalise a default value to literal text.

    Literal text is YAML, so non-string values are written as JSON.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _enum_values(spec: dict[str, Any]) -> dict[str, int]:
    values = spec.get("values") or {}
    if not isinstance(values, dict):
        raise DescriptorError(
            f"Values of enum {spec['name']} must be a mapping of names to numbers."
        )
    result = {}
    for name, number in values.items():
        if not _is_int(number):
            raise DescriptorError(
                f"Enum value {spec['name']}.{name} has invalid number {number!r}."
            )
        result[str(name)] = number
    return result


def _extension_ranges(spec: dict[str, Any]) -> tuple[tuple[int, int], ...]:
    ranges = []
    for extension_range in spec.get("extension_ranges") or []:
        if (
            not isinstance(extension_range, list | tuple)
            or len(extension_range) != 2
            or not all(_is_int(bound) for bound in extension_range)
        ):
            raise DescriptorError(
                f"Extension range {extension_range!r} of {spec['name']} "
                "must be a [start, end] pair."
            )
        ranges.append((extension_range[0], extension_range[1]))
    return tuple(ranges)


def _edition(value: Any, field_name: str) -> str:
    # Unquoted single-segment editions load from YAML as integers.
    if _is_int(value):
        return str(value)
    if not isinstance(value, str):
        raise DescriptorError(
            f"Edition default of field {field_name} has edition {value!r}; "
            "quote editions with more than one segment."
        )
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
