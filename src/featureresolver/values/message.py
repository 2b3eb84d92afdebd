"""Feature values: instances of feature set types.

A FeatureValue tracks which fields were explicitly set. That presence is what
drives merging: set fields override, unset fields leave the target alone, and
record fields (including extension payloads) merge field by field.
"""

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from featureresolver.schema.descriptors import FieldDescriptor, FieldKind, MessageType, ScalarType

if TYPE_CHECKING:
    from featureresolver.schema.registry import DescriptorPool

_ZERO_SCALARS: dict[ScalarType, Any] = {
    ScalarType.BOOL: False,
    ScalarType.INT: 0,
    ScalarType.FLOAT: 0.0,
    ScalarType.STRING: "",
}


def check_field_value(field: FieldDescriptor, value: Any) -> Any:
    """Check ``value`` against a field's type and return its stored form.

    Enum values may be given by name or number and are stored as numbers.
    Integers are accepted for float fields.

    Raises:
        TypeError: If the value has the wrong Python type
        ValueError: If an enum name or number is not declared
    """
    if field.kind is FieldKind.MESSAGE:
        if not isinstance(value, FeatureValue) or value.descriptor is not field.message_type:
            raise TypeError(f"Field {field.full_name} expects a {field.message_type} value.")
        return value.copy()

    if field.enum_type is not None:
        if isinstance(value, str):
            number = field.enum_type.find_value_by_name(value)
            if number is None:
                raise ValueError(
                    f"Enum type {field.enum_type.full_name} has no value named {value!r}."
                )
            return number
        if isinstance(value, int) and not isinstance(value, bool):
            if field.enum_type.find_name_by_number(value) is None:
                raise ValueError(f"Enum type {field.enum_type.full_name} has no value {value}.")
            return value
        raise TypeError(f"Field {field.full_name} expects an enum name or number, got {value!r}.")

    scalar_type = field.scalar_type
    if scalar_type is ScalarType.BOOL and isinstance(value, bool):
        return value
    if scalar_type is ScalarType.INT and isinstance(value, int) and not isinstance(value, bool):
        return value
    if (
        scalar_type is ScalarType.FLOAT
        and isinstance(value, int | float)
        and not isinstance(value, bool)
    ):
        return float(value)
    if scalar_type is ScalarType.STRING and isinstance(value, str):
        return value
    raise TypeError(f"Field {field.full_name} expects a {scalar_type} value, got {value!r}.")


def _payload_type(extension: FieldDescriptor) -> MessageType:
    if extension.message_type is None:
        raise TypeError(f"Extension {extension.full_name} does not carry a message payload.")
    return extension.message_type


class FeatureValue:
    """A value of a record type with explicit field presence."""

    def __init__(self, descriptor: MessageType) -> None:
        """Initialize an empty value.

        Args:
            descriptor: The record type this value is an instance of
        """
        self._descriptor = descriptor
        self._fields: dict[str, Any] = {}
        self._extensions: dict[str, tuple[FieldDescriptor, FeatureValue]] = {}

    @property
    def descriptor(self) -> MessageType:
        return self._descriptor

    @classmethod
    def from_dict(
        cls,
        descriptor: MessageType,
        data: Mapping[str, Any],
        pool: "DescriptorPool | None" = None,
    ) -> "FeatureValue":
        """Build a value from its plain-dict form (see to_dict).

        Args:
            descriptor: Record type of the value
            data: Field names to values; extension payloads under "[full.name]"
            pool: Registry used to look up extensions

        Returns:
            FeatureValue: The populated value
        """
        value = cls(descriptor)
        value.update(data, pool)
        return value

    def update(self, data: Mapping[str, Any], pool: "DescriptorPool | None" = None) -> None:
        """Set fields from a plain mapping, merging nested records."""
        for key, raw in data.items():
            if not isinstance(key, str):
                raise KeyError(f"{self._descriptor.full_name} has no field named {key!r}.")
            if key.startswith("[") and key.endswith("]"):
                extension = pool.find_extension(key[1:-1]) if pool is not None else None
                if extension is None:
                    raise KeyError(
                        f"Unknown extension {key[1:-1]} of {self._descriptor.full_name}."
                    )
                if not isinstance(raw, Mapping):
                    raise TypeError(f"Extension {extension.full_name} expects a mapping.")
                self.mutable_extension(extension).update(raw, pool)
                continue

            field = self._field(key)
            if field.is_message:
                if raw is None:
                    raw = {}
                if not isinstance(raw, Mapping):
                    raise TypeError(f"Field {field.full_name} expects a mapping, got {raw!r}.")
                self.mutable(key).update(raw, pool)
            else:
                self.set(key, raw)

    def has_field(self, name: str) -> bool:
        self._field(name)
        return name in self._fields

    def get(self, name: str) -> Any:
        """Return a field's value, or its zero value when unset."""
        field = self._field(name)
        if name in self._fields:
            return self._fields[name]
        if field.message_type is not None:
            return FeatureValue(field.message_type)
        if field.enum_type is not None:
            return 0
        return _ZERO_SCALARS[field.scalar_type]

    def get_enum_name(self, name: str) -> str | None:
        """Return the enumerant name of an enum field's current value."""
        field = self._field(name)
        if field.enum_type is None:
            raise TypeError(f"Field {field.full_name} is not an enum field.")
        return field.enum_type.find_name_by_number(self.get(name))

    def set(self, name: str, value: Any) -> None:
        field = self._field(name)
        self._fields[name] = check_field_value(field, value)

    def clear(self, name: str) -> None:
        self._field(name)
        self._fields.pop(name, None)

    def mutable(self, name: str) -> "FeatureValue":
        """Return a record field's value for in-place filling, marking it set."""
        field = self._field(name)
        if field.message_type is None:
            raise TypeError(f"Field {field.full_name} is not a message field.")
        if name not in self._fields:
            self._fields[name] = FeatureValue(field.message_type)
        return self._fields[name]

    def has_extension(self, extension: FieldDescriptor) -> bool:
        return extension.full_name in self._extensions

    def extension(self, extension: FieldDescriptor) -> "FeatureValue":
        """Return an extension payload, or an empty one when absent."""
        self._check_extension(extension)
        if extension.full_name in self._extensions:
            return self._extensions[extension.full_name][1]
        return FeatureValue(_payload_type(extension))

    def mutable_extension(self, extension: FieldDescriptor) -> "FeatureValue":
        """Return an extension payload for in-place filling, creating it if needed."""
        self._check_extension(extension)
        if extension.full_name not in self._extensions:
            self._extensions[extension.full_name] = (
                extension,
                FeatureValue(_payload_type(extension)),
            )
        return self._extensions[extension.full_name][1]

    def list_extensions(self) -> Iterator[tuple[FieldDescriptor, "FeatureValue"]]:
        """Yield (extension, payload) pairs for every present extension."""
        yield from self._extensions.values()

    def merge_from(self, other: "FeatureValue") -> None:
        """Merge the set fields of ``other`` into this value.

        Scalar and enum fields are overwritten, record fields and extension
        payloads are merged recursively.
        """
        if other.descriptor is not self._descriptor:
            raise TypeError(
                f"Cannot merge {other.descriptor.full_name} into {self._descriptor.full_name}."
            )
        for name, value in other._fields.items():
            if isinstance(value, FeatureValue):
                self.mutable(name).merge_from(value)
            else:
                self._fields[name] = value
        for extension, payload in other._extensions.values():
            self.mutable_extension(extension).merge_from(payload)

    def copy(self) -> "FeatureValue":
        result = FeatureValue(self._descriptor)
        result.merge_from(self)
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict of set fields, with enums by name."""
        data: dict[str, Any] = {}
        for field in self._descriptor.fields:
            if field.name not in self._fields:
                continue
            value = self._fields[field.name]
            if isinstance(value, FeatureValue):
                data[field.name] = value.to_dict()
            elif field.enum_type is not None:
                data[field.name] = field.enum_type.find_name_by_number(value) or value
            else:
                data[field.name] = value
        for extension, payload in self._extensions.values():
            data[f"[{extension.full_name}]"] = payload.to_dict()
        return data

    def _field(self, name: str) -> FieldDescriptor:
        field = self._descriptor.find_field(name)
        if field is None:
            raise KeyError(f"{self._descriptor.full_name} has no field named {name!r}.")
        return field

    def _check_extension(self, extension: FieldDescriptor) -> None:
        if not extension.is_extension or extension.containing_type is not self._descriptor:
            raise TypeError(
                f"{extension.full_name} is not an extension of {self._descriptor.full_name}."
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureValue):
            return NotImplemented
        return other.descriptor is self._descriptor and other.to_dict() == self.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FeatureValue({self._descriptor.full_name!r}, {self.to_dict()!r})"
