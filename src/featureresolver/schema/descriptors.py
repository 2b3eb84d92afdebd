"""Typed descriptors for feature set schemas.

These are the rows of the field table that the validator and compiler walk.
Descriptors are built and linked once by the DescriptorPool and treated as
read-only afterwards.
"""

from dataclasses import dataclass, field
from enum import StrEnum


class FieldKind(StrEnum):
    """Value kind of a feature field."""

    SCALAR = "scalar"
    ENUM = "enum"
    MESSAGE = "message"


class ScalarType(StrEnum):
    """Primitive types a scalar field may hold."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"


class FieldLabel(StrEnum):
    """Cardinality of a field."""

    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


@dataclass(frozen=True)
class EditionDefault:
    """A default literal that applies from ``edition`` onwards.

    Attributes:
        edition: Edition the default takes effect in
        value: Literal text, parsed against the owning field's type
    """

    edition: str
    value: str


@dataclass(eq=False)
class EnumType:
    """An enum with named enumerants; number 0 means "unset"."""

    full_name: str
    values: dict[str, int] = field(default_factory=dict)

    def find_value_by_name(self, name: str) -> int | None:
        """Return the number of the named enumerant, or None."""
        return self.values.get(name)

    def find_name_by_number(self, number: int) -> str | None:
        """Return the first enumerant name declared with ``number``, or None."""
        for name, value in self.values.items():
            if value == number:
                return name
        return None


@dataclass(eq=False)
class FieldDescriptor:
    """A single field of a feature set type, or an extension of one.

    Attributes:
        name: Short field name
        kind: Scalar, enum or nested record
        scalar_type: Primitive type when ``kind`` is SCALAR
        label: Optional, required or repeated
        oneof: Name of the union the field belongs to, if any
        targets: Applicability targets the field is honored in
        edition_defaults: Unordered (edition, literal) default pairs
        enum_type: Linked enum type when ``kind`` is ENUM
        message_type: Linked record type when ``kind`` is MESSAGE
        containing_type: Type the field belongs to (or extends)
        full_name: Fully qualified name
        is_extension: Whether the field extends ``containing_type`` from outside
    """

    name: str
    kind: FieldKind
    scalar_type: ScalarType | None = None
    label: FieldLabel = FieldLabel.OPTIONAL
    oneof: str | None = None
    targets: tuple[str, ...] = ()
    edition_defaults: tuple[EditionDefault, ...] = ()
    enum_type: EnumType | None = None
    message_type: "MessageType | None" = None
    containing_type: "MessageType | None" = None
    full_name: str = ""
    is_extension: bool = False

    @property
    def is_required(self) -> bool:
        return self.label is FieldLabel.REQUIRED

    @property
    def is_repeated(self) -> bool:
        return self.label is FieldLabel.REPEATED

    @property
    def is_message(self) -> bool:
        return self.kind is FieldKind.MESSAGE

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.full_name or self.name!r}, kind={self.kind.value})"


@dataclass(eq=False)
class MessageType:
    """A record type: the feature set itself or an extension's payload type.

    Attributes:
        full_name: Fully qualified type name
        fields: Declared fields in declaration order
        extension_ranges: Field number ranges reserved for extensions
        extensions: Extensions declared inside this type's scope
    """

    full_name: str
    fields: list[FieldDescriptor] = field(default_factory=list)
    extension_ranges: tuple[tuple[int, int], ...] = ()
    extensions: list[FieldDescriptor] = field(default_factory=list)

    @property
    def oneofs(self) -> tuple[str, ...]:
        """Names of the unions declared by this type's fields."""
        names: list[str] = []
        for message_field in self.fields:
            if message_field.oneof and message_field.oneof not in names:
                names.append(message_field.oneof)
        return tuple(names)

    def find_field(self, name: str) -> FieldDescriptor | None:
        """Look up a declared field by its short name."""
        for message_field in self.fields:
            if message_field.name == name:
                return message_field
        return None

    def __repr__(self) -> str:
        return f"MessageType({self.full_name!r})"
