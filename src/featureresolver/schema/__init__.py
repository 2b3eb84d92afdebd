"""Feature set schema descriptors, registry and shape validation."""

from .descriptors import (
    EditionDefault,
    EnumType,
    FieldDescriptor,
    FieldKind,
    FieldLabel,
    MessageType,
    ScalarType,
)
from .registry import DescriptorPool
from .validation import validate_descriptor, validate_extension

__all__ = [
    "DescriptorPool",
    "EditionDefault",
    "EnumType",
    "FieldDescriptor",
    "FieldKind",
    "FieldLabel",
    "MessageType",
    "ScalarType",
    "validate_descriptor",
    "validate_extension",
]
