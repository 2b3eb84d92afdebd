"""Parsing of edition default literals.

Default literals are YAML text. Scalar fields take a YAML scalar (``true``,
``3``, ``1.5``, ``"text"``) and enum fields an enumerant name or number.
Record fields take a mapping (``{x: 1, nested: {y: EXPLICIT}}``) that is
merged into the target, so only the sub-fields it mentions are touched.
"""

import re
from collections.abc import Mapping
from typing import Any

import yaml

from featureresolver.errors import LiteralParseError
from featureresolver.schema.descriptors import FieldDescriptor
from featureresolver.values.message import FeatureValue

_ENUM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _load_literal(text: str, field: FieldDescriptor) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LiteralParseError(
            f"Parsing error in edition_defaults for feature field {field.full_name}. "
            f"Could not parse: {text}"
        ) from e


def parse_field_value(text: str, field: FieldDescriptor, target: FeatureValue) -> None:
    """Parse a scalar or enum literal and set it on ``target``.

    Args:
        text: Literal text
        field: Field of ``target`` the literal belongs to
        target: Value to set the field on

    Raises:
        LiteralParseError: If the literal does not fit the field's type
    """
    raw: Any
    if field.enum_type is not None and _ENUM_NAME.match(text.strip()):
        # Bare names such as ON or NO would otherwise load as YAML booleans.
        raw = text.strip()
    else:
        raw = _load_literal(text, field)
    try:
        target.set(field.name, raw)
    except (KeyError, TypeError, ValueError) as e:
        raise LiteralParseError(
            f"Parsing error in edition_defaults for feature field {field.full_name}. "
            f"Could not parse: {text}"
        ) from e


def merge_from_literal(text: str, field: FieldDescriptor, target: FeatureValue) -> None:
    """Parse a record literal and merge it into ``target``.

    Args:
        text: Literal text; empty text is an empty record
        field: Record field the literal belongs to
        target: The record value to merge into

    Raises:
        LiteralParseError: If the literal is not a mapping of known sub-fields
    """
    raw = _load_literal(text, field)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise LiteralParseError(
            f"Parsing error in edition_defaults for feature field {field.full_name}. "
            f"Could not parse: {text}"
        )
    try:
        target.update(raw)
    except (KeyError, TypeError, ValueError) as e:
        raise LiteralParseError(
            f"Parsing error in edition_defaults for feature field {field.full_name}. "
            f"Could not parse: {text}"
        ) from e
