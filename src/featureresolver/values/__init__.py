"""Feature values and the literal parser that fills them."""

from .literals import merge_from_literal, parse_field_value
from .message import FeatureValue, check_field_value

__all__ = ["FeatureValue", "check_field_value", "merge_from_literal", "parse_field_value"]
