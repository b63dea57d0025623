"""Type descriptors and the field/record mapping engine."""

from .types import MISSING, TypeDescriptor, describe_value, matches_type, parse_type

__all__ = ["MISSING", "TypeDescriptor", "describe_value", "matches_type", "parse_type"]
