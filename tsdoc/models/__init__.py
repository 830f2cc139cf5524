"""Core data‑model classes used throughout tsdoc."""

from tsdoc.models.point import TSPoint, to_es_date
from tsdoc.models.value import (
    NamedValue,
    NumericValue,
    StringValue,
    Value,
    coerce_value,
)

__all__ = [
    "TSPoint",
    "to_es_date",
    "NamedValue",
    "NumericValue",
    "StringValue",
    "Value",
    "coerce_value",
]
