"""
Tag / field values and the ``NamedValue`` sub-record.

A raw value read from a point is either text or something numeric.  It is
normalised once, by :func:`coerce_value`, into a tagged variant
(:class:`StringValue` or :class:`NumericValue`); everything downstream
dispatches on the variant instead of re-inspecting the raw type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from tsdoc.exceptions import DataIntegrityError

__all__ = ["StringValue", "NumericValue", "Value", "NamedValue", "coerce_value"]


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str

    def raw(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class NumericValue:
    value: float

    def raw(self) -> float:
        return self.value


Value = Union[StringValue, NumericValue]


def coerce_value(raw: Any) -> Value:
    """Text stays text; anything else must convert to ``float``.

    Raises
    ------
    DataIntegrityError
        If *raw* is neither a string nor numerically coercible.
    """
    if isinstance(raw, (StringValue, NumericValue)):
        return raw
    if isinstance(raw, str):
        return StringValue(raw)
    try:
        return NumericValue(float(raw))
    except (TypeError, ValueError) as exc:
        raise DataIntegrityError(f"cannot convert {raw!r} to a number") from exc


@dataclass(frozen=True, slots=True)
class NamedValue:
    """One ``{name, ivalue, svalue}`` triplet of the ``data`` sequence.

    Only one of ``ivalue`` / ``svalue`` is meaningful; the other keeps its
    zero value and is still serialised so every entry has the same shape.
    """

    name: str
    ivalue: float = 0.0
    svalue: str = ""

    @classmethod
    def of(cls, name: str, value: Value) -> "NamedValue":
        if isinstance(value, StringValue):
            return cls(name=name, svalue=value.value)
        return cls(name=name, ivalue=value.value)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "ivalue": self.ivalue, "svalue": self.svalue}
