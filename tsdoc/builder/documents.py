"""
Document builder — expands one :class:`TSPoint` into store documents.

Each point may yield:

* a **tag document** (wide and/or array shape) typed ``"t" + series``;
* one **flat tag document** per tag, typed ``"it" + series``;
* a **field document** (wide and/or array) typed ``"s" + series``, or
  ``"s" + merge`` with an explicit ``series`` attribute when merging;
* one **flat field document** per field, typed ``"is" + series`` or
  ``"is" + merge``.

Every document travels with the ordered list of *key fields* its identity
is derived from.  The list is declared here, never re-derived from the
document's contents.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from tsdoc.config import OutputModes
from tsdoc.exceptions import DataIntegrityError
from tsdoc.models.point import TSPoint, to_es_date
from tsdoc.models.value import NamedValue, StringValue, Value, coerce_value

__all__ = ["BuiltDocument", "build_documents", "escape_field_name"]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key-field sets
# ---------------------------------------------------------------------------

TAG_KEYS = ("type", "tag_time")
FLAT_TAG_KEYS = ("type", "tag_time", "name")
FIELD_KEYS = ("type", "time", "period")
FLAT_FIELD_KEYS = ("type", "time", "period", "name")
MERGED_FIELD_KEYS = ("type", "time", "period", "series")
MERGED_FLAT_FIELD_KEYS = ("type", "time", "period", "series", "name")


class BuiltDocument(NamedTuple):
    """A document body plus the key fields its ``_id`` is computed from."""

    doc: dict[str, Any]
    keys: tuple[str, ...]


def escape_field_name(name: str) -> str:
    """Strip ``.``: the store reads dotted names as nested paths.

    >>> escape_field_name("a.b.c")
    'abc'
    """
    return name.replace(".", "")


# ---------------------------------------------------------------------------
# Shape helpers
# ---------------------------------------------------------------------------

class _DocBuilder:
    """Accumulates one document: structural fields first, then payload.

    Structural fields always win: a wide attribute whose sanitised name
    collides with one of them is dropped with a warning, so the key fields
    stay exactly what the builder set.
    """

    def __init__(self, **structural: Any) -> None:
        self._doc: dict[str, Any] = dict(structural)
        self._reserved = set(structural)

    def reserve(self, key: str) -> None:
        self._reserved.add(key)

    def attribute(self, name: str, value: Value) -> None:
        key = escape_field_name(name)
        if key in self._reserved:
            logger.warning(
                "Attribute %r collides with structural field %r of %s, skipped",
                name, key, self._doc.get("type"),
            )
            return
        self._doc[key] = value.raw()

    def value(self, value: Value) -> None:
        """Store a flat document's single value under ``svalue`` or ``ivalue``."""
        if isinstance(value, StringValue):
            self._doc["svalue"] = value.value
        else:
            self._doc["ivalue"] = value.value

    def data(self, entries: list[NamedValue]) -> None:
        self._doc["data"] = [nv.to_dict() for nv in entries]
        self.reserve("data")

    def build(self, keys: tuple[str, ...]) -> BuiltDocument:
        return BuiltDocument(self._doc, keys)


def _payload(
    builder: _DocBuilder,
    items: Iterable[tuple[str, Value]],
    outputs: OutputModes,
) -> None:
    """Add wide attributes and/or the array ``data`` sequence."""
    if outputs.array:
        builder.reserve("data")
    data: list[NamedValue] = []
    for name, value in items:
        if outputs.wide:
            builder.attribute(name, value)
        if outputs.array:
            data.append(NamedValue.of(name, value))
    if outputs.array:
        builder.data(data)


def _coerced(values: Mapping[str, Any]) -> list[tuple[str, Value]]:
    return [(name, coerce_value(raw)) for name, raw in values.items()]


def _tag_value(raw: Any) -> StringValue:
    # Tags are labels: a numeric tag is kept as its text.
    value = coerce_value(raw)
    if isinstance(value, StringValue):
        return value
    return StringValue(str(raw))


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def build_documents(
    point: TSPoint,
    outputs: OutputModes,
    merge: str | None = None,
) -> list[BuiltDocument]:
    """Expand *point* into documents for every requested shape.

    Parameters
    ----------
    point : TSPoint
        The point to expand.
    outputs : OutputModes
        Requested shapes.
    merge : str | None
        Shared series label for field-bearing documents.  ``None`` or ``""``
        keeps per-series types.

    Returns
    -------
    list[BuiltDocument]
        Possibly empty; a point with neither tags nor fields yields nothing.

    Raises
    ------
    DataIntegrityError
        A tag/field value is not coercible, or fields come without a period.
    """
    docs: list[BuiltDocument] = []
    wide_or_array = outputs.wide or outputs.array

    if point.tags:
        time = to_es_date(point.added)
        tag_time = to_es_date(point.t)
        tags = [(name, _tag_value(value)) for name, value in point.tags.items()]
        if wide_or_array:
            b = _DocBuilder(type="t" + point.name, time=time, tag_time=tag_time)
            _payload(b, tags, outputs)
            docs.append(b.build(TAG_KEYS))
        if outputs.flat:
            for name, value in tags:
                b = _DocBuilder(
                    type="it" + point.name, time=time, tag_time=tag_time, name=name,
                )
                b.value(value)
                docs.append(b.build(FLAT_TAG_KEYS))

    if point.fields:
        if point.period is None:
            raise DataIntegrityError(f"point {point.name!r} has fields but no period")
        fields = _coerced(point.fields)
        common: dict[str, Any] = {"time": to_es_date(point.t), "period": point.period}
        if merge:
            common["series"] = point.name
            series_type = merge
            keys, flat_keys = MERGED_FIELD_KEYS, MERGED_FLAT_FIELD_KEYS
        else:
            series_type = point.name
            keys, flat_keys = FIELD_KEYS, FLAT_FIELD_KEYS
        common["time_added"] = to_es_date(point.added)

        if wide_or_array:
            b = _DocBuilder(type="s" + series_type, **common)
            _payload(b, fields, outputs)
            docs.append(b.build(keys))
        if outputs.flat:
            for name, value in fields:
                b = _DocBuilder(type="is" + series_type, **common, name=name)
                b.value(value)
                docs.append(b.build(flat_keys))

    return docs
