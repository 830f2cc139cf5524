"""
TSPoint — one time-series point, the unit of input to a synchronization.

A point belongs to a named series and carries ``tags`` (string labels),
``fields`` (measured values) or both.  ``t`` is the point's logical time;
``added`` is when it was produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from tsdoc.exceptions import DataIntegrityError

__all__ = ["TSPoint", "to_es_date"]

ES_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_es_date(dt: datetime) -> str:
    """Render *dt* in the index's ``yyyy-MM-dd HH:mm:ss`` date format."""
    return dt.strftime(ES_DATE_FORMAT)


def _parse_time(raw: Any, what: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str):
        raise DataIntegrityError(f"{what}: expected ISO-8601 string, got {raw!r}")
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise DataIntegrityError(f"{what}: cannot parse {raw!r}") from exc


def _mapping(raw: Any, what: str) -> dict[str, Any] | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise DataIntegrityError(f"{what}: expected an object, got {raw!r}")
    return raw or None


@dataclass(frozen=True)
class TSPoint:
    """A single point.

    Parameters
    ----------
    name : str
        Series name.
    t : datetime
        Logical time of the point.
    added : datetime
        Time the point was produced.
    tags : dict[str, str] | None
        Tag name → value.
    fields : dict[str, Any] | None
        Field name → string or numeric value.
    period : str | None
        Aggregation period; required whenever ``fields`` is non-empty.
    """

    name: str
    t: datetime
    added: datetime
    tags: dict[str, str] | None = None
    fields: dict[str, Any] | None = None
    period: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TSPoint":
        """Build a point from its JSON shape (timestamps as ISO-8601 strings)."""
        try:
            name = data["name"]
            t = data["t"]
            added = data["added"]
        except KeyError as exc:
            raise DataIntegrityError(f"point is missing {exc.args[0]!r}: {data!r}") from None
        return cls(
            name=str(name),
            t=_parse_time(t, "t"),
            added=_parse_time(added, "added"),
            tags=_mapping(data.get("tags"), "tags"),
            fields=_mapping(data.get("fields"), "fields"),
            period=data.get("period"),
        )

    def __str__(self) -> str:
        return (
            f"{self.name} t={to_es_date(self.t)} added={to_es_date(self.added)}"
            f" period={self.period} tags={self.tags} fields={self.fields}"
        )
