"""
Document identity — the content-derived ``_id`` used for every bulk action.

Two documents whose key fields carry equal values get the same id, so a
later synchronization deletes and overwrites the earlier version instead of
accumulating a duplicate.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from tsdoc.exceptions import DataIntegrityError

__all__ = ["hash_object"]

_SEP = b"\x1f"


def hash_object(doc: Mapping[str, Any], keys: Sequence[str]) -> str:
    """Return the SHA-1 hex digest of *doc*'s values for *keys*, in order.

    >>> hash_object({"type": "sfoo", "time": "2018-01-01 00:00:00"}, ["type", "time"]) == \\
    ...     hash_object({"time": "2018-01-01 00:00:00", "type": "sfoo", "x": 1}, ["type", "time"])
    True
    """
    h = hashlib.sha1()
    for key in keys:
        try:
            value = doc[key]
        except KeyError:
            raise DataIntegrityError(f"hash_object: key {key!r} not found in {dict(doc)!r}") from None
        h.update(str(value).encode("utf-8"))
        h.update(_SEP)
    return h.hexdigest()
