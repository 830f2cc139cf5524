"""
Failure taxonomy for the synchronization engine.

Every fatal condition is raised as a :class:`SyncError` subclass and
propagates to whoever called :meth:`ElasticStore.write_points`; the CLI
turns it into a non-zero exit status.  Tolerated conditions (delete of a
missing document, delete against an index with no searchable data yet,
creating an index that already exists) never surface as exceptions.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SyncError",
    "ConnectivityError",
    "DataIntegrityError",
    "ProtocolError",
    "BulkItemError",
]


class SyncError(Exception):
    """Base class for every failure raised by :mod:`tsdoc`."""


class ConnectivityError(SyncError):
    """Client creation, ping, index management or bulk submission failed."""


class DataIntegrityError(SyncError):
    """A point cannot be turned into documents (bad value, missing period...)."""


class ProtocolError(SyncError):
    """The bulk response does not account for every submitted action."""

    def __init__(self, phase: str, unexecuted: int) -> None:
        super().__init__(f"bulk {phase}: not all actions executed: {unexecuted}")
        self.phase = phase
        self.unexecuted = unexecuted


class BulkItemError(SyncError):
    """One or more items of a bulk phase failed with a non-tolerated reason.

    Parameters
    ----------
    phase : str
        ``"delete"`` or ``"add"``.
    failed : list[dict]
        The per-item error entries returned by the bulk helper.
    """

    def __init__(self, phase: str, failed: list[dict[str, Any]]) -> None:
        super().__init__(f"bulk {phase} failed: {len(failed)} item(s): {failed[:3]}")
        self.phase = phase
        self.failed = failed
