"""
Elasticsearch store — idempotent write path for time-series documents.

One index per project (``d_<project>``).  A synchronization:

1. makes sure the index exists (creating it with :data:`INDEX_MAPPING`,
   tolerating a concurrent creator);
2. expands every point into documents and queues, per document, a
   delete-by-id and an index-by-id action;
3. runs the whole delete batch, then the whole index batch.

The delete phase tolerates ``not_found`` items and an index that has no
searchable data yet; the index phase tolerates nothing.  Every other
failure is raised as a :class:`~tsdoc.exceptions.SyncError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from elasticsearch import ApiError, Elasticsearch, TransportError  # type: ignore[import-untyped]
from elasticsearch.helpers import bulk  # type: ignore[import-untyped]

from tsdoc.builder.documents import build_documents
from tsdoc.exceptions import (
    BulkItemError,
    ConnectivityError,
    ProtocolError,
)
from tsdoc.store.bulk import BulkBatch, add_bulk_items
from tsdoc.store.mapping import INDEX_MAPPING, index_name

if TYPE_CHECKING:
    from tsdoc.config import OutputModes, SyncConfig
    from tsdoc.models.point import TSPoint

__all__ = ["BulkStats", "SyncResult", "ElasticStore", "connect"]

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "resource_already_exists_exception"
SEARCH_PHASE = "search_phase_execution_exception"


def _is_error(exc: Exception, kind: str) -> bool:
    """True if the store reported *kind* as the error type of *exc*."""
    return getattr(exc, "error", None) == kind or kind in str(exc)


def _body(resp: Any) -> dict[str, Any]:
    return getattr(resp, "body", resp) or {}


def _item_info(item: dict[str, Any]) -> dict[str, Any]:
    """``{"delete": {...}}`` → ``{...}``."""
    return next(iter(item.values()), {})


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class BulkStats:
    """Outcome of :meth:`ElasticStore.execute_bulks`."""

    deleted: int = 0
    not_found: int = 0
    inserted: int = 0
    delete_skipped: bool = False


@dataclass
class SyncResult:
    """Outcome of :meth:`ElasticStore.write_points`."""

    points: int = 0
    items: int = 0
    deleted: int = 0
    not_found: int = 0
    inserted: int = 0
    delete_skipped: bool = False


# ---------------------------------------------------------------------------
# ElasticStore
# ---------------------------------------------------------------------------

class ElasticStore:
    """Write-path handle on one project's index.

    Parameters
    ----------
    config : SyncConfig
        Must have ``es_url`` and ``project``.
    client : Elasticsearch | None
        An already-built client; one is created from ``config.es_url``
        otherwise.
    """

    def __init__(self, config: SyncConfig, client: Elasticsearch | None = None) -> None:
        self._config = config
        self.index = index_name(config.project)
        if client is None:
            try:
                client = Elasticsearch(config.es_url, request_timeout=config.request_timeout)
            except ValueError as exc:
                raise ConnectivityError(f"cannot create client for {config.es_url!r}: {exc}") from exc
        self._client = client

    @property
    def debug(self) -> bool:
        return self._config.debug > 0

    # ==================================================================
    # Administrative
    # ==================================================================

    def ping(self) -> None:
        """Raise :class:`ConnectivityError` if the cluster is unreachable."""
        try:
            ok = self._client.ping()
        except TransportError as exc:
            raise ConnectivityError(f"ping {self._config.es_url}: {exc}") from exc
        if not ok:
            raise ConnectivityError(f"ping {self._config.es_url}: cluster not reachable")

    def version(self) -> str:
        """Server version number, e.g. ``"8.13.4"``."""
        try:
            info = _body(self._client.info())
        except (ApiError, TransportError) as exc:
            raise ConnectivityError(f"info: {exc}") from exc
        return str(info.get("version", {}).get("number", "unknown"))

    def close(self) -> None:
        """Close the underlying transport."""
        self._client.close()

    def __enter__(self) -> "ElasticStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ==================================================================
    # Index management
    # ==================================================================

    def index_exists(self) -> bool:
        try:
            return bool(self._client.indices.exists(index=self.index))
        except (ApiError, TransportError) as exc:
            raise ConnectivityError(f"index exists {self.index}: {exc}") from exc

    def create_index(self) -> None:
        """Create the index with :data:`INDEX_MAPPING`.

        Losing a creation race to another writer is not an error.
        """
        try:
            resp = self._client.indices.create(
                index=self.index,
                settings=INDEX_MAPPING["settings"],
                mappings=INDEX_MAPPING["mappings"],
            )
        except (ApiError, TransportError) as exc:
            if _is_error(exc, ALREADY_EXISTS):
                logger.debug("create_index: %s index already exists: %s", self.index, exc)
                return
            raise ConnectivityError(f"create index {self.index}: {exc}") from exc
        if not _body(resp).get("acknowledged", False):
            raise ConnectivityError(f"index {self.index} not created")
        logger.info("Created index '%s'", self.index)

    def ensure_index(self) -> None:
        if not self.index_exists():
            self.create_index()

    # ==================================================================
    # Delete by query
    # ==================================================================

    def delete_by_query(self, prop_names: Sequence[str], prop_values: Sequence[Any]) -> int:
        """Delete every document matching all ``prop_names[i] == prop_values[i]``."""
        if len(prop_names) != len(prop_values):
            raise ValueError(
                f"delete_by_query: {len(prop_names)} names but {len(prop_values)} values"
            )
        query = {"bool": {"must": [
            {"term": {name: value}} for name, value in zip(prop_names, prop_values)
        ]}}
        return self._delete_by_query("delete_by_query", query)

    def delete_by_wildcard_query(self, prop_name: str, pattern: str) -> int:
        """Delete every document whose *prop_name* matches the wildcard *pattern*."""
        return self._delete_by_query("delete_by_wildcard_query", {"wildcard": {prop_name: pattern}})

    def _delete_by_query(self, label: str, query: dict[str, Any]) -> int:
        try:
            resp = self._client.delete_by_query(index=self.index, query=query)
        except (ApiError, TransportError) as exc:
            if _is_error(exc, SEARCH_PHASE):
                # Nothing searchable yet, so nothing to delete either.
                logger.debug("%s: %s index not yet ready for delete: %s", label, self.index, exc)
                return 0
            raise ConnectivityError(f"{label} on {self.index}: {exc}") from exc
        deleted = int(_body(resp).get("deleted", 0))
        if self.debug:
            logger.info("%s(%s): deleted %d", label, query, deleted)
        return deleted

    # ==================================================================
    # Bulk protocol
    # ==================================================================

    @staticmethod
    def bulks() -> tuple[BulkBatch, BulkBatch]:
        """Fresh ``(delete, add)`` batches."""
        return BulkBatch(), BulkBatch()

    def _submit(self, phase: str, actions: list[dict[str, Any]]) -> tuple[int, list[dict[str, Any]]]:
        success, errors = bulk(self._client, actions, raise_on_error=False, stats_only=False)
        unexecuted = len(actions) - success - len(errors)
        if unexecuted != 0:
            raise ProtocolError(phase, unexecuted)
        return success, errors

    def execute_bulks(self, bulk_del: BulkBatch, bulk_add: BulkBatch) -> BulkStats:
        """Run every delete, then every insert.

        Raises
        ------
        ConnectivityError
            A submission failed (other than the index not being searchable
            yet during the delete phase).
        ProtocolError
            The response does not account for every submitted action.
        BulkItemError
            A delete failed for a reason other than ``not_found``, or any
            insert failed.
        """
        stats = BulkStats()
        self._execute_delete(bulk_del, stats)
        self._execute_add(bulk_add, stats)
        return stats

    def _execute_delete(self, bulk_del: BulkBatch, stats: BulkStats) -> None:
        actions = bulk_del.actions
        attempt = 0
        while actions:
            try:
                success, errors = self._submit("delete", actions)
            except (ApiError, TransportError) as exc:
                if _is_error(exc, SEARCH_PHASE):
                    logger.debug("bulk delete: %s index not yet ready for delete: %s", self.index, exc)
                    stats.delete_skipped = True
                    return
                raise ConnectivityError(f"bulk delete: {exc}") from exc
            stats.deleted += success

            conflicts: set[str] = set()
            failed: list[dict[str, Any]] = []
            for item in errors:
                info = _item_info(item)
                if "not_found" in str(info.get("result", "")):
                    stats.not_found += 1
                elif info.get("status") == 409 and attempt < self._config.delete_conflict_retries:
                    conflicts.add(info.get("_id"))
                else:
                    logger.error("Failed delete: %s: %s", info.get("_id"), info.get("error"))
                    failed.append(item)
            if failed:
                raise BulkItemError("delete", failed)
            if not conflicts:
                return
            attempt += 1
            logger.warning("bulk delete: retrying %d conflicting item(s), attempt %d", len(conflicts), attempt)
            actions = [a for a in actions if a["_id"] in conflicts]

    def _execute_add(self, bulk_add: BulkBatch, stats: BulkStats) -> None:
        if not bulk_add.actions:
            return
        try:
            success, errors = self._submit("add", bulk_add.actions)
        except (ApiError, TransportError) as exc:
            raise ConnectivityError(f"bulk add: {exc}") from exc
        stats.inserted = success
        if errors:
            for item in errors:
                info = _item_info(item)
                logger.error("Failed add: %s: %s", info.get("_id"), info.get("error"))
            raise BulkItemError("add", errors)

    # ==================================================================
    # Synchronization
    # ==================================================================

    def write_points(
        self,
        points: Iterable[TSPoint],
        outputs: OutputModes | None = None,
        merge: str | None = None,
    ) -> SyncResult:
        """Synchronize *points* into the project index.

        *outputs* and *merge* default to the store's configuration.  Every
        document is built before anything is submitted, so a data-integrity
        failure leaves the index untouched.
        """
        pts = list(points)
        if outputs is None:
            outputs = self._config.outputs
        if merge is None:
            merge = self._config.merge
        if self.debug:
            logger.info("write_points: writing %d points", len(pts))
            logger.info("Points:\n%s", "\n".join(str(p) for p in pts))
        result = SyncResult(points=len(pts))
        if not pts:
            return result
        if not outputs.any():
            logger.warning("write_points: no output mode selected, nothing will be written")

        self.ensure_index()

        bulk_del, bulk_add = self.bulks()
        for p in pts:
            for built in build_documents(p, outputs, merge):
                add_bulk_items(self.index, bulk_del, bulk_add, built.doc, built.keys)
                result.items += 1

        stats = self.execute_bulks(bulk_del, bulk_add)
        result.deleted = stats.deleted
        result.not_found = stats.not_found
        result.inserted = stats.inserted
        result.delete_skipped = stats.delete_skipped
        if self.debug:
            logger.info("Items: %d", result.items)
        return result


def connect(config: SyncConfig) -> ElasticStore:
    """Build a store for *config*, verify the cluster answers, log its version."""
    if config.debug > 0:
        logger.info("ES connect string: %s", config.es_url)
    store = ElasticStore(config)
    store.ping()
    if config.debug > 0:
        logger.info("Elasticsearch version %s", store.version())
    return store
