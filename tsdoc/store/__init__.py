"""Elasticsearch write path — index lifecycle, bulk batches, execution."""

from tsdoc.store.bulk import BulkBatch, add_bulk_items
from tsdoc.store.elastic_store import BulkStats, ElasticStore, SyncResult, connect
from tsdoc.store.mapping import INDEX_MAPPING, index_name

__all__ = [
    "BulkBatch",
    "add_bulk_items",
    "BulkStats",
    "ElasticStore",
    "SyncResult",
    "connect",
    "INDEX_MAPPING",
    "index_name",
]
