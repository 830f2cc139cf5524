"""
tsdoc — time-series points → Elasticsearch documents.

Expands points into wide / array / flat documents, derives a stable id for
each one, and publishes them with a delete-then-insert bulk protocol so a
repeated run overwrites instead of duplicating.

Quick start::

    from tsdoc import SyncConfig, TSPoint, connect
    cfg = SyncConfig(project="kubernetes")
    with connect(cfg) as store:
        store.write_points(points)
"""

from tsdoc.config import OutputModes, SyncConfig
from tsdoc.models.point import TSPoint
from tsdoc.store.elastic_store import ElasticStore, SyncResult, connect

__all__ = ["OutputModes", "SyncConfig", "TSPoint", "ElasticStore", "SyncResult", "connect"]
__version__ = "1.0.0"
