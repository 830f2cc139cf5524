"""
Index naming and the fixed index mapping.

The mapping is applied once, when :meth:`ElasticStore.ensure_index` finds
the project index missing.
"""

from __future__ import annotations

from typing import Any

__all__ = ["INDEX_MAPPING", "index_name"]


def index_name(project: str) -> str:
    """``"d_" + project`` — e.g. ``"kubernetes"`` → ``"d_kubernetes"``."""
    return "d_" + project


INDEX_MAPPING: dict[str, Any] = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
    },
    "mappings": {
        "dynamic_templates": [
            {"not_analyzed": {
                "match": "*",
                "match_mapping_type": "string",
                "mapping": {"type": "keyword"},
            }},
            {"numbers": {
                "match": "*",
                "match_mapping_type": "long",
                "mapping": {"type": "float"},
            }},
        ],
        "properties": {
            "type":        {"type": "keyword"},
            "time":        {"type": "date", "format": "yyyy-MM-dd HH:mm:ss"},
            "series":      {"type": "keyword"},
            "period":      {"type": "keyword"},
            "descr":       {"type": "keyword"},
            "name":        {"type": "keyword"},
            "svalue":      {"type": "keyword"},
            "ivalue":      {"type": "double"},
            "data.svalue": {"type": "keyword"},
            "data.ivalue": {"type": "double"},
            "value":       {"type": "double"},
        },
    },
}
