"""
Bulk batch accumulation.

A synchronization fills two :class:`BulkBatch` objects side by side: one
``delete`` action and one ``index`` action per document, both addressed by
the document's content-derived id.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from tsdoc.identity import hash_object

__all__ = ["BulkBatch", "add_bulk_items"]


@dataclass
class BulkBatch:
    """Ordered list of actions in the ``elasticsearch.helpers.bulk`` format."""

    actions: list[dict[str, Any]] = field(default_factory=list)

    def add(self, action: dict[str, Any]) -> None:
        self.actions.append(action)

    def number_of_actions(self) -> int:
        return len(self.actions)

    def ids(self) -> list[str]:
        return [a["_id"] for a in self.actions]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)


def add_bulk_items(
    index: str,
    bulk_del: BulkBatch,
    bulk_add: BulkBatch,
    doc: dict[str, Any],
    keys: Sequence[str],
) -> str:
    """Queue a delete-by-id and an index-by-id for *doc*; return the id."""
    doc_hash = hash_object(doc, keys)
    bulk_del.add({"_op_type": "delete", "_index": index, "_id": doc_hash})
    bulk_add.add({"_op_type": "index", "_index": index, "_id": doc_hash, "_source": doc})
    return doc_hash
