"""Tests for tsdoc.identity and tsdoc.store.bulk."""

from __future__ import annotations

from datetime import datetime

import pytest

from tsdoc.builder.documents import build_documents
from tsdoc.config import OutputModes
from tsdoc.exceptions import DataIntegrityError
from tsdoc.identity import hash_object
from tsdoc.models.point import TSPoint
from tsdoc.store.bulk import BulkBatch, add_bulk_items


class TestHashObject:
    def test_deterministic(self):
        doc = {"type": "scommits", "time": "2018-01-01 00:00:00", "period": "d"}
        keys = ["type", "time", "period"]
        assert hash_object(doc, keys) == hash_object(dict(doc), list(keys))

    def test_only_key_fields_matter(self):
        a = {"type": "x", "time": "t", "value": 1}
        b = {"type": "x", "time": "t", "value": 2, "extra": "y"}
        assert hash_object(a, ["type", "time"]) == hash_object(b, ["type", "time"])

    def test_key_order_matters(self):
        doc = {"a": "1", "b": "2"}
        assert hash_object(doc, ["a", "b"]) != hash_object(doc, ["b", "a"])

    def test_different_values_differ(self):
        assert hash_object({"a": "x"}, ["a"]) != hash_object({"a": "y"}, ["a"])

    def test_no_concatenation_collision(self):
        assert hash_object({"a": "ab", "b": "c"}, ["a", "b"]) != \
            hash_object({"a": "a", "b": "bc"}, ["a", "b"])

    def test_sha1_hex(self):
        h = hash_object({"a": "x"}, ["a"])
        assert len(h) == 40
        int(h, 16)

    def test_missing_key(self):
        with pytest.raises(DataIntegrityError):
            hash_object({"a": "x"}, ["a", "b"])


class TestBulkAccumulation:
    def test_paired_actions(self):
        bulk_del, bulk_add = BulkBatch(), BulkBatch()
        doc = {"type": "tfoo", "tag_time": "2018-01-01 00:00:00", "repo": "r"}
        doc_id = add_bulk_items("d_proj", bulk_del, bulk_add, doc, ("type", "tag_time"))

        assert bulk_del.actions == [{"_op_type": "delete", "_index": "d_proj", "_id": doc_id}]
        assert bulk_add.actions == [
            {"_op_type": "index", "_index": "d_proj", "_id": doc_id, "_source": doc}
        ]
        assert doc_id == hash_object(doc, ["type", "tag_time"])

    def test_order_is_stable(self):
        bulk_del, bulk_add = BulkBatch(), BulkBatch()
        ids = [
            add_bulk_items("d_p", bulk_del, bulk_add, {"type": f"t{i}", "tag_time": "x"}, ("type", "tag_time"))
            for i in range(5)
        ]
        assert bulk_del.ids() == ids
        assert bulk_add.ids() == ids
        assert bulk_del.number_of_actions() == 5
        assert len(bulk_add) == 5

    def test_merged_series_get_distinct_ids(self):
        t = datetime(2018, 1, 1)
        p1 = TSPoint(name="a", t=t, added=t, fields={"v": 1}, period="d")
        p2 = TSPoint(name="b", t=t, added=t, fields={"v": 2}, period="d")
        wide = OutputModes(wide=True, array=False, flat=False)
        bulk_del, bulk_add = BulkBatch(), BulkBatch()
        for p in (p1, p2):
            for built in build_documents(p, wide, merge="all"):
                add_bulk_items("d_p", bulk_del, bulk_add, built.doc, built.keys)
        assert len(set(bulk_add.ids())) == 2

    def test_rewrite_same_point_same_ids(self):
        t = datetime(2018, 1, 1)
        ids = []
        for added in (datetime(2018, 1, 2), datetime(2018, 1, 3)):
            p = TSPoint(name="a", t=t, added=added, fields={"v": 1}, period="d")
            bulk_del, bulk_add = BulkBatch(), BulkBatch()
            for built in build_documents(p, OutputModes()):
                add_bulk_items("d_p", bulk_del, bulk_add, built.doc, built.keys)
            ids.append(bulk_add.ids())
        assert ids[0] == ids[1]
