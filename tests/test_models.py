"""Tests for tsdoc.models — values, named values and points."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tsdoc.exceptions import DataIntegrityError
from tsdoc.models import (
    NamedValue,
    NumericValue,
    StringValue,
    TSPoint,
    coerce_value,
    to_es_date,
)


class TestCoerceValue:
    def test_string(self):
        assert coerce_value("abc") == StringValue("abc")

    @pytest.mark.parametrize("raw, expected", [(3, 3.0), (2.5, 2.5), (True, 1.0), (Decimal("1.25"), 1.25)])
    def test_numeric(self, raw, expected):
        assert coerce_value(raw) == NumericValue(expected)

    def test_already_coerced(self):
        v = NumericValue(1.0)
        assert coerce_value(v) is v

    def test_failure(self):
        with pytest.raises(DataIntegrityError):
            coerce_value(None)


class TestNamedValue:
    def test_string_entry(self):
        assert NamedValue.of("repo", StringValue("k8s")).to_dict() == \
            {"name": "repo", "ivalue": 0.0, "svalue": "k8s"}

    def test_numeric_entry(self):
        assert NamedValue.of("n", NumericValue(4.0)).to_dict() == \
            {"name": "n", "ivalue": 4.0, "svalue": ""}


class TestTSPoint:
    def test_es_date(self):
        assert to_es_date(datetime(2018, 3, 4, 5, 6, 7)) == "2018-03-04 05:06:07"

    def test_from_dict(self):
        p = TSPoint.from_dict({
            "name": "commits",
            "t": "2018-01-01T00:00:00",
            "added": "2018-01-02T10:00:00Z",
            "period": "d",
            "fields": {"value": 1},
            "tags": {},
        })
        assert p.name == "commits"
        assert p.t == datetime(2018, 1, 1)
        assert p.added == datetime(2018, 1, 2, 10, tzinfo=timezone.utc)
        assert p.tags is None
        assert p.fields == {"value": 1}

    def test_missing_added(self):
        with pytest.raises(DataIntegrityError, match="added"):
            TSPoint.from_dict({"name": "x", "t": "2018-01-01T00:00:00"})

    def test_missing_name(self):
        with pytest.raises(DataIntegrityError):
            TSPoint.from_dict({"t": "2018-01-01T00:00:00", "added": "2018-01-01T00:00:00"})

    def test_bad_time(self):
        with pytest.raises(DataIntegrityError):
            TSPoint.from_dict({"name": "x", "t": "yesterday", "added": "2018-01-01T00:00:00"})

    @pytest.mark.parametrize("key", ["tags", "fields"])
    @pytest.mark.parametrize("bad", [[1, 2], "a=b", 3])
    def test_non_object_payload(self, key, bad):
        with pytest.raises(DataIntegrityError, match=key):
            TSPoint.from_dict({
                "name": "x",
                "t": "2018-01-01T00:00:00",
                "added": "2018-01-01T00:00:00",
                "period": "d",
                key: bad,
            })
