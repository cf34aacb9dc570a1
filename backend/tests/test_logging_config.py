"""Tests for the JSON formatter and request id propagation."""

import json
import logging
import sys

from app.core.logging_config import (
    JSONFormatter,
    RequestIdFilter,
    get_request_id,
    request_id_var,
    set_request_id,
)


def make_record(message="Portfolio 1 refreshed", **attrs):
    record = logging.LogRecord("ValuationPipeline", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestRequestId:

    def test_set_and_get(self):
        token = request_id_var.set("-")
        try:
            assert set_request_id("abc123") == "abc123"
            assert get_request_id() == "abc123"
        finally:
            request_id_var.reset(token)

    def test_generated_when_missing(self):
        token = request_id_var.set("-")
        try:
            rid = set_request_id()
            assert len(rid) == 8
            assert get_request_id() == rid
        finally:
            request_id_var.reset(token)

    def test_filter_injects_current_id(self):
        token = request_id_var.set("req-42")
        try:
            record = make_record()
            assert RequestIdFilter().filter(record) is True
            assert record.request_id == "req-42"
        finally:
            request_id_var.reset(token)

    def test_filter_keeps_existing_id(self):
        record = make_record(request_id="given")
        RequestIdFilter().filter(record)
        assert record.request_id == "given"


class TestJSONFormatter:

    def test_fields(self):
        entry = json.loads(JSONFormatter().format(make_record(request_id="r1")))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "ValuationPipeline"
        assert entry["message"] == "Portfolio 1 refreshed"
        assert entry["request_id"] == "r1"
        assert "timestamp" in entry

    def test_extra_fields_are_merged(self):
        record = make_record(extra_fields={"portfolio_id": 1, "skipped": 0})

        entry = json.loads(JSONFormatter().format(record))

        assert entry["portfolio_id"] == 1
        assert entry["skipped"] == 0

    def test_exception_included(self):
        try:
            raise ValueError("bad quote")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad quote" in entry["exception"]
