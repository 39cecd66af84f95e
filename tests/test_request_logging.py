"""Tests for the per-request access log line."""

from __future__ import annotations

import logging

from conftest import auth


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def access_lines(client, path, headers):
    handler = _Collect()
    logger = logging.getLogger("app.request")
    logger.addHandler(handler)
    try:
        client.get(path, headers=headers)
    finally:
        logger.removeHandler(handler)
    return [r for r in handler.records if getattr(r, "path", None) == path]


def test_access_line_carries_resolved_caller(client, user_id):
    (record,) = access_lines(client, "/expenses", auth(user_id))
    assert record.caller_id == user_id
    assert record.status == 200
    assert record.method == "GET"


def test_access_line_without_caller(client):
    (record,) = access_lines(client, "/health", {})
    assert record.caller_id in (None, "-")
    assert record.status == 200
