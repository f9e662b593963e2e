"""Tests for request id minting and log tagging."""

import logging
import random

from fastapi import FastAPI
from fastapi.testclient import TestClient

from mockgpt.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware, current_request_id
from mockgpt.utils import request_id

logger = logging.getLogger("mockgpt.test.request_id")


def build_app(seed):
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware, rng=random.Random(seed))

    @app.get("/ping")
    async def ping():
        logger.warning("ping")
        return {"request_id": current_request_id.get()}

    return app


def test_minted_id_shape():
    rid = request_id(random.Random(1))
    assert rid.startswith("req_")
    assert len(rid) == len("req_") + 12
    assert rid[4:].isalnum()


def test_minted_ids_follow_seed():
    with TestClient(build_app(7)) as a, TestClient(build_app(7)) as b:
        first = a.get("/ping").headers["X-Request-ID"]
        assert first == b.get("/ping").headers["X-Request-ID"]
        assert a.get("/ping").headers["X-Request-ID"] != first


def test_id_visible_to_handler_and_log_records(caplog):
    caplog.handler.addFilter(RequestIDLogFilter())
    with TestClient(build_app(7)) as client:
        with caplog.at_level(logging.WARNING, logger="mockgpt.test.request_id"):
            r = client.get("/ping", headers={"X-Request-ID": "req_trace"})
    assert r.json() == {"request_id": "req_trace"}
    assert r.headers["X-Request-ID"] == "req_trace"
    assert [rec.request_id for rec in caplog.records if rec.message == "ping"] == ["req_trace"]


def test_filter_outside_request():
    record = logging.LogRecord("mockgpt", logging.INFO, __file__, 1, "startup", None, None)
    assert RequestIDLogFilter().filter(record)
    assert record.request_id == "-"
