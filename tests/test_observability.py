"""Structured logging, redaction and operation instrumentation tests."""

from __future__ import annotations

import json
import logging

import pytest

from wardrobe_app.logging_config import (
    JsonFormatter,
    correlation_context,
    ensure_correlation_id,
    log_event,
    redact_for_log,
)
from models.results import ErrorKind, OperationResult
from tools.observability import instrument_operation


def test_redaction_masks_credentials_and_pii() -> None:
    payload = {
        "username": "bob",
        "password": "abcdef",
        "nested": {"contact": "write to bob@example.com", "image": "https://cdn.example.com/a.jpg"},
        "items": [{"tracking_number": "ZX123", "color": "Bleu"}],
        "count": 2,
    }
    scrubbed = redact_for_log(payload)

    assert scrubbed["username"] == "[redacted]"
    assert scrubbed["password"] == "[redacted]"
    assert scrubbed["nested"]["contact"] == "write to [redacted-email]"
    assert scrubbed["nested"]["image"] == "[redacted-url]"
    assert scrubbed["items"] == [{"tracking_number": "[redacted]", "color": "Bleu"}]
    assert scrubbed["count"] == 2


def test_json_formatter_includes_event_and_correlation() -> None:
    logger = logging.getLogger("tests.formatter")
    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        __file__,
        1,
        "order_received",
        None,
        None,
        extra={"event": "order_received", "correlation_id": "abc", "email": "bob@example.com"},
    )
    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "order_received"
    assert payload["correlation_id"] == "abc"
    assert payload["email"] == "[redacted-email]"


def test_correlation_context_scopes_ids() -> None:
    with correlation_context("request-1") as scoped:
        assert scoped == "request-1"
        assert ensure_correlation_id() == "request-1"


def test_log_event_redacts_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.log_event")
    with caplog.at_level(logging.INFO, logger="tests.log_event"):
        log_event(logger, logging.INFO, "account_registered", email="b@x.com", account_id="42")

    record = caplog.records[-1]
    assert record.event == "account_registered"
    assert record.email == "[redacted]"
    assert record.account_id == "42"


def test_instrument_operation_logs_outcomes(caplog: pytest.LogCaptureFixture) -> None:
    @instrument_operation("sample")
    def sample(ok: bool) -> OperationResult:
        if ok:
            return OperationResult.ok("done")
        return OperationResult.fail(ErrorKind.NOT_FOUND, "missing")

    with caplog.at_level(logging.INFO, logger="tools.observability"):
        assert sample(ok=True).value == "done"
        assert sample(ok=False).error is ErrorKind.NOT_FOUND

    events = [record.event for record in caplog.records if record.name == "tools.observability"]
    assert events == ["operation_completed", "operation_rejected"]


def test_instrument_operation_reraises(caplog: pytest.LogCaptureFixture) -> None:
    @instrument_operation("explodes")
    def explodes() -> None:
        raise RuntimeError("boom")

    with caplog.at_level(logging.INFO, logger="tools.observability"):
        with pytest.raises(RuntimeError):
            explodes()

    assert caplog.records[-1].event == "operation_failed"
