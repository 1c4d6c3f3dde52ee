"""Structured logging — JSON formatter fields and code masking."""

import json
import logging
from uuid import uuid4

from redemption.infrastructure.observability import JSONFormatter, mask_code


def _record(**extra):
    record = logging.LogRecord(
        "redemption.test", logging.INFO, __file__, 1, "hello %s", ("world",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_base_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "INFO"
    assert log["logger"] == "redemption.test"
    assert log["message"] == "hello world"
    assert "timestamp" in log


def test_json_formatter_extra_fields():
    actor_id = uuid4()
    log = json.loads(JSONFormatter().format(_record(
        batch_id="batch_x", actor_id=actor_id, inserted=5, failed_slots=0,
    )))
    assert log["batch_id"] == "batch_x"
    assert log["actor_id"] == str(actor_id)
    assert log["inserted"] == 5
    assert log["failed_slots"] == 0
    assert "code_id" not in log


def test_mask_code_hides_all_but_prefix():
    assert mask_code("deadbeefcafe") == "dead****"
