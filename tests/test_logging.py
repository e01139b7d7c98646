from __future__ import annotations

import json
import logging

from app.core.context import set_supertx_hash
from app.core.logging import JsonFormatter, SupertxHashFilter, TextFormatter, configure_logging


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("supertx.test", logging.INFO, __file__, 1, msg, None, None)


def test_filter_stamps_current_hash():
    record = _record()
    set_supertx_hash("0xabc")
    try:
        SupertxHashFilter().filter(record)
    finally:
        set_supertx_hash(None)
    assert record.supertx_hash == "0xabc"

    other = _record()
    SupertxHashFilter().filter(other)
    assert other.supertx_hash == "-"


def test_json_formatter():
    record = _record("inputs gathered")
    record.supertx_hash = "0xabc"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "inputs gathered"
    assert payload["level"] == "INFO"
    assert payload["supertx_hash"] == "0xabc"


def test_text_formatter():
    record = _record("submitted")
    line = TextFormatter().format(record)
    assert "stx=-" in line
    assert line.endswith("supertx.test: submitted")


def test_configure_logging(settings):
    configure_logging(settings.model_copy(update={"log_json": True, "log_level": "debug"}))
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("urllib3").level == logging.WARNING
