import json
import logging

import pytest
from PIL import Image

from qrlogo.generator import encode
from qrlogo.logging import AUDIT, ConsoleFormatter, JsonFormatter, _summarize, audit, get_logger, trace


@pytest.fixture
def qrlogo_caplog(caplog):
    caplog.set_level(logging.DEBUG, logger="qrlogo")
    return caplog


def test_encode_emits_audit_event(qrlogo_caplog):
    encode("hello")
    events = [r for r in qrlogo_caplog.records if getattr(r, "event", None) == "qr.encoded"]
    assert len(events) == 1
    assert events[0].levelno == AUDIT
    assert events[0].ctx["data"] == "hello"
    assert events[0].ctx["logo"] is False


def test_trace_logs_enter_done_and_error(qrlogo_caplog):
    @trace(logger_name="test")
    def boom(x):
        raise RuntimeError(x)

    with pytest.raises(RuntimeError):
        boom("bad")
    events = [r.event for r in qrlogo_caplog.records if r.name == "qrlogo.test"]
    assert events == ["boom.enter", "boom.error"]


def test_summarize_hides_pixels():
    assert _summarize(Image.new("RGB", (3, 2))) == "<Image RGB 3x2>"
    assert _summarize([1, 2]) == "list[2]"
    assert _summarize("x" * 200).endswith("...")


def _record(event="qr.encoded", **ctx):
    log = get_logger("test")
    record = log.makeRecord(log.name, AUDIT, "", 0, "", (), None)
    record.event = event
    record.ctx = ctx
    return record


def test_json_formatter():
    entry = json.loads(JsonFormatter().format(_record(data="héllo")))
    assert entry["level"] == "AUDIT"
    assert entry["src"] == "qrlogo.test"
    assert entry["event"] == "qr.encoded"
    assert entry["ctx"] == {"data": "héllo"}


def test_console_formatter():
    line = ConsoleFormatter().format(_record(size="300x300"))
    assert "[qrlogo.test]" in line
    assert "qr.encoded" in line
    assert "size=300x300" in line


def test_audit_defaults_to_root_logger(qrlogo_caplog):
    audit("custom.event", answer=42)
    record = qrlogo_caplog.records[-1]
    assert record.name == "qrlogo"
    assert record.ctx == {"answer": 42}
