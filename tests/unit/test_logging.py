"""Structured logging: context binding, JSON/text formatting and configure()."""
from __future__ import annotations

import io
import json
import logging

from core import logging as clog


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    rec = logging.LogRecord("p2p.discovery.persisted_dht", logging.WARNING, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


def test_bind_unbind_and_trace_scope():
    clog.clear_context()
    clog.bind(component="dht-cli", column=b"\x01")
    assert clog.context() == {"component": "dht-cli", "column": "01"}

    with clog.trace_scope("abc123"):
        assert clog.context()["trace_id"] == "abc123"
    assert "trace_id" not in clog.context()

    clog.unbind("column")
    assert clog.context() == {"component": "dht-cli"}
    clog.clear_context()
    assert clog.context() == {}


def test_json_formatter_merges_context_and_extras():
    clog.clear_context()
    with clog.trace_scope("t-1"):
        line = clog.JSONFormatter().format(_record("discarding", err_code="PEERDB/DB"))
    payload = json.loads(line)
    assert payload["msg"] == "discarding"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "p2p.discovery.persisted_dht"
    assert payload["trace_id"] == "t-1"
    assert payload["err_code"] == "PEERDB/DB"


def test_text_formatter_is_single_line_without_color():
    clog.clear_context()
    clog.bind(peer="node-7")
    try:
        line = clog.TextFormatter(io.StringIO()).format(_record("loaded", count=3))
    finally:
        clog.clear_context()
    assert "\n" not in line
    assert "| WARNING | p2p.discovery.persisted_dht | peer=node-7 count=3 | loaded" in line
    assert "\x1b[" not in line


def test_configure_replaces_handlers_and_writes_file(tmp_path, restore_root_logger):
    buf = io.StringIO()
    log_file = tmp_path / "logs" / "peerdb.log"
    clog.configure(json=True, level="debug", stream=buf, file_path=log_file)
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2

    clog.get_logger("p2p.test").info("stored", extra={"count": 2})
    for h in root.handlers:
        h.flush()
    assert json.loads(buf.getvalue().splitlines()[-1])["count"] == 2
    assert json.loads(log_file.read_text().splitlines()[-1])["msg"] == "stored"
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            h.close()


def test_format_env_override(monkeypatch, restore_root_logger):
    monkeypatch.setenv("PEERDB_LOG_FORMAT", "text")
    buf = io.StringIO()
    clog.configure(stream=buf)
    clog.get_logger("p2p.test").warning("plain")
    assert buf.getvalue().rstrip().endswith("| plain")
