from __future__ import annotations

import json
import logging
import logging.handlers

from miniapp_session.core.events import EventLogger, redact
from miniapp_session.core.logger import LOGGER_NAME, setup_logging


def test_events_are_jsonl_and_redacted(tmp_path):
    p = tmp_path / "session" / "events.jsonl"
    ev = EventLogger(str(p))
    ev.log("a1", "session.state", {"to": "INIT", "auth_token": "SECRET", "nested": [{"password": "pw"}]})
    ev.log("a1", "session.commit", {"loading": True})

    raw = p.read_text(encoding="utf-8")
    assert "SECRET" not in raw
    assert "pw" not in raw
    events = ev.read_all()
    assert [e["event"] for e in events] == ["session.state", "session.commit"]
    assert all(e["trace_id"] == "a1" for e in events)
    assert events[0]["details"]["auth_token"] == "***REDACTED***"
    for line in raw.splitlines():
        json.loads(line)


def test_read_all_missing_file(tmp_path):
    assert EventLogger(str(tmp_path / "nope.jsonl")).read_all() == []


def test_redact_leaves_other_values():
    assert redact({"address": "0xabc", "Token": "t"}) == {"address": "0xabc", "Token": "***REDACTED***"}


def test_setup_logging_is_idempotent(tmp_path):
    logger = setup_logging(str(tmp_path / "logs"))
    try:
        n = len(logger.handlers)
        assert setup_logging(str(tmp_path / "logs")) is logger
        assert len(logger.handlers) == n
        logger.info("hello")
        for h in logger.handlers:
            h.flush()
        assert "hello" in (tmp_path / "logs" / "miniapp_session.log").read_text(encoding="utf-8")
    finally:
        lg = logging.getLogger(LOGGER_NAME)
        for h in list(lg.handlers):
            lg.removeHandler(h)
            h.close()
        lg.propagate = True


def test_setup_logging_follows_config(tmp_path):
    try:
        logger = setup_logging(str(tmp_path / "a"), level="warning", console=False)
        assert logger.level == logging.WARNING
        assert not any(type(h) is logging.StreamHandler for h in logger.handlers)
        logger.info("quiet")
        logger.warning("loud")

        # a second call with another directory moves the file handler
        setup_logging(str(tmp_path / "b"))
        logger.info("moved")
        for h in logger.handlers:
            h.flush()
        first = (tmp_path / "a" / "miniapp_session.log").read_text(encoding="utf-8")
        assert "loud" in first and "quiet" not in first and "moved" not in first
        assert "moved" in (tmp_path / "b" / "miniapp_session.log").read_text(encoding="utf-8")
        assert logger.level == logging.INFO
        assert sum(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers) == 1
    finally:
        lg = logging.getLogger(LOGGER_NAME)
        for h in list(lg.handlers):
            lg.removeHandler(h)
            h.close()
        lg.propagate = True
