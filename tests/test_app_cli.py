from __future__ import annotations

import json
import logging

import pytest
import requests

import app
from miniapp_session.core.logger import LOGGER_NAME

from .helpers.fakes import ADDR, ADDR_LOWER, USER, FakeResponse


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    lg = logging.getLogger(LOGGER_NAME)
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()
    lg.propagate = True


def _write(tmp_path, name, obj):
    p = tmp_path / name
    p.write_text(json.dumps(obj), encoding="utf-8")
    return str(p)


def _run(capsys, argv):
    rc = app.main(argv)
    out = capsys.readouterr().out
    return rc, out


def test_host_fixture_session(tmp_path, capsys):
    fixture = _write(tmp_path, "host.json", {"embedded": True, "user": USER, "wallet": {"accounts": [ADDR]}, "profile": {}})
    rc, out = _run(capsys, ["--host-fixture", fixture, "--config-root", str(tmp_path)])
    obj = json.loads(out)
    assert rc == 0
    assert obj["session"]["environment"] == "host"
    assert obj["session"]["address"] == ADDR_LOWER
    assert obj["session"]["wallet_connected"] is True
    assert obj["session"]["identity"]["id"] == 42
    assert obj["summary"] == "host: Alice 0xabcd...ef01"
    assert (tmp_path / "config" / "session.json").exists()
    assert (tmp_path / "logs" / "session" / "events.jsonl").exists()


def test_standalone_summary_and_connect(tmp_path, capsys):
    rc, out = _run(capsys, ["--config-root", str(tmp_path), "--read-only-config", "--connect-wallet"])
    obj = json.loads(out)
    assert rc == 0
    assert obj["session"]["environment"] == "standalone"
    assert obj["summary"] == "standalone: (no wallet)"
    assert obj["connect_wallet"] == {"address": None, "error": "Not running inside the host platform."}
    assert not (tmp_path / "config" / "session.json").exists()


def test_missing_user_exits_non_zero(tmp_path, capsys):
    fixture = _write(tmp_path, "host.json", {"embedded": True, "user": None})
    rc, out = _run(capsys, ["--host-fixture", fixture, "--config-root", str(tmp_path), "--summary"])
    assert rc == 1
    assert out.strip() == "host: (no wallet) [identity_unavailable: Unable to get user data from the host platform.]"


def test_print_config(tmp_path, capsys):
    rc, out = _run(capsys, ["--config-root", str(tmp_path), "--read-only-config", "--print-config"])
    obj = json.loads(out)
    assert rc == 0
    assert obj["host"]["profile_path"] == "/api/me"
    assert obj["timeouts"]["wallet_request_seconds"] == 60.0


def test_config_api_base_url_serves_backend_profile(tmp_path, capsys, monkeypatch):
    (tmp_path / "config").mkdir()
    _write(tmp_path / "config", "session.json", {"host": {"api_base_url": "https://api.example"}})
    fixture = _write(tmp_path, "host.json", {"embedded": True, "user": USER, "wallet": {"accounts": []}, "token": "tok"})
    seen = []

    def fake_get(self, url, headers=None, timeout=None):
        seen.append((url, dict(headers or {})))
        return FakeResponse(200, {"primaryAddress": ADDR})

    monkeypatch.setattr(requests.Session, "get", fake_get)
    rc, out = _run(capsys, ["--host-fixture", fixture, "--config-root", str(tmp_path)])
    obj = json.loads(out)
    assert rc == 0
    assert seen == [("https://api.example/api/me", {"Accept": "application/json", "Authorization": "Bearer tok"})]
    assert obj["session"]["address_hint"] == ADDR_LOWER
    assert obj["session"]["address"] is None
    assert obj["session"]["warnings"] == []
