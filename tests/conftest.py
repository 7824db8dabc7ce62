from __future__ import annotations

import os

import pytest

from miniapp_session.core.config.manager import ConfigManager
from miniapp_session.core.config.models import SessionConfig
from miniapp_session.core.config.paths import ConfigFsPaths
from miniapp_session.core.error_reporter import ErrorReporter
from miniapp_session.core.events import EventLogger

from .helpers.fakes import DummyLogger


@pytest.fixture
def tmp_config_root(tmp_path):
    """
    Isolated repo root with config/ under tmp_path.
    """
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    return fs


@pytest.fixture
def config_manager(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root, logger=None, read_only=False)
    cm.load()
    return cm


@pytest.fixture
def fast_cfg() -> SessionConfig:
    return SessionConfig.model_validate(
        {
            "timeouts": {
                "environment_seconds": 0.2,
                "identity_seconds": 0.2,
                "backend_profile_seconds": 0.2,
                "wallet_request_seconds": 0.2,
            }
        }
    )


@pytest.fixture
def event_logger(tmp_path) -> EventLogger:
    return EventLogger(str(tmp_path / "logs" / "session" / "events.jsonl"))


@pytest.fixture
def error_reporter(tmp_path) -> ErrorReporter:
    return ErrorReporter(path=str(tmp_path / "logs" / "errors.jsonl"))


@pytest.fixture
def dummy_logger() -> DummyLogger:
    return DummyLogger()
