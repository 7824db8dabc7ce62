from __future__ import annotations

import asyncio

import pytest

from miniapp_session.core.config.models import TimeoutsConfig
from miniapp_session.core.environment import Environment, EnvironmentDetector
from miniapp_session.core.errors import EnvironmentDetectionFault, HostCallTimeout

from .helpers.fakes import DummyLogger, FakeHost


def _detect(host, **timeouts):
    det = EnvironmentDetector(host=host, timeouts=TimeoutsConfig(**timeouts), logger=DummyLogger())
    return asyncio.run(det.detect())


def test_embedded_host():
    host = FakeHost(embedded=True)
    assert _detect(host) == Environment.HOST
    assert host.calls["is_embedded"] == 1


def test_not_embedded_is_standalone():
    assert _detect(FakeHost(embedded=False)) == Environment.STANDALONE


def test_no_host_runtime_is_standalone():
    assert _detect(None) == Environment.STANDALONE


def test_raising_check_is_detection_fault_without_retry():
    host = FakeHost(embedded_error=RuntimeError("sdk not loaded"))
    with pytest.raises(EnvironmentDetectionFault) as ei:
        _detect(host)
    assert ei.value.terminal is False
    assert ei.value.context["error"] == "sdk not loaded"
    assert host.calls["is_embedded"] == 1


def test_slow_check_times_out():
    host = FakeHost(embedded_delay=1.0)
    with pytest.raises(HostCallTimeout) as ei:
        _detect(host, environment_seconds=0.05)
    assert ei.value.context["step"] == "environment"
    assert ei.value.terminal is True
