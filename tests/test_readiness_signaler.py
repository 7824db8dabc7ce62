from __future__ import annotations

import asyncio

from miniapp_session.core.session.readiness import ReadinessSignaler

from .helpers.fakes import DummyLogger, FakeHost


def test_signal_once_per_attempt(event_logger):
    host = FakeHost()
    rs = ReadinessSignaler(host=host, logger=DummyLogger(), event_logger=event_logger)

    assert rs.signal_ready("a1") is True
    assert rs.signal_ready("a1") is False
    assert rs.signal_ready("a2") is True
    assert rs.signal_ready("") is False

    assert host.ready_calls == 2
    assert rs.has_signaled("a1")
    events = [e for e in event_logger.read_all() if e["event"] == "session.ready_signal"]
    assert [e["trace_id"] for e in events] == ["a1", "a2"]


def test_ready_failure_is_logged_not_raised():
    log = DummyLogger()
    host = FakeHost(ready_error=RuntimeError("bridge gone"))
    rs = ReadinessSignaler(host=host, logger=log)
    assert rs.signal_ready("a1") is True
    assert rs.signal_ready("a1") is False
    assert host.ready_calls == 1
    assert any("bridge gone" in line for line in log.lines)


def test_async_ready_is_fire_and_forget():
    class AsyncReadyHost(FakeHost):
        def __init__(self):
            super().__init__()
            self.done = False

        async def _ready(self, fail):
            await asyncio.sleep(0)
            if fail:
                raise RuntimeError("async ready failed")
            self.done = True

        def ready(self):
            self.ready_calls += 1
            return self._ready(self.ready_calls > 1)

    log = DummyLogger()
    host = AsyncReadyHost()

    async def run():
        rs = ReadinessSignaler(host=host, logger=log)
        rs.signal_ready("a1")
        rs.signal_ready("a2")
        for _ in range(5):
            await asyncio.sleep(0)

    asyncio.run(run())
    assert host.done is True
    assert any("async ready failed" in line for line in log.lines)


def test_memory_is_bounded():
    rs = ReadinessSignaler(host=FakeHost(), logger=DummyLogger(), keep_recent=2)
    for a in ("a1", "a2", "a3"):
        rs.signal_ready(a)
    assert not rs.has_signaled("a1")
    assert rs.has_signaled("a3")
