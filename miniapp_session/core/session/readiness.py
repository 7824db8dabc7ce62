from __future__ import annotations

import asyncio
import collections
import inspect
from typing import Any, Deque, Optional, Set

from miniapp_session.core.logger import get_logger


class ReadinessSignaler:
    """
    One-shot "UI is ready" notification to the host, keyed by attempt id.

    The same attempt can never fire twice; a new attempt gets its own shot.
    host.ready() may be sync or return an awaitable; either way nobody waits on it.
    """

    def __init__(self, *, host, logger=None, event_logger: Any = None, keep_recent: int = 256):
        self.host = host
        self.logger = logger or get_logger()
        self.event_logger = event_logger
        self._signaled: Set[str] = set()
        self._order: Deque[str] = collections.deque()
        self._keep_recent = max(1, int(keep_recent))
        self._pending: Set["asyncio.Future[Any]"] = set()

    def has_signaled(self, attempt_id: str) -> bool:
        return attempt_id in self._signaled

    def signal_ready(self, attempt_id: str) -> bool:
        if not attempt_id or attempt_id in self._signaled:
            return False
        self._remember(attempt_id)
        if self.event_logger is not None:
            self.event_logger.log(attempt_id, "session.ready_signal", {"host": getattr(self.host, "name", "host")})
        try:
            out = self.host.ready()
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"host ready() failed: {e}")
            return True
        if inspect.isawaitable(out):
            fut = asyncio.ensure_future(out)
            self._pending.add(fut)
            fut.add_done_callback(self._on_done)
        return True

    def _remember(self, attempt_id: str) -> None:
        self._signaled.add(attempt_id)
        self._order.append(attempt_id)
        while len(self._order) > self._keep_recent:
            self._signaled.discard(self._order.popleft())

    def _on_done(self, fut: "asyncio.Future[Any]") -> None:
        self._pending.discard(fut)
        if fut.cancelled():
            return
        exc: Optional[BaseException] = fut.exception()
        if exc is not None:
            self.logger.warning(f"host ready() failed: {exc}")
