from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from miniapp_session.core.config.models import SessionConfig
from miniapp_session.core.environment import Environment, EnvironmentDetector
from miniapp_session.core.error_reporter import ErrorReporter
from miniapp_session.core.errors import (
    EnvironmentDetectionFault,
    SessionError,
    StateTransitionError,
    UnclassifiedInitializationFault,
    WalletTransportFault,
)
from miniapp_session.core.identity.resolver import IdentityResolver
from miniapp_session.core.logger import get_logger
from miniapp_session.core.session.models import (
    TERMINAL_STATES,
    HostResolution,
    Resolution,
    SessionErrorInfo,
    SessionRecord,
    SessionState,
    StandaloneResolution,
)
from miniapp_session.core.session.readiness import ReadinessSignaler
from miniapp_session.core.wallet.bridge import WalletBridge
from miniapp_session.core.wallet.signal import WalletConnectionSignal, WalletState

SessionListener = Callable[[SessionRecord], None]

_ALLOWED: Dict[SessionState, Set[SessionState]] = {
    SessionState.INIT: {SessionState.DETECTING, SessionState.FAILED},
    SessionState.DETECTING: {SessionState.RESOLVING_HOST, SessionState.RESOLVING_STANDALONE, SessionState.FAILED},
    SessionState.RESOLVING_HOST: {SessionState.READY, SessionState.FAILED},
    SessionState.RESOLVING_STANDALONE: {SessionState.READY, SessionState.FAILED},
    SessionState.READY: set(),
    SessionState.FAILED: set(),
}


class _AttemptDiscarded(Exception):
    pass


@dataclass
class _Attempt:
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    live: bool = True
    state: SessionState = SessionState.INIT
    task: Optional["asyncio.Task[None]"] = None


class SessionAggregator:
    """
    Owns the authoritative SessionRecord and drives one resolution attempt at a time:

        INIT -> DETECTING -> RESOLVING_HOST | RESOLVING_STANDALONE -> READY | FAILED

    - Every commit checks the attempt is still live; superseded results are dropped.
    - A wallet-signal change starts a new attempt (deferred until the running one commits).
    - Host-mode READY fires the readiness signal once, after the commit.
    """

    def __init__(
        self,
        *,
        detector: EnvironmentDetector,
        resolver: IdentityResolver,
        bridge: WalletBridge,
        readiness: ReadinessSignaler,
        signal: WalletConnectionSignal,
        cfg: Optional[SessionConfig] = None,
        logger=None,
        event_logger: Any = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        self.detector = detector
        self.resolver = resolver
        self.bridge = bridge
        self.readiness = readiness
        self.signal = signal
        self.cfg = cfg or SessionConfig()
        self.logger = logger or get_logger()
        self.event_logger = event_logger
        self.error_reporter = error_reporter

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._attempt: Optional[_Attempt] = None
        self._record = SessionRecord.loading_record("")
        self._listeners: List[SessionListener] = []
        self._unsubscribe_signal: Optional[Callable[[], None]] = None
        self._signal_dirty = False
        self._closed = False

    # ---------- read surface ----------
    @property
    def record(self) -> SessionRecord:
        return self._record

    @property
    def state(self) -> SessionState:
        return self._attempt.state if self._attempt is not None else SessionState.INIT

    @property
    def attempt_id(self) -> Optional[str]:
        return self._attempt.attempt_id if self._attempt is not None else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        if not callable(listener):
            raise ValueError("listener must be callable")
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    # ---------- lifecycle ----------
    def start(self) -> "asyncio.Task[None]":
        if self._closed:
            raise RuntimeError("session aggregator is closed")
        self._loop = asyncio.get_running_loop()
        if self._unsubscribe_signal is None:
            self._unsubscribe_signal = self.signal.subscribe(self._on_wallet_signal)
        cur = self._attempt
        if cur is not None and cur.task is not None and not cur.task.done():
            return cur.task
        return self._begin_attempt("start")

    def refresh(self, reason: str = "refresh") -> "asyncio.Task[None]":
        if self._loop is None:
            raise RuntimeError("session aggregator not started")
        return self._begin_attempt(reason)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._unsubscribe_signal is not None:
            self._unsubscribe_signal()
            self._unsubscribe_signal = None
        attempt = self._attempt
        if attempt is None:
            return
        self._retire(attempt, "teardown")
        task = attempt.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

    async def wait_settled(self) -> SessionRecord:
        """Wait until the newest attempt has finished (following any re-triggers)."""
        while True:
            attempt = self._attempt
            if attempt is None or attempt.task is None:
                return self._record
            await asyncio.gather(attempt.task, return_exceptions=True)
            if self._attempt is attempt:
                return self._record

    # ---------- attempts ----------
    def _begin_attempt(self, reason: str) -> "asyncio.Task[None]":
        if self._closed:
            raise RuntimeError("session aggregator is closed")
        prev = self._attempt
        if prev is not None:
            self._retire(prev, "superseded")
        attempt = _Attempt()
        self._attempt = attempt
        self._signal_dirty = False
        self._log(attempt, "session.state", {"from": None, "to": SessionState.INIT.value, "reason": reason})
        self._commit(attempt, SessionRecord.loading_record(attempt.attempt_id))
        assert self._loop is not None
        attempt.task = self._loop.create_task(self._run(attempt), name=f"session-attempt-{attempt.attempt_id[:8]}")
        return attempt.task

    def _retire(self, attempt: _Attempt, reason: str) -> None:
        if not attempt.live:
            return
        attempt.live = False
        self._log(attempt, "session.retired", {"reason": reason, "state": attempt.state.value})
        task = attempt.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, attempt: _Attempt) -> None:
        warnings: List[SessionErrorInfo] = []
        environment: Optional[Environment] = None
        try:
            self._transition(attempt, SessionState.DETECTING)
            try:
                environment = await self.detector.detect()
            except EnvironmentDetectionFault as e:
                # Degrade to wallet-signal-only resolution; keep the fault visible.
                warnings.append(e.to_info())
                environment = Environment.STANDALONE
                self._log(attempt, "session.degraded", {"error": e.code})
            self._ensure_live(attempt)

            resolution: Resolution
            if environment == Environment.HOST:
                self._transition(attempt, SessionState.RESOLVING_HOST)
                resolution = await self._resolve_host(attempt, warnings)
            elif environment == Environment.STANDALONE:
                self._transition(attempt, SessionState.RESOLVING_STANDALONE)
                resolution = self._resolve_standalone(warnings)
            else:
                raise StateTransitionError(environment=str(environment))
            self._finish_ready(attempt, resolution)
        except _AttemptDiscarded:
            self._log(attempt, "session.discarded", {"state": attempt.state.value})
        except asyncio.CancelledError:
            self._log(attempt, "session.discarded", {"state": attempt.state.value, "cancelled": True})
            raise
        except SessionError as e:
            self._report(attempt, e)
            self._finish_failed(attempt, e, environment, warnings)
        except Exception as e:  # noqa: BLE001
            self.logger.error(f"Error initializing session: {e}")
            se = self._report_exception(attempt, e)
            self._finish_failed(attempt, se, environment, warnings)

    async def _resolve_host(self, attempt: _Attempt, warnings: List[SessionErrorInfo]) -> HostResolution:
        ident = await self.resolver.resolve()
        self._ensure_live(attempt)
        warnings.extend(w.to_info() for w in ident.warnings)

        address: Optional[str] = None
        wallet_error: Optional[SessionErrorInfo] = None
        timeout = self.cfg.timeouts.wallet_request_seconds
        try:
            address = await asyncio.wait_for(self.bridge.request_access(), timeout=timeout)
        except asyncio.TimeoutError:
            fault = WalletTransportFault("Wallet request timed out.", step="wallet", timeout_seconds=timeout)
            self._report(attempt, fault)
            wallet_error = fault.to_info()
        except WalletTransportFault as e:
            self.logger.warning(f"Wallet connection failed: {e.context.get('error') or e.code}")
            self._report(attempt, e)
            wallet_error = e.to_info()
        self._ensure_live(attempt)

        return HostResolution(
            identity=ident.identity,
            address=address,
            address_hint=ident.address_hint,
            wallet_error=wallet_error,
            warnings=tuple(warnings),
        )

    def _resolve_standalone(self, warnings: List[SessionErrorInfo]) -> StandaloneResolution:
        state = self.bridge.get_connected()
        return StandaloneResolution(address=state.address, warnings=tuple(warnings))

    def _finish_ready(self, attempt: _Attempt, resolution: Resolution) -> None:
        record = resolution.to_record(attempt.attempt_id)
        self._transition(attempt, SessionState.READY, {"environment": resolution.environment.value})
        if not self._commit(attempt, record):
            return
        # a listener may have started a newer attempt during the commit
        if not self._is_current(attempt):
            return
        if resolution.environment == Environment.HOST:
            self.readiness.signal_ready(attempt.attempt_id)
        self._after_terminal(attempt)

    def _finish_failed(self, attempt: _Attempt, err: SessionError, environment: Optional[Environment], warnings: List[SessionErrorInfo]) -> None:
        if not attempt.live:
            self._log(attempt, "session.discarded", {"state": attempt.state.value, "error": err.code})
            return
        self._transition(attempt, SessionState.FAILED, {"error": err.code})
        info = err.to_info()
        if not info.terminal:
            info = info.model_copy(update={"terminal": True})
        record = SessionRecord.failed(attempt.attempt_id, error=info, environment=environment, warnings=tuple(warnings))
        if self._commit(attempt, record) and self._is_current(attempt):
            self._after_terminal(attempt)

    def _after_terminal(self, attempt: _Attempt) -> None:
        if not self._signal_dirty:
            return
        self._signal_dirty = False
        if not self._wallet_matches(self.signal.get()):
            self._schedule_refresh("wallet_signal")

    # ---------- state + commits ----------
    def _is_current(self, attempt: _Attempt) -> bool:
        return attempt.live and attempt is self._attempt

    def _ensure_live(self, attempt: _Attempt) -> None:
        if not self._is_current(attempt):
            raise _AttemptDiscarded(attempt.attempt_id)

    def _transition(self, attempt: _Attempt, new_state: SessionState, details: Optional[Dict[str, Any]] = None) -> None:
        self._ensure_live(attempt)
        old = attempt.state
        if new_state not in _ALLOWED.get(old, set()):
            raise StateTransitionError(from_state=old.value, to_state=new_state.value)
        attempt.state = new_state
        self._log(attempt, "session.state", {"from": old.value, "to": new_state.value, **(details or {})})

    def _commit(self, attempt: _Attempt, record: SessionRecord) -> bool:
        if not self._is_current(attempt):
            self._log(attempt, "session.discarded", {"state": attempt.state.value})
            return False
        self._record = record
        self._log(
            attempt,
            "session.commit",
            {
                "loading": record.loading,
                "environment": record.environment.value if record.environment else None,
                "wallet_connected": record.wallet_connected,
                "error": record.error.kind.value if record.error else None,
            },
        )
        for listener in list(self._listeners):
            if not self._is_current(attempt):
                break
            try:
                listener(record)
            except Exception as e:  # noqa: BLE001
                self.logger.error(f"session listener failed: {e}")
        return True

    # ---------- wallet signal ----------
    def _wallet_matches(self, state: WalletState) -> bool:
        return state.address == self._record.address

    def _on_wallet_signal(self, state: WalletState) -> None:
        if self._closed:
            return
        attempt = self._attempt
        if attempt is not None and attempt.live and attempt.state not in TERMINAL_STATES:
            self._signal_dirty = True
            return
        if self._wallet_matches(state):
            return
        self._schedule_refresh("wallet_signal")

    def _schedule_refresh(self, reason: str) -> None:
        if self._closed or self._loop is None or self._loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._begin_attempt(reason)
        else:
            self._loop.call_soon_threadsafe(self._begin_attempt, reason)

    # ---------- reporting ----------
    def _log(self, attempt: _Attempt, event_type: str, details: Dict[str, Any]) -> None:
        if self.event_logger is None:
            return
        try:
            self.event_logger.log(attempt.attempt_id, event_type, details)
        except OSError as e:
            self.logger.warning(f"event log write failed: {e}")

    def _report(self, attempt: _Attempt, err: SessionError) -> None:
        if self.error_reporter is None:
            return
        try:
            self.error_reporter.write_error(err, trace_id=attempt.attempt_id, subsystem="session")
        except OSError as e:
            self.logger.warning(f"error report write failed: {e}")

    def _report_exception(self, attempt: _Attempt, exc: Exception) -> SessionError:
        if self.error_reporter is None:
            return UnclassifiedInitializationFault(error=str(exc))
        try:
            return self.error_reporter.report_exception(exc, trace_id=attempt.attempt_id, subsystem="session")
        except OSError as e:
            self.logger.warning(f"error report write failed: {e}")
            return UnclassifiedInitializationFault(error=str(exc))
