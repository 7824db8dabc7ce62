from __future__ import annotations

import asyncio
import json
import os
import threading
import time
import traceback
from dataclasses import dataclass
from typing import Any, Dict, Optional

from miniapp_session.core.events import redact
from miniapp_session.core.errors import (
    AuthenticationFault,
    BackendProfileFault,
    ConfigError,
    EnvironmentDetectionFault,
    HostCallTimeout,
    SessionError,
    StateTransitionError,
    UnclassifiedInitializationFault,
    WalletTransportFault,
)


@dataclass
class ErrorReporterConfig:
    include_tracebacks: bool = False


class ErrorReporter:
    def __init__(self, *, path: str = os.path.join("logs", "errors.jsonl"), cfg: Optional[ErrorReporterConfig] = None):
        self.path = path
        self.cfg = cfg or ErrorReporterConfig()
        self._lock = threading.Lock()
        d = os.path.dirname(self.path)
        if d:
            os.makedirs(d, exist_ok=True)

    def report_exception(self, exc: BaseException, *, trace_id: str, subsystem: str, context: Optional[Dict[str, Any]] = None) -> SessionError:
        se = normalize_exception(exc, subsystem=subsystem, context=context or {})
        self.write_error(se, trace_id=trace_id, subsystem=subsystem, internal_exc=exc)
        return se

    def write_error(self, err: SessionError, *, trace_id: str, subsystem: str, internal_exc: Optional[BaseException] = None) -> None:
        entry: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "trace_id": trace_id,
            "subsystem": subsystem,
            "error_code": err.code,
            "severity": err.severity.value,
            "terminal": bool(err.terminal),
            "user_message": err.user_message,
            "safe_context": redact(err.context or {}),
        }
        if self.cfg.include_tracebacks and internal_exc is not None:
            entry["internal_context"] = {
                "traceback": "".join(traceback.format_exception(type(internal_exc), internal_exc, internal_exc.__traceback__, limit=30))
            }
        line = json.dumps(entry, ensure_ascii=False, default=str)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def tail(self, n: int = 20) -> list[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.readlines()
            return [json.loads(x) for x in lines[-max(1, int(n)) :]]
        except Exception:
            return []

    def by_trace_id(self, trace_id: str) -> list[Dict[str, Any]]:
        return [e for e in self.tail(10_000) if e.get("trace_id") == trace_id]


def normalize_exception(exc: BaseException, *, subsystem: str, context: Dict[str, Any]) -> SessionError:
    # Passthrough
    if isinstance(exc, SessionError):
        return exc

    msg = str(exc)
    ctx = dict(context or {})

    if isinstance(exc, asyncio.TimeoutError):
        return HostCallTimeout(step=subsystem, **ctx)

    # Map by subsystem hints
    if subsystem == "config":
        return ConfigError("Configuration error.", error=msg, **ctx)
    if subsystem == "environment":
        return EnvironmentDetectionFault(error=msg, **ctx)
    if subsystem == "identity":
        return AuthenticationFault(error=msg, **ctx)
    if subsystem == "backend_profile":
        return BackendProfileFault(error=msg, **ctx)
    if subsystem == "wallet":
        return WalletTransportFault(error=msg, **ctx)
    if subsystem == "state_machine":
        return StateTransitionError(error=msg, **ctx)

    return UnclassifiedInitializationFault(error=msg, **ctx)
