from miniapp_session.core.session.aggregator import SessionAggregator
from miniapp_session.core.session.context import SessionContext, build_session_context
from miniapp_session.core.session.models import (
    HostResolution,
    SessionErrorInfo,
    SessionRecord,
    SessionState,
    StandaloneResolution,
)
from miniapp_session.core.session.readiness import ReadinessSignaler

__all__ = [
    "SessionAggregator",
    "SessionContext",
    "build_session_context",
    "HostResolution",
    "StandaloneResolution",
    "SessionErrorInfo",
    "SessionRecord",
    "SessionState",
    "ReadinessSignaler",
]
