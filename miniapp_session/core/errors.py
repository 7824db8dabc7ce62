from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from miniapp_session.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorKind(str, Enum):
    ENVIRONMENT_DETECTION_FAULT = "environment_detection_fault"
    IDENTITY_UNAVAILABLE = "identity_unavailable"
    AUTHENTICATION_FAULT = "authentication_fault"
    BACKEND_PROFILE_FAULT = "backend_profile_fault"
    WALLET_UNAVAILABLE = "wallet_unavailable"
    WALLET_TRANSPORT_FAULT = "wallet_transport_fault"
    HOST_CALL_TIMEOUT = "host_call_timeout"
    UNCLASSIFIED_INITIALIZATION_FAULT = "unclassified_initialization_fault"
    STATE_TRANSITION_ERROR = "state_transition_error"
    CONFIG_ERROR = "config_error"


@dataclass
class SessionError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    terminal: bool = True
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "terminal": bool(self.terminal),
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }

    def to_info(self):
        # Late import: session models depend on this module.
        from miniapp_session.core.session.models import SessionErrorInfo

        return SessionErrorInfo(kind=self.kind, message=self.user_message, terminal=bool(self.terminal))


# ---- Non-terminal: absorbed, logged, resolution continues ----
class EnvironmentDetectionFault(SessionError):
    def __init__(self, user_message: str = "Unable to determine the host environment.", **ctx: Any):
        super().__init__(ErrorKind.ENVIRONMENT_DETECTION_FAULT.value, user_message, severity=Severity.WARN, terminal=False, context=ctx)


class BackendProfileFault(SessionError):
    def __init__(self, user_message: str = "Failed to fetch additional user data.", **ctx: Any):
        super().__init__(ErrorKind.BACKEND_PROFILE_FAULT.value, user_message, severity=Severity.WARN, terminal=False, context=ctx)


class WalletUnavailable(SessionError):
    """Declined or absent wallet. Surfaces as a missing address, never as a record error."""

    def __init__(self, user_message: str = "No wallet available.", **ctx: Any):
        super().__init__(ErrorKind.WALLET_UNAVAILABLE.value, user_message, severity=Severity.INFO, terminal=False, context=ctx)

    @property
    def reason(self) -> str:
        return str(self.context.get("reason") or "unavailable")


class WalletTransportFault(SessionError):
    def __init__(self, user_message: str = "Failed to connect wallet.", **ctx: Any):
        super().__init__(ErrorKind.WALLET_TRANSPORT_FAULT.value, user_message, severity=Severity.WARN, terminal=False, context=ctx)


# ---- Terminal: stop the pipeline ----
class IdentityUnavailable(SessionError):
    def __init__(self, user_message: str = "Unable to get user data from the host platform.", **ctx: Any):
        super().__init__(ErrorKind.IDENTITY_UNAVAILABLE.value, user_message, severity=Severity.ERROR, terminal=True, context=ctx)


class AuthenticationFault(SessionError):
    def __init__(self, user_message: str = "Host authentication failed.", **ctx: Any):
        super().__init__(ErrorKind.AUTHENTICATION_FAULT.value, user_message, severity=Severity.ERROR, terminal=True, context=ctx)


class HostCallTimeout(SessionError):
    def __init__(self, user_message: str = "The host platform took too long to respond.", **ctx: Any):
        super().__init__(ErrorKind.HOST_CALL_TIMEOUT.value, user_message, severity=Severity.ERROR, terminal=True, context=ctx)


class UnclassifiedInitializationFault(SessionError):
    def __init__(self, user_message: str = "Failed to initialize user data.", **ctx: Any):
        super().__init__(ErrorKind.UNCLASSIFIED_INITIALIZATION_FAULT.value, user_message, severity=Severity.ERROR, terminal=True, context=ctx)


class StateTransitionError(SessionError):
    def __init__(self, user_message: str = "Internal state error.", **ctx: Any):
        super().__init__(ErrorKind.STATE_TRANSITION_ERROR.value, user_message, severity=Severity.ERROR, terminal=True, recoverable=False, context=ctx)


class ConfigError(SessionError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__(ErrorKind.CONFIG_ERROR.value, user_message, severity=Severity.CRITICAL, terminal=True, recoverable=False, context=ctx)
