from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, computed_field, field_validator, model_validator

from miniapp_session.core.environment import Environment
from miniapp_session.core.errors import ErrorKind
from miniapp_session.core.identity.models import HostIdentity
from miniapp_session.core.wallet.address import normalize_address


class SessionState(str, Enum):
    INIT = "INIT"
    DETECTING = "DETECTING"
    RESOLVING_HOST = "RESOLVING_HOST"
    RESOLVING_STANDALONE = "RESOLVING_STANDALONE"
    READY = "READY"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({SessionState.READY, SessionState.FAILED})


class SessionErrorInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ErrorKind
    message: str
    terminal: bool = True


class SessionRecord(BaseModel):
    """
    Read-only snapshot of the current session.

    Each resolution attempt produces its own records; fields of two attempts are never mixed.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    attempt_id: str
    environment: Optional[Environment] = None
    address: Optional[str] = None
    address_hint: Optional[str] = None
    identity: Optional[HostIdentity] = None
    loading: bool = True
    error: Optional[SessionErrorInfo] = None
    warnings: Tuple[SessionErrorInfo, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def wallet_connected(self) -> bool:
        return self.address is not None

    @field_validator("address", "address_hint")
    @classmethod
    def _well_formed(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return normalize_address(v)

    @model_validator(mode="after")
    def _invariants(self) -> "SessionRecord":
        if self.environment == Environment.STANDALONE and self.identity is not None:
            raise ValueError("standalone sessions carry no identity")
        if self.error is not None and self.loading:
            raise ValueError("error is only set once loading has finished")
        return self

    @classmethod
    def loading_record(cls, attempt_id: str) -> "SessionRecord":
        return cls(attempt_id=attempt_id, loading=True)

    @classmethod
    def failed(cls, attempt_id: str, *, error: SessionErrorInfo, environment: Optional[Environment] = None, warnings: Tuple[SessionErrorInfo, ...] = ()) -> "SessionRecord":
        return cls(attempt_id=attempt_id, environment=environment, loading=False, error=error, warnings=warnings)


@dataclass(frozen=True)
class HostResolution:
    identity: HostIdentity
    address: Optional[str] = None
    address_hint: Optional[str] = None
    wallet_error: Optional[SessionErrorInfo] = None
    warnings: Tuple[SessionErrorInfo, ...] = ()

    environment: ClassVar[Environment] = Environment.HOST

    def to_record(self, attempt_id: str) -> SessionRecord:
        return SessionRecord(
            attempt_id=attempt_id,
            environment=self.environment,
            address=self.address,
            address_hint=self.address_hint,
            identity=self.identity,
            loading=False,
            error=self.wallet_error,
            warnings=self.warnings,
        )


@dataclass(frozen=True)
class StandaloneResolution:
    address: Optional[str] = None
    warnings: Tuple[SessionErrorInfo, ...] = ()

    environment: ClassVar[Environment] = Environment.STANDALONE

    def to_record(self, attempt_id: str) -> SessionRecord:
        return SessionRecord(
            attempt_id=attempt_id,
            environment=self.environment,
            address=self.address,
            loading=False,
            warnings=self.warnings,
        )


Resolution = Union[HostResolution, StandaloneResolution]
