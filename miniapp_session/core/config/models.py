from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimeoutsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    environment_seconds: float = Field(default=5.0, gt=0, le=120)
    identity_seconds: float = Field(default=10.0, gt=0, le=120)
    backend_profile_seconds: float = Field(default=5.0, gt=0, le=120)
    # Covers a user-facing approval prompt, so it is much longer than the others.
    wallet_request_seconds: float = Field(default=60.0, gt=0, le=600)


class HostConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    profile_path: str = "/api/me"
    host_connector_id: str = "farcasterMiniApp"
    api_base_url: Optional[str] = None

    @field_validator("profile_path")
    @classmethod
    def _absolute_path(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith("/"):
            raise ValueError("profile_path must start with '/'")
        return v

    @field_validator("host_connector_id")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("host_connector_id required")
        return v


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    log_dir: str = "logs"
    level: str = "INFO"
    console: bool = True
    events_path: str = os.path.join("logs", "session", "events.jsonl")
    errors_path: str = os.path.join("logs", "errors.jsonl")
    include_tracebacks: bool = False

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = str(v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
