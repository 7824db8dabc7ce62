"""
Host-mode identity resolution.

1. Host context user (required).
2. Backend profile via the host's authenticated fetch (optional, failures absorbed).
3. Address hint: host primary address, else backend primary address.

The hint is advisory. The live wallet request decides the session address.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from miniapp_session.core.config.models import SessionConfig
from miniapp_session.core.errors import (
    AuthenticationFault,
    BackendProfileFault,
    HostCallTimeout,
    IdentityUnavailable,
)
from miniapp_session.core.identity.models import BackendProfile, HostIdentity
from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.address import normalize_address


@dataclass(frozen=True)
class IdentityResolution:
    identity: HostIdentity
    address_hint: Optional[str] = None
    profile: Optional[BackendProfile] = None
    warnings: Tuple[BackendProfileFault, ...] = field(default_factory=tuple)


class IdentityResolver:
    def __init__(self, *, host, cfg: Optional[SessionConfig] = None, logger=None):
        self.host = host
        self.cfg = cfg or SessionConfig()
        self.logger = logger or get_logger()

    async def resolve(self) -> IdentityResolution:
        raw_user = await self._fetch_host_user()
        try:
            identity = HostIdentity.model_validate(raw_user)
        except ValidationError as e:
            raise IdentityUnavailable(reason="malformed_user", errors=e.errors(include_url=False)) from e

        warnings: Tuple[BackendProfileFault, ...] = ()
        profile: Optional[BackendProfile] = None
        try:
            profile = await self._fetch_backend_profile()
        except BackendProfileFault as e:
            self.logger.warning(f"Failed to fetch additional user data from API: {e.context.get('error') or e.context}")
            warnings = (e,)

        hint = self._address_hint(raw_user, profile)
        return IdentityResolution(identity=identity, address_hint=hint, profile=profile, warnings=warnings)

    async def _fetch_host_user(self) -> Dict[str, Any]:
        timeout = self.cfg.timeouts.identity_seconds
        try:
            ctx = await asyncio.wait_for(self.host.get_context(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise HostCallTimeout(step="identity", timeout_seconds=timeout) from e
        except Exception as e:  # noqa: BLE001
            self.logger.error(f"Host authentication failed: {e}")
            raise AuthenticationFault(error=str(e)) from e

        user = ctx.get("user") if isinstance(ctx, dict) else getattr(ctx, "user", None)
        if not user:
            raise IdentityUnavailable(reason="no_user")
        if not isinstance(user, dict):
            raise IdentityUnavailable(reason="malformed_user", user_type=type(user).__name__)
        return dict(user)

    async def _fetch_backend_profile(self) -> Optional[BackendProfile]:
        path = self.cfg.host.profile_path
        timeout = self.cfg.timeouts.backend_profile_seconds
        try:
            resp = await asyncio.wait_for(self.host.authenticated_fetch(path), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise BackendProfileFault(path=path, error=f"timed out after {timeout}s") from e
        except Exception as e:  # noqa: BLE001
            raise BackendProfileFault(path=path, error=str(e)) from e

        if not resp.ok:
            raise BackendProfileFault(path=path, status_code=resp.status_code, error=f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except Exception as e:  # noqa: BLE001
            raise BackendProfileFault(path=path, error=f"unreadable response body: {e}") from e
        if not isinstance(body, dict):
            raise BackendProfileFault(path=path, error="response is not an object")
        try:
            return BackendProfile.model_validate(body)
        except ValidationError as e:
            raise BackendProfileFault(path=path, error="invalid profile payload") from e

    def _address_hint(self, raw_user: Dict[str, Any], profile: Optional[BackendProfile]) -> Optional[str]:
        candidates = [
            ("host", raw_user.get("primaryAddress") or raw_user.get("primary_address")),
            ("backend", profile.primary_address if profile is not None else None),
        ]
        for source, value in candidates:
            if not value:
                continue
            try:
                return normalize_address(value)
            except ValueError:
                self.logger.warning(f"ignoring malformed {source} primary address")
        return None
