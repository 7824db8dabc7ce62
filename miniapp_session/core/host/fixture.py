"""
Host platform driven by a JSON fixture file.

Example:
    {
      "embedded": true,
      "user": {"fid": 3, "username": "dwr", "displayName": "Dan", "pfpUrl": "https://..."},
      "wallet": {"accounts": ["0x..."], "decline": false},
      "profile": {"primaryAddress": "0x..."},
      "api_base_url": null,
      "token": null
    }

`profile` is served for the configured profile path. When `api_base_url` is set (in the
fixture, else `host.api_base_url` from config) the fetch goes over HTTP instead.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from miniapp_session.core.host.base import HostPlatform, HostResponse
from miniapp_session.core.host.http import AuthenticatedHttpClient
from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.provider import EthereumProvider, StaticWalletProvider


class FixtureHostPlatform(HostPlatform):
    name = "fixture"

    def __init__(
        self,
        *,
        embedded: bool = True,
        user: Optional[Dict[str, Any]] = None,
        accounts: Optional[List[str]] = None,
        decline: bool = False,
        provider_available: bool = True,
        profile: Optional[Dict[str, Any]] = None,
        http_client: Optional[AuthenticatedHttpClient] = None,
        logger=None,
    ):
        self.embedded = bool(embedded)
        self.user = user
        self.profile = profile
        self.http_client = http_client
        self.logger = logger or get_logger()
        self._provider = StaticWalletProvider(accounts, decline=decline) if provider_available else None
        self.ready_calls = 0

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], *, timeout_seconds: float = 5.0, default_api_base_url: Optional[str] = None, logger=None
    ) -> "FixtureHostPlatform":
        wallet = data.get("wallet") or {}
        http_client = None
        base_url = data.get("api_base_url") or default_api_base_url
        if base_url:
            http_client = AuthenticatedHttpClient(base_url=str(base_url), token=data.get("token"), timeout_seconds=timeout_seconds)
        return cls(
            embedded=bool(data.get("embedded", True)),
            user=data.get("user"),
            accounts=list(wallet.get("accounts") or []),
            decline=bool(wallet.get("decline", False)),
            provider_available=bool(wallet.get("available", True)),
            profile=data.get("profile"),
            http_client=http_client,
            logger=logger,
        )

    @classmethod
    def from_file(
        cls, path: str, *, timeout_seconds: float = 5.0, default_api_base_url: Optional[str] = None, logger=None
    ) -> "FixtureHostPlatform":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("host fixture must be a JSON object")
        return cls.from_dict(data, timeout_seconds=timeout_seconds, default_api_base_url=default_api_base_url, logger=logger)

    async def is_embedded(self) -> bool:
        return self.embedded

    async def get_context(self) -> Dict[str, Any]:
        return {"user": self.user}

    async def authenticated_fetch(self, path: str) -> HostResponse:
        if self.http_client is not None:
            return await self.http_client.fetch(path)
        if self.profile is None:
            return HostResponse(status_code=404, payload={"error": "not found"})
        return HostResponse(status_code=200, payload=dict(self.profile))

    def wallet_provider(self) -> Optional[EthereumProvider]:
        return self._provider

    def ready(self) -> None:
        self.ready_calls += 1
        self.logger.info("host ready() signalled")
