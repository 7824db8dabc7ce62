"""
EIP-1193 shaped wallet provider surface.

The host platform injects one of these; tests and the fixture host use StaticWalletProvider.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

ETH_REQUEST_ACCOUNTS = "eth_requestAccounts"
ETH_ACCOUNTS = "eth_accounts"

USER_REJECTED_REQUEST = 4001
UNAUTHORIZED = 4100


class ProviderRpcError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"provider error {code}")
        self.code = int(code)
        self.message = message

    @property
    def is_user_rejection(self) -> bool:
        return self.code in {USER_REJECTED_REQUEST, UNAUTHORIZED}


class EthereumProvider:
    """Provider interface: one JSON-RPC style `request` coroutine."""

    async def request(self, payload: Dict[str, Any]) -> Any:
        raise NotImplementedError


class StaticWalletProvider(EthereumProvider):
    def __init__(self, accounts: Optional[List[str]] = None, *, decline: bool = False):
        self.accounts = list(accounts or [])
        self.decline = decline
        self.calls: List[str] = []

    async def request(self, payload: Dict[str, Any]) -> Any:
        method = str(payload.get("method") or "")
        self.calls.append(method)
        if method in {ETH_REQUEST_ACCOUNTS, ETH_ACCOUNTS}:
            if self.decline:
                raise ProviderRpcError(USER_REJECTED_REQUEST, "User rejected the request.")
            return list(self.accounts)
        raise ProviderRpcError(4200, f"Unsupported method {method}")
