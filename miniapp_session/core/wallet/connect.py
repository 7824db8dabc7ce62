from __future__ import annotations

import asyncio
from typing import Dict, Optional

from miniapp_session.core.errors import WalletTransportFault
from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.bridge import WalletBridge, WalletUnavailableReason

REASON_MESSAGES: Dict[WalletUnavailableReason, str] = {
    WalletUnavailableReason.NOT_EMBEDDED: "Not running inside the host platform.",
    WalletUnavailableReason.HOST_CHECK_FAILED: "Unable to reach the host platform.",
    WalletUnavailableReason.PROVIDER_UNAVAILABLE: "Host wallet provider not available.",
    WalletUnavailableReason.NO_ACCOUNTS: "No accounts returned from wallet.",
    WalletUnavailableReason.DECLINED: "Wallet request was declined.",
}


class WalletConnectController:
    """
    On-demand wallet connection, e.g. right before a transaction.

    Keeps its own connecting/error state; the session aggregator is only affected
    indirectly, through the wallet signal a successful connect publishes.
    """

    def __init__(self, *, bridge: WalletBridge, timeout_seconds: float = 60.0, logger=None):
        self.bridge = bridge
        self.timeout_seconds = float(timeout_seconds)
        self.logger = logger or get_logger()
        self.connecting = False
        self.error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def address(self) -> Optional[str]:
        return self.bridge.get_connected().address

    @property
    def connected(self) -> bool:
        return self.bridge.get_connected().connected

    async def connect_wallet(self) -> Optional[str]:
        current = self.bridge.get_connected()
        if current.connected:
            return current.address

        async with self._lock:
            self.connecting = True
            self.error = None
            try:
                result = await asyncio.wait_for(self.bridge.request_access_result(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                self.error = "Wallet connection timed out."
                self.logger.warning("connect_wallet timed out")
                return None
            except WalletTransportFault as e:
                self.error = e.user_message
                self.logger.error(f"Wallet connection failed: {e.context.get('error') or e.code}")
                return None
            finally:
                self.connecting = False

            if result.address is None:
                self.error = REASON_MESSAGES.get(result.reason, "Failed to connect wallet.") if result.reason else "Failed to connect wallet."
                return None
            return result.address
