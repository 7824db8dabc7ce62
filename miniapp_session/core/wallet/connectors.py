from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.address import normalize_address
from miniapp_session.core.wallet.provider import ETH_REQUEST_ACCOUNTS, EthereumProvider
from miniapp_session.core.wallet.signal import WalletConnectionSignal, WalletState


class WalletConnector:
    """
    Generic wallet connector (one entry of the registry).

    - id          -> stable identifier, e.g. "farcasterMiniApp" or "injected"
    - connect()   -> ask the wallet for accounts; may prompt the user
    - disconnect()-> drop the connection
    """

    id: str = "base"
    name: str = "base"

    async def connect(self) -> List[str]:
        raise NotImplementedError

    async def disconnect(self) -> None:
        return None


class ProviderConnector(WalletConnector):
    """Connector backed by an EIP-1193 provider."""

    def __init__(self, *, connector_id: str, provider: EthereumProvider, name: Optional[str] = None):
        self.id = connector_id
        self.name = name or connector_id
        self.provider = provider

    async def connect(self) -> List[str]:
        accounts = await self.provider.request({"method": ETH_REQUEST_ACCOUNTS})
        return list(accounts or [])


class ConnectorRegistry:
    def __init__(self, *, signal: WalletConnectionSignal, connectors: Sequence[WalletConnector] = (), logger=None):
        self.signal = signal
        self.logger = logger or get_logger()
        self._connectors: Dict[str, WalletConnector] = {}
        for c in connectors:
            self.register(c)

    def register(self, connector: WalletConnector) -> None:
        cid = str(getattr(connector, "id", "") or "").strip()
        if not cid:
            raise ValueError("connector id required")
        if cid in self._connectors:
            raise ValueError(f"connector already registered: {cid}")
        self._connectors[cid] = connector

    def get(self, connector_id: str) -> Optional[WalletConnector]:
        return self._connectors.get(connector_id)

    def ids(self) -> List[str]:
        return list(self._connectors.keys())

    async def connect(self, connector_id: str) -> Optional[str]:
        """
        Activate a connector and publish its first account. Returns None when the connector
        is unknown or returned no accounts; connector exceptions propagate.
        """
        connector = self.get(connector_id)
        if connector is None:
            return None
        accounts = await connector.connect()
        if not accounts:
            return None
        address = normalize_address(accounts[0])
        self.signal.publish(WalletState(address=address, connector_id=connector_id), source=f"connector:{connector_id}")
        return address

    def on_accounts_changed(self, connector_id: str, accounts: Sequence[str]) -> None:
        """External connector event (account switched, wallet locked, ...)."""
        if connector_id not in self._connectors:
            self.logger.warning(f"accounts event from unknown connector {connector_id}")
            return
        if not accounts:
            current = self.signal.get()
            if current.connector_id == connector_id:
                self.signal.clear(source=f"connector:{connector_id}")
            return
        try:
            address = normalize_address(accounts[0])
        except ValueError as e:
            self.logger.warning(f"ignoring malformed account from {connector_id}: {e}")
            return
        self.signal.publish(WalletState(address=address, connector_id=connector_id), source=f"connector:{connector_id}")

    async def disconnect(self) -> None:
        current = self.signal.get()
        if current.connector_id and current.connector_id in self._connectors:
            await self._connectors[current.connector_id].disconnect()
        self.signal.clear(source="registry.disconnect")
