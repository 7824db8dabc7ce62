from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from miniapp_session.core.errors import WalletTransportFault, WalletUnavailable
from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.address import normalize_address
from miniapp_session.core.wallet.connectors import ConnectorRegistry
from miniapp_session.core.wallet.provider import ETH_REQUEST_ACCOUNTS, ProviderRpcError
from miniapp_session.core.wallet.signal import WalletConnectionSignal, WalletState


class WalletUnavailableReason(str, Enum):
    NOT_EMBEDDED = "not_embedded"
    HOST_CHECK_FAILED = "host_check_failed"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    NO_ACCOUNTS = "no_accounts"
    DECLINED = "declined"


@dataclass(frozen=True)
class WalletAccessResult:
    address: Optional[str] = None
    reason: Optional[WalletUnavailableReason] = None
    reused: bool = False

    @property
    def connected(self) -> bool:
        return self.address is not None


def _accounts_from(resp: Any) -> List[str]:
    if resp is None:
        return []
    if not isinstance(resp, (list, tuple)):
        raise WalletTransportFault("Wallet returned an unexpected response.", response_type=type(resp).__name__)
    return list(resp)


class WalletBackend:
    """
    Where account access comes from.

    request_accounts() returns the raw account list; "no wallet" situations raise
    WalletUnavailable, anything unexpected raises WalletTransportFault.
    """

    name: str = "base"
    connector_id: Optional[str] = None
    activates_host_connector: bool = False

    async def request_accounts(self) -> List[str]:
        raise NotImplementedError


class HostProviderBackend(WalletBackend):
    """Host-injected provider. Checks the host context before prompting."""

    name = "host_provider"
    activates_host_connector = True

    def __init__(self, host):
        self.host = host

    async def request_accounts(self) -> List[str]:
        if self.host is None:
            raise WalletUnavailable(reason=WalletUnavailableReason.NOT_EMBEDDED.value)
        try:
            embedded = bool(await self.host.is_embedded())
        except Exception as e:  # noqa: BLE001
            raise WalletUnavailable(reason=WalletUnavailableReason.HOST_CHECK_FAILED.value, error=str(e)) from e
        if not embedded:
            raise WalletUnavailable(reason=WalletUnavailableReason.NOT_EMBEDDED.value)

        provider = self.host.wallet_provider()
        if provider is None:
            raise WalletUnavailable(reason=WalletUnavailableReason.PROVIDER_UNAVAILABLE.value)

        try:
            resp = await provider.request({"method": ETH_REQUEST_ACCOUNTS})
        except ProviderRpcError as e:
            if e.is_user_rejection:
                raise WalletUnavailable(reason=WalletUnavailableReason.DECLINED.value, code=e.code) from e
            raise WalletTransportFault(code=e.code, error=e.message) from e
        except Exception as e:  # noqa: BLE001
            raise WalletTransportFault(error=str(e)) from e
        return _accounts_from(resp)


class ConnectorBackend(WalletBackend):
    """One entry of the generic connector registry."""

    name = "connector"

    def __init__(self, registry: ConnectorRegistry, connector_id: str):
        self.registry = registry
        self.connector_id = connector_id

    async def request_accounts(self) -> List[str]:
        connector = self.registry.get(self.connector_id)
        if connector is None:
            raise WalletUnavailable(reason=WalletUnavailableReason.PROVIDER_UNAVAILABLE.value, connector_id=self.connector_id)
        try:
            resp = await connector.connect()
        except ProviderRpcError as e:
            if e.is_user_rejection:
                raise WalletUnavailable(reason=WalletUnavailableReason.DECLINED.value, code=e.code) from e
            raise WalletTransportFault(code=e.code, error=e.message) from e
        except Exception as e:  # noqa: BLE001
            raise WalletTransportFault(error=str(e), connector_id=self.connector_id) from e
        return _accounts_from(resp)


class WalletBridge:
    """
    One capability surface over either backend:
    - get_connected()   -> what the shared wallet signal already holds (no I/O)
    - request_access()  -> ask the backend for an account, publish it to the signal

    An existing connection short-circuits request_access() so the user is never prompted twice.
    """

    def __init__(
        self,
        *,
        signal: WalletConnectionSignal,
        backend: WalletBackend,
        registry: Optional[ConnectorRegistry] = None,
        host_connector_id: str = "farcasterMiniApp",
        logger=None,
    ):
        self.signal = signal
        self.backend = backend
        self.registry = registry
        self.host_connector_id = host_connector_id
        self.logger = logger or get_logger()

    def get_connected(self) -> WalletState:
        return self.signal.get()

    async def request_access(self) -> Optional[str]:
        return (await self.request_access_result()).address

    async def request_access_result(self) -> WalletAccessResult:
        current = self.signal.get()
        if current.connected:
            return WalletAccessResult(address=current.address, reused=True)

        try:
            accounts = await self.backend.request_accounts()
        except WalletUnavailable as e:
            self.logger.info(f"wallet unavailable via {self.backend.name}: {e.reason}")
            return WalletAccessResult(reason=WalletUnavailableReason(e.reason))

        if not accounts:
            self.logger.info(f"wallet returned no accounts via {self.backend.name}")
            return WalletAccessResult(reason=WalletUnavailableReason.NO_ACCOUNTS)

        try:
            address = normalize_address(accounts[0])
        except ValueError as e:
            raise WalletTransportFault("Wallet returned a malformed account.", error=str(e)) from e

        connector_id = await self._activate_connector()
        self.signal.publish(WalletState(address=address, connector_id=connector_id), source=f"bridge:{self.backend.name}")
        self.logger.info(f"wallet connected via {self.backend.name}: {address}")
        return WalletAccessResult(address=address)

    async def _activate_connector(self) -> Optional[str]:
        """
        Route later wallet operations through the registry entry matching the host wallet.
        Failure only loses that routing, never the address.
        """
        if not self.backend.activates_host_connector:
            return self.backend.connector_id
        if self.registry is None or self.registry.get(self.host_connector_id) is None:
            return None
        try:
            activated = await self.registry.connect(self.host_connector_id)
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"connector {self.host_connector_id} activation failed: {e}")
            return None
        return self.host_connector_id if activated else None
