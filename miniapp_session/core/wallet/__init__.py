from miniapp_session.core.wallet.address import is_address, normalize_address, short_address
from miniapp_session.core.wallet.bridge import (
    ConnectorBackend,
    HostProviderBackend,
    WalletAccessResult,
    WalletBackend,
    WalletBridge,
    WalletUnavailableReason,
)
from miniapp_session.core.wallet.connect import WalletConnectController
from miniapp_session.core.wallet.connectors import ConnectorRegistry, ProviderConnector, WalletConnector
from miniapp_session.core.wallet.signal import WalletConnectionSignal, WalletState

__all__ = [
    "is_address",
    "normalize_address",
    "short_address",
    "WalletBackend",
    "HostProviderBackend",
    "ConnectorBackend",
    "WalletBridge",
    "WalletAccessResult",
    "WalletUnavailableReason",
    "WalletConnectController",
    "ConnectorRegistry",
    "ProviderConnector",
    "WalletConnector",
    "WalletConnectionSignal",
    "WalletState",
]
