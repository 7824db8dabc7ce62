from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from miniapp_session.core.logger import get_logger
from miniapp_session.core.wallet.address import normalize_address


@dataclass(frozen=True)
class WalletState:
    address: Optional[str] = None
    connector_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.address is not None:
            object.__setattr__(self, "address", normalize_address(self.address))

    @property
    def connected(self) -> bool:
        return self.address is not None


WalletListener = Callable[[WalletState], None]


class WalletConnectionSignal:
    """
    Process-scoped "current wallet connection".

    Writers: WalletBridge after a successful access request, and ConnectorRegistry for
    connector events. Everyone else only reads or subscribes.
    Listeners are called synchronously, in subscription order, only when the state changes.
    """

    def __init__(self, *, logger=None):
        self.logger = logger or get_logger()
        self._lock = threading.Lock()
        self._state = WalletState()
        self._listeners: List[WalletListener] = []

    def get(self) -> WalletState:
        with self._lock:
            return self._state

    def subscribe(self, listener: WalletListener) -> Callable[[], None]:
        if not callable(listener):
            raise ValueError("listener must be callable")
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._listeners.remove(listener)
                except ValueError:
                    pass

        return _unsubscribe

    def publish(self, state: WalletState, *, source: str) -> bool:
        with self._lock:
            if state == self._state:
                return False
            old = self._state
            self._state = state
            listeners = list(self._listeners)
        self.logger.info(f"wallet signal {old.address or '-'} -> {state.address or '-'} (source={source})")
        for listener in listeners:
            try:
                listener(state)
            except Exception as e:  # noqa: BLE001
                self.logger.error(f"wallet signal listener failed: {e}")
        return True

    def clear(self, *, source: str) -> bool:
        return self.publish(WalletState(), source=source)
