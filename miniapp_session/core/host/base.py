from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from miniapp_session.core.wallet.provider import EthereumProvider


@dataclass(frozen=True)
class HostResponse:
    status_code: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= int(self.status_code) < 300

    def json(self) -> Any:
        return self.payload


class HostPlatform:
    """
    Host platform runtime interface.

    The embedding host supplies identity, an authenticated fetch and a wallet provider:
    - is_embedded()          -> runtime check, are we inside the host?
    - get_context()          -> {"user": {...} | None}
    - authenticated_fetch()  -> HTTP call scoped to the current host session
    - wallet_provider()      -> injected EIP-1193 provider, or None
    - ready()                -> tell the host the UI can be shown (fire-and-forget)
    """

    name: str = "base"

    async def is_embedded(self) -> bool:
        raise NotImplementedError

    async def get_context(self) -> Dict[str, Any]:
        raise NotImplementedError

    async def authenticated_fetch(self, path: str) -> HostResponse:
        raise NotImplementedError

    def wallet_provider(self) -> Optional[EthereumProvider]:
        return None

    def ready(self) -> Any:
        return None
