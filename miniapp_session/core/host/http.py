"""
Bearer-token HTTP client for the application backend.

The host issues a session token; every call carries it as `Authorization: Bearer ...`.
requests is blocking, so each call runs in a worker thread via asyncio.to_thread.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional, Union

import requests

from miniapp_session.core.host.base import HostResponse

TokenSource = Union[str, Callable[[], Optional[str]], None]


class AuthenticatedHttpClient:
    def __init__(self, *, base_url: str, token: TokenSource = None, timeout_seconds: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self.timeout_seconds = float(timeout_seconds)
        self._session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _bearer(self) -> Optional[str]:
        tok = self._token() if callable(self._token) else self._token
        return str(tok) if tok else None

    def _get(self, path: str) -> HostResponse:
        headers = {"Accept": "application/json"}
        tok = self._bearer()
        if tok:
            headers["Authorization"] = f"Bearer {tok}"
        r = self._session.get(self._url(path), headers=headers, timeout=self.timeout_seconds)
        payload = None
        if r.content:
            try:
                payload = r.json()
            except ValueError:
                payload = None
        return HostResponse(status_code=int(r.status_code), payload=payload)

    async def fetch(self, path: str) -> HostResponse:
        """GET `path`; transport failures raise requests.RequestException."""
        return await asyncio.to_thread(self._get, path)

    def close(self) -> None:
        self._session.close()
