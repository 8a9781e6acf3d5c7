"""HTTP event sink relaying to the internal run events endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from .base import BaseEventSink


class HttpEventSink(BaseEventSink):
    """POST events to ``{base_url}/internal/runs/{run_id}/events``."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        secret: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.secret = secret
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"
        return headers

    def url_for(self, run_id: str) -> str:
        return f"{self.base_url}/internal/runs/{run_id}/events"

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True

    async def disconnect(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def post_event(self, run_id: str, payload: Dict[str, Any]) -> None:
        if self._client is None:
            await self.connect()
        response = await self._client.post(
            self.url_for(run_id), json=payload, headers=self._headers()
        )
        response.raise_for_status()
