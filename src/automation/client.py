import logging
from typing import Any, Dict, List, Optional

import httpx

from src.config import Settings
from src.core.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class N8nClient:
    """Client for n8n webhook triggers and the public workflow management API."""

    def __init__(
        self,
        webhook_url: str = "",
        api_url: str = "",
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "N8nClient":
        return cls(
            webhook_url=settings.N8N_WEBHOOK_URL,
            api_url=settings.N8N_API_URL,
            api_key=settings.N8N_API_KEY,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    @property
    def webhooks_enabled(self) -> bool:
        return bool(self.webhook_url)

    async def _send(self, method: str, url: str, headers: Dict[str, str], json_body: Any = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, url, headers=headers, json=json_body)
        except httpx.HTTPError as e:
            raise UpstreamError("n8n", f"{method} {url} failed: {e}", original_error=e)

    async def trigger_webhook(self, name: str, payload: dict) -> None:
        if not self.webhooks_enabled:
            raise ConfigurationError("N8N_WEBHOOK_URL is not set")
        url = f"{self.webhook_url}/{name}"
        response = await self._send("POST", url, {"Content-Type": "application/json"}, payload)
        if response.status_code >= 400:
            raise UpstreamError("n8n", f"webhook {name} returned {response.status_code}", status_code=response.status_code)

    # Management API

    def _api_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("N8N_API_KEY environment variable is required")
        return {"X-N8N-API-KEY": self.api_key, "Content-Type": "application/json"}

    async def list_workflows(self) -> List[dict]:
        response = await self._send("GET", f"{self.api_url}/api/v1/workflows", self._api_headers())
        if response.status_code >= 400:
            raise UpstreamError("n8n", f"Failed to list workflows: {response.status_code}", status_code=response.status_code)
        return response.json().get("data") or []

    async def create_workflow(self, workflow: dict) -> dict:
        response = await self._send("POST", f"{self.api_url}/api/v1/workflows", self._api_headers(), workflow)
        if response.status_code >= 400:
            raise UpstreamError("n8n", f"Failed to create: {response.text}", status_code=response.status_code)
        return response.json()

    async def update_workflow(self, workflow_id: str, workflow: dict) -> dict:
        response = await self._send("PATCH", f"{self.api_url}/api/v1/workflows/{workflow_id}", self._api_headers(), workflow)
        if response.status_code >= 400:
            raise UpstreamError("n8n", f"Failed to update: {response.text}", status_code=response.status_code)
        return response.json()

    async def activate_workflow(self, workflow_id: str) -> bool:
        try:
            response = await self._send("POST", f"{self.api_url}/api/v1/workflows/{workflow_id}/activate", self._api_headers())
        except UpstreamError as e:
            logger.warning("Activation of workflow %s failed: %s", workflow_id, e)
            return False
        return response.status_code < 400
