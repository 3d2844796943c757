import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from src.config import Settings
from src.core.exceptions import UpstreamError
from src.core.tokens import TokenCache
from src.storage.auth import BoxAuthConfig, fetch_service_token

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_GRANT = "urn:ietf:params:oauth:grant-type:token-exchange"
ACCESS_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:access_token"


class BoxClient:
    """Thin async wrapper over the Box REST API used by the portal, gateway and scripts."""

    def __init__(
        self,
        auth: BoxAuthConfig,
        api_url: str,
        upload_url: str,
        token_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth = auth
        self.api_url = api_url.rstrip("/")
        self.upload_url = upload_url.rstrip("/")
        self.token_url = token_url
        self.timeout = timeout
        self._transport = transport
        self._tokens = TokenCache(self._fetch_token)

    @classmethod
    def from_settings(cls, settings: Settings, auth: BoxAuthConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> "BoxClient":
        return cls(
            auth=auth,
            api_url=settings.BOX_API_URL,
            upload_url=settings.BOX_UPLOAD_URL,
            token_url=settings.BOX_TOKEN_URL,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return self.auth.is_configured

    async def _fetch_token(self):
        return await fetch_service_token(self.auth, self.token_url, self.timeout, self._transport)

    async def get_access_token(self) -> str:
        return await self._tokens.get()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        base: Optional[str] = None,
        json_body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Any = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        token = await self.get_access_token()
        url = f"{base or self.api_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    headers={"Authorization": f"Bearer {token}"},
                    json=json_body,
                    params=params,
                    files=files,
                    data=data,
                )
        except httpx.HTTPError as e:
            raise UpstreamError("Box", f"{method} {path} failed: {e}", original_error=e)

        if response.status_code == 401:
            self._tokens.invalidate()
        if response.status_code >= 400:
            body = _safe_json(response)
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamError(
                "Box",
                message or f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        if response.status_code == 204 or not response.content:
            return None
        return _safe_json(response)

    # Users

    async def get_current_user(self) -> dict:
        return await self._request("GET", "/users/me")

    # Folders and files

    async def create_folder(self, parent_id: str, name: str) -> dict:
        return await self._request("POST", "/folders", json_body={"name": name, "parent": {"id": parent_id}})

    async def get_folder_items(self, folder_id: str, fields: Optional[str] = None, limit: int = 100) -> List[dict]:
        params: Dict[str, Any] = {"limit": limit}
        if fields:
            params["fields"] = fields
        result = await self._request("GET", f"/folders/{folder_id}/items", params=params)
        return (result or {}).get("entries", [])

    async def upload_file(self, folder_id: str, name: str, content: bytes) -> dict:
        """Upload ``content`` and return the created file entry."""
        attributes = json.dumps({"name": name, "parent": {"id": folder_id}})
        result = await self._request(
            "POST",
            "/files/content",
            base=self.upload_url,
            data={"attributes": attributes},
            files={"file": (name, content)},
        )
        entries = (result or {}).get("entries") or []
        if not entries:
            raise UpstreamError("Box", f"upload of {name} returned no entries", body=result)
        return entries[0]

    async def add_metadata(self, file_id: str, scope: str, template: str, data: dict) -> dict:
        return await self._request("POST", f"/files/{file_id}/metadata/{scope}/{template}", json_body=data)

    # Relay workflows

    async def start_workflow(self, workflow_id: str, folder_id: str) -> Any:
        body = {
            "type": "workflow_parameters",
            "flow": {"id": workflow_id, "type": "flow"},
            "folder": {"id": folder_id, "type": "folder"},
        }
        return await self._request("POST", f"/workflows/{workflow_id}/start", json_body=body)

    # Tokens for UI elements

    async def exchange_token(self, scopes: List[str], resource: Optional[str] = None) -> dict:
        """Downscope the service token. Returns ``{"access_token", "expires_in"}``."""
        subject_token = await self.get_access_token()
        form = {
            "grant_type": TOKEN_EXCHANGE_GRANT,
            "subject_token": subject_token,
            "subject_token_type": ACCESS_TOKEN_TYPE,
            "scope": " ".join(scopes),
        }
        if resource:
            form["resource"] = resource
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            raise UpstreamError("Box", f"token exchange failed: {e}", original_error=e)
        if response.status_code >= 400:
            raise UpstreamError("Box", f"token exchange rejected: {response.text}", status_code=response.status_code)
        return response.json()

    # Box AI

    async def ai_extract_structured(self, file_id: str, fields: List[dict]) -> dict:
        body = {"items": [{"type": "file", "id": file_id}], "fields": fields}
        return await self._request("POST", "/ai/extract_structured", json_body=body)

    async def ai_ask(self, file_id: str, prompt: str) -> dict:
        body = {"mode": "single_item_qa", "prompt": prompt, "items": [{"type": "file", "id": file_id}]}
        return await self._request("POST", "/ai/ask", json_body=body)

    async def create_ai_agent(self, agent_config: dict) -> dict:
        return await self._request("POST", "/ai_agents", json_body=agent_config)

    # Webhooks

    async def list_webhooks(self) -> List[dict]:
        result = await self._request("GET", "/webhooks")
        return (result or {}).get("entries", [])

    async def create_webhook(self, target_id: str, target_type: str, address: str, triggers: List[str]) -> dict:
        body = {"target": {"id": target_id, "type": target_type}, "address": address, "triggers": triggers}
        return await self._request("POST", "/webhooks", json_body=body)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
