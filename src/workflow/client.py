import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from src.config import Settings
from src.core.exceptions import UpstreamError
from src.core.tokens import TokenCache

logger = logging.getLogger(__name__)


class CamundaClient:
    """Camunda 8 REST (Zeebe gateway) and Tasklist client.

    OAuth is optional: without ``auth_url`` and client credentials requests
    are sent unauthenticated, which is how a local self-managed cluster runs.
    """

    def __init__(
        self,
        rest_url: str,
        operate_url: str = "",
        tasklist_url: str = "",
        auth_url: str = "",
        client_id: str = "",
        client_secret: str = "",
        audience: str = "zeebe.camunda.io",
        process_definition_key: str = "Process_ClaimsProcessing",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rest_url = rest_url.rstrip("/")
        self.operate_url = operate_url.rstrip("/")
        self.tasklist_url = tasklist_url.rstrip("/")
        self.auth_url = auth_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience
        self.process_definition_key = process_definition_key
        self.timeout = timeout
        self._transport = transport
        self._tokens = TokenCache(self._fetch_token)

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CamundaClient":
        return cls(
            rest_url=settings.CAMUNDA_REST_URL,
            operate_url=settings.CAMUNDA_OPERATE_URL,
            tasklist_url=settings.CAMUNDA_TASKLIST_URL,
            auth_url=settings.CAMUNDA_AUTH_URL,
            client_id=settings.CAMUNDA_CLIENT_ID,
            client_secret=settings.CAMUNDA_CLIENT_SECRET,
            audience=settings.CAMUNDA_AUDIENCE,
            process_definition_key=settings.CAMUNDA_PROCESS_DEFINITION_KEY,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.auth_url and self.client_id and self.client_secret)

    @property
    def urls(self) -> Dict[str, str]:
        return {"restUrl": self.rest_url, "operateUrl": self.operate_url, "tasklistUrl": self.tasklist_url}

    async def _fetch_token(self) -> Tuple[str, int]:
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.auth_url, data=form)
        except httpx.HTTPError as e:
            raise UpstreamError("Camunda", f"token request failed: {e}", original_error=e)
        if response.status_code >= 400:
            raise UpstreamError("Camunda", f"token request rejected: {response.status_code}", status_code=response.status_code)
        data = response.json()
        return data["access_token"], int(data.get("expires_in", 300))

    async def _headers(self) -> Dict[str, str]:
        if not self.oauth_enabled:
            return {}
        return {"Authorization": f"Bearer {await self._tokens.get()}"}

    async def _request(self, method: str, url: str, json_body: Any = None, files: Any = None) -> Any:
        headers = await self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, json=json_body, files=files)
        except httpx.HTTPError as e:
            logger.error("Camunda request error: %s", e)
            raise UpstreamError("Camunda", f"{method} {url} failed: {e}", original_error=e)

        if response.status_code == 401:
            self._tokens.invalidate()
        if response.status_code >= 400:
            raise UpstreamError(
                "Camunda",
                f"{response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    # Zeebe REST (v2)

    async def topology(self) -> Any:
        return await self._request("GET", f"{self.rest_url}/v2/topology")

    async def deploy(self, name: str, content: bytes) -> Any:
        return await self._request(
            "POST",
            f"{self.rest_url}/v2/deployments",
            files={"resources": (name, content, "application/xml")},
        )

    async def start_process(self, variables: Dict[str, Any]) -> Any:
        body = {"processDefinitionKey": self.process_definition_key, "variables": variables}
        return await self._request("POST", f"{self.rest_url}/v2/process-instances", json_body=body)

    async def get_process_instance(self, process_key: str) -> Any:
        return await self._request("GET", f"{self.rest_url}/v2/process-instances/{process_key}")

    async def get_flow_node_instances(self, process_key: str) -> Any:
        return await self._request("GET", f"{self.rest_url}/v2/process-instances/{process_key}/flow-node-instances")

    async def publish_message(self, name: str, correlation_key: Optional[str], variables: Optional[dict]) -> Any:
        body = {"name": name, "correlationKey": correlation_key, "variables": variables}
        return await self._request("POST", f"{self.rest_url}/v2/messages", json_body=body)

    # Tasklist (v1)

    async def search_tasks(self, process_instance_key: str, state: str = "CREATED", page_size: int = 50) -> Any:
        body = {"state": state, "processInstanceKey": process_instance_key, "pageSize": page_size}
        return await self._request("POST", f"{self.tasklist_url}/v1/tasks/search", json_body=body)

    async def complete_task(self, task_id: str, variables: Any) -> Any:
        return await self._request("PATCH", f"{self.tasklist_url}/v1/tasks/{task_id}/complete", json_body={"variables": variables})

    async def claim_task(self, task_id: str, assignee: str) -> Any:
        return await self._request("PATCH", f"{self.tasklist_url}/v1/tasks/{task_id}/claim", json_body={"assignee": assignee})


def process_key_of(response: Any) -> Optional[str]:
    if not isinstance(response, dict):
        return None
    key = response.get("key") or response.get("processInstanceKey")
    return str(key) if key is not None else None
