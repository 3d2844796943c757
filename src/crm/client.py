import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from src.config import Settings
from src.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class SalesforceSession:
    access_token: str
    instance_url: str


class SalesforceClient:
    """Salesforce REST client using the OAuth username-password flow."""

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        username: str = "",
        password: str = "",
        security_token: str = "",
        login_url: str = "https://login.salesforce.com",
        api_version: str = "v59.0",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.security_token = security_token
        self.login_url = login_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SalesforceClient":
        return cls(
            client_id=settings.SALESFORCE_CLIENT_ID,
            client_secret=settings.SALESFORCE_CLIENT_SECRET,
            username=settings.SALESFORCE_USERNAME,
            password=settings.SALESFORCE_PASSWORD,
            security_token=settings.SALESFORCE_SECURITY_TOKEN,
            login_url=settings.SALESFORCE_LOGIN_URL,
            api_version=settings.SALESFORCE_API_VERSION,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.username and self.password)

    async def authenticate(self) -> SalesforceSession:
        form = {
            "grant_type": "password",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password + (self.security_token or ""),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.login_url}/services/oauth2/token", data=form)
        except httpx.HTTPError as e:
            raise UpstreamError("Salesforce", f"token request failed: {e}", original_error=e)

        data = _json_or_text(response)
        if response.status_code >= 400 or not isinstance(data, dict) or not data.get("access_token"):
            logger.error("Salesforce auth failed: %s", data)
            raise UpstreamError("Salesforce", "authentication failed", status_code=response.status_code, body=data)
        return SalesforceSession(access_token=data["access_token"], instance_url=data["instance_url"])

    async def create_lead(self, session: SalesforceSession, lead: dict) -> Any:
        """POST the Lead and return the decoded body, whether or not Salesforce accepted it."""
        url = f"{session.instance_url}/services/data/{self.api_version}/sobjects/Lead"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=lead,
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
        except httpx.HTTPError as e:
            raise UpstreamError("Salesforce", f"create Lead failed: {e}", original_error=e)
        return _json_or_text(response)


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
