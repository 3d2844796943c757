import logging
from typing import Any, Optional

import httpx

from src.config import Settings
from src.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

CLAIM_EXTRACTION_TYPE = "insurance_claim"


class ExtractionGatewayClient:
    """Calls the extraction gateway's ``/extract`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ExtractionGatewayClient":
        return cls(settings.EXTRACTION_API_URL, timeout=settings.HTTP_TIMEOUT, transport=transport)

    async def extract(self, file_id: str, extraction_type: str = CLAIM_EXTRACTION_TYPE) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/extract",
                    json={"file_id": file_id, "extraction_type": extraction_type},
                )
        except httpx.HTTPError as e:
            raise UpstreamError("Extraction API", f"request failed: {e}", original_error=e)

        if response.status_code >= 400:
            raise UpstreamError(
                "Extraction API",
                f"/extract returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Extraction API", "invalid JSON response", body=response.text, original_error=e)
