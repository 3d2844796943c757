import json
import logging
from typing import Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from src.proxy.routing import DISPATCH_PATH, resolve_webhook_path

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Not relayed upstream: the target host replaces Host, and httpx sets the length.
DROPPED_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}
# Not relayed back: httpx has already decoded the body.
DROPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def _parse_json(body: bytes):
    try:
        return json.loads(body)
    except ValueError:
        return None


class ProxyService:
    """Forwards requests to the n8n instance unchanged, apart from the Box trigger dispatch."""

    def __init__(self, target_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.target_url = target_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def forward(self, request: Request) -> Response:
        body = await request.body()
        path = request.url.path
        if request.method == "POST" and path == DISPATCH_PATH and body:
            path = resolve_webhook_path(path, _parse_json(body))

        url = f"{self.target_url}{path}"
        headers = {k: v for k, v in request.headers.items() if k.lower() not in DROPPED_REQUEST_HEADERS}
        logger.info("Proxying %s %s to %s", request.method, path, self.target_url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                upstream = await client.request(
                    request.method,
                    url,
                    params=request.query_params.multi_items(),
                    headers=headers,
                    content=body,
                )
        except httpx.HTTPError as e:
            logger.error("Proxy error: %s", e)
            return JSONResponse(status_code=502, content={"error": "Proxy error", "message": str(e)})

        response = Response(content=upstream.content, status_code=upstream.status_code)
        # Repeated headers such as Set-Cookie stay separate.
        for key, value in upstream.headers.multi_items():
            if key.lower() not in DROPPED_RESPONSE_HEADERS:
                response.headers.append(key, value)
        return response
