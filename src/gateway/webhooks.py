import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from src.automation.client import N8nClient
from src.gateway.configs import extraction_type_for_filename

logger = logging.getLogger(__name__)

FILE_UPLOAD_WEBHOOK = "box-file-upload"


def sign(body: bytes, key: str) -> str:
    digest = hmac.new(key.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(body: bytes, signature: Optional[str], primary_key: str, secondary_key: str = "") -> bool:
    """Check ``X-Box-Signature`` against every configured key.

    With no key configured every delivery is accepted.
    """
    keys = [key for key in (primary_key, secondary_key) if key]
    if not keys:
        return True
    if not signature:
        return False
    return any(hmac.compare_digest(sign(body, key), signature) for key in keys)


async def handle_box_event(payload: dict, n8n: N8nClient) -> None:
    trigger = payload.get("trigger")
    source = payload.get("source") or {}
    logger.info("Received webhook: %s for %s %s", trigger, source.get("type"), source.get("id"))

    if trigger != "FILE.UPLOADED":
        return

    file_name = source.get("name") or ""
    extraction_type = extraction_type_for_filename(file_name)

    if not n8n.webhooks_enabled:
        logger.info("N8N_WEBHOOK_URL not set, not forwarding upload of %s", file_name)
        return

    await n8n.trigger_webhook(
        FILE_UPLOAD_WEBHOOK,
        {
            "event": "file.uploaded",
            "fileId": source.get("id"),
            "fileName": file_name,
            "extractionType": extraction_type,
            "source": source,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
    )
