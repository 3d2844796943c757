import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

DISPATCH_PATH = "/webhook/box-file-upload"

# Box webhook trigger -> n8n webhook name
TRIGGER_ROUTES: Dict[str, str] = {
    "FILE.UPLOADED": "box-file-upload",
    "METADATA_INSTANCE.CREATED": "box-metadata",
    "METADATA_INSTANCE.UPDATED": "box-metadata",
    "METADATA_INSTANCE.DELETED": "box-metadata",
    "TASK_ASSIGNMENT.CREATED": "box-tasks",
    "TASK_ASSIGNMENT.UPDATED": "box-tasks",
    "SIGN_REQUEST.COMPLETED": "box-sign",
    "SIGN_REQUEST.DECLINED": "box-sign",
    "SIGN_REQUEST.EXPIRED": "box-sign",
    "COLLABORATION.CREATED": "box-collab",
    "COLLABORATION.REMOVED": "box-collab",
}


def resolve_webhook_path(path: str, body: Any) -> str:
    """Return the n8n path a Box delivery should be forwarded to.

    All Box webhooks point at the file upload URL; deliveries for other
    triggers are redirected to their own workflow.
    """
    if path != DISPATCH_PATH or not isinstance(body, dict):
        return path
    trigger = body.get("trigger")
    if not isinstance(trigger, str):
        return path
    target = TRIGGER_ROUTES.get(trigger)
    if not target or target == "box-file-upload":
        return path
    new_path = f"/webhook/{target}"
    logger.info("Routing %s event to %s", trigger, new_path)
    return new_path
