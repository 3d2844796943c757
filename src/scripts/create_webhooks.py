"""
Register the Box webhooks that feed the extraction gateway and n8n.

Usage:
    python -m src.scripts.create_webhooks [--folder-id ID] [--output-dir DIR]
"""

import argparse
import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.config import settings
from src.core.exceptions import AppError
from src.storage.auth import load_box_auth_config
from src.storage.client import BoxClient

logger = logging.getLogger(__name__)

OUTPUT_FILE = "webhooks-config.json"


@dataclass
class WebhookDefinition:
    name: str
    target_id: str
    target_type: str
    triggers: List[str]
    address: str
    description: str


@dataclass
class WebhookResult:
    name: str
    status: str  # created | exists | error
    id: Optional[str] = None
    triggers: List[str] = field(default_factory=list)
    address: Optional[str] = None
    error: Optional[str] = None


def webhook_definitions(folder_id: str, gateway_url: str, n8n_url: str) -> List[WebhookDefinition]:
    gateway_url = gateway_url.rstrip("/")
    n8n_url = n8n_url.rstrip("/")
    return [
        WebhookDefinition(
            name="File Upload Handler",
            target_id=folder_id,
            target_type="folder",
            triggers=["FILE.UPLOADED"],
            address=f"{gateway_url}/webhook/box",
            description="Triggers AI extraction on new document uploads",
        ),
        WebhookDefinition(
            name="Metadata Change Handler",
            target_id=folder_id,
            target_type="folder",
            triggers=["METADATA_INSTANCE.CREATED", "METADATA_INSTANCE.UPDATED", "METADATA_INSTANCE.DELETED"],
            address=f"{n8n_url}/box-metadata",
            description="Syncs metadata changes with external systems",
        ),
        WebhookDefinition(
            name="Task Handler",
            target_id=folder_id,
            target_type="folder",
            triggers=["TASK_ASSIGNMENT.CREATED", "TASK_ASSIGNMENT.UPDATED"],
            address=f"{n8n_url}/box-tasks",
            description="Handles task workflow events",
        ),
        WebhookDefinition(
            name="Box Sign Handler",
            target_id=folder_id,
            target_type="folder",
            triggers=["SIGN_REQUEST.COMPLETED", "SIGN_REQUEST.DECLINED", "SIGN_REQUEST.EXPIRED"],
            address=f"{n8n_url}/box-sign",
            description="Processes signature events for settlements",
        ),
        WebhookDefinition(
            name="Collaboration Handler",
            target_id=folder_id,
            target_type="folder",
            triggers=["COLLABORATION.CREATED", "COLLABORATION.REMOVED"],
            address=f"{n8n_url}/box-collab",
            description="Tracks collaboration changes for audit",
        ),
    ]


def find_existing(existing: List[dict], definition: WebhookDefinition) -> Optional[dict]:
    """An existing webhook on the same target sharing any trigger covers the definition."""
    for webhook in existing:
        target = webhook.get("target") or {}
        if str(target.get("id")) != str(definition.target_id):
            continue
        if any(trigger in definition.triggers for trigger in webhook.get("triggers") or []):
            return webhook
    return None


async def create_webhooks(box: BoxClient, definitions: List[WebhookDefinition]) -> List[WebhookResult]:
    user = await box.get_current_user()
    print(f"Connected as: {user.get('name')}")

    print("Checking existing webhooks...")
    try:
        existing = await box.list_webhooks()
        print(f"Found {len(existing)} existing webhooks")
    except AppError as e:
        print(f"Could not list webhooks: {e.message}")
        existing = []

    results = []
    for definition in definitions:
        print(f"Creating webhook: {definition.name}")
        print(f"  Triggers: {', '.join(definition.triggers)}")
        print(f"  Target: {definition.address}")

        match = find_existing(existing, definition)
        if match:
            print(f"  EXISTS: Webhook {match.get('id')} already covers these triggers")
            results.append(WebhookResult(name=definition.name, status="exists", id=match.get("id")))
            continue

        try:
            webhook = await box.create_webhook(
                definition.target_id, definition.target_type, definition.address, definition.triggers
            )
        except AppError as e:
            print(f"  ERROR: {e.message}")
            if "address" in e.message:
                print("  NOTE: Webhook address must be HTTPS and publicly accessible")
            results.append(WebhookResult(name=definition.name, status="error", error=e.message))
            continue

        print(f"  SUCCESS: Created webhook {webhook.get('id')}")
        results.append(
            WebhookResult(
                name=definition.name,
                status="created",
                id=webhook.get("id"),
                triggers=definition.triggers,
                address=definition.address,
            )
        )
    return results


def write_report(
    output_dir: Path,
    folder_id: str,
    gateway_url: str,
    n8n_url: str,
    results: List[WebhookResult],
    definitions: List[WebhookDefinition],
) -> Path:
    report = {
        "created": datetime.now(timezone.utc).isoformat(),
        "targetFolder": folder_id,
        "cloudRunUrl": gateway_url,
        "n8nUrl": n8n_url,
        "webhooks": [asdict(r) for r in results],
        "definitions": [asdict(d) for d in definitions],
    }
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / OUTPUT_FILE
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return path


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the SureSafe Box webhooks")
    parser.add_argument("--folder-id", default=settings.BOX_WEBHOOK_FOLDER_ID)
    parser.add_argument("--gateway-url", default=settings.CLOUD_RUN_URL)
    parser.add_argument("--n8n-url", default=settings.N8N_WEBHOOK_URL)
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    args = parser.parse_args(argv)

    if not args.gateway_url or not args.n8n_url:
        print("Webhook addresses need absolute URLs: set --gateway-url and --n8n-url (CLOUD_RUN_URL / N8N_WEBHOOK_URL)")
        return 1

    box = BoxClient.from_settings(settings, load_box_auth_config(settings))
    if not box.is_configured:
        print("Box credentials are not configured (see BOX_CONFIG_* / BOX_CLIENT_*)")
        return 1

    definitions = webhook_definitions(args.folder_id, args.gateway_url, args.n8n_url)
    try:
        results = await create_webhooks(box, definitions)
    except AppError as e:
        print(f"Failed to connect to Box: {e.message}")
        return 1

    print("SUMMARY")
    for result in results:
        print(f"  {result.name}: {result.status}" + (f" ({result.id})" if result.id else ""))
        if result.error:
            print(f"    Error: {result.error}")

    path = write_report(args.output_dir, args.folder_id, args.gateway_url, args.n8n_url, results, definitions)
    print(f"Configuration saved to: {path}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(asyncio.run(main()))
