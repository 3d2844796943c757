"""
Import the SureSafe n8n workflows through the n8n public API.

Workflows are matched by name: an existing workflow is updated in place,
otherwise a new one is created. Each imported workflow is then activated.

Usage:
    N8N_API_KEY=... python -m src.scripts.import_workflows [--workflows-dir DIR]
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from src.automation.client import N8nClient
from src.config import settings
from src.core.exceptions import AppError

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOWS_DIR = Path(__file__).resolve().parents[2] / "workflows" / "n8n"

WORKFLOW_FILES = [
    "box-file-upload-workflow.json",
    "fraud-alert-workflow.json",
    "metadata-sync-workflow.json",
    "box-sign-workflow.json",
    "task-handler-workflow.json",
]

WEBHOOK_PATHS = [
    ("File Upload", "box-file-upload"),
    ("Metadata Sync", "box-metadata"),
    ("Box Sign", "box-sign"),
    ("Task Handler", "box-tasks"),
    ("Fraud Alert", "fraud-alert"),
]


@dataclass
class ImportResult:
    file: str
    status: str  # success | skipped | error
    id: Optional[str] = None
    action: Optional[str] = None  # created | updated
    activated: bool = False
    error: Optional[str] = None


async def import_workflow(n8n: N8nClient, path: Path) -> ImportResult:
    workflow = json.loads(path.read_text(encoding="utf-8"))

    existing = next((w for w in await n8n.list_workflows() if w.get("name") == workflow.get("name")), None)
    if existing:
        saved = await n8n.update_workflow(existing["id"], workflow)
        action = "updated"
    else:
        saved = await n8n.create_workflow(workflow)
        action = "created"

    workflow_id = saved.get("id")
    activated = await n8n.activate_workflow(workflow_id)
    return ImportResult(file=path.name, status="success", id=workflow_id, action=action, activated=activated)


async def import_workflows(n8n: N8nClient, workflows_dir: Path, files: List[str] = WORKFLOW_FILES) -> List[ImportResult]:
    results = []
    for file_name in files:
        print(f"Importing: {file_name[:-len('.json')].replace('-', ' ')}")
        path = workflows_dir / file_name
        if not path.exists():
            print(f"  SKIP: File not found: {file_name}")
            results.append(ImportResult(file=file_name, status="skipped"))
            continue
        try:
            result = await import_workflow(n8n, path)
        except (AppError, ValueError, KeyError) as e:
            message = getattr(e, "message", str(e))
            print(f"  ERROR: {message}")
            results.append(ImportResult(file=file_name, status="error", error=message))
            continue
        print(f"  SUCCESS: {result.action} (ID: {result.id})")
        if result.activated:
            print("  ACTIVATED: Workflow is now active")
        results.append(result)
    return results


def print_summary(results: List[ImportResult], n8n_url: str) -> None:
    successful = [r for r in results if r.status == "success"]
    failed = [r for r in results if r.status == "error"]
    print("SUMMARY")
    print(f"Successful: {len(successful)}")
    print(f"Failed: {len(failed)}")
    for r in successful:
        print(f"  + {r.file} ({r.action})")
    for r in failed:
        print(f"  - {r.file}: {r.error}")

    print("Webhook URLs for Box configuration:")
    for label, webhook in WEBHOOK_PATHS:
        print(f"  {label + ':':<15} {n8n_url.rstrip('/')}/webhook/{webhook}")


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import the SureSafe n8n workflows")
    parser.add_argument("--workflows-dir", type=Path, default=DEFAULT_WORKFLOWS_DIR)
    parser.add_argument("--api-url", default=settings.N8N_API_URL)
    args = parser.parse_args(argv)

    if not settings.N8N_API_KEY:
        print("Error: N8N_API_KEY environment variable is required")
        return 1

    n8n = N8nClient(api_url=args.api_url, api_key=settings.N8N_API_KEY, timeout=settings.HTTP_TIMEOUT)
    print(f"n8n URL: {args.api_url}")
    results = await import_workflows(n8n, args.workflows_dir)
    print_summary(results, args.api_url)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(asyncio.run(main()))
