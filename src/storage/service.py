import json
import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from src.core.exceptions import AppError
from src.storage.client import BoxClient

logger = logging.getLogger(__name__)

MEMBER_SCOPES = ["base_explorer", "base_preview", "item_download", "item_preview"]
ADMIN_SCOPES = MEMBER_SCOPES + ["item_upload", "item_share", "item_rename", "item_delete"]
FALLBACK_EXPIRES_IN = 3600

CLASSIFICATIONS: Dict[str, Dict[str, str]] = {
    "extraction": {
        "category": "AI_Analysis",
        "subCategory": "Information_Extraction",
        "confidentiality": "Internal",
        "priority": "Normal",
    },
    "summary": {
        "category": "AI_Analysis",
        "subCategory": "Document_Summary",
        "confidentiality": "Internal",
        "priority": "Normal",
    },
    "fraud": {
        "category": "AI_Analysis",
        "subCategory": "Fraud_Detection",
        "confidentiality": "Confidential",
        "priority": "High",
    },
    "question": {
        "category": "AI_Analysis",
        "subCategory": "Q_and_A",
        "confidentiality": "Internal",
        "priority": "Normal",
    },
    "upsell": {
        "category": "Sales",
        "subCategory": "Upsell_Opportunity",
        "confidentiality": "Internal",
        "priority": "High",
    },
}

RULE = "=" * 80

REPORT_TEMPLATE = """
{rule}
                         BOX AI ANALYSIS REPORT
{rule}

CLAIM ID:        {claim_id}
ANALYSIS TYPE:   {title}
CATEGORY:        {category}
SUB-CATEGORY:    {sub_category}
CONFIDENTIALITY: {confidentiality}
PRIORITY:        {priority}
GENERATED:       {generated}
GENERATED BY:    Box AI / SureSafe Claims Intelligence

{rule}
                              ANALYSIS RESULTS
{rule}

{results}

{rule}
                              END OF REPORT
{rule}

This document was automatically generated by Box AI as part of the SureSafe
Claims Intelligence Platform. The analysis is provided for informational
purposes and should be reviewed by a qualified claims adjuster.

Classification: {confidentiality}
Document Type: {sub_category}
"""


def classification_for(analysis_type: str) -> Dict[str, str]:
    return CLASSIFICATIONS.get(analysis_type, CLASSIFICATIONS["extraction"])


def _parse_timestamp(value: Optional[str]) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable report timestamp %r, using now", value)
    return datetime.now(timezone.utc)


def render_ai_report(claim_id: str, title: str, classification: Dict[str, str], data: Any, timestamp: Optional[str] = None) -> str:
    results = json.dumps(data, indent=2) if isinstance(data, (dict, list)) else str(data)
    return REPORT_TEMPLATE.format(
        rule=RULE,
        claim_id=claim_id,
        title=title,
        category=classification["category"],
        sub_category=classification["subCategory"],
        confidentiality=classification["confidentiality"],
        priority=classification["priority"],
        generated=_parse_timestamp(timestamp).strftime("%m/%d/%Y, %I:%M:%S %p"),
        results=results,
    )


def report_file_name(title: str, claim_id: str, today: Optional[date] = None) -> str:
    safe_title = re.sub(r"[^a-zA-Z0-9]", "_", title)
    day = (today or datetime.now(timezone.utc).date()).isoformat()
    return f"BoxAI_{safe_title}_{claim_id}_{day}.txt"


class StorageService:
    """Box operations exposed to the member portal and the admin console."""

    def __init__(self, box: BoxClient, metadata_template: str = "claimsClassification"):
        self.box = box
        self.metadata_template = metadata_template

    async def ui_token(self, scopes: List[str], resource: Optional[str] = None) -> dict:
        """Downscoped token for Box UI Elements, falling back to the service token."""
        try:
            exchanged = await self.box.exchange_token(scopes, resource)
            return {
                "accessToken": exchanged["access_token"],
                "expiresIn": int(exchanged.get("expires_in") or FALLBACK_EXPIRES_IN),
            }
        except (AppError, KeyError) as e:
            logger.error("Failed to get Box token: %s", e)

        token = await self.box.get_access_token()
        return {"accessToken": token, "expiresIn": FALLBACK_EXPIRES_IN}

    async def service_token(self) -> dict:
        return {"accessToken": await self.box.get_access_token(), "expiresIn": FALLBACK_EXPIRES_IN}

    def folder_resource(self, folder_id: str) -> str:
        return f"{self.box.api_url}/folders/{folder_id}"

    async def folder_items(self, folder_id: str) -> List[dict]:
        return await self.box.get_folder_items(folder_id, limit=100)

    async def folder_files(self, folder_id: str) -> List[dict]:
        items = await self.box.get_folder_items(folder_id, fields="id,name,size,type,modified_at,created_at", limit=100)
        return [
            {
                "id": item.get("id"),
                "name": item.get("name"),
                "size": item.get("size"),
                "modifiedAt": item.get("modified_at"),
                "createdAt": item.get("created_at"),
            }
            for item in items
            if item.get("type") == "file"
        ]

    async def upload_ai_result(
        self,
        folder_id: str,
        claim_id: str,
        analysis_type: str,
        title: str,
        data: Any,
        timestamp: Optional[str] = None,
    ) -> dict:
        classification = classification_for(analysis_type)
        content = render_ai_report(claim_id, title, classification, data, timestamp)
        file_name = report_file_name(title, claim_id)

        entry = await self.box.upload_file(folder_id, file_name, content.encode("utf-8"))
        file_id = entry.get("id")

        try:
            await self.box.add_metadata(
                file_id,
                "enterprise",
                self.metadata_template,
                {
                    **classification,
                    "claimId": claim_id,
                    "generatedBy": "Box AI",
                    "analysisType": analysis_type,
                },
            )
        except AppError as e:
            # The template is optional in a Box enterprise.
            logger.info("Could not apply metadata (template may not exist): %s", e.message)

        return {
            "success": True,
            "file": {"id": file_id, "name": file_name, "classification": classification},
            "message": f'AI analysis saved to Box as "{file_name}"',
        }
