import logging
from typing import Any

from src.core.exceptions import UpstreamError
from src.crm.client import SalesforceClient
from src.crm.schemas import LeadRequest

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "Salesforce not configured. Set SALESFORCE_CLIENT_ID, SALESFORCE_CLIENT_SECRET, "
    "SALESFORCE_USERNAME, and SALESFORCE_PASSWORD environment variables."
)


def lead_rating(estimated_value: float) -> str:
    if estimated_value > 400:
        return "Hot"
    if estimated_value > 200:
        return "Warm"
    return "Cold"


def build_lead(request: LeadRequest) -> dict:
    name_parts = (request.customer_name or "").split()
    first_name = name_parts[0] if name_parts else "Unknown"
    last_name = " ".join(name_parts[1:]) or "Customer"

    description = (
        f"Upsell Opportunity from Claim {request.claim_id}\n\n"
        f"Claim Type: {request.claim_type}\n"
        f"Policy Number: {request.policy_number}\n\n"
        f"--- AI Recommendations ---\n"
        f"{request.upsell_recommendations}"
    )
    return {
        "FirstName": first_name,
        "LastName": last_name,
        "Email": request.customer_email,
        "Company": f"Policy: {request.policy_number}",
        "LeadSource": request.source or "Box AI Analysis",
        "Status": "New",
        "Description": description,
        "Rating": lead_rating(request.estimated_value),
        "Industry": "Insurance",
    }


def _error_message(result: Any) -> str:
    if isinstance(result, dict) and result.get("message"):
        return result["message"]
    if isinstance(result, list) and result and isinstance(result[0], dict) and result[0].get("message"):
        return result[0]["message"]
    return "Failed to create lead"


class LeadService:
    def __init__(self, client: SalesforceClient):
        self.client = client

    async def create_lead(self, request: LeadRequest) -> dict:
        if not self.client.is_configured:
            return {"success": False, "message": NOT_CONFIGURED_MESSAGE}

        try:
            session = await self.client.authenticate()
        except UpstreamError:
            return {"success": False, "message": "Failed to authenticate with Salesforce. Check credentials."}

        result = await self.client.create_lead(session, build_lead(request))
        if isinstance(result, dict) and (result.get("success") or result.get("id")):
            logger.info("Salesforce Lead created: %s", result.get("id"))
            return {"success": True, "leadId": result.get("id"), "message": "Lead created successfully in Salesforce"}

        logger.error("Salesforce create failed: %s", result)
        return {"success": False, "message": _error_message(result), "errors": result}
