import logging
from fastapi import APIRouter, Depends, HTTPException

from src.auth.dependencies import get_current_admin
from src.core.dependencies import get_salesforce_client
from src.core.exceptions import AppError
from src.crm.client import SalesforceClient
from src.crm.schemas import LeadRequest
from src.crm.service import LeadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/salesforce", tags=["crm"], dependencies=[Depends(get_current_admin)])


@router.post("/create-lead")
async def create_lead(payload: LeadRequest, client: SalesforceClient = Depends(get_salesforce_client)):
    """Turn an upsell recommendation from a claim analysis into a Salesforce Lead."""
    try:
        return await LeadService(client).create_lead(payload)
    except AppError as e:
        logger.error("Salesforce lead creation error: %s", e.message)
        raise HTTPException(status_code=500, detail="Error creating Salesforce lead")
