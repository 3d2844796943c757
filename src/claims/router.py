from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.admins import CurrentAdmin
from src.auth.dependencies import get_current_admin, get_current_member
from src.auth.models import User
from src.claims.extraction import ExtractionGatewayClient
from src.claims.models import ClaimStatus
from src.claims.schemas import (
    AdminClaimDetailResponse,
    AdminClaimListResponse,
    AdminClaimResponse,
    ClaimDetailResponse,
    ClaimListResponse,
    ClaimResponse,
    ClaimSubmissionResponse,
    StatusUpdate,
)
from src.claims.service import ClaimForm, ClaimService, ClaimSubmissionService, UploadedDocument
from src.config import Settings
from src.core.dependencies import get_box_client, get_camunda_client, get_extraction_client, get_settings
from src.database import get_db
from src.storage.client import BoxClient
from src.workflow.client import CamundaClient

router = APIRouter(prefix="/claims", tags=["claims"])
admin_router = APIRouter(prefix="/admin/claims", tags=["admin"])


async def _read_documents(documents: List[UploadFile], settings: Settings) -> List[UploadedDocument]:
    if len(documents) > settings.MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"At most {settings.MAX_UPLOAD_FILES} documents per claim")

    uploads = []
    for upload in documents:
        if upload.content_type not in settings.ALLOWED_UPLOAD_TYPES:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Only PDF, images, and Word documents are allowed.",
            )
        content = await upload.read()
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=400, detail=f"{upload.filename} exceeds the upload size limit")
        uploads.append(UploadedDocument(name=upload.filename or "document", content_type=upload.content_type, content=content))
    return uploads


@router.post("", response_model=ClaimSubmissionResponse)
async def submit_claim(
    claim_type: str = Form(..., alias="claimType"),
    description: Optional[str] = Form(None),
    incident_date: Optional[date] = Form(None, alias="incidentDate"),
    estimated_amount: Optional[float] = Form(None, alias="estimatedAmount"),
    documents: Optional[List[UploadFile]] = File(None),
    member: User = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    box: BoxClient = Depends(get_box_client),
    extraction: ExtractionGatewayClient = Depends(get_extraction_client),
    camunda: CamundaClient = Depends(get_camunda_client),
):
    """File a new claim with up to ten supporting documents."""
    uploads = await _read_documents(documents or [], settings)
    service = ClaimSubmissionService(
        db,
        box,
        extraction,
        camunda,
        claims_folder_id=settings.CLAIMS_FOLDER_ID,
        relay_workflow_id=settings.BOX_RELAY_WORKFLOW_ID,
    )
    form = ClaimForm(
        claim_type=claim_type,
        description=description,
        incident_date=incident_date,
        estimated_amount=estimated_amount or 0.0,
    )
    claim, degraded = await service.submit(member, form, uploads)
    return ClaimSubmissionResponse(claim=ClaimResponse.model_validate(claim), degraded=degraded)


@router.get("", response_model=ClaimListResponse)
async def list_my_claims(
    member: User = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    claims = await ClaimService(db).list_for_member(member.id)
    return ClaimListResponse(claims=[ClaimResponse.model_validate(c) for c in claims])


@router.get("/{claim_id}", response_model=ClaimDetailResponse)
async def get_my_claim(
    claim_id: str,
    member: User = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    claim = await ClaimService(db).get_for_member(claim_id, member.id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    return ClaimDetailResponse(claim=ClaimResponse.model_validate(claim))


@admin_router.get("", response_model=AdminClaimListResponse)
async def list_claims(
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[ClaimStatus] = None,
    type: Optional[str] = None,
    admin: CurrentAdmin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    claims = await ClaimService(db).list_claims(limit=limit, status=status, claim_type=type)
    return AdminClaimListResponse(claims=[AdminClaimResponse.model_validate(c) for c in claims])


@admin_router.get("/{claim_id}", response_model=AdminClaimDetailResponse)
async def get_claim(
    claim_id: str,
    admin: CurrentAdmin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    claim = await ClaimService(db).get(claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    return AdminClaimDetailResponse(claim=AdminClaimResponse.model_validate(claim))


@admin_router.put("/{claim_id}/status", response_model=AdminClaimDetailResponse)
async def update_claim_status(
    claim_id: str,
    update: StatusUpdate,
    admin: CurrentAdmin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    service = ClaimService(db)
    claim = await service.get(claim_id)
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    claim = await service.update_status(claim, update.status, update.notes, admin.name)
    return AdminClaimDetailResponse(claim=AdminClaimResponse.model_validate(claim))
