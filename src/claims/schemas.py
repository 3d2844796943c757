from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from src.claims.models import ClaimStatus, WorkflowStatus
from src.shared.schemas import CamelModel


class ClaimResponse(CamelModel):
    id: str
    user_id: str
    user_name: str
    policy_number: Optional[str] = None
    claim_type: str
    description: Optional[str] = None
    incident_date: Optional[date] = None
    estimated_amount: float = 0
    status: ClaimStatus
    status_history: List[Dict[str, Any]] = []
    box_folder_id: Optional[str] = None
    documents: List[Dict[str, Any]] = []
    ai_extraction: Any = None
    process_instance_key: Optional[str] = None
    workflow_status: WorkflowStatus
    created_at: datetime
    updated_at: datetime


class AdminClaimResponse(ClaimResponse):
    risk_score: Optional[int] = None
    assigned_adjuster_id: Optional[str] = None
    assigned_adjuster_name: Optional[str] = None


class ClaimSubmissionResponse(CamelModel):
    success: bool = True
    claim: ClaimResponse
    degraded: List[str] = []


class ClaimListResponse(CamelModel):
    success: bool = True
    claims: List[ClaimResponse]


class ClaimDetailResponse(CamelModel):
    success: bool = True
    claim: ClaimResponse


class AdminClaimListResponse(CamelModel):
    success: bool = True
    claims: List[AdminClaimResponse]


class AdminClaimDetailResponse(CamelModel):
    success: bool = True
    claim: AdminClaimResponse


class StatusUpdate(BaseModel):
    status: ClaimStatus
    notes: Optional[str] = None
