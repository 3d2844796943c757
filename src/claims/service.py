import logging
import secrets
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.models import User
from src.claims.extraction import ExtractionGatewayClient
from src.claims.models import Claim, ClaimStatus, WorkflowStatus
from src.core.exceptions import AppError
from src.storage.client import BoxClient
from src.workflow.client import CamundaClient, process_key_of

logger = logging.getLogger(__name__)


def generate_claim_id() -> str:
    return f"CLM-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


def demo_process_key() -> str:
    return f"demo-process-{int(time.time() * 1000)}"


def record_status(claim: Claim, status: ClaimStatus, note: str, updated_by: Optional[str] = None) -> None:
    """Set ``claim.status`` and prepend the matching history entry.

    Both attributes change together so they land in the same commit.
    """
    entry: Dict[str, Any] = {
        "status": status.value,
        "date": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "note": note,
    }
    if updated_by:
        entry["updatedBy"] = updated_by
    # Reassign rather than mutate so the JSON column is flagged dirty.
    claim.status_history = [entry] + list(claim.status_history or [])
    claim.status = status


class ClaimService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, claim_id: str) -> Optional[Claim]:
        return await self.db.get(Claim, claim_id)

    async def get_for_member(self, claim_id: str, user_id: str) -> Optional[Claim]:
        result = await self.db.execute(select(Claim).where(Claim.id == claim_id, Claim.user_id == user_id))
        return result.scalars().first()

    async def list_for_member(self, user_id: str) -> List[Claim]:
        result = await self.db.execute(
            select(Claim).where(Claim.user_id == user_id).order_by(Claim.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_claims(
        self,
        limit: Optional[int] = None,
        status: Optional[ClaimStatus] = None,
        claim_type: Optional[str] = None,
    ) -> List[Claim]:
        query = select(Claim).order_by(Claim.created_at.desc())
        if status:
            query = query.where(Claim.status == status)
        if claim_type:
            query = query.where(Claim.claim_type.ilike(f"%{claim_type}%"))
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_status(self, claim: Claim, status: ClaimStatus, notes: Optional[str], admin_name: str) -> Claim:
        note = notes or f"Status updated to {status.value} by {admin_name}"
        record_status(claim, status, note, updated_by=admin_name)
        await self.db.commit()
        await self.db.refresh(claim)
        logger.info("Claim %s status set to %s by %s", claim.id, status.value, admin_name)
        return claim

    async def attach_process(self, claim: Claim, process_key: str, workflow_status: WorkflowStatus) -> Claim:
        claim.process_instance_key = process_key
        claim.workflow_status = workflow_status
        await self.db.commit()
        await self.db.refresh(claim)
        return claim


@dataclass
class UploadedDocument:
    name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ClaimForm:
    claim_type: str
    description: Optional[str] = None
    incident_date: Optional[date] = None
    estimated_amount: float = 0.0


class ClaimSubmissionService:
    """Files a new claim: Box folder, Relay, uploads, extraction, row, then the BPMN process.

    Every integration step is best effort. A failed step is logged and named
    in the returned ``degraded`` list; nothing already done is rolled back.
    """

    def __init__(
        self,
        db: AsyncSession,
        box: BoxClient,
        extraction: ExtractionGatewayClient,
        camunda: CamundaClient,
        claims_folder_id: str,
        relay_workflow_id: str = "",
    ):
        self.db = db
        self.box = box
        self.extraction = extraction
        self.camunda = camunda
        self.claims_folder_id = claims_folder_id
        self.relay_workflow_id = relay_workflow_id

    async def submit(self, member: User, form: ClaimForm, files: List[UploadedDocument]) -> Tuple[Claim, List[str]]:
        claim_id = generate_claim_id()
        degraded: List[str] = []

        folder_id = await self._create_folder(claim_id, member.name, degraded)
        if folder_id and self.relay_workflow_id:
            await self._start_relay(folder_id, degraded)

        documents: List[dict] = []
        if folder_id:
            documents = await self._upload_documents(folder_id, files, degraded)

        ai_extraction = None
        if documents:
            ai_extraction = await self._extract(documents[0]["id"], degraded)

        claim = Claim(
            id=claim_id,
            user_id=member.id,
            user_name=member.name,
            policy_number=member.policy_number,
            claim_type=form.claim_type,
            description=form.description,
            incident_date=form.incident_date,
            estimated_amount=form.estimated_amount or 0,
            box_folder_id=folder_id,
            documents=documents,
            ai_extraction=ai_extraction,
            workflow_status=WorkflowStatus.NOT_STARTED,
        )
        record_status(claim, ClaimStatus.SUBMITTED, "Claim submitted by member")
        self.db.add(claim)
        await self.db.commit()
        await self.db.refresh(claim)

        await self._start_process(claim, degraded)

        if degraded:
            logger.warning("Claim %s submitted with degraded steps: %s", claim.id, ", ".join(degraded))
        return claim, degraded

    async def _create_folder(self, claim_id: str, member_name: str, degraded: List[str]) -> Optional[str]:
        folder_name = f"{claim_id}_{'_'.join(member_name.split())}"
        try:
            folder = await self.box.create_folder(self.claims_folder_id, folder_name)
        except AppError as e:
            logger.error("Failed to create claim folder: %s", e.message)
            degraded.append("folder")
            return None
        logger.info("Created claim folder: %s", folder.get("id"))
        return folder.get("id")

    async def _start_relay(self, folder_id: str, degraded: List[str]) -> None:
        try:
            await self.box.start_workflow(self.relay_workflow_id, folder_id)
            logger.info("Box Relay workflow triggered for folder: %s", folder_id)
        except AppError as e:
            logger.warning("Box Relay workflow trigger skipped: %s", e.message)
            degraded.append("relay")

    async def _upload_documents(self, folder_id: str, files: List[UploadedDocument], degraded: List[str]) -> List[dict]:
        documents = []
        for upload in files:
            try:
                entry = await self.box.upload_file(folder_id, upload.name, upload.content)
            except AppError as e:
                logger.error("Failed to upload %s: %s", upload.name, e.message)
                degraded.append(f"upload:{upload.name}")
                continue
            logger.info("Uploaded file: %s", entry.get("id"))
            documents.append({"id": entry.get("id"), "name": upload.name, "size": upload.size, "type": upload.content_type})
        return documents

    async def _extract(self, file_id: str, degraded: List[str]) -> Any:
        try:
            result = await self.extraction.extract(file_id)
        except AppError as e:
            logger.error("AI extraction failed: %s", e.message)
            degraded.append("extraction")
            return None
        logger.info("AI extraction completed for file %s", file_id)
        return result

    async def _start_process(self, claim: Claim, degraded: List[str]) -> None:
        variables = {
            "claimId": {"value": claim.id, "type": "String"},
            "userName": {"value": claim.user_name, "type": "String"},
            "userId": {"value": claim.user_id, "type": "String"},
            "claimType": {"value": claim.claim_type, "type": "String"},
            "estimatedAmount": {"value": float(claim.estimated_amount or 0), "type": "Double"},
            "boxFolderId": {"value": claim.box_folder_id or "", "type": "String"},
        }
        process_key = None
        try:
            process_key = process_key_of(await self.camunda.start_process(variables))
        except AppError as e:
            logger.warning("Camunda process start skipped (demo mode): %s", e.message)

        claim.workflow_status = WorkflowStatus.STARTED
        if not process_key:
            process_key = demo_process_key()
            claim.workflow_status = WorkflowStatus.DEMO
            degraded.append("workflow")
        else:
            logger.info("Camunda process started: %s", process_key)
        claim.process_instance_key = process_key
        await self.db.commit()
        await self.db.refresh(claim)
