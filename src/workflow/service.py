"""Bridge between the admin console and the Camunda 8 claims process.

Every operation calls the engine first. When the engine is unreachable or
answers with an error, the admin console still gets a usable answer derived
from the claim row, flagged with ``demo: True``.
"""
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.claims.models import Claim, ClaimStatus, WorkflowStatus
from src.claims.service import ClaimService, demo_process_key, record_status
from src.core.exceptions import AppError
from src.workflow.client import CamundaClient, process_key_of

logger = logging.getLogger(__name__)

BPMN_RESOURCE = "claims-processing-c8.bpmn"
BPMN_PATH = Path(__file__).parent / "resources" / BPMN_RESOURCE

DEFAULT_FLOW_NODE = "Task_AdjusterReview"

STATUS_FLOW_NODE: Dict[ClaimStatus, str] = {
    ClaimStatus.SUBMITTED: "Task_CalculateRiskScore",
    ClaimStatus.UNDER_REVIEW: "Task_AdjusterReview",
    ClaimStatus.PENDING_DOCUMENTS: "Event_WaitForDocuments",
    ClaimStatus.APPROVED: "Task_GenerateSettlement",
    ClaimStatus.INVESTIGATION: "Task_InvestigatorReview",
    ClaimStatus.DENIED: "End_ClaimDenied",
    ClaimStatus.PAID: "End_ClaimPaid",
}

# Task variables that carry a reviewer's decision, in lookup order.
DECISION_VARIABLES = ("adjusterDecision", "reviewDecision", "managerDecision", "investigationOutcome")

DECISION_STATUS: Dict[str, ClaimStatus] = {
    "approve": ClaimStatus.APPROVED,
    "approved": ClaimStatus.APPROVED,
    "CLEARED": ClaimStatus.APPROVED,
    "deny": ClaimStatus.DENIED,
    "FRAUD_CONFIRMED": ClaimStatus.DENIED,
    "escalate": ClaimStatus.ESCALATED,
    "request_more_docs": ClaimStatus.PENDING_DOCUMENTS,
}


class ClaimNotFound(AppError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def load_bpmn() -> str:
    return BPMN_PATH.read_text(encoding="utf-8")


def flow_node_for_status(status: Optional[ClaimStatus]) -> str:
    return STATUS_FLOW_NODE.get(status, DEFAULT_FLOW_NODE)


def decision_from_variables(variables: Optional[dict]) -> Optional[str]:
    for name in DECISION_VARIABLES:
        entry = (variables or {}).get(name)
        if isinstance(entry, dict) and entry.get("value"):
            return entry["value"]
    return None


def demo_tasks_for_claim(claim: Claim) -> List[dict]:
    process_key = claim.process_instance_key or f"demo-{claim.id}"
    if claim.status in (ClaimStatus.SUBMITTED, ClaimStatus.UNDER_REVIEW):
        return [
            {
                "id": f"task-{claim.id}-1",
                "name": "Adjuster Claim Review",
                "taskDefinitionId": "Task_AdjusterReview",
                "assignee": None,
                "candidateGroups": ["Claims_Adjusters"],
                "creationDate": _iso(claim.created_at) if claim.created_at else None,
                "processInstanceKey": process_key,
                "variables": {"claimId": claim.id, "estimatedAmount": claim.estimated_amount},
            }
        ]
    if claim.status == ClaimStatus.INVESTIGATION:
        return [
            {
                "id": f"task-{claim.id}-inv",
                "name": "SIU Investigation",
                "taskDefinitionId": "Task_InvestigatorReview",
                "assignee": None,
                "candidateGroups": ["SIU_Investigators"],
                "creationDate": _iso(claim.updated_at) if claim.updated_at else None,
                "processInstanceKey": process_key,
                "variables": {"claimId": claim.id, "riskScore": 85},
            }
        ]
    return []


class WorkflowService:
    def __init__(self, db: AsyncSession, camunda: CamundaClient):
        self.db = db
        self.camunda = camunda
        self.claims = ClaimService(db)

    async def status(self) -> dict:
        try:
            topology = await self.camunda.topology()
        except AppError as e:
            logger.warning("Camunda not reachable, reporting demo mode: %s", e.message)
            return {
                "success": True,
                "connected": False,
                "demo": True,
                "message": "Running in demo mode - Camunda server not connected",
                "config": self.camunda.urls,
            }
        return {"success": True, "connected": True, "topology": topology, "config": self.camunda.urls}

    async def deploy(self) -> dict:
        try:
            deployment = await self.camunda.deploy(BPMN_RESOURCE, BPMN_PATH.read_bytes())
        except AppError as e:
            logger.warning("BPMN deployment failed, returning demo deployment: %s", e.message)
            return {
                "success": True,
                "deployment": {
                    "key": "demo-deployment-123",
                    "processDefinitionKey": self.camunda.process_definition_key,
                    "message": "Demo mode - Camunda server not connected",
                },
                "demo": True,
            }
        return {"success": True, "deployment": deployment}

    async def start_process(self, claim_id: str, variables: Optional[dict] = None) -> dict:
        claim = await self.claims.get(claim_id) if claim_id else None
        payload = {"claimId": {"value": claim_id, "type": "String"}}
        payload.update(variables or {})
        try:
            response = await self.camunda.start_process(payload)
        except AppError as e:
            logger.warning("Process start for claim %s failed, using demo process: %s", claim_id, e.message)
            key = demo_process_key()
            if claim:
                # The demo fallback still marks the workflow as started.
                await self.claims.attach_process(claim, key, WorkflowStatus.STARTED)
            return {
                "success": True,
                "processInstance": {
                    "key": key,
                    "processDefinitionKey": self.camunda.process_definition_key,
                    "status": "ACTIVE",
                },
                "demo": True,
            }

        key = process_key_of(response)
        if claim and key:
            await self.claims.attach_process(claim, key, WorkflowStatus.STARTED)
        return {"success": True, "processInstance": response}

    async def get_process(self, process_key: str) -> dict:
        try:
            instance = await self.camunda.get_process_instance(process_key)
        except AppError as e:
            logger.warning("Process %s lookup failed, returning demo state: %s", process_key, e.message)
            return {
                "success": True,
                "processInstance": {
                    "key": process_key,
                    "processDefinitionKey": self.camunda.process_definition_key,
                    "status": "ACTIVE",
                    "startDate": _iso(_now() - timedelta(hours=1)),
                    "currentActivity": DEFAULT_FLOW_NODE,
                },
                "demo": True,
            }
        return {"success": True, "processInstance": instance}

    async def flow_nodes(self, claim_id: str) -> dict:
        claim = await self.claims.get(claim_id)
        if not claim or not claim.process_instance_key:
            raise ClaimNotFound("No process instance found for this claim")
        try:
            nodes = await self.camunda.get_flow_node_instances(claim.process_instance_key)
        except AppError as e:
            logger.warning("Flow nodes for claim %s unavailable, deriving from status: %s", claim_id, e.message)
            return {
                "success": True,
                "flowNodes": [
                    {"flowNodeId": flow_node_for_status(claim.status), "state": "ACTIVE", "startDate": _iso(_now())}
                ],
                "demo": True,
            }
        return {"success": True, "flowNodes": nodes}

    async def tasks(self, claim_id: str) -> dict:
        claim = await self.claims.get(claim_id)
        if not claim:
            logger.warning("Tasks requested for unknown claim %s, returning no tasks", claim_id)
            return {"success": True, "tasks": [], "demo": True}
        try:
            if not claim.process_instance_key:
                raise AppError("claim has no process instance")
            tasks = await self.camunda.search_tasks(claim.process_instance_key)
        except AppError as e:
            logger.warning("Tasklist search for claim %s failed, using demo tasks: %s", claim_id, e.message)
            return {"success": True, "tasks": demo_tasks_for_claim(claim), "demo": True}
        return {"success": True, "tasks": tasks}

    async def complete_task(self, task_id: str, variables: Optional[dict], claim_id: Optional[str], admin_name: Optional[str]) -> dict:
        try:
            result = await self.camunda.complete_task(task_id, variables)
        except AppError as e:
            logger.warning("Completing task %s failed, applying decision locally: %s", task_id, e.message)
            await self.apply_decision(claim_id, variables, admin_name)
            return {"success": True, "result": {"completed": True, "taskId": task_id}, "demo": True}
        return {"success": True, "result": result}

    async def apply_decision(self, claim_id: Optional[str], variables: Optional[dict], admin_name: Optional[str]) -> Optional[Claim]:
        """Mirror a task decision onto the claim row. Unknown decisions keep the status."""
        claim = await self.claims.get(claim_id) if claim_id else None
        if not claim or variables is None:
            return None
        decision = decision_from_variables(variables)
        # Only plain string decisions map to a status.
        new_status = DECISION_STATUS.get(decision, claim.status) if isinstance(decision, str) else claim.status
        record_status(
            claim,
            ClaimStatus(new_status),
            f"Task completed with decision: {decision}",
            updated_by=admin_name or "System",
        )
        await self.db.commit()
        await self.db.refresh(claim)
        return claim

    async def claim_task(self, task_id: str, assignee: str) -> dict:
        try:
            result = await self.camunda.claim_task(task_id, assignee)
        except AppError as e:
            logger.warning("Claiming task %s failed, returning demo result: %s", task_id, e.message)
            return {"success": True, "result": {"claimed": True, "assignee": assignee}, "demo": True}
        return {"success": True, "result": result}

    async def publish_message(self, name: str, correlation_key: Optional[str], variables: Optional[dict]) -> dict:
        try:
            result = await self.camunda.publish_message(name, correlation_key, variables)
        except AppError as e:
            logger.warning("Publishing message %s failed, returning demo result: %s", name, e.message)
            return {"success": True, "result": {"published": True, "messageName": name}, "demo": True}
        return {"success": True, "result": result}
