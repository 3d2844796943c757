from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.admins import CurrentAdmin
from src.auth.dependencies import get_current_admin
from src.core.dependencies import get_camunda_client
from src.database import get_db
from src.workflow.client import CamundaClient
from src.workflow.schemas import ClaimTaskRequest, CompleteTaskRequest, PublishMessageRequest, StartProcessRequest
from src.workflow.service import ClaimNotFound, WorkflowService, load_bpmn

router = APIRouter(prefix="/admin/camunda", tags=["workflow"], dependencies=[Depends(get_current_admin)])


def get_workflow_service(
    db: AsyncSession = Depends(get_db),
    camunda: CamundaClient = Depends(get_camunda_client),
) -> WorkflowService:
    return WorkflowService(db, camunda)


@router.get("/status")
async def camunda_status(service: WorkflowService = Depends(get_workflow_service)):
    return await service.status()


@router.post("/deploy")
async def deploy_process(service: WorkflowService = Depends(get_workflow_service)):
    """Deploy the packaged claims BPMN to the engine."""
    return await service.deploy()


@router.post("/start-process")
async def start_process(payload: StartProcessRequest, service: WorkflowService = Depends(get_workflow_service)):
    return await service.start_process(payload.claim_id, payload.variables)


@router.get("/process/{process_key}")
async def get_process(process_key: str, service: WorkflowService = Depends(get_workflow_service)):
    return await service.get_process(process_key)


@router.get("/claim/{claim_id}/flow-nodes")
async def claim_flow_nodes(claim_id: str, service: WorkflowService = Depends(get_workflow_service)):
    try:
        return await service.flow_nodes(claim_id)
    except ClaimNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/claim/{claim_id}/tasks")
async def claim_tasks(claim_id: str, service: WorkflowService = Depends(get_workflow_service)):
    return await service.tasks(claim_id)


@router.post("/task/{task_id}/complete")
async def complete_task(
    task_id: str,
    payload: CompleteTaskRequest,
    admin: CurrentAdmin = Depends(get_current_admin),
    service: WorkflowService = Depends(get_workflow_service),
):
    return await service.complete_task(task_id, payload.variables, payload.claim_id, admin.name)


@router.post("/task/{task_id}/claim")
async def claim_task(
    task_id: str,
    payload: Optional[ClaimTaskRequest] = None,
    admin: CurrentAdmin = Depends(get_current_admin),
    service: WorkflowService = Depends(get_workflow_service),
):
    assignee = payload.assignee if payload else None
    return await service.claim_task(task_id, assignee or admin.id)


@router.post("/message")
async def publish_message(payload: PublishMessageRequest, service: WorkflowService = Depends(get_workflow_service)):
    return await service.publish_message(payload.message_name, payload.correlation_key, payload.variables)


@router.get("/process-definition/bpmn")
async def process_definition_bpmn():
    try:
        content = load_bpmn()
    except OSError:
        raise HTTPException(status_code=500, detail="Failed to load BPMN")
    return Response(content=content, media_type="application/xml")
