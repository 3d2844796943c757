import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.claims.models import ClaimStatus, WorkflowStatus
from src.claims.service import ClaimService
from src.workflow.service import (
    DEFAULT_FLOW_NODE,
    decision_from_variables,
    flow_node_for_status,
    load_bpmn,
)
from tests.support import FakeCamunda, admin_headers, make_claim


@pytest.fixture
def camunda_down(camunda: FakeCamunda) -> FakeCamunda:
    camunda.available = False
    return camunda


def test_packaged_bpmn_defines_claims_process():
    bpmn = load_bpmn()
    assert 'id="Process_ClaimsProcessing"' in bpmn
    for node in ("Task_CalculateRiskScore", "Task_AdjusterReview", "Task_InvestigatorReview", "End_ClaimPaid"):
        assert f'id="{node}"' in bpmn


def test_flow_node_for_status():
    assert flow_node_for_status(ClaimStatus.SUBMITTED) == "Task_CalculateRiskScore"
    assert flow_node_for_status(ClaimStatus.INVESTIGATION) == "Task_InvestigatorReview"
    assert flow_node_for_status(ClaimStatus.ESCALATED) == DEFAULT_FLOW_NODE
    assert flow_node_for_status(None) == DEFAULT_FLOW_NODE


def test_decision_from_variables():
    assert decision_from_variables({"adjusterDecision": {"value": "deny", "type": "String"}}) == "deny"
    assert decision_from_variables({"investigationOutcome": {"value": "CLEARED"}}) == "CLEARED"
    assert decision_from_variables({"comment": {"value": "n/a"}}) is None
    assert decision_from_variables(None) is None


@pytest.mark.asyncio
async def test_workflow_routes_require_admin(async_client: AsyncClient):
    response = await async_client.get("/api/admin/camunda/status")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_status_connected(async_client: AsyncClient):
    response = await async_client.get("/api/admin/camunda/status", headers=admin_headers())
    body = response.json()
    assert body["connected"] is True
    assert body["topology"] == {"brokers": [{"nodeId": 0}]}
    assert "demo" not in body


@pytest.mark.asyncio
async def test_status_demo_when_engine_down(async_client: AsyncClient, camunda_down: FakeCamunda):
    response = await async_client.get("/api/admin/camunda/status", headers=admin_headers())
    body = response.json()
    assert response.status_code == 200
    assert body["connected"] is False
    assert body["demo"] is True
    assert body["config"]["tasklistUrl"] == "http://tasklist"


@pytest.mark.asyncio
async def test_deploy_sends_packaged_bpmn(async_client: AsyncClient, camunda: FakeCamunda):
    response = await async_client.post("/api/admin/camunda/deploy", headers=admin_headers())
    assert response.json()["deployment"]["key"] == "2251799813685249"
    assert ("deploy", "claims-processing-c8.bpmn") in camunda.calls


@pytest.mark.asyncio
async def test_deploy_demo_when_engine_down(async_client: AsyncClient, camunda_down: FakeCamunda):
    response = await async_client.post("/api/admin/camunda/deploy", headers=admin_headers())
    body = response.json()
    assert body["demo"] is True
    assert body["deployment"]["key"] == "demo-deployment-123"


@pytest.mark.asyncio
async def test_start_process_attaches_key(async_client: AsyncClient, db_session: AsyncSession):
    await make_claim(db_session, "CLM-1-AAAA")

    response = await async_client.post(
        "/api/admin/camunda/start-process",
        json={"claimId": "CLM-1-AAAA", "variables": {"priority": {"value": "high", "type": "String"}}},
        headers=admin_headers(),
    )
    assert response.json()["processInstance"]["processInstanceKey"] == 2251799813690001

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    await db_session.refresh(claim)
    assert claim.process_instance_key == "2251799813690001"
    assert claim.workflow_status == WorkflowStatus.STARTED


@pytest.mark.asyncio
async def test_start_process_fallback_marks_started(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA")

    response = await async_client.post(
        "/api/admin/camunda/start-process", json={"claimId": "CLM-1-AAAA"}, headers=admin_headers()
    )
    body = response.json()
    assert body["demo"] is True
    assert body["processInstance"]["status"] == "ACTIVE"

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    await db_session.refresh(claim)
    assert claim.process_instance_key == body["processInstance"]["key"]
    assert claim.process_instance_key.startswith("demo-process-")
    assert claim.workflow_status == WorkflowStatus.STARTED


@pytest.mark.asyncio
async def test_get_process_demo(async_client: AsyncClient, camunda_down: FakeCamunda):
    response = await async_client.get("/api/admin/camunda/process/123", headers=admin_headers())
    instance = response.json()["processInstance"]
    assert instance["key"] == "123"
    assert instance["currentActivity"] == "Task_AdjusterReview"


@pytest.mark.asyncio
async def test_flow_nodes_need_process_instance(async_client: AsyncClient, db_session: AsyncSession):
    await make_claim(db_session, "CLM-1-AAAA")

    response = await async_client.get("/api/admin/camunda/claim/CLM-1-AAAA/flow-nodes", headers=admin_headers())
    assert response.status_code == 404
    assert response.json()["detail"] == "No process instance found for this claim"


@pytest.mark.asyncio
async def test_flow_nodes_derived_from_status(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA", process_instance_key="42", status=ClaimStatus.INVESTIGATION)

    response = await async_client.get("/api/admin/camunda/claim/CLM-1-AAAA/flow-nodes", headers=admin_headers())
    body = response.json()
    assert body["demo"] is True
    assert body["flowNodes"][0]["flowNodeId"] == "Task_InvestigatorReview"


@pytest.mark.asyncio
async def test_tasks_searched_by_process_key(async_client: AsyncClient, db_session: AsyncSession, camunda: FakeCamunda):
    await make_claim(db_session, "CLM-1-AAAA", process_instance_key="42")

    response = await async_client.get("/api/admin/camunda/claim/CLM-1-AAAA/tasks", headers=admin_headers())
    assert response.json()["tasks"][0]["id"] == "task-9"
    assert ("search_tasks", "42") in camunda.calls


@pytest.mark.asyncio
async def test_demo_tasks_follow_claim_status(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA")
    await make_claim(db_session, "CLM-2-BBBB", status=ClaimStatus.INVESTIGATION)
    await make_claim(db_session, "CLM-3-CCCC", status=ClaimStatus.PAID)

    review = (await async_client.get("/api/admin/camunda/claim/CLM-1-AAAA/tasks", headers=admin_headers())).json()
    assert review["demo"] is True
    assert review["tasks"][0]["taskDefinitionId"] == "Task_AdjusterReview"
    assert review["tasks"][0]["processInstanceKey"] == "demo-CLM-1-AAAA"

    siu = (await async_client.get("/api/admin/camunda/claim/CLM-2-BBBB/tasks", headers=admin_headers())).json()
    assert siu["tasks"][0]["candidateGroups"] == ["SIU_Investigators"]

    done = (await async_client.get("/api/admin/camunda/claim/CLM-3-CCCC/tasks", headers=admin_headers())).json()
    assert done["tasks"] == []

    missing = await async_client.get("/api/admin/camunda/claim/CLM-404/tasks", headers=admin_headers())
    assert missing.status_code == 200
    assert missing.json() == {"success": True, "tasks": [], "demo": True}


@pytest.mark.asyncio
async def test_complete_task_forwards_variables(async_client: AsyncClient, db_session: AsyncSession, camunda: FakeCamunda):
    await make_claim(db_session, "CLM-1-AAAA")
    variables = {"adjusterDecision": {"value": "approve", "type": "String"}}

    response = await async_client.post(
        "/api/admin/camunda/task/task-9/complete",
        json={"claimId": "CLM-1-AAAA", "variables": variables},
        headers=admin_headers(),
    )
    assert response.json()["result"]["taskState"] == "COMPLETED"
    assert ("complete_task", "task-9", variables) in camunda.calls

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    assert claim.status == ClaimStatus.SUBMITTED


@pytest.mark.asyncio
async def test_complete_task_fallback_applies_decision(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA")

    response = await async_client.post(
        "/api/admin/camunda/task/task-CLM-1-AAAA-1/complete",
        json={"claimId": "CLM-1-AAAA", "variables": {"adjusterDecision": {"value": "approve", "type": "String"}}},
        headers=admin_headers(),
    )
    assert response.json() == {"success": True, "result": {"completed": True, "taskId": "task-CLM-1-AAAA-1"}, "demo": True}

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    await db_session.refresh(claim)
    assert claim.status == ClaimStatus.APPROVED
    assert claim.status_history[0]["status"] == "Approved"
    assert claim.status_history[0]["note"] == "Task completed with decision: approve"
    assert claim.status_history[0]["updatedBy"] == "Admin User"
    assert len(claim.status_history) == 2


@pytest.mark.asyncio
async def test_unknown_decision_keeps_status(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA", status=ClaimStatus.UNDER_REVIEW)

    await async_client.post(
        "/api/admin/camunda/task/t1/complete",
        json={"claimId": "CLM-1-AAAA", "variables": {"adjusterDecision": {"value": "ponder"}}},
        headers=admin_headers(),
    )

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    await db_session.refresh(claim)
    assert claim.status == ClaimStatus.UNDER_REVIEW
    assert claim.status_history[0]["status"] == "Under Review"
    assert claim.status_history[0]["note"] == "Task completed with decision: ponder"


@pytest.mark.asyncio
async def test_structured_decision_value_keeps_status(
    async_client: AsyncClient, db_session: AsyncSession, camunda_down: FakeCamunda
):
    await make_claim(db_session, "CLM-1-AAAA", status=ClaimStatus.UNDER_REVIEW)

    response = await async_client.post(
        "/api/admin/camunda/task/t1/complete",
        json={"claimId": "CLM-1-AAAA", "variables": {"adjusterDecision": {"value": ["approve"]}}},
        headers=admin_headers(),
    )
    assert response.status_code == 200
    assert response.json()["demo"] is True

    claim = await ClaimService(db_session).get("CLM-1-AAAA")
    await db_session.refresh(claim)
    assert claim.status == ClaimStatus.UNDER_REVIEW
    assert claim.status_history[0]["status"] == "Under Review"
    assert len(claim.status_history) == 2


@pytest.mark.asyncio
async def test_claim_task_defaults_to_current_admin(async_client: AsyncClient, camunda: FakeCamunda):
    response = await async_client.post("/api/admin/camunda/task/task-9/claim", headers=admin_headers("ADM002"))
    assert response.json()["result"]["assignee"] == "ADM002"

    response = await async_client.post(
        "/api/admin/camunda/task/task-9/claim", json={"assignee": "ADM004"}, headers=admin_headers()
    )
    assert response.json()["result"]["assignee"] == "ADM004"


@pytest.mark.asyncio
async def test_claim_task_demo(async_client: AsyncClient, camunda_down: FakeCamunda):
    response = await async_client.post("/api/admin/camunda/task/task-9/claim", headers=admin_headers())
    assert response.json()["result"] == {"claimed": True, "assignee": "ADM001"}


@pytest.mark.asyncio
async def test_publish_message(async_client: AsyncClient, camunda: FakeCamunda):
    response = await async_client.post(
        "/api/admin/camunda/message",
        json={"messageName": "DocumentsReceived", "correlationKey": "CLM-1-AAAA"},
        headers=admin_headers(),
    )
    assert response.json()["result"] == {"key": "msg-1"}
    assert ("publish_message", "DocumentsReceived", "CLM-1-AAAA", None) in camunda.calls


@pytest.mark.asyncio
async def test_publish_message_demo(async_client: AsyncClient, camunda_down: FakeCamunda):
    response = await async_client.post(
        "/api/admin/camunda/message", json={"messageName": "DocumentsReceived"}, headers=admin_headers()
    )
    assert response.json()["result"] == {"published": True, "messageName": "DocumentsReceived"}


@pytest.mark.asyncio
async def test_bpmn_download(async_client: AsyncClient):
    response = await async_client.get("/api/admin/camunda/process-definition/bpmn", headers=admin_headers())
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "Process_ClaimsProcessing" in response.text
