"""Fake integration clients and token helpers shared by the test modules."""
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import security
from src.claims.models import Claim, ClaimStatus, WorkflowStatus
from src.claims.service import record_status
from src.core.exceptions import ConfigurationError, UpstreamError


class FakeBox:
    """In-memory stand-in for BoxClient. Operations listed in ``fail`` raise UpstreamError."""

    api_url = "https://api.box.com/2.0"

    def __init__(self, configured: bool = True, fail=(), fail_uploads=()):
        self.is_configured = configured
        self.fail = set(fail)
        self.fail_uploads = set(fail_uploads)
        self.calls: List[tuple] = []
        self.uploads: List[tuple] = []
        self.metadata: List[tuple] = []
        self.extract_response: dict = {"answer": {"claimantName": "John Smith"}, "ai_agent_info": {"models": []}}
        self.ask_response: dict = {"answer": "All good"}
        self.folder_entries: List[dict] = []

    def _call(self, name: str, *args):
        self.calls.append((name,) + args)
        if not self.is_configured:
            raise ConfigurationError("Box client not initialized")
        if name in self.fail:
            raise UpstreamError("Box", f"{name} failed", status_code=500, body={"message": f"{name} failed"})

    async def get_access_token(self) -> str:
        self._call("get_access_token")
        return "service-token"

    async def exchange_token(self, scopes, resource=None) -> dict:
        self._call("exchange_token", tuple(scopes), resource)
        return {"access_token": "downscoped-token", "expires_in": 1800}

    async def get_current_user(self) -> dict:
        self._call("get_current_user")
        return {"name": "Service Account", "login": "svc@suresafe.com"}

    async def create_folder(self, parent_id: str, name: str) -> dict:
        self._call("create_folder", parent_id, name)
        return {"id": "F100", "name": name}

    async def start_workflow(self, workflow_id: str, folder_id: str):
        self._call("start_workflow", workflow_id, folder_id)
        return None

    async def upload_file(self, folder_id: str, name: str, content: bytes) -> dict:
        self._call("upload_file", folder_id, name)
        if name in self.fail_uploads:
            raise UpstreamError("Box", f"upload of {name} failed", status_code=409)
        self.uploads.append((folder_id, name, content))
        return {"id": f"FILE-{len(self.uploads)}", "name": name}

    async def add_metadata(self, file_id: str, scope: str, template: str, data: dict) -> dict:
        self._call("add_metadata", file_id, scope, template)
        self.metadata.append((file_id, template, data))
        return data

    async def get_folder_items(self, folder_id: str, fields: Optional[str] = None, limit: int = 100) -> List[dict]:
        self._call("get_folder_items", folder_id)
        return self.folder_entries

    async def ai_extract_structured(self, file_id: str, fields: List[dict]) -> dict:
        self._call("ai_extract_structured", file_id, fields)
        return self.extract_response

    async def ai_ask(self, file_id: str, prompt: str) -> dict:
        self._call("ai_ask", file_id, prompt)
        return self.ask_response

    async def create_ai_agent(self, agent_config: dict) -> dict:
        self._call("create_ai_agent", agent_config["name"])
        return {"id": "agent-1"}

    async def list_webhooks(self) -> List[dict]:
        self._call("list_webhooks")
        return []

    async def create_webhook(self, target_id, target_type, address, triggers) -> dict:
        self._call("create_webhook", target_id, address, tuple(triggers))
        return {"id": f"WH-{len(self.calls)}"}


class FakeExtraction:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[tuple] = []

    async def extract(self, file_id: str, extraction_type: str = "insurance_claim"):
        self.calls.append((file_id, extraction_type))
        if self.fail:
            raise UpstreamError("Extraction API", "/extract returned 500", status_code=500)
        return {"success": True, "fileId": file_id, "data": {"claimantName": "John Smith"}}


class FakeCamunda:
    """Camunda stand-in; with ``available=False`` every call fails like an unreachable engine."""

    process_definition_key = "Process_ClaimsProcessing"
    urls = {"restUrl": "http://camunda", "operateUrl": "http://operate", "tasklistUrl": "http://tasklist"}

    def __init__(self, available: bool = True):
        self.available = available
        self.calls: List[tuple] = []

    def _call(self, name: str, *args):
        self.calls.append((name,) + args)
        if not self.available:
            raise UpstreamError("Camunda", f"{name} failed: connection refused")

    async def topology(self):
        self._call("topology")
        return {"brokers": [{"nodeId": 0}]}

    async def deploy(self, name: str, content: bytes):
        self._call("deploy", name)
        return {"key": "2251799813685249", "deployments": []}

    async def start_process(self, variables: Dict):
        self._call("start_process", variables)
        return {"processInstanceKey": 2251799813690001}

    async def get_process_instance(self, process_key: str):
        self._call("get_process_instance", process_key)
        return {"key": process_key, "state": "ACTIVE"}

    async def get_flow_node_instances(self, process_key: str):
        self._call("get_flow_node_instances", process_key)
        return [{"flowNodeId": "Task_AdjusterReview", "state": "ACTIVE"}]

    async def publish_message(self, name, correlation_key, variables):
        self._call("publish_message", name, correlation_key, variables)
        return {"key": "msg-1"}

    async def search_tasks(self, process_instance_key: str, state: str = "CREATED", page_size: int = 50):
        self._call("search_tasks", process_instance_key)
        return [{"id": "task-9", "taskDefinitionId": "Task_AdjusterReview"}]

    async def complete_task(self, task_id: str, variables):
        self._call("complete_task", task_id, variables)
        return {"id": task_id, "taskState": "COMPLETED"}

    async def claim_task(self, task_id: str, assignee: str):
        self._call("claim_task", task_id, assignee)
        return {"id": task_id, "assignee": assignee}


def member_headers(user_id: str = "USR001") -> Dict[str, str]:
    token = security.create_access_token({"sub": user_id, "scope": security.MEMBER_SCOPE})
    return {"Authorization": f"Bearer {token}"}


def admin_headers(admin_id: str = "ADM001", role: str = "adjuster") -> Dict[str, str]:
    token = security.create_access_token({"sub": admin_id, "scope": security.ADMIN_SCOPE, "role": role})
    return {"Authorization": f"Bearer {token}"}


async def make_claim(db: AsyncSession, claim_id: str = "CLM-1-AAAA", **overrides) -> Claim:
    values = dict(
        id=claim_id,
        user_id="USR001",
        user_name="John Smith",
        policy_number="POL-2024-001234",
        claim_type="Auto Collision",
        description="Rear-ended at a stop light",
        estimated_amount=2500.0,
        documents=[],
        workflow_status=WorkflowStatus.NOT_STARTED,
    )
    status = overrides.pop("status", ClaimStatus.SUBMITTED)
    values.update(overrides)
    claim = Claim(**values)
    record_status(claim, status, "Claim submitted by member")
    db.add(claim)
    await db.commit()
    await db.refresh(claim)
    return claim




class FakeN8n:
    def __init__(self, webhook_url: str = "http://n8n/webhook", workflows: Optional[List[dict]] = None):
        self.webhook_url = webhook_url
        self.workflows = workflows or []
        self.triggered: List[tuple] = []
        self.created: List[dict] = []
        self.updated: List[tuple] = []

    @property
    def webhooks_enabled(self) -> bool:
        return bool(self.webhook_url)

    async def trigger_webhook(self, name: str, payload: dict) -> None:
        self.triggered.append((name, payload))

    async def list_workflows(self) -> List[dict]:
        return self.workflows

    async def create_workflow(self, workflow: dict) -> dict:
        self.created.append(workflow)
        return {"id": f"new-{len(self.created)}", "name": workflow.get("name")}

    async def update_workflow(self, workflow_id: str, workflow: dict) -> dict:
        self.updated.append((workflow_id, workflow))
        return {"id": workflow_id, "name": workflow.get("name")}

    async def activate_workflow(self, workflow_id: str) -> bool:
        return True
