import json
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.config import settings
from src.gateway.configs import EXTRACTION_CONFIGS, FRAUD_PROMPT, SUMMARY_PROMPTS, extraction_type_for_filename
from src.gateway.main import app as gateway_app
from src.gateway.webhooks import sign, verify_signature
from tests.support import FakeBox, FakeN8n

PRIMARY_KEY = "primary-signature-key"
SECONDARY_KEY = "secondary-signature-key"


@pytest.fixture
def gateway_box(monkeypatch) -> FakeBox:
    fake = FakeBox()
    monkeypatch.setattr(gateway_app.state, "box_client", fake)
    return fake


@pytest.fixture
def n8n(monkeypatch) -> FakeN8n:
    fake = FakeN8n()
    monkeypatch.setattr(gateway_app.state, "n8n_client", fake)
    return fake


@pytest.fixture
def signing_keys(monkeypatch):
    signed = settings.model_copy(update={"BOX_WEBHOOK_PRIMARY_KEY": PRIMARY_KEY, "BOX_WEBHOOK_SECONDARY_KEY": SECONDARY_KEY})
    monkeypatch.setattr(gateway_app.state, "settings", signed)
    return signed


@pytest_asyncio.fixture
async def gateway_client(gateway_box: FakeBox, n8n: FakeN8n) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=gateway_app), base_url="http://gateway") as client:
        yield client


def _event(trigger: str = "FILE.UPLOADED", name: str = "police_report_2026.pdf") -> bytes:
    return json.dumps({"trigger": trigger, "source": {"type": "file", "id": "9001", "name": name}}).encode()


def test_extraction_tables():
    assert set(EXTRACTION_CONFIGS) == {"fnol", "medical", "estimate", "police", "invoice", "insurance_claim"}
    assert len(EXTRACTION_CONFIGS["fnol"].fields) == 20
    for config in EXTRACTION_CONFIGS.values():
        keys = config.field_keys
        assert len(keys) == len(set(keys))


def test_date_fields_are_sent_as_strings():
    field = next(f for f in EXTRACTION_CONFIGS["fnol"].fields if f.key == "dateOfLoss")
    assert field.type == "date"
    assert field.to_box_field() == {
        "key": "dateOfLoss",
        "type": "string",
        "description": "Date when the incident occurred",
        "prompt": "What is the date when the incident occurred?",
    }


@pytest.mark.parametrize(
    "file_name,expected",
    [
        ("Medical_Records.pdf", "medical"),
        ("repair-estimate.pdf", "estimate"),
        ("police_report.pdf", "police"),
        ("INVOICE-22.pdf", "invoice"),
        ("claim-form.pdf", "fnol"),
        ("", "fnol"),
    ],
)
def test_extraction_type_for_filename(file_name, expected):
    assert extraction_type_for_filename(file_name) == expected


def test_verify_signature():
    body = _event()
    assert verify_signature(body, None, "", "") is True
    assert verify_signature(body, None, PRIMARY_KEY) is False
    assert verify_signature(body, sign(body, PRIMARY_KEY), PRIMARY_KEY, SECONDARY_KEY) is True
    assert verify_signature(body, sign(body, SECONDARY_KEY), PRIMARY_KEY, SECONDARY_KEY) is True
    assert verify_signature(body, sign(body, "other"), PRIMARY_KEY, SECONDARY_KEY) is False
    assert verify_signature(body + b" ", sign(body, PRIMARY_KEY), PRIMARY_KEY) is False


@pytest.mark.asyncio
async def test_health(gateway_client: AsyncClient):
    response = await gateway_client.get("/health")
    assert response.json()["status"] == "healthy"
    assert response.json()["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_extraction_types(gateway_client: AsyncClient):
    response = await gateway_client.get("/extraction-types")
    types = {t["type"]: t for t in response.json()["extractionTypes"]}
    assert types["fnol"]["fieldCount"] == 20
    assert types["fnol"]["name"] == "FNOL_Extraction"
    assert "claimantName" in types["fnol"]["fields"]


@pytest.mark.asyncio
async def test_extract_fnol(gateway_client: AsyncClient, gateway_box: FakeBox):
    response = await gateway_client.post("/extract", json={"fileId": 12345, "extractionType": "fnol"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["fileId"] == "12345"
    assert body["extractionType"] == "fnol"
    assert body["data"] == {"claimantName": "John Smith"}
    assert body["aiInfo"] == {"models": []}

    (_, file_id, fields), = [c for c in gateway_box.calls if c[0] == "ai_extract_structured"]
    assert file_id == "12345"
    assert len(fields) == 20


@pytest.mark.asyncio
async def test_extract_requires_file_id(gateway_client: AsyncClient):
    response = await gateway_client.post("/extract", json={"extractionType": "fnol"})
    assert response.status_code == 400
    assert response.json() == {"error": "fileId is required"}


@pytest.mark.asyncio
async def test_extract_rejects_unknown_type(gateway_client: AsyncClient):
    response = await gateway_client.post("/extract", json={"fileId": "1", "extractionType": "horoscope"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid extractionType"
    assert "police" in response.json()["validTypes"]


@pytest.mark.asyncio
async def test_extract_reports_box_failure(gateway_client: AsyncClient, gateway_box: FakeBox):
    gateway_box.fail.add("ai_extract_structured")
    response = await gateway_client.post("/extract", json={"fileId": "1", "extractionType": "invoice"})
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Box error: ai_extract_structured failed"
    assert body["details"] == {"message": "ai_extract_structured failed"}


@pytest.mark.asyncio
async def test_ask(gateway_client: AsyncClient, gateway_box: FakeBox):
    response = await gateway_client.post("/ask", json={"fileId": "7", "question": "Who was driving?"})
    assert response.json()["answer"] == "All good"
    assert ("ai_ask", "7", "Who was driving?") in gateway_box.calls

    response = await gateway_client.post("/ask", json={"fileId": "7"})
    assert response.status_code == 400
    assert response.json() == {"error": "fileId and question are required"}


@pytest.mark.asyncio
async def test_summarize_falls_back_to_general(gateway_client: AsyncClient, gateway_box: FakeBox):
    response = await gateway_client.post("/summarize", json={"fileId": "7", "summaryType": "haiku"})
    assert response.status_code == 200
    assert ("ai_ask", "7", SUMMARY_PROMPTS["general"]) in gateway_box.calls

    response = await gateway_client.post("/summarize", json={"fileId": "7", "summaryType": "medical"})
    assert response.json()["summaryType"] == "medical"
    assert ("ai_ask", "7", SUMMARY_PROMPTS["medical"]) in gateway_box.calls


@pytest.mark.asyncio
async def test_analyze_fraud(gateway_client: AsyncClient, gateway_box: FakeBox):
    gateway_box.ask_response = {"answer": '{"riskScore": 12}'}
    response = await gateway_client.post("/analyze-fraud", json={"file_id": "7"})
    assert response.json()["analysis"] == '{"riskScore": 12}'
    assert ("ai_ask", "7", FRAUD_PROMPT) in gateway_box.calls


@pytest.mark.asyncio
async def test_webhook_accepts_unsigned_without_keys(gateway_client: AsyncClient, n8n: FakeN8n):
    response = await gateway_client.post("/webhook/box", content=_event())
    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert len(n8n.triggered) == 1


@pytest.mark.asyncio
async def test_webhook_rejects_bad_signature(gateway_client: AsyncClient, n8n: FakeN8n, signing_keys):
    body = _event()
    response = await gateway_client.post("/webhook/box", content=body, headers={"X-Box-Signature": sign(body, "wrong")})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid signature"}

    response = await gateway_client.post("/webhook/box", content=body)
    assert response.status_code == 401
    assert n8n.triggered == []


@pytest.mark.asyncio
async def test_webhook_forwards_upload_to_n8n(gateway_client: AsyncClient, n8n: FakeN8n, signing_keys):
    body = _event(name="police_report_2026.pdf")
    response = await gateway_client.post("/webhook/box", content=body, headers={"X-Box-Signature": sign(body, SECONDARY_KEY)})
    assert response.status_code == 200

    (name, payload), = n8n.triggered
    assert name == "box-file-upload"
    assert payload["event"] == "file.uploaded"
    assert payload["fileId"] == "9001"
    assert payload["fileName"] == "police_report_2026.pdf"
    assert payload["extractionType"] == "police"
    assert payload["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_webhook_ignores_other_triggers(gateway_client: AsyncClient, n8n: FakeN8n):
    response = await gateway_client.post("/webhook/box", content=_event(trigger="FILE.DELETED"))
    assert response.json() == {"received": True}
    assert n8n.triggered == []


@pytest.mark.asyncio
async def test_webhook_without_n8n_url(gateway_client: AsyncClient, n8n: FakeN8n):
    n8n.webhook_url = ""
    response = await gateway_client.post("/webhook/box", content=_event())
    assert response.json() == {"received": True}
    assert n8n.triggered == []


@pytest.mark.asyncio
async def test_webhook_rejects_invalid_json(gateway_client: AsyncClient):
    response = await gateway_client.post("/webhook/box", content=b"{not json")
    assert response.status_code == 400
