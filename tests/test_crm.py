import json

import httpx
import pytest
from httpx import AsyncClient

from src.crm.client import SalesforceClient
from src.crm.schemas import LeadRequest
from src.crm.service import NOT_CONFIGURED_MESSAGE, LeadService, build_lead, lead_rating
from src.main import app
from tests.support import admin_headers, member_headers

INSTANCE = "https://suresafe.my.salesforce.com"


def _client(handler) -> SalesforceClient:
    return SalesforceClient(
        client_id="cid",
        client_secret="secret",
        username="ops@suresafe.com",
        password="pw",
        security_token="TOKEN",
        transport=httpx.MockTransport(handler),
    )


def _lead(**overrides) -> LeadRequest:
    values = {
        "claimId": "CLM-1",
        "claimType": "Auto Collision",
        "customerName": "John Smith",
        "customerEmail": "john.smith@email.com",
        "policyNumber": "POL-2024-001234",
        "upsellRecommendations": "Umbrella policy",
        "estimatedValue": 450,
    }
    values.update(overrides)
    return LeadRequest.model_validate(values)


@pytest.mark.parametrize(
    "value,rating",
    [(0, "Cold"), (200, "Cold"), (201, "Warm"), (400, "Warm"), (401, "Hot")],
)
def test_lead_rating(value, rating):
    assert lead_rating(value) == rating


def test_build_lead():
    lead = build_lead(_lead(customerName="Mary Ann Lee"))
    assert lead["FirstName"] == "Mary"
    assert lead["LastName"] == "Ann Lee"
    assert lead["Company"] == "Policy: POL-2024-001234"
    assert lead["LeadSource"] == "Box AI Analysis"
    assert lead["Rating"] == "Hot"
    assert "Upsell Opportunity from Claim CLM-1" in lead["Description"]


def test_build_lead_single_name():
    lead = build_lead(_lead(customerName="Cher", estimatedValue=10))
    assert (lead["FirstName"], lead["LastName"], lead["Rating"]) == ("Cher", "Customer", "Cold")


@pytest.mark.asyncio
async def test_not_configured():
    result = await LeadService(SalesforceClient()).create_lead(_lead())
    assert result == {"success": False, "message": NOT_CONFIGURED_MESSAGE}


@pytest.mark.asyncio
async def test_create_lead():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/services/oauth2/token":
            return httpx.Response(200, json={"access_token": "sf-token", "instance_url": INSTANCE})
        return httpx.Response(201, json={"id": "00Q5e00000AbCdE", "success": True, "errors": []})

    result = await LeadService(_client(handler)).create_lead(_lead())

    assert result == {"success": True, "leadId": "00Q5e00000AbCdE", "message": "Lead created successfully in Salesforce"}
    token_form = dict(httpx.QueryParams(seen[0].content.decode()))
    assert token_form["password"] == "pwTOKEN"
    assert str(seen[1].url) == f"{INSTANCE}/services/data/v59.0/sobjects/Lead"
    assert seen[1].headers["authorization"] == "Bearer sf-token"
    assert json.loads(seen[1].content)["Email"] == "john.smith@email.com"


@pytest.mark.asyncio
async def test_authentication_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    result = await LeadService(_client(handler)).create_lead(_lead())
    assert result == {"success": False, "message": "Failed to authenticate with Salesforce. Check credentials."}


@pytest.mark.asyncio
async def test_rejected_lead_reports_first_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/services/oauth2/token":
            return httpx.Response(200, json={"access_token": "sf-token", "instance_url": INSTANCE})
        return httpx.Response(400, json=[{"message": "Last Name required", "errorCode": "REQUIRED_FIELD_MISSING"}])

    result = await LeadService(_client(handler)).create_lead(_lead())
    assert result["success"] is False
    assert result["message"] == "Last Name required"
    assert result["errors"][0]["errorCode"] == "REQUIRED_FIELD_MISSING"


@pytest.mark.asyncio
async def test_create_lead_endpoint(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(app.state, "salesforce_client", SalesforceClient())

    response = await async_client.post(
        "/api/admin/salesforce/create-lead",
        json={"claimId": "CLM-1", "customerName": "John Smith", "estimatedValue": 100},
        headers=admin_headers(),
    )
    assert response.status_code == 200
    assert response.json()["message"] == NOT_CONFIGURED_MESSAGE

    response = await async_client.post("/api/admin/salesforce/create-lead", json={}, headers=member_headers())
    assert response.status_code == 401
