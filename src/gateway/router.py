import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.automation.client import N8nClient
from src.config import Settings
from src.core.dependencies import get_box_client, get_n8n_client, get_settings
from src.core.exceptions import AppError
from src.gateway.configs import EXTRACTION_CONFIGS
from src.gateway.schemas import (
    AskRequest,
    AskResponse,
    ExtractionTypesResponse,
    ExtractRequest,
    ExtractResponse,
    FraudRequest,
    FraudResponse,
    SummarizeRequest,
    SummarizeResponse,
)
from src.gateway.service import ExtractionService
from src.gateway.webhooks import handle_box_event, verify_signature
from src.storage.client import BoxClient

logger = logging.getLogger(__name__)

router = APIRouter()


def get_extraction_service(box: BoxClient = Depends(get_box_client)) -> ExtractionService:
    return ExtractionService(box)


def _bad_request(error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error, **extra})


def _upstream_failure(step: str, e: AppError) -> JSONResponse:
    logger.error("%s error: %s", step, e.message)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": e.message, "details": getattr(e, "body", None)},
    )


@router.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}


@router.post("/extract", response_model=ExtractResponse)
async def extract(payload: ExtractRequest, service: ExtractionService = Depends(get_extraction_service)):
    """Run structured extraction for one of the configured document types."""
    if not payload.file_id:
        return _bad_request("fileId is required")
    if not payload.extraction_type or payload.extraction_type not in EXTRACTION_CONFIGS:
        return _bad_request("Invalid extractionType", validTypes=list(EXTRACTION_CONFIGS))
    try:
        return await service.extract(payload.file_id, payload.extraction_type)
    except AppError as e:
        return _upstream_failure("Extraction", e)


@router.post("/ask", response_model=AskResponse)
async def ask(payload: AskRequest, service: ExtractionService = Depends(get_extraction_service)):
    if not payload.file_id or not payload.question:
        return _bad_request("fileId and question are required")
    try:
        return await service.ask(payload.file_id, payload.question)
    except AppError as e:
        return _upstream_failure("Ask", e)


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(payload: SummarizeRequest, service: ExtractionService = Depends(get_extraction_service)):
    if not payload.file_id:
        return _bad_request("fileId is required")
    try:
        return await service.summarize(payload.file_id, payload.summary_type)
    except AppError as e:
        return _upstream_failure("Summarize", e)


@router.post("/analyze-fraud", response_model=FraudResponse)
async def analyze_fraud(payload: FraudRequest, service: ExtractionService = Depends(get_extraction_service)):
    if not payload.file_id:
        return _bad_request("fileId is required")
    try:
        return await service.analyze_fraud(payload.file_id)
    except AppError as e:
        return _upstream_failure("Fraud analysis", e)


@router.get("/extraction-types", response_model=ExtractionTypesResponse)
async def extraction_types():
    return ExtractionTypesResponse(extraction_types=ExtractionService.list_types())


@router.post("/webhook/box")
async def box_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    n8n: N8nClient = Depends(get_n8n_client),
):
    """Receive Box webhook deliveries and hand file uploads to n8n."""
    body = await request.body()
    signature = request.headers.get("x-box-signature")
    if not verify_signature(body, signature, settings.BOX_WEBHOOK_PRIMARY_KEY, settings.BOX_WEBHOOK_SECONDARY_KEY):
        logger.warning("Invalid webhook signature")
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return _bad_request("Invalid JSON body")
    if not isinstance(payload, dict):
        return _bad_request("Invalid JSON body")

    try:
        await handle_box_event(payload, n8n)
    except AppError as e:
        logger.error("Webhook error: %s", e.message)
        return JSONResponse(status_code=500, content={"error": e.message})
    return {"received": True}
