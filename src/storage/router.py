import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from src.auth.dependencies import get_current_admin, get_current_member
from src.config import Settings
from src.core.dependencies import get_box_client, get_settings
from src.core.exceptions import AppError
from src.storage.client import BoxClient
from src.storage.schemas import AIResultUpload
from src.storage.service import ADMIN_SCOPES, MEMBER_SCOPES, StorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/box", tags=["box"], dependencies=[Depends(get_current_member)])
admin_router = APIRouter(prefix="/admin/box", tags=["admin"], dependencies=[Depends(get_current_admin)])


def get_storage_service(
    box: BoxClient = Depends(get_box_client),
    settings: Settings = Depends(get_settings),
) -> StorageService:
    return StorageService(box, metadata_template=settings.BOX_METADATA_TEMPLATE)


def _require_box(service: StorageService) -> None:
    if not service.box.is_configured:
        raise HTTPException(status_code=500, detail="Box client not initialized")


@router.get("/token")
async def member_token(service: StorageService = Depends(get_storage_service)):
    """Short-lived token for the Box UI Elements on the member dashboard."""
    _require_box(service)
    try:
        token = await service.ui_token(MEMBER_SCOPES)
    except AppError as e:
        logger.error("Fallback token fetch also failed: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to get access token")
    return {"success": True, **token}


@router.get("/folder/{folder_id}")
async def member_folder(folder_id: str, service: StorageService = Depends(get_storage_service)):
    _require_box(service)
    try:
        items = await service.folder_items(folder_id)
    except AppError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"success": True, "items": items}


@admin_router.get("/token")
async def admin_token(
    folder_id: Optional[str] = Query(None, alias="folderId"),
    service: StorageService = Depends(get_storage_service),
):
    """Admin UI token, scoped to ``folderId`` when one is given."""
    _require_box(service)
    try:
        if folder_id:
            token = await service.ui_token(ADMIN_SCOPES, service.folder_resource(folder_id))
        else:
            token = await service.service_token()
    except AppError as e:
        logger.error("Fallback token fetch also failed: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to get access token")
    return {"success": True, **token}


@admin_router.get("/folder/{folder_id}/files")
async def admin_folder_files(folder_id: str, service: StorageService = Depends(get_storage_service)):
    _require_box(service)
    try:
        files = await service.folder_files(folder_id)
    except AppError as e:
        logger.error("Failed to get folder files: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to get folder files")
    return {"success": True, "files": files}


@admin_router.post("/upload-ai-result")
async def upload_ai_result(payload: AIResultUpload, service: StorageService = Depends(get_storage_service)):
    """Save a Box AI answer as a classified text report in the claim folder."""
    _require_box(service)
    if not payload.folder_id or not payload.claim_id or not payload.type or payload.data in (None, ""):
        return JSONResponse(status_code=400, content={"success": False, "message": "Missing required fields"})
    try:
        return await service.upload_ai_result(
            folder_id=payload.folder_id,
            claim_id=payload.claim_id,
            analysis_type=payload.type,
            title=payload.title or payload.type,
            data=payload.data,
            timestamp=payload.timestamp,
        )
    except AppError as e:
        logger.error("Failed to upload AI result: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to upload AI result to Box")
