from fastapi import APIRouter

from src.auth.router import admin_router as admin_auth_router
from src.auth.router import router as auth_router
from src.claims.router import admin_router as admin_claims_router
from src.claims.router import router as claims_router
from src.crm.router import router as crm_router
from src.storage.router import admin_router as admin_box_router
from src.storage.router import router as box_router
from src.workflow.router import router as workflow_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_auth_router, prefix="/admin/auth", tags=["admin"])
api_router.include_router(claims_router)
api_router.include_router(admin_claims_router)
api_router.include_router(box_router)
api_router.include_router(admin_box_router)
api_router.include_router(workflow_router)
api_router.include_router(crm_router)
