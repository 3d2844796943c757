import logging

from fastapi import APIRouter, Depends, FastAPI, Request

from src.config import Settings, settings
from src.proxy.service import ProxyService

PROXIED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

router = APIRouter()


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


@router.get("/health")
async def health(request: Request):
    return {"status": "healthy", "target": request.app.state.proxy_service.target_url}


@router.api_route("/webhook/{path:path}", methods=PROXIED_METHODS)
@router.api_route("/api/{path:path}", methods=PROXIED_METHODS)
@router.api_route("/rest/{path:path}", methods=PROXIED_METHODS)
async def proxy(path: str, request: Request, service: ProxyService = Depends(get_proxy_service)):
    return await service.forward(request)


def create_app(app_settings: Settings = settings) -> FastAPI:
    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=f"{app_settings.PROJECT_NAME} n8n Proxy", version=app_settings.VERSION, docs_url=None, redoc_url=None)
    app.state.proxy_service = ProxyService(app_settings.N8N_TARGET_URL, timeout=app_settings.HTTP_TIMEOUT)
    app.include_router(router)
    return app


app = create_app()
