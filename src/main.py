import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.auth.admins import AdminDirectory
from src.auth.service import AuthService
from src.claims.extraction import ExtractionGatewayClient
from src.config import Settings, settings
from src.crm.client import SalesforceClient
from src.database import AsyncSessionLocal, engine, init_db
from src.storage.auth import load_box_auth_config
from src.storage.client import BoxClient
from src.workflow.client import CamundaClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
        async with AsyncSessionLocal() as db:
            await AuthService(db).seed_demo_members()
        app.state.db_connected = True
        logger.info("Database ready")
    except (OSError, SQLAlchemyError) as e:
        logger.error("Database initialisation failed, continuing without it: %s", e)
    yield
    await engine.dispose()


def create_app(app_settings: Settings = settings) -> FastAPI:
    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.VERSION,
        openapi_url=f"{app_settings.API_PREFIX}/openapi.json",
        docs_url=f"{app_settings.API_PREFIX}/docs",
        redoc_url=f"{app_settings.API_PREFIX}/redoc",
        lifespan=lifespan,
    )

    # Integration clients live on app.state; tests swap them out.
    app.state.settings = app_settings
    app.state.db_connected = False
    app.state.box_client = BoxClient.from_settings(app_settings, load_box_auth_config(app_settings))
    app.state.camunda_client = CamundaClient.from_settings(app_settings)
    app.state.salesforce_client = SalesforceClient.from_settings(app_settings)
    app.state.extraction_client = ExtractionGatewayClient.from_settings(app_settings)
    app.state.admin_directory = AdminDirectory.from_settings(app_settings)

    # Routers
    from src.routes.api import api_router

    app.include_router(api_router, prefix=app_settings.API_PREFIX)

    # Set all CORS enabled origins
    if app_settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in app_settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health Check
    @app.get("/health")
    def health_check(request: Request):
        return {
            "status": "healthy",
            "boxConfigured": request.app.state.box_client.is_configured,
            "dbConnected": request.app.state.db_connected,
            "extractionApi": app_settings.EXTRACTION_API_URL,
        }

    return app


app = create_app()
