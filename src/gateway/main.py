import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.automation.client import N8nClient
from src.config import Settings, settings
from src.storage.auth import load_box_auth_config
from src.storage.client import BoxClient


def create_app(app_settings: Settings = settings) -> FastAPI:
    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=f"{app_settings.PROJECT_NAME} Extraction Gateway",
        version=app_settings.VERSION,
    )

    app.state.settings = app_settings
    app.state.box_client = BoxClient.from_settings(app_settings, load_box_auth_config(app_settings))
    app.state.n8n_client = N8nClient.from_settings(app_settings)

    from src.gateway.router import router

    app.include_router(router, tags=["gateway"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
