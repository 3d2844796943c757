"""Request-scoped accessors for the integration clients built in the app factories."""
from fastapi import Request

from src.config import Settings
from src.automation.client import N8nClient
from src.storage.client import BoxClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_box_client(request: Request) -> BoxClient:
    return request.app.state.box_client


def get_n8n_client(request: Request) -> N8nClient:
    return request.app.state.n8n_client


def get_camunda_client(request: Request):
    return request.app.state.camunda_client


def get_salesforce_client(request: Request):
    return request.app.state.salesforce_client


def get_extraction_client(request: Request):
    return request.app.state.extraction_client


def get_admin_directory(request: Request):
    return request.app.state.admin_directory
