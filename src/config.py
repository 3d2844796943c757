from typing import List
from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "SureSafe Claims Portal"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "suresafe"
    POSTGRES_PORT: int = 5432
    DATABASE_POOL_SIZE: int = 5
    DATABASE_URL: str = ""  # overrides the Postgres settings when set

    # Auth
    SECRET_KEY: str = "change-me"  # openssl rand -hex 32
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    ADMIN_USERS: str = ""  # JSON list of {id, name, email}; empty means the demo directory
    ADMIN_PASSWORD: str = "admin123"

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # Outbound HTTP
    HTTP_TIMEOUT: float = 30.0

    # Box
    BOX_API_URL: str = "https://api.box.com/2.0"
    BOX_UPLOAD_URL: str = "https://upload.box.com/api/2.0"
    BOX_TOKEN_URL: str = "https://api.box.com/oauth2/token"
    BOX_CONFIG_JSON: str = ""
    BOX_CONFIG_JSON_BASE64: str = ""
    BOX_CONFIG_PATH: str = ""
    BOX_CLIENT_ID: str = ""
    BOX_CLIENT_SECRET: str = ""
    BOX_ENTERPRISE_ID: str = ""
    BOX_JWT_KEY_ID: str = ""
    BOX_PRIVATE_KEY: str = ""  # PEM or base64 encoded PEM
    BOX_PASSPHRASE: str = ""
    BOX_DEVELOPER_TOKEN: str = ""
    BOX_WEBHOOK_PRIMARY_KEY: str = ""
    BOX_WEBHOOK_SECONDARY_KEY: str = ""
    CLAIMS_FOLDER_ID: str = "0"
    BOX_RELAY_WORKFLOW_ID: str = ""
    BOX_METADATA_TEMPLATE: str = "claimsClassification"

    # Extraction gateway
    EXTRACTION_API_URL: str = "http://localhost:8080"

    # Camunda 8
    CAMUNDA_REST_URL: str = "http://localhost:8088"
    CAMUNDA_OPERATE_URL: str = "http://localhost:8081"
    CAMUNDA_TASKLIST_URL: str = "http://localhost:8082"
    CAMUNDA_AUTH_URL: str = ""
    CAMUNDA_CLIENT_ID: str = ""
    CAMUNDA_CLIENT_SECRET: str = ""
    CAMUNDA_AUDIENCE: str = "zeebe.camunda.io"
    CAMUNDA_PROCESS_DEFINITION_KEY: str = "Process_ClaimsProcessing"

    # n8n
    N8N_TARGET_URL: str = "http://localhost:5678"
    N8N_WEBHOOK_URL: str = ""
    N8N_API_URL: str = "http://localhost:5678"
    N8N_API_KEY: str = ""

    # Provisioning scripts
    CLOUD_RUN_URL: str = "http://localhost:8080"
    BOX_WEBHOOK_FOLDER_ID: str = "0"

    # Salesforce
    SALESFORCE_CLIENT_ID: str = ""
    SALESFORCE_CLIENT_SECRET: str = ""
    SALESFORCE_USERNAME: str = ""
    SALESFORCE_PASSWORD: str = ""
    SALESFORCE_SECURITY_TOKEN: str = ""
    SALESFORCE_LOGIN_URL: str = "https://login.salesforce.com"
    SALESFORCE_API_VERSION: str = "v59.0"

    # Uploads
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 10
    ALLOWED_UPLOAD_TYPES: List[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
