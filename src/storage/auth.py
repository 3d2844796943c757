"""Box application credentials and token acquisition.

Credentials are resolved in the same order the deployment targets provide
them: a base64 encoded app config, an inline JSON app config, a config file
on disk, and finally individual ``BOX_*`` environment variables.
"""
import base64
import json
import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from cryptography.hazmat.primitives import serialization
from jose import jwt

from src.config import Settings
from src.core.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

JWT_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
JWT_ALGORITHM = "RS512"
ASSERTION_TTL_SECONDS = 45


@dataclass
class BoxAuthConfig:
    client_id: str = ""
    client_secret: str = ""
    enterprise_id: str = ""
    jwt_key_id: str = ""
    private_key: str = ""
    passphrase: str = ""
    developer_token: str = ""

    @property
    def is_configured(self) -> bool:
        if self.developer_token:
            return True
        return bool(self.client_id and self.client_secret and self.enterprise_id)

    @property
    def uses_jwt(self) -> bool:
        return bool(self.jwt_key_id and self.private_key)

    @classmethod
    def from_app_config(cls, data: dict) -> "BoxAuthConfig":
        app_settings = data.get("boxAppSettings", {})
        app_auth = app_settings.get("appAuth", {})
        return cls(
            client_id=app_settings.get("clientID", ""),
            client_secret=app_settings.get("clientSecret", ""),
            enterprise_id=str(data.get("enterpriseID", "") or ""),
            jwt_key_id=app_auth.get("publicKeyID", ""),
            private_key=_decode_private_key(app_auth.get("privateKey", "")),
            passphrase=app_auth.get("passphrase", "") or "",
        )


def _decode_private_key(value: str) -> str:
    if value and "-----BEGIN" not in value:
        return base64.b64decode(value).decode("utf-8")
    return value


def load_box_auth_config(settings: Settings) -> BoxAuthConfig:
    if settings.BOX_CONFIG_JSON_BASE64:
        logger.info("Using Box config from base64 environment variable")
        data = json.loads(base64.b64decode(settings.BOX_CONFIG_JSON_BASE64).decode("utf-8"))
        config = BoxAuthConfig.from_app_config(data)
    elif settings.BOX_CONFIG_JSON:
        logger.info("Using Box config from environment variable")
        config = BoxAuthConfig.from_app_config(json.loads(settings.BOX_CONFIG_JSON))
    elif settings.BOX_CONFIG_PATH and os.path.exists(settings.BOX_CONFIG_PATH):
        logger.info("Using Box config from file: %s", settings.BOX_CONFIG_PATH)
        with open(settings.BOX_CONFIG_PATH, "r", encoding="utf-8") as fh:
            config = BoxAuthConfig.from_app_config(json.load(fh))
    else:
        config = BoxAuthConfig(
            client_id=settings.BOX_CLIENT_ID,
            client_secret=settings.BOX_CLIENT_SECRET,
            enterprise_id=settings.BOX_ENTERPRISE_ID,
            jwt_key_id=settings.BOX_JWT_KEY_ID,
            private_key=_decode_private_key(settings.BOX_PRIVATE_KEY),
            passphrase=settings.BOX_PASSPHRASE,
        )
    config.developer_token = settings.BOX_DEVELOPER_TOKEN
    return config


def _unencrypted_pem(private_key: str, passphrase: str) -> str:
    if not passphrase:
        return private_key
    key = serialization.load_pem_private_key(private_key.encode("utf-8"), password=passphrase.encode("utf-8"))
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def build_jwt_assertion(config: BoxAuthConfig, token_url: str, now: Optional[float] = None) -> str:
    issued = int(now if now is not None else time.time())
    claims = {
        "iss": config.client_id,
        "sub": config.enterprise_id,
        "box_sub_type": "enterprise",
        "aud": token_url,
        "jti": secrets.token_hex(32),
        "exp": issued + ASSERTION_TTL_SECONDS,
    }
    return jwt.encode(
        claims,
        _unencrypted_pem(config.private_key, config.passphrase),
        algorithm=JWT_ALGORITHM,
        headers={"kid": config.jwt_key_id},
    )


async def fetch_service_token(
    config: BoxAuthConfig,
    token_url: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[str, int]:
    """Return ``(access_token, expires_in)`` for the enterprise service account."""
    if config.developer_token:
        return config.developer_token, 3600
    if not config.is_configured:
        raise ConfigurationError("Box client not initialized")

    if config.uses_jwt:
        form = {
            "grant_type": JWT_GRANT,
            "assertion": build_jwt_assertion(config, token_url),
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
    else:
        form = {
            "grant_type": "client_credentials",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "box_subject_type": "enterprise",
            "box_subject_id": config.enterprise_id,
        }

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(token_url, data=form)
    except httpx.HTTPError as e:
        raise UpstreamError("Box", f"token request failed: {e}", original_error=e)

    if response.status_code >= 400:
        raise UpstreamError("Box", f"token request rejected: {response.text}", status_code=response.status_code)
    data = response.json()
    return data["access_token"], int(data.get("expires_in", 3600))
