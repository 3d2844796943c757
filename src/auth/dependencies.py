from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import models, security
from src.auth.admins import DEFAULT_ADMIN_ROLE, AdminDirectory, CurrentAdmin
from src.config import settings
from src.core.dependencies import get_admin_directory
from src.database import get_db

member_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", scheme_name="member")
admin_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/admin/auth/login", scheme_name="admin")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode(token: str, scope: str) -> dict:
    try:
        payload = security.decode_access_token(token)
    except JWTError:
        raise _credentials_exception()
    if payload.get("sub") is None or payload.get("scope") != scope:
        raise _credentials_exception()
    return payload


async def get_current_member(
    token: str = Depends(member_scheme),
    db: AsyncSession = Depends(get_db),
) -> models.User:
    payload = _decode(token, security.MEMBER_SCOPE)
    user = await db.get(models.User, payload["sub"])
    if user is None:
        raise _credentials_exception()
    return user


async def get_current_admin(
    token: str = Depends(admin_scheme),
    directory: AdminDirectory = Depends(get_admin_directory),
) -> CurrentAdmin:
    payload = _decode(token, security.ADMIN_SCOPE)
    account = directory.get_by_id(payload["sub"])
    if account is None:
        raise _credentials_exception()
    return CurrentAdmin(
        id=account.id,
        name=account.name,
        email=account.email,
        role=payload.get("role") or DEFAULT_ADMIN_ROLE,
    )
