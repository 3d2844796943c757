from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import models, schemas
from src.auth.admins import DEFAULT_ADMIN_ROLE, AdminDirectory, CurrentAdmin
from src.auth.dependencies import get_current_admin, get_current_member
from src.auth.service import AuthService, issue_admin_token, issue_member_token
from src.core.dependencies import get_admin_directory
from src.database import get_db

router = APIRouter()
admin_router = APIRouter()


@router.post("/login", response_model=schemas.MemberLoginResponse)
async def login(
    login_data: schemas.UserLogin,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """JSON login endpoint, accepts {"email": "...", "password": "..."}."""
    user = await AuthService(db).authenticate_user(login_data.email, login_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return schemas.MemberLoginResponse(
        access_token=issue_member_token(user),
        user=schemas.MemberResponse.model_validate(user),
    )


@router.post("/logout")
async def logout():
    # Tokens are stateless; the client discards its copy.
    return {"success": True}


@router.get("/me", response_model=schemas.MemberSession)
async def me(user: models.User = Depends(get_current_member)):
    return schemas.MemberSession(user=schemas.MemberResponse.model_validate(user))


@admin_router.post("/login", response_model=schemas.AdminLoginResponse)
async def admin_login(
    login_data: schemas.AdminLogin,
    directory: AdminDirectory = Depends(get_admin_directory),
) -> Any:
    account = directory.authenticate(login_data.email, login_data.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    role = login_data.role or DEFAULT_ADMIN_ROLE
    return schemas.AdminLoginResponse(
        access_token=issue_admin_token(account, role),
        user=schemas.AdminResponse(id=account.id, name=account.name, email=account.email, role=role),
    )


@admin_router.post("/logout")
async def admin_logout():
    return {"success": True}


@admin_router.get("/me", response_model=schemas.AdminSession)
async def admin_me(admin: CurrentAdmin = Depends(get_current_admin)):
    return schemas.AdminSession(
        user=schemas.AdminResponse(id=admin.id, name=admin.name, email=admin.email, role=admin.role)
    )
