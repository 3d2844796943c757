from datetime import date
from typing import Optional
from pydantic import BaseModel, EmailStr

from src.shared.schemas import CamelModel


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class AdminLogin(BaseModel):
    email: EmailStr
    password: str
    role: Optional[str] = None


class MemberResponse(CamelModel):
    id: str
    name: str
    email: str
    policy_number: Optional[str] = None
    member_since: Optional[date] = None


class AdminResponse(CamelModel):
    id: str
    name: str
    email: str
    role: str


class MemberLoginResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: MemberResponse


class AdminLoginResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: AdminResponse


class MemberSession(CamelModel):
    success: bool = True
    user: MemberResponse


class AdminSession(CamelModel):
    success: bool = True
    user: AdminResponse
