import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import models, security
from src.auth.admins import DEFAULT_ADMIN_ROLE, AdminAccount
from src.config import settings

logger = logging.getLogger(__name__)

DEMO_MEMBERS = [
    {
        "id": "USR001",
        "name": "John Smith",
        "email": "john.smith@email.com",
        "password": "demo123",
        "policy_number": "POL-2024-001234",
        "member_since": date(2020, 3, 15),
    },
    {
        "id": "USR002",
        "name": "Sarah Johnson",
        "email": "sarah.johnson@email.com",
        "password": "demo123",
        "policy_number": "POL-2024-005678",
        "member_since": date(2019, 8, 22),
    },
]


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[models.User]:
        result = await self.db.execute(select(models.User).where(models.User.email == email))
        return result.scalars().first()

    async def authenticate_user(self, email: str, password: str) -> Optional[models.User]:
        user = await self.get_user_by_email(email)
        if not user:
            return None
        if not security.verify_password(password, user.hashed_password):
            return None
        return user

    async def seed_demo_members(self) -> int:
        """Insert the demo members when the users table is empty. Returns the number created."""
        count = await self.db.scalar(select(func.count()).select_from(models.User))
        if count:
            return 0
        for member in DEMO_MEMBERS:
            self.db.add(
                models.User(
                    id=member["id"],
                    name=member["name"],
                    email=member["email"],
                    hashed_password=security.get_password_hash(member["password"]),
                    policy_number=member["policy_number"],
                    member_since=member["member_since"],
                )
            )
        await self.db.commit()
        logger.info("Seeded %d demo members", len(DEMO_MEMBERS))
        return len(DEMO_MEMBERS)


def issue_member_token(user: models.User) -> str:
    return security.create_access_token(
        data={"sub": user.id, "scope": security.MEMBER_SCOPE},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def issue_admin_token(account: AdminAccount, role: Optional[str] = None) -> str:
    return security.create_access_token(
        data={"sub": account.id, "scope": security.ADMIN_SCOPE, "role": role or DEFAULT_ADMIN_ROLE},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
