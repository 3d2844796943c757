"""Staff accounts for the admin console.

Admins are not stored in the database. The directory is built once per
process from ``ADMIN_USERS`` (a JSON list of ``{id, name, email[, password]}``)
or, when that is empty, from the demo staff below. Accounts without their own
password use ``ADMIN_PASSWORD``.
"""
import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.auth import security
from src.config import Settings
from src.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = "adjuster"

DEMO_ADMINS: List[dict] = [
    {"id": "ADM001", "name": "Admin User", "email": "admin@suresafe.com"},
    {"id": "ADM002", "name": "Sarah Mitchell", "email": "adjuster@suresafe.com"},
    {"id": "ADM003", "name": "Michael Chen", "email": "supervisor@suresafe.com"},
    {"id": "ADM004", "name": "David Thompson", "email": "investigator@suresafe.com"},
    {"id": "ADM005", "name": "Jennifer Roberts", "email": "legal@suresafe.com"},
    {"id": "ADM006", "name": "Robert Williams", "email": "executive@suresafe.com"},
]


@dataclass(frozen=True)
class AdminAccount:
    id: str
    name: str
    email: str
    hashed_password: str


@dataclass(frozen=True)
class CurrentAdmin:
    id: str
    name: str
    email: str
    role: str


class AdminDirectory:
    def __init__(self, accounts: Iterable[AdminAccount]):
        self._by_email: Dict[str, AdminAccount] = {}
        self._by_id: Dict[str, AdminAccount] = {}
        for account in accounts:
            self._by_email[account.email.lower()] = account
            self._by_id[account.id] = account

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminDirectory":
        if settings.ADMIN_USERS:
            try:
                rows = json.loads(settings.ADMIN_USERS)
            except ValueError as e:
                raise ConfigurationError("ADMIN_USERS must be a JSON list", original_error=e)
        else:
            logger.warning("ADMIN_USERS not set, using the demo staff directory")
            rows = DEMO_ADMINS

        accounts = [
            AdminAccount(
                id=row["id"],
                name=row["name"],
                email=row["email"],
                hashed_password=security.get_password_hash(row.get("password") or settings.ADMIN_PASSWORD),
            )
            for row in rows
        ]
        return cls(accounts)

    def get_by_email(self, email: str) -> Optional[AdminAccount]:
        return self._by_email.get((email or "").lower())

    def get_by_id(self, admin_id: str) -> Optional[AdminAccount]:
        return self._by_id.get(admin_id)

    def authenticate(self, email: str, password: str) -> Optional[AdminAccount]:
        account = self.get_by_email(email)
        if not account:
            return None
        if not security.verify_password(password, account.hashed_password):
            return None
        return account
