from sqlalchemy import Column, Date, String
from src.database import Base
from src.shared.models import TimestampMixin


class User(Base, TimestampMixin):
    """Portal member (policy holder)."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)  # e.g. USR001
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    policy_number = Column(String, nullable=True)
    member_since = Column(Date, nullable=True)
