from enum import Enum
from sqlalchemy import JSON, Column, Date, ForeignKey, Integer, Numeric, String, Text, Enum as SAEnum
from src.database import Base
from src.shared.models import TimestampMixin


class ClaimStatus(str, Enum):
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "Under Review"
    PENDING_DOCUMENTS = "Pending Documents"
    APPROVED = "Approved"
    INVESTIGATION = "Investigation"
    ESCALATED = "Escalated"
    DENIED = "Denied"
    PAID = "Paid"


class WorkflowStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"
    DEMO = "DEMO"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Claim(Base, TimestampMixin):
    """Insurance claim filed by a member through the portal."""
    __tablename__ = "claims"

    id = Column(String, primary_key=True)  # CLM-<epoch ms>-<4 hex>
    user_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    user_name = Column(String, nullable=False)
    policy_number = Column(String, nullable=True)
    claim_type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    incident_date = Column(Date, nullable=True)
    estimated_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    status = Column(
        SAEnum(ClaimStatus, native_enum=False, values_callable=_values, length=32),
        nullable=False,
        default=ClaimStatus.SUBMITTED,
    )
    status_history = Column(JSON, nullable=False, default=list)  # newest first
    box_folder_id = Column(String, nullable=True)
    documents = Column(JSON, nullable=False, default=list)  # [{id, name, size, type}]
    ai_extraction = Column(JSON, nullable=True)
    process_instance_key = Column(String, nullable=True)
    workflow_status = Column(
        SAEnum(WorkflowStatus, native_enum=False, values_callable=_values, length=16),
        nullable=False,
        default=WorkflowStatus.NOT_STARTED,
    )
    risk_score = Column(Integer, nullable=True)
    assigned_adjuster_id = Column(String, nullable=True)
    assigned_adjuster_name = Column(String, nullable=True)
