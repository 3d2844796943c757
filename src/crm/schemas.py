from typing import Optional
from pydantic import EmailStr

from src.shared.schemas import CamelModel


class LeadRequest(CamelModel):
    claim_id: Optional[str] = None
    claim_type: Optional[str] = None
    customer_name: str = ""
    customer_email: Optional[EmailStr] = None
    policy_number: Optional[str] = None
    upsell_recommendations: Optional[str] = None
    estimated_value: float = 0
    source: Optional[str] = None
