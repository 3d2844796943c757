from typing import Any, Dict, Optional
from pydantic import AliasChoices, BaseModel, Field


class StartProcessRequest(BaseModel):
    claim_id: Optional[str] = Field(None, validation_alias=AliasChoices("claimId", "claim_id"))
    variables: Optional[Dict[str, Any]] = None


class CompleteTaskRequest(BaseModel):
    claim_id: Optional[str] = Field(None, validation_alias=AliasChoices("claimId", "claim_id"))
    variables: Optional[Dict[str, Any]] = None


class ClaimTaskRequest(BaseModel):
    assignee: Optional[str] = None


class PublishMessageRequest(BaseModel):
    message_name: str = Field(..., validation_alias=AliasChoices("messageName", "message_name"))
    correlation_key: Optional[str] = Field(None, validation_alias=AliasChoices("correlationKey", "correlation_key"))
    variables: Optional[Dict[str, Any]] = None
