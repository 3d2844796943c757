from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field


class AIResultUpload(BaseModel):
    folder_id: Optional[str] = Field(None, validation_alias=AliasChoices("folderId", "folder_id"))
    claim_id: Optional[str] = Field(None, validation_alias=AliasChoices("claimId", "claim_id"))
    type: Optional[str] = None
    title: Optional[str] = None
    data: Any = None
    timestamp: Optional[str] = None
