from typing import Annotated, Any, List, Optional
from pydantic import AliasChoices, BaseModel, BeforeValidator, Field

from src.shared.schemas import CamelModel


def _id_to_str(value: Any) -> Any:
    if isinstance(value, int):
        return str(value)
    return value


# Box ids are strings, but some callers send them as JSON numbers.
BoxId = Annotated[Optional[str], BeforeValidator(_id_to_str)]


class ExtractRequest(BaseModel):
    file_id: BoxId = Field(None, validation_alias=AliasChoices("fileId", "file_id"))
    extraction_type: Optional[str] = Field(None, validation_alias=AliasChoices("extractionType", "extraction_type"))


class AskRequest(BaseModel):
    file_id: BoxId = Field(None, validation_alias=AliasChoices("fileId", "file_id"))
    question: Optional[str] = None


class SummarizeRequest(BaseModel):
    file_id: BoxId = Field(None, validation_alias=AliasChoices("fileId", "file_id"))
    summary_type: Optional[str] = Field(None, validation_alias=AliasChoices("summaryType", "summary_type"))


class FraudRequest(BaseModel):
    file_id: BoxId = Field(None, validation_alias=AliasChoices("fileId", "file_id"))


class ExtractResponse(CamelModel):
    success: bool = True
    file_id: str
    extraction_type: str
    timestamp: str
    data: Any = None
    ai_info: Any = None

class AskResponse(CamelModel):
    success: bool = True
    file_id: str
    question: str
    answer: Any = None
    timestamp: str

class SummarizeResponse(CamelModel):
    success: bool = True
    file_id: str
    summary_type: str
    summary: Any = None
    timestamp: str

class FraudResponse(CamelModel):
    success: bool = True
    file_id: str
    analysis: Any = None
    timestamp: str

class ExtractionTypeInfo(CamelModel):
    type: str
    name: str
    field_count: int
    fields: List[str]

class ExtractionTypesResponse(CamelModel):
    extraction_types: List[ExtractionTypeInfo]
