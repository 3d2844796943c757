import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from src.gateway.configs import EXTRACTION_CONFIGS, FRAUD_PROMPT, SUMMARY_PROMPTS
from src.gateway.schemas import (
    AskResponse,
    ExtractionTypeInfo,
    ExtractResponse,
    FraudResponse,
    SummarizeResponse,
)
from src.storage.client import BoxClient

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _answer(body: Any) -> Any:
    if isinstance(body, dict):
        return body.get("answer")
    return None


class ExtractionService:
    """Runs the Box AI calls behind the gateway endpoints."""

    def __init__(self, box: BoxClient):
        self.box = box

    async def extract(self, file_id: str, extraction_type: str) -> ExtractResponse:
        config = EXTRACTION_CONFIGS[extraction_type]
        logger.info("Extracting %s data from file %s", extraction_type, file_id)

        body = await self.box.ai_extract_structured(file_id, [f.to_box_field() for f in config.fields])

        data = body
        ai_info = None
        if isinstance(body, dict):
            data = body.get("answer") or body
            ai_info = body.get("ai_agent_info")

        logger.info("Extraction successful for file %s", file_id)
        return ExtractResponse(
            file_id=file_id,
            extraction_type=extraction_type,
            timestamp=_now(),
            data=data,
            ai_info=ai_info,
        )

    async def ask(self, file_id: str, question: str) -> AskResponse:
        logger.info("Asking question about file %s: %s", file_id, question)
        body = await self.box.ai_ask(file_id, question)
        return AskResponse(file_id=file_id, question=question, answer=_answer(body), timestamp=_now())

    async def summarize(self, file_id: str, summary_type: Optional[str] = None) -> SummarizeResponse:
        prompt = SUMMARY_PROMPTS.get(summary_type or "", SUMMARY_PROMPTS["general"])
        body = await self.box.ai_ask(file_id, prompt)
        return SummarizeResponse(
            file_id=file_id,
            summary_type=summary_type or "general",
            summary=_answer(body),
            timestamp=_now(),
        )

    async def analyze_fraud(self, file_id: str) -> FraudResponse:
        body = await self.box.ai_ask(file_id, FRAUD_PROMPT)
        return FraudResponse(file_id=file_id, analysis=_answer(body), timestamp=_now())

    @staticmethod
    def list_types() -> List[ExtractionTypeInfo]:
        return [
            ExtractionTypeInfo(type=key, name=config.name, field_count=len(config.fields), fields=config.field_keys)
            for key, config in EXTRACTION_CONFIGS.items()
        ]
