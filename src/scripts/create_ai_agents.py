"""
Create the Box AI Studio agents used by adjusters.

Agents that the API refuses are written to ``agent-<slug>.json`` so they
can be imported through the AI Studio UI instead.

Usage:
    python -m src.scripts.create_ai_agents [--output-dir DIR]
"""

import argparse
import asyncio
import json
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.config import settings
from src.core.exceptions import AppError
from src.storage.auth import load_box_auth_config
from src.storage.client import BoxClient

logger = logging.getLogger(__name__)

AGENT_MODEL = "azure__openai__gpt_4o_mini"
AGENT_TEMPERATURE = 0.3
AGENT_MAX_TOKENS = 4096
SUMMARY_FILE = "agents-summary.json"

CLAIMS_INTELLIGENCE_PROMPT = """You are the SureSafe Insurance Claims Intelligence Agent. Your role is to help claims adjusters analyze claim documents, extract relevant information, identify potential issues, and recommend next steps.

When analyzing documents:
1. Always extract key facts (who, what, when, where, how much)
2. Compare information across multiple documents for consistency
3. Identify any red flags or concerns
4. Reference specific documents and page numbers
5. Provide clear, actionable recommendations

You have access to:
- FNOL forms (First Notice of Loss)
- Police reports
- Medical records
- Repair estimates
- Photos
- Witness statements
- Policy documents

For each document analysis, provide:
- Document type and key identifier
- Extracted data points
- Consistency check with other documents
- Risk indicators (if any)
- Recommended actions

Always be thorough, accurate, and highlight anything requiring immediate attention."""

FRAUD_DETECTION_PROMPT = """You are the SureSafe Insurance Fraud Detection Agent. Your role is to analyze claims for potential fraud indicators and suspicious patterns.

Analyze for these fraud indicators:

1. **Timing Issues**: Friday losses, claims filed just before policy expiration, delayed reporting, loss shortly after coverage increase
2. **Documentation Concerns**: Missing documents, inconsistent dates, altered documents, poor quality copies
3. **Statement Inconsistencies**: Conflicting accounts between documents, changed stories over time, vague or rehearsed details
4. **Financial Red Flags**: Inflated damages, pre-existing damage, round dollar amounts, excessive claims for vehicle age
5. **Prior History**: Multiple prior claims, prior similar claims, known associates with fraud history
6. **Provider Concerns**: Unusual provider patterns, excessive treatment, known fraud-associated providers
7. **Social Media Indicators**: Posts contradicting injury claims, photos showing undamaged property
8. **Pattern Matching**: Similar claims by related parties, ring indicators

For each potential indicator:
- Rate severity: LOW / MEDIUM / HIGH
- Cite specific evidence from documents
- Recommend investigation steps

Always provide:
- Summary risk score (0-100)
- Risk level categorization (LOW: 0-25, MEDIUM: 26-50, HIGH: 51-75, CRITICAL: 76-100)
- Detailed justification
- Recommended SIU referral decision (Yes/No)"""

POLICY_COVERAGE_PROMPT = """You are the SureSafe Insurance Policy Coverage Agent. Your role is to help adjusters and underwriters understand policy coverage, limits, and exclusions.

When answering coverage questions:

1. **Quote Policy Language**: Always cite specific policy sections, quote relevant definitions, reference endorsements
2. **Explain Coverage**: Describe coverage in plain terms, identify applicable limits, note any sublimits
3. **Identify Deductibles**: Per-occurrence, aggregate, and special deductibles for specific perils
4. **Note Exclusions**: Policy exclusions, endorsement exclusions, conditions that limit coverage
5. **Reference Endorsements**: Added coverages, coverage modifications, special conditions
6. **Explain Conditions**: Duties after loss, cooperation requirements, timely notice provisions

For coverage disputes:
- Analyze the specific situation and facts
- Apply policy language to the facts
- Identify any ambiguities
- Recommend coverage position with reasoning
- Cite supporting case law concepts if relevant

Always cite policy sections and page numbers. When in doubt, note the ambiguity and recommend review by coverage counsel."""


@dataclass
class AgentDefinition:
    name: str
    description: str
    system_prompt: str
    capabilities: List[str]
    model: str = AGENT_MODEL

    @property
    def slug(self) -> str:
        return re.sub(r"\s+", "-", self.name.lower())

    def to_box_config(self) -> dict:
        return {
            "type": "ai_agent",
            "name": self.name,
            "description": self.description,
            "configuration": {
                "system_prompt": self.system_prompt,
                "model": self.model,
                "capabilities": self.capabilities,
                "temperature": AGENT_TEMPERATURE,
                "max_tokens": AGENT_MAX_TOKENS,
            },
        }


@dataclass
class AgentResult:
    name: str
    status: str  # created | config_saved | error
    id: Optional[str] = None
    config_file: Optional[str] = None
    error: Optional[str] = None


AI_AGENTS: List[AgentDefinition] = [
    AgentDefinition(
        name="Claims Intelligence Agent",
        description="Comprehensive claims analysis and document processing assistant",
        system_prompt=CLAIMS_INTELLIGENCE_PROMPT,
        capabilities=["document_qa", "multi_document", "summarization", "extraction"],
    ),
    AgentDefinition(
        name="Fraud Detection Agent",
        description="Analyzes claims for potential fraud indicators and suspicious patterns",
        system_prompt=FRAUD_DETECTION_PROMPT,
        capabilities=["document_qa", "multi_document", "analysis"],
    ),
    AgentDefinition(
        name="Policy Coverage Agent",
        description="Analyzes coverage questions and policy interpretation",
        system_prompt=POLICY_COVERAGE_PROMPT,
        capabilities=["document_qa", "multi_document", "analysis"],
    ),
]


async def create_ai_agents(box: BoxClient, agents: List[AgentDefinition], output_dir: Path) -> List[AgentResult]:
    user = await box.get_current_user()
    print(f"Connected as: {user.get('name')} ({user.get('login')})")

    results = []
    for agent in agents:
        print(f"Creating agent: {agent.name}")
        config = agent.to_box_config()
        try:
            response = await box.create_ai_agent(config)
        except AppError as e:
            print("  NOTE: Direct API creation not available, saving configuration for manual import")
            logger.info("AI agent API rejected %s: %s", agent.name, e.message)
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
                path = output_dir / f"agent-{agent.slug}.json"
                path.write_text(json.dumps(config, indent=2), encoding="utf-8")
            except OSError as write_error:
                results.append(AgentResult(name=agent.name, status="error", error=str(write_error)))
                continue
            print(f"  Saved to: {path}")
            results.append(AgentResult(name=agent.name, status="config_saved", config_file=str(path)))
            continue

        agent_id = (response or {}).get("id")
        print(f"  SUCCESS: Agent created ({agent_id})")
        results.append(AgentResult(name=agent.name, status="created", id=agent_id))
    return results


def write_summary(output_dir: Path, results: List[AgentResult], agents: List[AgentDefinition]) -> Path:
    summary = {
        "created": datetime.now(timezone.utc).isoformat(),
        "agents": [asdict(r) for r in results],
        "definitions": [agent.to_box_config() for agent in agents],
    }
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / SUMMARY_FILE
    path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return path


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the SureSafe Box AI Studio agents")
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    args = parser.parse_args(argv)

    box = BoxClient.from_settings(settings, load_box_auth_config(settings))
    if not box.is_configured:
        print("Box credentials are not configured (see BOX_CONFIG_* / BOX_CLIENT_*)")
        return 1

    try:
        results = await create_ai_agents(box, AI_AGENTS, args.output_dir)
    except AppError as e:
        print(f"Failed to connect to Box: {e.message}")
        return 1

    print("SUMMARY")
    for result in results:
        print(f"  {result.name}: {result.status}")
        if result.config_file:
            print(f"    Config: {result.config_file}")
    print("If configs were saved, import them via Box AI Studio -> Agents -> Create Agent")

    path = write_summary(args.output_dir, results, AI_AGENTS)
    print(f"Summary saved to: {path}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(asyncio.run(main()))
