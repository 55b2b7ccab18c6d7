"""Lead analysis and market intel agents for the dashboards.

Both are advisory: failures return fixed fallback text instead of errors.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from google.genai import types

from goagent.agents.base import BaseAgent, extract_grounding_sources
from goagent.agents.prompts.insights import (
    LEAD_ANALYSIS_FALLBACK,
    LEAD_ANALYSIS_TEMPLATE,
    MARKET_INTEL_FALLBACK,
    MARKET_INTEL_PROMPT,
)
from goagent.app.config import get_settings

logger = logging.getLogger(__name__)

MAX_INTEL_SOURCES = 3


class LeadAnalysisAgent(BaseAgent):
    """Summarizes a lead's opportunity, quality score and next steps."""

    def __init__(self, record_activity: bool = True):
        super().__init__(agent_name="lead_analysis", temperature=0.7, record_activity=record_activity)

    async def analyze(self, submission) -> str:
        if not get_settings().is_oracle_configured:
            return LEAD_ANALYSIS_FALLBACK

        prompt = LEAD_ANALYSIS_TEMPLATE.format(
            property_name=submission.property_name,
            property_type=submission.property_type or "unspecified",
            state_location=submission.state_location,
            no_of_units=submission.no_of_units,
            occupancy_rate=submission.occupancy_rate,
            interest_level=submission.interest_level,
            features=", ".join(submission.features_interested or []) or "none noted",
            feedback=submission.feedback or "none",
        )
        result = await self.generate(prompt=prompt)
        if not result.ok or not (result.data or "").strip():
            logger.warning("[%s] Falling back for %s: %s", self.agent_name, submission.id, result.error)
            return LEAD_ANALYSIS_FALLBACK
        return result.data.strip()


@dataclass
class MarketIntel:
    text: str
    sources: list[dict] = field(default_factory=list)


class MarketIntelAgent(BaseAgent):
    """Grounded summary of current Nigerian real estate and prop-tech news."""

    _API_TIMEOUT = 30

    def __init__(self, client=None, record_activity: bool = True):
        super().__init__(agent_name="market_intel", temperature=0.4, record_activity=record_activity)
        self._client = client

    async def get_market_intel(self) -> MarketIntel:
        if self._client is None and not get_settings().is_oracle_configured:
            return MarketIntel(text=MARKET_INTEL_FALLBACK)

        prompt = MARKET_INTEL_PROMPT.format(year=datetime.now(timezone.utc).year)
        try:
            if self._client is None:
                from goagent.infra.gemini_client import get_client
                self._client = get_client()
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        tools=[types.Tool(google_search=types.GoogleSearch())],
                        temperature=self.temperature,
                    ),
                ),
                timeout=self._API_TIMEOUT,
            )
        except Exception as exc:
            logger.error("[%s] Market intel failed: %s", self.agent_name, exc)
            return MarketIntel(text=MARKET_INTEL_FALLBACK)

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            return MarketIntel(text=MARKET_INTEL_FALLBACK)
        return MarketIntel(text=text, sources=extract_grounding_sources(response)[:MAX_INTEL_SOURCES])
