"""Market insight route for the dashboard panel."""

from fastapi import APIRouter, Depends

from goagent.agents.insight_agents import MarketIntelAgent
from goagent.app.routes.auth import require_signed_agreement
from goagent.domain.models import Profile
from goagent.domain.schemas import MarketIntelResponse, VerificationSource

router = APIRouter(prefix="/api/insights", tags=["insights"])


def get_market_intel_agent() -> MarketIntelAgent:
    return MarketIntelAgent()


@router.get("/market", response_model=MarketIntelResponse)
async def market_intel(
    user: Profile = Depends(require_signed_agreement),
    agent: MarketIntelAgent = Depends(get_market_intel_agent),
):
    intel = await agent.get_market_intel()
    return MarketIntelResponse(
        text=intel.text,
        sources=[VerificationSource(**s) for s in intel.sources],
    )
