"""Prompts for the lead analysis and market intel agents."""

LEAD_ANALYSIS_TEMPLATE = """As a Real Estate Growth Expert for EstateGO, analyze this property lead:
Property: {property_name} ({property_type})
Location: {state_location}
Units: {no_of_units}, Occupancy: {occupancy_rate}%
Interest Level: {interest_level}
Features of interest: {features}
Feedback: {feedback}

Provide a concise 3-sentence summary of the opportunity, a Lead Quality Score out of 100,
and 3 recommended next steps for the sales team.
"""

LEAD_ANALYSIS_FALLBACK = "Unable to generate AI analysis at this time."

MARKET_INTEL_PROMPT = (
    "What are the latest real estate market trends and property management news in Nigeria "
    "for {year}? Focus on prop-tech and estate management."
)

MARKET_INTEL_FALLBACK = (
    "Could not fetch latest market trends. Focus on high-occupancy estates in Lagos and Abuja."
)
