"""Verification Agent: Gemini Search grounded plausibility check of a drive report.

The agent is an oracle, not a verifier. It never raises to its caller: any
failure becomes an INCONCLUSIVE verdict with score 0 and a readable reason.
Repeated calls may disagree; nothing is cached.
"""

import asyncio
import logging
import math
import time
from typing import Optional

from google.genai import types

from goagent.agents.base import (
    BaseAgent,
    extract_grounding_sources,
    parse_json_payload,
    token_count,
)
from goagent.agents.prompts.verification import (
    VERIFICATION_FALLBACK_NOTE,
    VERIFICATION_SYSTEM_PROMPT,
    VERIFICATION_TEMPLATE,
)
from goagent.app.config import get_settings
from goagent.domain.enums import Verdict
from goagent.domain.errors import describe_error
from goagent.domain.schemas import VerificationResult, VerificationSource

logger = logging.getLogger(__name__)

MAX_SOURCES = 10
EMPTY_FINDINGS = "The verification service returned no findings."


def inconclusive(reason: str) -> VerificationResult:
    """Deterministic degraded result."""
    return VerificationResult(
        score=0,
        verdict=Verdict.INCONCLUSIVE,
        findings=reason or EMPTY_FINDINGS,
        sources=[],
    )


def _coerce_score(value) -> float:
    if isinstance(value, bool):
        return 0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(score):
        return 0
    return min(max(score, 0), 100)


def _coerce_verdict(value) -> Verdict:
    try:
        return Verdict(str(value).strip().upper())
    except ValueError:
        return Verdict.INCONCLUSIVE


def _merge_sources(*groups) -> list[VerificationSource]:
    seen = set()
    merged = []
    for group in groups:
        for item in group or []:
            if not isinstance(item, dict):
                continue
            uri = str(item.get("uri") or item.get("url") or "").strip()
            if not uri or uri in seen:
                continue
            seen.add(uri)
            title = str(item.get("title") or "Source").strip() or "Source"
            merged.append(VerificationSource(title=title, uri=uri))
    return merged[:MAX_SOURCES]


def oracle_schema() -> dict:
    """JSON schema the ungrounded call is constrained to (admin-only fields removed)."""
    schema = VerificationResult.model_json_schema()
    for field_name in ("manual_note", "verified_by"):
        schema["properties"].pop(field_name, None)
    return schema


def normalize_verdict(data: dict, grounding_sources: Optional[list[dict]] = None) -> VerificationResult:
    """Turn an oracle JSON object into a VerificationResult with safe values."""
    findings = data.get("findings")
    findings = findings.strip() if isinstance(findings, str) else ""
    sources = data.get("sources")
    return VerificationResult(
        score=_coerce_score(data.get("score")),
        verdict=_coerce_verdict(data.get("verdict")),
        findings=findings or EMPTY_FINDINGS,
        sources=_merge_sources(sources if isinstance(sources, list) else [], grounding_sources),
    )


class VerificationAgent(BaseAgent):
    """Asks Gemini, with Google Search grounding, whether a drive report is plausible."""

    _API_TIMEOUT = 45

    def __init__(self, client=None, record_activity: bool = True):
        super().__init__(
            agent_name="verification",
            temperature=0.2,
            record_activity=record_activity,
        )
        self._client = client

    def _get_client(self):
        if self._client is None:
            from goagent.infra.gemini_client import get_client
            self._client = get_client()
        return self._client

    def build_prompt(self, submission) -> str:
        return VERIFICATION_TEMPLATE.format(
            property_name=submission.property_name,
            property_address=submission.property_address,
            state_location=submission.state_location,
            property_type=submission.property_type or "unspecified",
            no_of_units=submission.no_of_units,
        )

    async def verify(self, submission) -> VerificationResult:
        """Return a verdict for ``submission``. Never raises."""
        if self._client is None and not get_settings().is_oracle_configured:
            logger.warning("[%s] GEMINI_API_KEY not set, skipping verification", self.agent_name)
            return inconclusive("Verification unavailable: the AI service is not configured.")

        prompt = self.build_prompt(submission)
        start_time = time.time()
        try:
            client = self._get_client()
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        system_instruction=VERIFICATION_SYSTEM_PROMPT,
                        tools=[types.Tool(google_search=types.GoogleSearch())],
                        temperature=self.temperature,
                    ),
                ),
                timeout=self._API_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.error("[%s] Timed out for submission %s", self.agent_name, submission.id)
            return inconclusive("Verification timed out. Try again later.")
        except Exception as exc:
            logger.error("[%s] Grounded call failed for %s: %s", self.agent_name, submission.id, exc)
            return inconclusive(f"Verification service error: {describe_error(exc)}")

        tokens_used = token_count(response)
        grounding_sources = extract_grounding_sources(response)
        parsed = parse_json_payload(getattr(response, "text", None))

        if parsed is None:
            logger.warning(
                "[%s] Grounded reply for %s was not JSON, retrying without search",
                self.agent_name, submission.id,
            )
            parsed = await self._ungrounded_attempt(prompt)
            if parsed is None:
                return inconclusive("Verification response could not be parsed.")
            grounding_sources = []

        result = normalize_verdict(parsed, grounding_sources)
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "[%s] Submission %s: %s (%.0f), %d sources, %dms",
            self.agent_name, submission.id, result.verdict.value, result.score,
            len(result.sources), latency_ms,
        )
        await self._safe_log_activity(
            action="verify",
            input_summary=prompt[:500],
            output_summary=f"{result.verdict.value} score={result.score:.0f}: {result.findings[:400]}",
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            submission_id=submission.id,
        )
        return result

    async def _ungrounded_attempt(self, prompt: str) -> Optional[dict]:
        """Single JSON-mode call without the search tool."""
        from goagent.infra.gemini_client import inline_defs

        try:
            client = self._get_client()
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model_name,
                    contents=f"{prompt}\n{VERIFICATION_FALLBACK_NOTE}",
                    config=types.GenerateContentConfig(
                        system_instruction=VERIFICATION_SYSTEM_PROMPT,
                        temperature=self.temperature,
                        response_mime_type="application/json",
                        response_schema=inline_defs(oracle_schema()),
                    ),
                ),
                timeout=self._API_TIMEOUT,
            )
        except Exception as exc:
            logger.error("[%s] Ungrounded attempt failed: %s", self.agent_name, exc)
            return None
        return parse_json_payload(getattr(response, "text", None))

