"""Base agent class for GoAgent AI agents.

Every agent inherits from BaseAgent, which provides:

- Gemini model access via the infra.gemini_client wrapper
- A standard AgentResult return type (Result pattern)
- Automatic latency measurement and token tracking
- Database activity logging via AgentLog records
"""

import asyncio
import json
import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class AgentResult:
    """Standard result type for all agent operations.

    Follows the Result pattern: every agent call returns an AgentResult
    instead of raising exceptions. Callers check ``result.ok`` to
    determine success or failure.

    Attributes:
        ok: True if the operation succeeded.
        data: The response payload (text, parsed JSON, etc.).
        error: Human-readable error description when ``ok`` is False.
        tokens_used: Total tokens consumed (prompt + completion).
        latency_ms: Wall-clock time for the operation in milliseconds.
    """

    ok: bool
    data: Any = None
    error: Optional[str] = None
    tokens_used: int = 0
    latency_ms: int = 0

    @classmethod
    def success(
        cls,
        data: Any,
        tokens_used: int = 0,
        latency_ms: int = 0,
    ) -> "AgentResult":
        """Create a successful result."""
        return cls(
            ok=True,
            data=data,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
        )

    @classmethod
    def failure(cls, error: str, latency_ms: int = 0) -> "AgentResult":
        """Create a failure result."""
        return cls(ok=False, error=error, latency_ms=latency_ms)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def parse_json_payload(text: Optional[str]) -> Optional[dict]:
    """Parse a JSON object out of model text.

    Tolerates markdown fences and prose around the object. Returns None when
    no JSON object can be recovered.
    """
    if not text or not isinstance(text, str):
        return None
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        parsed = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(cleaned[start:end + 1])
        except (json.JSONDecodeError, TypeError):
            return None
    return parsed if isinstance(parsed, dict) else None


def extract_grounding_sources(response) -> list[dict]:
    """Collect ``{title, uri}`` pairs from Google Search grounding metadata."""
    sources = []
    for candidate in (getattr(response, "candidates", None) or []):
        metadata = getattr(candidate, "grounding_metadata", None)
        if not metadata:
            continue
        for chunk in (getattr(metadata, "grounding_chunks", None) or []):
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None) if web else None
            if uri:
                sources.append({"title": getattr(web, "title", None) or "Source", "uri": uri})
    return sources


def token_count(response) -> int:
    usage = getattr(response, "usage_metadata", None)
    if not usage:
        return 0
    total = getattr(usage, "total_token_count", None)
    if total:
        return total
    prompt_tokens = getattr(usage, "prompt_token_count", 0) or 0
    completion_tokens = getattr(usage, "candidates_token_count", 0) or 0
    return prompt_tokens + completion_tokens


# ---------------------------------------------------------------------------
# Base agent
# ---------------------------------------------------------------------------

class BaseAgent:
    """Base class for all GoAgent AI agents.

    Example::

        class SummaryAgent(BaseAgent):
            def __init__(self):
                super().__init__(agent_name="summary")

            async def summarize(self, text: str) -> AgentResult:
                return await self.generate(prompt=f"Summarize: {text}")
    """

    def __init__(
        self,
        agent_name: str,
        model_name: Optional[str] = None,
        temperature: float = 0.7,
        record_activity: bool = True,
    ):
        """Initialise the agent.

        Args:
            agent_name: A short, unique name for this agent (used in logs).
            model_name: The Gemini model identifier. Defaults to settings.
            temperature: Generation temperature (0.0-1.0).
            record_activity: Write an AgentLog row per call.
        """
        from goagent.app.config import get_settings

        self.agent_name = agent_name
        self.model_name = model_name or get_settings().gemini_model
        self.temperature = temperature
        self.record_activity = record_activity

    # ------------------------------------------------------------------
    # Core generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_mode: bool = False,
        response_schema: dict | None = None,
    ) -> AgentResult:
        """Generate a single-turn response from Gemini.

        Returns:
            An ``AgentResult`` with the response text in ``data``.
        """
        start_time = time.time()
        try:
            from goagent.infra.gemini_client import get_model

            model = get_model(
                model_name=self.model_name,
                temperature=self.temperature,
                json_mode=json_mode,
                response_schema=response_schema,
                system_instruction=system_instruction,
            )

            response = await asyncio.wait_for(
                model.generate_content_async(prompt),
                timeout=120,
            )
            latency_ms = int((time.time() - start_time) * 1000)
            tokens_used = token_count(response)
            response_text = response.text

            logger.info(
                "[%s] Generation succeeded: tokens=%d, latency=%dms",
                self.agent_name,
                tokens_used,
                latency_ms,
            )

            await self._safe_log_activity(
                action="generate",
                input_summary=prompt[:500],
                output_summary=(response_text or "")[:500],
                tokens_used=tokens_used,
                latency_ms=latency_ms,
            )

            return AgentResult.success(
                data=response_text,
                tokens_used=tokens_used,
                latency_ms=latency_ms,
            )

        except Exception as exc:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "[%s] Generation failed after %dms: %s",
                self.agent_name,
                latency_ms,
                exc,
            )
            return AgentResult.failure(str(exc) or type(exc).__name__, latency_ms=latency_ms)

    # ------------------------------------------------------------------
    # Activity logging
    # ------------------------------------------------------------------

    async def log_activity(
        self,
        action: str,
        input_summary: str,
        output_summary: str,
        tokens_used: int,
        latency_ms: int,
        submission_id: Optional[str] = None,
    ) -> None:
        """Persist an ``AgentLog`` entry. Failures are logged, never raised."""
        try:
            from goagent.infra.database import async_session
            from goagent.domain.models import AgentLog

            async with async_session() as session:
                session.add(AgentLog(
                    id=str(uuid.uuid4()),
                    agent_name=self.agent_name,
                    action=action,
                    input_summary=input_summary,
                    output_summary=output_summary,
                    tokens_used=tokens_used,
                    latency_ms=latency_ms,
                    related_submission_id=submission_id,
                    created_at=datetime.now(timezone.utc),
                ))
                await session.commit()
                logger.debug(
                    "[%s] Activity logged: action=%s, tokens=%d",
                    self.agent_name,
                    action,
                    tokens_used,
                )

        except Exception as exc:
            # DB logging must never break agent operation
            logger.warning(
                "[%s] Failed to log activity to DB: %s", self.agent_name, exc
            )

    async def _safe_log_activity(
        self,
        action: str,
        input_summary: str,
        output_summary: str,
        tokens_used: int,
        latency_ms: int,
        submission_id: Optional[str] = None,
    ) -> None:
        """Schedule ``log_activity`` as a background task so it never blocks the caller."""
        if not self.record_activity:
            return
        asyncio.ensure_future(self.log_activity(
            action=action,
            input_summary=input_summary,
            output_summary=output_summary,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            submission_id=submission_id,
        ))
