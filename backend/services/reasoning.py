"""
Reasoning client — turns a grounding payload into validated AI insights.

The model only ever receives the serialized grounding payload (aggregates,
no transaction rows) and must answer with JSON matching ``AiInsights``
exactly. Anything else is a ``ResponseParseError``.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from config import settings
from errors import ResponseParseError
from schemas import AiInsights, GroundingPayload
from services.grounding import payload_digest, serialize_payload
from services.llm_client import chat_completion
from services.rate_limiter import RateLimiter

logger = logging.getLogger("Cashflow.Reasoning")

SYSTEM_PROMPT = """You are a financial risk analyst.
Output ONLY valid JSON matching this schema:
{
  "executiveSummary": string,
  "keyDrivers": string[],
  "recommendations": [{"action": string, "impact": string, "effort": string, "timeframe": string}],
  "confidence": number,
  "notes": string[]
}
Do not invent numbers. Use only the provided data.
Keep executiveSummary under 4 sentences.
recommendations: 3 to 5 items, concrete actions.
confidence: a number between 0 and 1."""


@dataclass(frozen=True)
class ParseOutcome:
    """Either parsed insights or the reason parsing failed."""
    insights: Optional[AiInsights] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.insights is not None


def parse_insights(content: Optional[str]) -> ParseOutcome:
    """Strictly parse a model answer into ``AiInsights``.

    Unknown keys, missing keys, wrong types (no string-to-number coercion) and
    out-of-range values are all rejected.
    """
    if not content or not content.strip():
        return ParseOutcome(error="empty response")
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        return ParseOutcome(error=f"invalid JSON: {e.msg}")
    if not isinstance(raw, dict):
        return ParseOutcome(error="expected a JSON object")
    try:
        return ParseOutcome(insights=AiInsights.model_validate_json(content, strict=True))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        return ParseOutcome(error=f"schema mismatch: {problems}")


class ReasoningClient:
    """Bounded, schema-constrained reasoning call behind the rate limiter."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        completion: Callable[..., str] = chat_completion,
        model: Optional[str] = None,
        temperature: float = settings.LLM_TEMPERATURE,
        max_tokens: int = settings.LLM_MAX_TOKENS,
    ):
        self.rate_limiter = rate_limiter
        self._completion = completion
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, payload: GroundingPayload) -> AiInsights:
        if not isinstance(payload, GroundingPayload):
            raise TypeError("ReasoningClient only accepts a GroundingPayload")

        grounded_json = serialize_payload(payload)
        digest = payload_digest(grounded_json)

        self.rate_limiter.acquire()
        started = time.time()
        logger.info("  🤖 Reasoning call for dataset %s (payload %s)", payload.dataset_id, digest[:12])
        content = self._completion(
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": grounded_json},
            ],
            deployment=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        logger.info("  ✅ Reasoning call finished in %.2fs", time.time() - started)

        outcome = parse_insights(content)
        if not outcome.ok:
            logger.warning("Reasoning response rejected for dataset %s: %s", payload.dataset_id, outcome.error)
            raise ResponseParseError(f"Reasoning response could not be parsed: {outcome.error}")
        return outcome.insights
