"""
OpenAI-backed visit scorer.

Sends the rendered visit prompt with the analyst system instruction to the
chat completions endpoint in JSON mode and validates the reply with the
shared AnalysisResult validator. Every failure mode surfaces as
UpstreamError so the orchestrator can feed the circuit breaker. The client
itself never retries; a failed call goes straight to fallback.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from visit_analysis.config import ModelConfig, settings
from visit_analysis.errors import UpstreamError
from visit_analysis.prompts.prompt_templates import build_analysis_prompt
from visit_analysis.prompts.system_prompts import ANALYST_SYSTEM_PROMPT
from visit_analysis.schemas.analysis_schema import AnalysisResult, parse_analysis_result
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.utils import utc_now

logger = logging.getLogger(__name__)


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown fence some models add despite JSON mode."""
    clean = text.strip()
    if clean.startswith("```"):
        clean = clean.split("```")[1]
        if clean.startswith("json"):
            clean = clean[4:]
    return clean.strip()


class OpenAIScorer:
    """Scores a visit through the language-model completion endpoint."""

    def __init__(
        self,
        config: Optional[ModelConfig] = None,
        client: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config or settings.model
        self._client = client
        self._clock = clock

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.config.api_key:
                raise UpstreamError("OpenAI API key not configured")
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def score(self, request: VisitAnalysisRequest) -> AnalysisResult:
        """
        Score a visit with the model.

        Raises:
            UpstreamError: On missing credentials, transport or HTTP errors,
                timeouts, empty or non-JSON content, or a reply that fails
                schema validation.
        """
        client = self._get_client()
        prompt = build_analysis_prompt(request)

        try:
            response = await client.chat.completions.create(
                model=self.config.llm_model,
                messages=[
                    {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.config.llm_temperature,
                max_tokens=self.config.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError as e:
            raise UpstreamError(
                f"OpenAI request timed out after {self.config.timeout_seconds}s"
            ) from e
        except openai.APIStatusError as e:
            raise UpstreamError(f"OpenAI API error: {e.status_code} - {e.message}") from e
        except openai.APIError as e:
            raise UpstreamError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamError("No content received from OpenAI")

        return self._parse_response(content)

    def _parse_response(self, text: str) -> AnalysisResult:
        try:
            data = json.loads(_strip_code_fence(text))
        except json.JSONDecodeError as e:
            logger.error("Failed to parse OpenAI response: %s", text[:200])
            raise UpstreamError("Invalid JSON response from OpenAI") from e

        if not isinstance(data, dict):
            raise UpstreamError(
                f"Expected a JSON object from OpenAI, got {type(data).__name__}"
            )

        # generated_at is always stamped locally.
        data["generated_at"] = self._clock()
        try:
            return parse_analysis_result(data)
        except PydanticValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise UpstreamError(
                f"OpenAI response failed validation: {', '.join(fields)}"
            ) from e

    async def aclose(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
