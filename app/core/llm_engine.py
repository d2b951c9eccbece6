"""
HealthSpeak - AI Provider Client

Sends prescription text to an external language model (Google Gemini)
and parses its structured answer. Every failure (missing key, network,
auth, timeout, malformed answer) is reported as a fallback outcome
instead of an exception, so the caller can switch to the local
rule-based pipeline.
"""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from app.config import Settings, settings as default_settings
from app.models.schemas import ProviderPayload
from app.utils.logger import get_logger

logger = get_logger("llm_engine")


class ProviderError(Exception):
    """The external provider produced no usable answer."""


@dataclass(frozen=True)
class ProviderOutcome:
    """
    Result of one provider attempt.

    Exactly one of ``payload`` (structured JSON answer) or ``text``
    (unstructured answer) is set on success; on fallback both are None
    and ``reason`` says why.
    """

    payload: Optional[ProviderPayload] = None
    text: Optional[str] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.payload is not None or self.text is not None

    @classmethod
    def fallback(cls, reason: str) -> "ProviderOutcome":
        return cls(reason=reason)


SYSTEM_INSTRUCTION = (
    "You are a medical AI assistant that translates prescriptions into plain language."
)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_prompt(raw_text: str, max_chars: int) -> str:
    """Build the translation prompt for the language model."""
    return f"""Convert this medical prescription into clear, plain language that a patient can easily understand:

"{raw_text[:max_chars]}"

Please provide:
1. A simplified, conversational explanation
2. Step-by-step instructions
3. Extract medical entities (drugs, doses, frequencies, routes)
4. Identify any potential warnings or side effects
5. Rate your confidence (0-1) in the translation

Respond in JSON format:
{{
  "plainText": "simplified explanation",
  "steps": [{{"title": "step name", "body": "step description"}}],
  "entities": {{"drug": [], "dose": [], "freq": [], "route": []}},
  "confidence": 0.95,
  "warnings": ["warning messages"]
}}"""


def parse_response(content: Optional[str]) -> ProviderOutcome:
    """
    Interpret the model's answer.

    Non-JSON text is accepted as an unstructured answer. JSON that does
    not match the expected shape is a provider error.

    Raises:
        ProviderError: Empty answer or JSON of the wrong shape
    """
    if not content or not content.strip():
        raise ProviderError("Empty response from provider")

    stripped = _FENCE_PATTERN.sub("", content.strip())

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        return ProviderOutcome(text=content.strip())

    if not isinstance(data, dict):
        raise ProviderError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return ProviderOutcome(payload=ProviderPayload.model_validate(data))
    except ValidationError as e:
        raise ProviderError(f"Malformed provider response: {e.error_count()} errors") from e


class LLMEngine:
    """
    Language model integration for prescription translation.

    The client is created only when a provider is configured; without
    one every call returns a fallback outcome immediately.
    """

    def __init__(self, config: Optional[Settings] = None, client: Any = None):
        """
        Initialize the provider client.

        Args:
            config: Settings to use (defaults to application settings)
            client: Pre-built client exposing ``models.generate_content``
                and ``aio.models.generate_content``
        """
        self.config = config or default_settings
        self.client = client
        self.model = "rule-based-simplifier"
        self.provider = "local"

        if self.client is not None:
            self.provider = "gemini"
            self.model = self.config.gemini_model
        else:
            self._initialize_external_provider()

    def _initialize_external_provider(self) -> None:
        """Attempt to initialize the Gemini client."""
        if not self.config.provider_configured:
            logger.info("External provider not configured, using local simplification")
            return

        try:
            from google import genai
            from google.genai import types

            self.client = genai.Client(
                api_key=self.config.gemini_api_key,
                http_options=types.HttpOptions(
                    timeout=int(self.config.provider_timeout_seconds * 1000)
                )
            )
            self.provider = "gemini"
            self.model = self.config.gemini_model
            logger.info("External provider initialized", model=self.model)
        except Exception as e:
            logger.info("Using local simplification", reason=str(e))

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _generation_config(self) -> Any:
        from google.genai import types

        return types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=self.config.provider_temperature,
            max_output_tokens=self.config.provider_max_output_tokens,
            response_mime_type="application/json",
        )

    def translate(self, raw_text: str) -> ProviderOutcome:
        """
        Ask the provider to translate a prescription.

        Args:
            raw_text: Non-empty prescription text

        Returns:
            ProviderOutcome, a fallback when anything goes wrong
        """
        if not self.client:
            return ProviderOutcome.fallback("provider not configured")

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(raw_text, self.config.provider_max_input_chars),
                config=self._generation_config()
            )
            outcome = parse_response(response.text)
        except Exception as e:
            logger.info("External translation unavailable, using local", reason=str(e))
            return ProviderOutcome.fallback(str(e) or type(e).__name__)

        logger.info("External translation completed", structured=outcome.payload is not None)
        return outcome

    async def translate_async(self, raw_text: str) -> ProviderOutcome:
        """
        Async variant of :meth:`translate` with a hard deadline.

        The provider call runs as its own task. It is cancelled once
        ``provider_timeout_seconds`` elapses, and a cancelled or failed
        call yields a fallback outcome. Cancelling the caller still
        propagates, after cancelling the provider task.
        """
        if not self.client:
            return ProviderOutcome.fallback("provider not configured")

        try:
            call = asyncio.ensure_future(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=build_prompt(raw_text, self.config.provider_max_input_chars),
                    config=self._generation_config()
                )
            )
        except Exception as e:
            logger.info("External translation unavailable, using local", reason=str(e))
            return ProviderOutcome.fallback(str(e) or type(e).__name__)

        try:
            # asyncio.wait never raises the task's own exception or cancellation
            done, _ = await asyncio.wait({call}, timeout=self.config.provider_timeout_seconds)
        except asyncio.CancelledError:
            call.cancel()
            raise

        if not done:
            call.cancel()
            logger.info(
                "External translation timed out, using local",
                timeout_seconds=self.config.provider_timeout_seconds
            )
            return ProviderOutcome.fallback("provider timed out")

        if call.cancelled():
            logger.info("External translation cancelled, using local")
            return ProviderOutcome.fallback("provider call cancelled")

        try:
            outcome = parse_response(call.result().text)
        except Exception as e:
            logger.info("External translation unavailable, using local", reason=str(e))
            return ProviderOutcome.fallback(str(e) or type(e).__name__)

        logger.info("External translation completed", structured=outcome.payload is not None)
        return outcome

    def get_status(self) -> Dict[str, Any]:
        """Get provider status information."""
        return {
            "provider": self.provider,
            "model": self.model,
            "external_configured": self.client is not None
        }


# Module-level singleton
_engine_instance: Optional[LLMEngine] = None


def get_llm_engine() -> LLMEngine:
    """Get or create singleton engine instance."""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = LLMEngine()
    return _engine_instance
