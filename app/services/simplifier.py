"""
Prescription simplification service for HealthSpeak API.

Orchestrates the two ways of explaining a prescription:
- the external AI provider, when one is configured and answers usefully
- the local rule-based pipeline (entity extraction, dictionary
  normalization, templated explanation), used otherwise

Given non-empty text a result is always produced; provider problems
only lower the confidence.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from app.core.dictionary import DEFAULT_DICTIONARY, TerminologyDictionary
from app.core.entity_extractor import EntitySet, dedupe, extract
from app.core.explanation_composer import (
    REMINDER_STEP,
    REMINDER_TITLE,
    InstructionStep,
    compose,
)
from app.core.llm_engine import LLMEngine, ProviderOutcome, get_llm_engine
from app.core.text_normalizer import normalize
from app.models.schemas import ResultSource
from app.utils.logger import get_logger

logger = get_logger("simplifier")


LOCAL_CONFIDENCE = 0.75
PROVIDER_TEXT_CONFIDENCE = 0.8


class InputError(ValueError):
    """Prescription text is missing or empty."""


@dataclass(frozen=True)
class SimplificationResult:
    """Plain-language explanation of one prescription."""

    plain_text: str
    steps: Tuple[InstructionStep, ...]
    entities: EntitySet
    confidence: float
    warnings: Tuple[str, ...]
    source: ResultSource = ResultSource.LOCAL

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys)."""
        return {
            "plainText": self.plain_text,
            "steps": [step.to_dict() for step in self.steps],
            "entities": self.entities.to_dict(),
            "confidence": self.confidence,
            "warnings": list(self.warnings),
            "source": self.source.value,
        }


def validate_input(raw_text: Any) -> str:
    """
    Check that raw text is usable.

    Raises:
        InputError: Text is absent, not a string, or blank
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise InputError("No text provided")
    return raw_text


class Simplifier:
    """
    Turns raw prescription text into a SimplificationResult.

    The dictionary is shared read-only state; the engine is the only
    component that performs I/O.
    """

    def __init__(
        self,
        engine: Optional[LLMEngine] = None,
        dictionary: TerminologyDictionary = DEFAULT_DICTIONARY
    ):
        self._engine = engine
        self.dictionary = dictionary

    @property
    def engine(self) -> LLMEngine:
        if self._engine is None:
            self._engine = get_llm_engine()
        return self._engine

    def simplify(self, raw_text: Any) -> SimplificationResult:
        """
        Simplify a prescription, trying the provider first.

        Args:
            raw_text: Unparsed prescription text

        Returns:
            SimplificationResult

        Raises:
            InputError: Text is absent or empty
        """
        text = validate_input(raw_text)
        start_time = time.time()

        outcome = self.engine.translate(text)
        result = self._resolve(text, outcome)

        self._log_result(result, start_time, outcome)
        return result

    async def simplify_async(self, raw_text: Any) -> SimplificationResult:
        """Async variant of :meth:`simplify`; the provider call has a deadline."""
        text = validate_input(raw_text)
        start_time = time.time()

        outcome = await self.engine.translate_async(text)
        result = self._resolve(text, outcome)

        self._log_result(result, start_time, outcome)
        return result

    def simplify_locally(self, raw_text: Any) -> SimplificationResult:
        """Run only the rule-based pipeline."""
        return self._local_pipeline(validate_input(raw_text))

    def _resolve(self, text: str, outcome: ProviderOutcome) -> SimplificationResult:
        if outcome.payload is not None:
            return self._from_payload(text, outcome)
        if outcome.text is not None:
            return self._from_text(text, outcome.text)
        return self._local_pipeline(text)

    def _local_pipeline(self, text: str) -> SimplificationResult:
        entities = extract(text)
        plain_text = normalize(text, self.dictionary)
        steps, warnings = compose(entities, plain_text, self.dictionary)

        return SimplificationResult(
            plain_text=plain_text,
            steps=tuple(steps),
            entities=entities,
            confidence=LOCAL_CONFIDENCE,
            warnings=tuple(warnings),
            source=ResultSource.LOCAL
        )

    def _from_text(self, text: str, answer: str) -> SimplificationResult:
        """Wrap an unstructured provider answer as a single step."""
        return SimplificationResult(
            plain_text=answer,
            steps=(InstructionStep(title="Instructions", body=answer), REMINDER_STEP),
            entities=extract(text),
            confidence=PROVIDER_TEXT_CONFIDENCE,
            warnings=(),
            source=ResultSource.PROVIDER_TEXT
        )

    def _from_payload(self, text: str, outcome: ProviderOutcome) -> SimplificationResult:
        payload = outcome.payload

        steps = [InstructionStep(title=s.title, body=s.body) for s in payload.steps]
        if not steps or steps[-1].title != REMINDER_TITLE:
            steps.append(REMINDER_STEP)

        if payload.entities is not None:
            entities = EntitySet(
                drug=tuple(dedupe(payload.entities.drug)),
                dose=tuple(dedupe(payload.entities.dose)),
                freq=tuple(dedupe(payload.entities.freq)),
                route=tuple(dedupe(payload.entities.route)),
            )
        else:
            entities = extract(text)

        confidence = payload.confidence
        if confidence is None or not 0.0 < confidence <= 1.0:
            confidence = PROVIDER_TEXT_CONFIDENCE

        return SimplificationResult(
            plain_text=payload.plain_text,
            steps=tuple(steps),
            entities=entities,
            confidence=confidence,
            warnings=tuple(payload.warnings),
            source=ResultSource.PROVIDER
        )

    def _log_result(
        self,
        result: SimplificationResult,
        start_time: float,
        outcome: ProviderOutcome
    ) -> None:
        logger.info(
            "Simplification complete",
            source=result.source.value,
            confidence=result.confidence,
            steps=len(result.steps),
            warnings=len(result.warnings),
            fallback_reason=outcome.reason,
            processing_time_ms=int((time.time() - start_time) * 1000)
        )


# Singleton instance
simplifier = Simplifier()
