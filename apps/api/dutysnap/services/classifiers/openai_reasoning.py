"""
Reasoning classification provider using the OpenAI Agents SDK

Accepts inline images, image URLs and free text, and returns an HS code together
with an AI-estimated retail value used when the caller supplies no product value.
"""

import asyncio
import time
import logging
from typing import Optional

from agents import Agent, Runner, set_default_openai_key

from ...core.config import settings
from ...core.openai_config import OpenAIAgentConfig, ReasoningClassificationOutput
from ...schemas.classification import ClassificationInput, ClassificationResult, Provider
from .base import ClassificationProvider, MalformedResponseError, MissingCredentialError, elapsed_ms


logger = logging.getLogger(__name__)


class OpenAIReasoningClassifier(ClassificationProvider):
    """Free-form reasoning classifier backed by an OpenAI agent with structured output"""

    provider = Provider.REASONING

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self._timeout_seconds = timeout_seconds or settings.PROVIDER_TIMEOUT_SECONDS
        self._agent: Optional[Agent] = None

        if self._api_key:
            set_default_openai_key(self._api_key)

    def _get_agent(self) -> Agent:
        if self._agent is None:
            self._agent = OpenAIAgentConfig.create_agent()
            logger.info(f"Created reasoning agent with model {settings.OPENAI_MODEL}")
        return self._agent

    async def classify(self, classification_input: ClassificationInput) -> ClassificationResult:
        """
        Classify a product from image and/or text

        Args:
            classification_input: Product signal (image bytes or URL, name, description, countries)

        Returns:
            ClassificationResult, error-populated on any failure
        """
        start_time = time.time()

        try:
            if not self._api_key:
                raise MissingCredentialError("OPENAI_API_KEY not configured")

            agent = self._get_agent()
            input_items = OpenAIAgentConfig.build_input_items(classification_input)

            result = await asyncio.wait_for(
                Runner.run(agent, input_items),
                timeout=self._timeout_seconds
            )
            latency_ms = elapsed_ms(start_time)

            output = getattr(result, "final_output", None)
            if isinstance(output, dict):
                output = ReasoningClassificationOutput.model_validate(output)
            if not isinstance(output, ReasoningClassificationOutput):
                raise MalformedResponseError(f"Unexpected output type: {type(output).__name__}")

            classification = self._to_result(output, latency_ms)
            logger.info(f"Reasoning classification: {classification.hs_code} "
                        f"(confidence: {classification.confidence:.2f}, "
                        f"product: {classification.product_identified}, "
                        f"time: {latency_ms:.0f}ms)")
            return classification

        except asyncio.TimeoutError:
            logger.error(f"Reasoning classification timed out after {self._timeout_seconds} seconds")
            return ClassificationResult.failed(
                self.provider,
                f"Request timed out after {self._timeout_seconds:g}s",
                elapsed_ms(start_time)
            )
        except MissingCredentialError as e:
            logger.warning(f"Reasoning provider unavailable: {str(e)}")
            return ClassificationResult.failed(self.provider, str(e), elapsed_ms(start_time))
        except Exception as e:
            logger.error(f"Reasoning classification failed: {str(e)}")
            return ClassificationResult.failed(self.provider, str(e) or type(e).__name__, elapsed_ms(start_time))

    def _to_result(self, output: ReasoningClassificationOutput, latency_ms: float) -> ClassificationResult:
        """Convert agent output into a ClassificationResult, deriving 6/8 digit fields from the full code"""
        estimated_value = output.estimated_value_eur
        if isinstance(estimated_value, bool) or not isinstance(estimated_value, (int, float)):
            # String estimates stay in raw_response for value resolution
            estimated_value = None

        try:
            return ClassificationResult.from_code(
                self.provider,
                output.hs_code,
                description=output.description,
                confidence=output.confidence,
                reasoning=output.reasoning or None,
                product_identified=output.product_identified or None,
                estimated_value=estimated_value,
                raw_response=output.model_dump(),
                latency_ms=latency_ms,
            )
        except ValueError as e:
            raise MalformedResponseError(f"Invalid HS code from reasoning provider: {output.hs_code!r}") from e
