"""
Comparison orchestrator

Runs the classification providers in order, substitutes input for the structured
provider, resolves the product value, fans out duty calculations, analyzes the
results and persists the aggregate.
"""

import asyncio
import logging
import time
import uuid
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from ...core.config import settings
from ...schemas.classification import (
    AggregateComparisonResult,
    ClassificationResult,
    ComparisonAnalysis,
    ComparisonStatistics,
    DutyResult,
    Provider,
    pair_key,
)
from ...schemas.comparison import ComparisonRequest
from ..classifiers import (
    ClassificationProvider,
    DutyProvider,
    OpenAIReasoningClassifier,
    ZonosClassifier,
    ZonosDutyCalculator,
)
from .code_matcher import build_match_matrix
from .result_store import ResultStore, create_result_store
from .scoring import determine_winner, score_providers
from .statistics import compute_statistics
from .substitution import derive_substitute_input, resolve_product_value
from .summary_service import SummaryGenerator


logger = logging.getLogger(__name__)


class ComparisonOrchestrator:
    """Sequences providers, duty fan-out, analysis and persistence for one comparison"""

    def __init__(
        self,
        reasoning_classifier: Optional[ClassificationProvider] = None,
        structured_classifier: Optional[ClassificationProvider] = None,
        duty_calculator: Optional[DutyProvider] = None,
        result_store: Optional[ResultStore] = None,
        summary_generator: Optional[SummaryGenerator] = None,
        reference_provider: Optional[Provider] = None
    ):
        self.reasoning_classifier = reasoning_classifier or OpenAIReasoningClassifier()
        self.structured_classifier = structured_classifier or ZonosClassifier()
        self.duty_calculator = duty_calculator or ZonosDutyCalculator()
        self.result_store = result_store or create_result_store()
        self.summary_generator = summary_generator or SummaryGenerator(
            significant_duty_difference=settings.SIGNIFICANT_DUTY_DIFFERENCE,
            confidence_gap_threshold=settings.CONFIDENCE_GAP_THRESHOLD,
        )
        self.reference_provider = reference_provider or Provider(settings.REFERENCE_PROVIDER)

        logger.info(f"ComparisonOrchestrator initialized (reference provider: {self.reference_provider.value})")

    async def run_comparison(self, request: ComparisonRequest) -> AggregateComparisonResult:
        """
        Run a full comparison and store the result

        Adapter failures are captured inside the result. An exception raised by a
        classification adapter propagates and nothing is stored.
        """
        start_time = time.time()
        comparison_id = str(uuid.uuid4())
        original_input = request.to_classification_input()
        providers = list(request.providers)
        classifications: Dict[Provider, ClassificationResult] = {}

        logger.info(f"Comparison {comparison_id} started for providers {[p.value for p in providers]}")

        # 1. Reasoning provider runs first so its output can feed the structured provider
        reasoning_result = None
        if Provider.REASONING in providers:
            reasoning_result = await self.reasoning_classifier.classify(original_input)
            classifications[Provider.REASONING] = reasoning_result
            self._log_classification(comparison_id, reasoning_result)

        # 2-3. Structured provider with original or substituted input
        if Provider.STRUCTURED in providers:
            structured_input = derive_substitute_input(original_input, reasoning_result)
            if structured_input is not original_input:
                logger.info(
                    f"Comparison {comparison_id}: structured input substituted "
                    f"(product_name={structured_input.product_name!r})"
                )
            structured_result = await self.structured_classifier.classify(structured_input)
            classifications[Provider.STRUCTURED] = structured_result
            self._log_classification(comparison_id, structured_result)

        # 4. Product value
        product_value, is_estimated_value = resolve_product_value(request.product_value, reasoning_result)
        if is_estimated_value:
            logger.info(f"Comparison {comparison_id}: using estimated product value {product_value}")

        # 5. Duty fan-out
        duty_calculations = None
        if request.calculate_duty and product_value is not None:
            duty_calculations = await self._calculate_duties(
                comparison_id, classifications, product_value, request
            )
        elif request.calculate_duty:
            logger.info(f"Comparison {comparison_id}: no product value available, skipping duty calculation")

        # 6. Analysis
        analysis = self.analyze(
            providers,
            classifications,
            duty_calculations,
            currency=request.currency,
            product_value=product_value,
            is_estimated_value=is_estimated_value,
            duty_requested=request.calculate_duty,
        )

        result = AggregateComparisonResult(
            id=comparison_id,
            input=original_input,
            providers=providers,
            product_value=product_value,
            is_estimated_value=is_estimated_value,
            currency=request.currency,
            classifications=classifications,
            duty_calculations=duty_calculations,
            analysis=analysis,
        )

        # 7. Persist
        await self.result_store.create(result)

        elapsed = (time.time() - start_time) * 1000
        logger.info(
            f"Comparison {comparison_id} completed in {elapsed:.0f}ms "
            f"(winner: {analysis.winner}, duty entries: {len(duty_calculations or {})})"
        )
        return result

    def _duty_jobs(
        self,
        classifications: Dict[Provider, ClassificationResult]
    ) -> List[Tuple[Provider, str, Provider]]:
        """(slot, hs_code, code_source) for every duty call to make"""
        jobs = [
            (provider, classifications[provider].hs_code, provider)
            for provider in Provider
            if provider in classifications and classifications[provider].succeeded
        ]

        # The structured slot always gets a duty figure when the reasoning code is usable
        structured = classifications.get(Provider.STRUCTURED)
        reasoning = classifications.get(Provider.REASONING)
        if (structured is None or not structured.succeeded) and reasoning is not None and reasoning.succeeded:
            jobs.append((Provider.STRUCTURED, reasoning.hs_code, Provider.REASONING))

        return jobs

    async def _calculate_duties(
        self,
        comparison_id: str,
        classifications: Dict[Provider, ClassificationResult],
        product_value: float,
        request: ComparisonRequest
    ) -> Dict[Provider, DutyResult]:
        jobs = self._duty_jobs(classifications)
        origin_country = request.origin_country or settings.DEFAULT_ORIGIN_COUNTRY

        logger.info(f"Comparison {comparison_id}: calculating {len(jobs)} duties with value {product_value}")

        tasks = [
            self.duty_calculator.calculate_duty(
                hs_code=hs_code,
                product_value=product_value,
                currency=request.currency,
                origin_country=origin_country,
                ship_to_country=request.ship_to_country,
                provider=slot,
                code_source=code_source,
            )
            for slot, hs_code, code_source in jobs
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        duty_calculations: Dict[Provider, DutyResult] = {}
        for (slot, hs_code, code_source), outcome in zip(jobs, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Comparison {comparison_id}: duty calculation for {slot.value} raised: {outcome}")
                outcome = DutyResult.failed(
                    provider=slot,
                    hs_code=hs_code,
                    product_value=product_value,
                    currency=request.currency,
                    error=str(outcome) or type(outcome).__name__,
                    code_source=code_source,
                )
            elif outcome.error:
                logger.warning(f"Comparison {comparison_id}: duty calculation for {slot.value} failed: {outcome.error}")
            duty_calculations[slot] = outcome

        return duty_calculations

    def analyze(
        self,
        providers: List[Provider],
        classifications: Dict[Provider, ClassificationResult],
        duty_calculations: Optional[Dict[Provider, DutyResult]] = None,
        currency: str = "EUR",
        product_value: Optional[float] = None,
        is_estimated_value: bool = False,
        duty_requested: bool = True
    ) -> ComparisonAnalysis:
        """Match matrices, scores, winner, duty deltas and notes"""
        exact, family = build_match_matrix(providers, classifications)
        scores = score_providers(providers, classifications, self.reference_provider)
        duty_difference = duty_differences(duty_calculations)

        notes = self.summary_generator.generate(
            providers,
            classifications,
            exact,
            family,
            duty_difference=duty_difference,
            duty_calculations=duty_calculations,
            currency=currency,
            product_value=product_value,
            is_estimated_value=is_estimated_value,
            duty_requested=duty_requested,
        )

        return ComparisonAnalysis(
            exact_match=exact,
            family_match=family,
            confidence_scores={
                provider: result.confidence
                for provider, result in classifications.items()
                if result.succeeded
            },
            scores=scores,
            reference_provider=self.reference_provider,
            duty_difference=duty_difference,
            winner=determine_winner(scores),
            notes=notes,
        )

    async def get_result(self, comparison_id: str) -> Optional[AggregateComparisonResult]:
        return await self.result_store.get(comparison_id)

    async def list_results(self) -> List[AggregateComparisonResult]:
        return await self.result_store.list()

    async def get_statistics(self) -> ComparisonStatistics:
        results = await self.result_store.list()
        return compute_statistics(results, self.reference_provider)

    def _log_classification(self, comparison_id: str, result: ClassificationResult) -> None:
        if result.error:
            logger.warning(f"Comparison {comparison_id}: {result.provider.value} failed: {result.error}")
        else:
            logger.info(
                f"Comparison {comparison_id}: {result.provider.value} returned {result.hs_code} "
                f"(confidence {result.confidence:.2f}, {result.latency_ms:.0f}ms)"
            )


def duty_differences(duty_calculations: Optional[Dict[Provider, DutyResult]]) -> Optional[Dict[str, float]]:
    """Absolute landed cost delta for each pair of successful duty entries

    Entries computed from another provider's code are left out, their delta
    would only compare a code with itself.
    """
    if duty_calculations is None:
        return None

    successful = [
        provider for provider in Provider
        if provider in duty_calculations
        and duty_calculations[provider].succeeded
        and duty_calculations[provider].code_source in (None, provider)
    ]
    return {
        pair_key(first, second): abs(
            duty_calculations[first].total_landed_cost - duty_calculations[second].total_landed_cost
        )
        for first, second in combinations(successful, 2)
    }


# Create singleton instance
comparison_orchestrator = ComparisonOrchestrator()
