"""Unit tests for the comparison orchestrator."""

import asyncio
import time

import pytest
from unittest.mock import AsyncMock

from dutysnap.schemas.classification import ClassificationResult, DutyResult, Provider
from dutysnap.schemas.comparison import ComparisonRequest
from dutysnap.services.comparison.orchestrator import ComparisonOrchestrator, duty_differences
from dutysnap.services.comparison.result_store import InMemoryResultStore


@pytest.fixture
def result_store():
    return InMemoryResultStore()


@pytest.fixture
def orchestrator(mock_reasoning_classifier, mock_structured_classifier, mock_duty_calculator, result_store):
    return ComparisonOrchestrator(
        reasoning_classifier=mock_reasoning_classifier,
        structured_classifier=mock_structured_classifier,
        duty_calculator=mock_duty_calculator,
        result_store=result_store,
        reference_provider=Provider.STRUCTURED,
    )


class TestSequencing:

    async def test_exact_agreement_with_explicit_value(self, orchestrator, result_store, mock_duty_calculator,
                                                       classification_factory):
        orchestrator.reasoning_classifier.classify.return_value = classification_factory(
            Provider.REASONING, "640399", 0.9
        )
        orchestrator.structured_classifier.classify.return_value = classification_factory(
            Provider.STRUCTURED, "640399", 0.85
        )
        request = ComparisonRequest(product_name="Leather shoes", origin_country="US", product_value=250)

        result = await orchestrator.run_comparison(request)

        assert result.analysis.exact_match == {"reasoning_vs_structured": True}
        assert result.analysis.family_match == {"reasoning_vs_structured": True}
        assert result.analysis.scores[Provider.REASONING] == pytest.approx(3.9)
        assert result.analysis.scores[Provider.STRUCTURED] == pytest.approx(3.85)
        assert result.analysis.winner == "reasoning"
        assert result.analysis.confidence_scores == {Provider.REASONING: 0.9, Provider.STRUCTURED: 0.85}
        assert result.product_value == 250.0
        assert result.is_estimated_value is False
        assert set(result.duty_calculations) == {Provider.REASONING, Provider.STRUCTURED}
        assert result.analysis.duty_difference == {"reasoning_vs_structured": 0.0}
        assert mock_duty_calculator.calculate_duty.await_count == 2
        assert await result_store.get(result.id) == result

    async def test_reasoning_runs_before_structured(self, orchestrator):
        calls = []

        async def reasoning_classify(classification_input):
            calls.append("reasoning")
            return ClassificationResult.from_code(Provider.REASONING, "640399", confidence=0.9)

        async def structured_classify(classification_input):
            calls.append("structured")
            return ClassificationResult.from_code(Provider.STRUCTURED, "640399", confidence=0.85)

        orchestrator.reasoning_classifier.classify.side_effect = reasoning_classify
        orchestrator.structured_classifier.classify.side_effect = structured_classify

        await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes"))

        assert calls == ["reasoning", "structured"]

    async def test_image_only_input_is_substituted_for_structured(self, orchestrator, classification_factory):
        orchestrator.reasoning_classifier.classify.return_value = classification_factory(
            Provider.REASONING,
            "4202210000",
            0.88,
            description="Handbags with outer surface of leather",
            product_identified="leather handbag",
        )
        request = ComparisonRequest(image_base64="data:image/jpeg;base64,/9j/4AAQ", product_value=250)

        result = await orchestrator.run_comparison(request)

        structured_input = orchestrator.structured_classifier.classify.await_args.args[0]
        assert structured_input.product_name == "leather handbag"
        assert structured_input.product_description == "Handbags with outer surface of leather"
        assert structured_input.image_base64 is None

        reasoning_input = orchestrator.reasoning_classifier.classify.await_args.args[0]
        assert reasoning_input.image_base64 == "data:image/jpeg;base64,/9j/4AAQ"
        # The stored input is the original
        assert result.input.image_base64 == "data:image/jpeg;base64,/9j/4AAQ"
        assert result.input.product_name is None

    async def test_only_requested_providers_run(self, orchestrator):
        request = ComparisonRequest(product_name="Shoes", providers=["reasoning"], product_value=100)

        result = await orchestrator.run_comparison(request)

        assert list(result.classifications) == [Provider.REASONING]
        orchestrator.structured_classifier.classify.assert_not_called()
        assert result.analysis.winner is None
        assert result.analysis.exact_match == {}


class TestValueResolution:

    async def test_no_value_and_no_estimate_skips_duties(self, orchestrator, mock_duty_calculator):
        request = ComparisonRequest(product_name="Shoes")

        result = await orchestrator.run_comparison(request)

        assert result.duty_calculations is None
        assert result.product_value is None
        assert result.analysis.duty_difference is None
        assert set(result.classifications) == {Provider.REASONING, Provider.STRUCTURED}
        assert "No product value available; duty calculation skipped." in result.analysis.notes
        mock_duty_calculator.calculate_duty.assert_not_called()

    async def test_estimated_value_is_used(self, orchestrator, mock_duty_calculator, classification_factory):
        orchestrator.reasoning_classifier.classify.return_value = classification_factory(
            Provider.REASONING, "640399", 0.9, estimated_value=95.0
        )

        result = await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes"))

        assert result.product_value == 95.0
        assert result.is_estimated_value is True
        assert mock_duty_calculator.calculate_duty.await_args.kwargs["product_value"] == 95.0
        assert "AI-estimated value of 95.00 EUR" in result.analysis.notes

    async def test_duty_opt_out(self, orchestrator, mock_duty_calculator):
        request = ComparisonRequest(product_name="Shoes", product_value=100, calculate_duty=False)

        result = await orchestrator.run_comparison(request)

        assert result.duty_calculations is None
        assert result.product_value == 100.0
        mock_duty_calculator.calculate_duty.assert_not_called()


class TestDutyFanOut:

    async def test_structured_failure_falls_back_to_reasoning_code(self, orchestrator, mock_duty_calculator):
        orchestrator.structured_classifier.classify.return_value = ClassificationResult.failed(
            Provider.STRUCTURED, "Zonos API error: 500 Internal Server Error"
        )
        request = ComparisonRequest(product_name="Shoes", product_value=250)

        result = await orchestrator.run_comparison(request)

        structured_duty = result.duty_calculations[Provider.STRUCTURED]
        assert structured_duty.hs_code == result.classifications[Provider.REASONING].hs_code
        assert structured_duty.code_source == Provider.REASONING
        assert Provider.REASONING in result.duty_calculations
        assert result.analysis.exact_match == {"reasoning_vs_structured": None}
        assert "Structured provider failed" in result.analysis.notes
        assert result.analysis.duty_difference == {}
        assert "Structured duty computed from the Reasoning code." in result.analysis.notes
        assert "identical" not in result.analysis.notes

    async def test_structured_not_requested_still_gets_fallback_duty(self, orchestrator):
        request = ComparisonRequest(product_name="Shoes", providers=["reasoning"], product_value=250)

        result = await orchestrator.run_comparison(request)

        assert result.duty_calculations[Provider.STRUCTURED].code_source == Provider.REASONING
        assert result.analysis.duty_difference == {}
        assert "identical" not in result.analysis.notes

    async def test_raised_duty_call_becomes_error_entry(self, orchestrator, mock_duty_calculator, duty_factory):
        async def calculate(hs_code, product_value, currency, origin_country, ship_to_country,
                            provider=Provider.STRUCTURED, code_source=None):
            if provider == Provider.REASONING:
                raise RuntimeError("connection reset")
            return duty_factory(provider, hs_code, product_value)

        mock_duty_calculator.calculate_duty.side_effect = calculate
        request = ComparisonRequest(product_name="Shoes", product_value=250)

        result = await orchestrator.run_comparison(request)

        reasoning_duty = result.duty_calculations[Provider.REASONING]
        structured_duty = result.duty_calculations[Provider.STRUCTURED]
        assert reasoning_duty.error == "connection reset"
        assert reasoning_duty.total_landed_cost == 250.0
        assert structured_duty.error is None
        assert structured_duty.total_landed_cost == pytest.approx(324.0)
        # Error entries are left out of the delta
        assert result.analysis.duty_difference == {}
        assert "Reasoning duty calculation failed: connection reset." in result.analysis.notes

    async def test_duty_calls_run_concurrently(self, orchestrator, mock_duty_calculator, duty_factory):
        async def slow_calculate(hs_code, product_value, currency, origin_country, ship_to_country,
                                 provider=Provider.STRUCTURED, code_source=None):
            await asyncio.sleep(0.3)
            return duty_factory(provider, hs_code, product_value, code_source=code_source)

        mock_duty_calculator.calculate_duty.side_effect = slow_calculate
        request = ComparisonRequest(product_name="Shoes", product_value=250)

        start = time.perf_counter()
        result = await orchestrator.run_comparison(request)
        elapsed = time.perf_counter() - start

        assert mock_duty_calculator.calculate_duty.await_count == 2
        assert elapsed < 0.55
        assert result.duty_calculations[Provider.REASONING].total_landed_cost == pytest.approx(324.0)
        assert result.duty_calculations[Provider.STRUCTURED].total_landed_cost == pytest.approx(324.0)

    async def test_duty_calls_use_request_countries(self, orchestrator, mock_duty_calculator):
        request = ComparisonRequest(
            product_name="Shoes", origin_country="VN", ship_to_country="DE", currency="USD", product_value=80
        )

        await orchestrator.run_comparison(request)

        kwargs = mock_duty_calculator.calculate_duty.await_args.kwargs
        assert kwargs["origin_country"] == "VN"
        assert kwargs["ship_to_country"] == "DE"
        assert kwargs["currency"] == "USD"

    async def test_missing_origin_uses_default(self, orchestrator, mock_duty_calculator):
        await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes", product_value=80))

        assert mock_duty_calculator.calculate_duty.await_args.kwargs["origin_country"] == "US"

    def test_duty_differences(self, duty_factory):
        duties = {
            Provider.REASONING: duty_factory(Provider.REASONING, "420221", 250.0, duty_amount=7.5),
            Provider.STRUCTURED: duty_factory(Provider.STRUCTURED, "640399", 250.0, duty_amount=20.0),
        }

        assert duty_differences(duties) == {"reasoning_vs_structured": pytest.approx(12.5)}
        assert duty_differences(None) is None


class TestFailurePropagation:

    async def test_classifier_exception_fails_comparison_and_stores_nothing(self, orchestrator, result_store):
        orchestrator.structured_classifier.classify.side_effect = RuntimeError("adapter bug")

        with pytest.raises(RuntimeError, match="adapter bug"):
            await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes", product_value=250))

        assert await result_store.list() == []

    async def test_both_classifiers_failing_still_stores_a_result(self, orchestrator, result_store):
        orchestrator.reasoning_classifier.classify.return_value = ClassificationResult.failed(
            Provider.REASONING, "OPENAI_API_KEY not configured"
        )
        orchestrator.structured_classifier.classify.return_value = ClassificationResult.failed(
            Provider.STRUCTURED, "ZONOS_API_KEY not configured"
        )

        result = await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes", product_value=250))

        assert result.duty_calculations == {}
        assert result.analysis.winner is None
        assert "No provider returned a usable HS code." in result.analysis.notes
        assert len(await result_store.list()) == 1


class TestRetrieval:

    async def test_list_and_statistics(self, orchestrator, classification_factory):
        first = await orchestrator.run_comparison(ComparisonRequest(product_name="Shoes", product_value=100))
        orchestrator.reasoning_classifier.classify.return_value = classification_factory(
            Provider.REASONING, "420221", 0.6
        )
        second = await orchestrator.run_comparison(ComparisonRequest(product_name="Bag", product_value=100))

        results = await orchestrator.list_results()
        assert [r.id for r in results] == [second.id, first.id]
        assert await orchestrator.get_result(first.id) == first
        assert await orchestrator.get_result("missing") is None

        stats = await orchestrator.get_statistics()
        assert stats.total == 2
        assert stats.wins[Provider.REASONING] == 1
        assert stats.wins[Provider.STRUCTURED] == 1
        assert stats.hs6_match_rate[Provider.REASONING] == pytest.approx(0.5)
        assert stats.avg_confidence[Provider.REASONING] == pytest.approx(0.75)
        assert stats.reference_provider == Provider.STRUCTURED
