"""Unit tests for the Zonos landed cost provider."""

import asyncio
import json

import httpx
import pytest

from dutysnap.schemas.classification import Provider
from dutysnap.services.classifiers.countries import customs_union_of, is_domestic_shipment
from dutysnap.services.classifiers.zonos import ZonosClient, ZonosDutyCalculator

BASE_URL = "https://api.zonos.test"


def make_calculator(handler, api_key="zonos-test-key", standard_vat_rate=0.20, timeout_seconds=None):
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return ZonosDutyCalculator(
        client=ZonosClient(api_key=api_key, base_url=BASE_URL, http_client=http_client),
        timeout_seconds=timeout_seconds,
        standard_vat_rate=standard_vat_rate,
    )


def landed_cost_payload(duties=(20.0,), taxes=(54.0,), fees=()):
    def lines(amounts):
        return [{"amount": amount, "currency": "EUR", "note": ""} for amount in amounts]

    return {
        "data": {
            "landedCostCalculateWorkflow": [
                {"id": "lc_1", "duties": lines(duties), "taxes": lines(taxes), "fees": lines(fees)}
            ]
        }
    }


class TestLandedCost:

    async def test_landed_cost_breakdown(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=landed_cost_payload(duties=(20.0,), taxes=(50.0, 4.0), fees=(3.5,)))

        calculator = make_calculator(handler)
        result = await calculator.calculate_duty("6403999000", 250.0, "EUR", "US", "FR")

        assert result.error is None
        assert result.provider == Provider.STRUCTURED
        assert result.duties.amount == pytest.approx(20.0)
        assert result.duties.rate == "8.0%"
        assert result.vat.amount == pytest.approx(54.0)
        assert result.vat.rate == "21.6%"
        assert [item.type for item in result.breakdown] == ["Product", "Customs Duty", "VAT/Tax", "Fees"]
        assert result.total_landed_cost == pytest.approx(250.0 + 20.0 + 54.0 + 3.5)

        variables = json.loads(requests[0].content)["variables"]
        assert variables["items"][0]["hsCode"] == "6403999000"
        assert variables["items"][0]["amount"] == 250.0
        assert variables["parties"][0]["location"]["countryCode"] == "US"
        assert variables["parties"][1]["location"]["locality"] == "Paris"

    async def test_zero_components_are_left_out_of_breakdown(self):
        calculator = make_calculator(lambda request: httpx.Response(200, json=landed_cost_payload(duties=(), taxes=(40.0,))))

        result = await calculator.calculate_duty("8517130000", 200.0, "EUR", "CN", "FR")

        assert [item.type for item in result.breakdown] == ["Product", "VAT/Tax"]
        assert result.duties.amount == 0.0
        assert result.duties.rate == "0.0%"

    async def test_slot_and_code_source_are_reported(self):
        calculator = make_calculator(lambda request: httpx.Response(200, json=landed_cost_payload()))

        result = await calculator.calculate_duty(
            "640399", 250.0, "EUR", "US", "FR", provider=Provider.STRUCTURED, code_source=Provider.REASONING
        )

        assert result.provider == Provider.STRUCTURED
        assert result.code_source == Provider.REASONING

    async def test_http_error_returns_bare_product_value(self):
        calculator = make_calculator(lambda request: httpx.Response(503, text="unavailable"))

        result = await calculator.calculate_duty("640399", 250.0, "EUR", "US", "FR")

        assert result.error == "Zonos API error: 503 Service Unavailable"
        assert result.total_landed_cost == 250.0
        assert [item.type for item in result.breakdown] == ["Product"]

    async def test_slow_backend_times_out_with_bare_product_value(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=landed_cost_payload())

        calculator = make_calculator(handler, timeout_seconds=0.05)
        result = await calculator.calculate_duty("6403999000", 250.0, "EUR", "US", "FR")

        assert result.error == "Request timed out after 0.05s"
        assert result.total_landed_cost == 250.0
        assert [item.type for item in result.breakdown] == ["Product"]

    async def test_empty_landed_cost_is_an_error(self):
        calculator = make_calculator(
            lambda request: httpx.Response(200, json={"errors": [{"message": "Carrier rating failed"}], "data": {}})
        )

        result = await calculator.calculate_duty("640399", 250.0, "EUR", "US", "FR")

        assert result.error == "Carrier rating failed"
        assert result.total_landed_cost == 250.0

    async def test_missing_key(self):
        calculator = make_calculator(lambda request: httpx.Response(200, json=landed_cost_payload()), api_key="")

        result = await calculator.calculate_duty("640399", 250.0, "EUR", "US", "FR")

        assert result.error == "ZONOS_API_KEY not configured"


class TestDomesticShipments:

    async def test_intra_eu_shipment_has_no_duty_and_no_call(self):
        def handler(request):
            raise AssertionError("Domestic shipments must not reach the backend")

        calculator = make_calculator(handler, standard_vat_rate=0.20)
        result = await calculator.calculate_duty("420221", 250.0, "EUR", "IT", "FR")

        assert result.error is None
        assert result.duties.amount == 0.0
        assert result.duties.type == "intra_eu"
        assert result.vat.amount == pytest.approx(50.0)
        assert result.vat.rate == "20%"
        assert [item.type for item in result.breakdown] == ["Product", "VAT (Intra-EU)"]
        assert result.total_landed_cost == pytest.approx(300.0)

    async def test_same_country_outside_a_union(self):
        calculator = make_calculator(lambda request: httpx.Response(500))

        result = await calculator.calculate_duty("420221", 100.0, "USD", "US", "US")

        assert result.error is None
        assert result.duties.type == "domestic"
        assert result.breakdown[1].type == "VAT (Domestic)"

    async def test_domestic_message_from_backend(self):
        calculator = make_calculator(
            lambda request: httpx.Response(
                200, json={"errors": [{"message": "Domestic shipments are not allowed"}], "data": None}
            )
        )

        result = await calculator.calculate_duty("420221", 250.0, "EUR", "GB", "JE")

        assert result.error is None
        assert result.duties.amount == 0.0
        assert result.total_landed_cost == pytest.approx(300.0)

    async def test_missing_key_does_not_block_domestic_result(self):
        calculator = make_calculator(lambda request: httpx.Response(500), api_key="")

        result = await calculator.calculate_duty("420221", 250.0, "EUR", "DE", "FR")

        assert result.error is None

    def test_domestic_detection(self):
        assert is_domestic_shipment("FR", "FR")
        assert is_domestic_shipment("it", "FR")
        assert not is_domestic_shipment("US", "FR")
        assert not is_domestic_shipment(None, "FR")
        assert customs_union_of("DE") == "EU"
        assert customs_union_of("CH") is None
