"""
Zonos GraphQL adapters: structured HS classification and landed cost calculation

Both adapters share one httpx client. Transport errors, non-2xx responses, GraphQL
errors and unexpected payloads are returned as error-populated results.
"""

import asyncio
import time
import logging
from typing import Any, Dict, List, Optional

import httpx

from ...core.config import settings
from ...schemas.classification import (
    BreakdownItem,
    ClassificationInput,
    ClassificationResult,
    DutyLine,
    DutyResult,
    Provider,
    VatLine,
)
from .base import (
    ClassificationProvider,
    DutyProvider,
    MalformedResponseError,
    MissingCredentialError,
    elapsed_ms,
)
from .countries import customs_union_of, get_country_address, is_domestic_shipment


logger = logging.getLogger(__name__)


CLASSIFY_MUTATION = """
mutation ClassifyProduct($input: [ClassificationCalculateInput!]!) {
  classificationsCalculate(input: $input) {
    hsCode {
      code
      description { full }
    }
  }
}
"""

LANDED_COST_MUTATION = """
mutation CalculateLandedCost(
  $parties: [PartyCreateWorkflowInput!]!
  $items: [ItemCreateWorkflowInput!]!
  $landedCostConfig: LandedCostWorkFlowInput!
) {
  partyCreateWorkflow(input: $parties) { type id }
  itemCreateWorkflow(input: $items) { id amount }
  cartonizeWorkflow { id type }
  shipmentRatingCalculateWorkflow { id amount }
  landedCostCalculateWorkflow(input: $landedCostConfig) {
    id
    duties { amount currency note }
    taxes { amount currency note }
    fees { amount currency note }
  }
}
"""

DOMESTIC_SHIPMENT_MESSAGE = "Domestic shipments are not allowed"


class ZonosClient:
    """Thin async GraphQL client for the Zonos API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key if api_key is not None else settings.ZONOS_API_KEY
        self._base_url = (base_url or settings.ZONOS_API_BASE).rstrip("/")
        self._timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post a GraphQL operation and return the decoded body

        GraphQL-level errors are left in the returned payload for the caller to inspect.

        Raises:
            MissingCredentialError: If no API key is configured
            httpx.HTTPError: On transport failures and non-2xx responses
            MalformedResponseError: If the body is not a JSON object
        """
        if not self.api_key:
            raise MissingCredentialError("ZONOS_API_KEY not configured")

        client = await self._get_client()
        response = await client.post(
            "/graphql",
            json={"query": query, "variables": variables},
            headers={"credentialToken": self.api_key},
        )
        logger.debug(f"Zonos response ({response.status_code}): {response.text[:500]}")
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError("Zonos returned a non-JSON response") from e
        if not isinstance(payload, dict):
            raise MalformedResponseError("Zonos returned an unexpected response shape")
        return payload


def describe_http_error(error: httpx.HTTPError) -> str:
    """Human-readable message for httpx failures"""
    if isinstance(error, httpx.HTTPStatusError):
        return f"Zonos API error: {error.response.status_code} {error.response.reason_phrase}"
    if isinstance(error, httpx.TimeoutException):
        return "Zonos request timed out"
    return f"Zonos transport error: {str(error) or type(error).__name__}"


def graphql_error_messages(payload: Dict[str, Any]) -> List[str]:
    errors = payload.get("errors") or []
    return [str(error.get("message", "")) for error in errors if isinstance(error, dict)]


class ZonosClassifier(ClassificationProvider):
    """Structured classifier: needs an image URL or product name/description, never inline bytes"""

    provider = Provider.STRUCTURED

    # Zonos does not return a confidence for the top classification
    DEFAULT_CONFIDENCE = 0.85

    def __init__(self, client: Optional[ZonosClient] = None, timeout_seconds: Optional[float] = None):
        self._client = client or ZonosClient()
        self._timeout_seconds = timeout_seconds or settings.PROVIDER_TIMEOUT_SECONDS

    @staticmethod
    def build_variables(classification_input: ClassificationInput) -> Dict[str, Any]:
        item: Dict[str, Any] = {}
        if classification_input.product_name:
            item["name"] = classification_input.product_name
        if classification_input.product_description:
            item["description"] = classification_input.product_description
        if classification_input.image_url:
            item["imageUrl"] = classification_input.image_url
        item["configuration"] = {"shipToCountries": [classification_input.ship_to_country]}
        return {"input": [item]}

    async def classify(self, classification_input: ClassificationInput) -> ClassificationResult:
        start_time = time.time()

        try:
            if not self._client.api_key:
                raise MissingCredentialError("ZONOS_API_KEY not configured")
            if not classification_input.has_structured_signal:
                raise ValueError(
                    "Structured provider requires an image URL, product name or product description"
                )

            payload = await asyncio.wait_for(
                self._client.execute(CLASSIFY_MUTATION, self.build_variables(classification_input)),
                timeout=self._timeout_seconds
            )
            latency_ms = elapsed_ms(start_time)

            messages = graphql_error_messages(payload)
            if messages:
                raise MalformedResponseError(messages[0])

            classification = self._parse_classification(payload, latency_ms)
            logger.info(f"Zonos classification: {classification.hs_code} "
                        f"(confidence: {classification.confidence:.2f}, time: {latency_ms:.0f}ms)")
            return classification

        except asyncio.TimeoutError:
            logger.error(f"Zonos classification timed out after {self._timeout_seconds} seconds")
            return ClassificationResult.failed(
                self.provider,
                f"Request timed out after {self._timeout_seconds:g}s",
                elapsed_ms(start_time)
            )
        except httpx.HTTPError as e:
            message = describe_http_error(e)
            logger.error(f"Zonos classification failed: {message}")
            return ClassificationResult.failed(self.provider, message, elapsed_ms(start_time))
        except Exception as e:
            logger.warning(f"Zonos classification failed: {str(e)}")
            return ClassificationResult.failed(self.provider, str(e) or type(e).__name__, elapsed_ms(start_time))

    def _parse_classification(self, payload: Dict[str, Any], latency_ms: float) -> ClassificationResult:
        results = (payload.get("data") or {}).get("classificationsCalculate") or []
        top_result = results[0] if results else None
        if not isinstance(top_result, dict) or not isinstance(top_result.get("hsCode"), dict):
            raise MalformedResponseError("No classification results from Zonos")

        hs_code = top_result["hsCode"]
        description = (hs_code.get("description") or {}).get("full") or ""
        confidence = top_result.get("confidence") or self.DEFAULT_CONFIDENCE

        try:
            return ClassificationResult.from_code(
                self.provider,
                hs_code.get("code") or "",
                description=description,
                confidence=float(confidence),
                raw_response=payload,
                latency_ms=latency_ms,
            )
        except ValueError as e:
            raise MalformedResponseError(f"Invalid HS code from Zonos: {hs_code.get('code')!r}") from e


class ZonosDutyCalculator(DutyProvider):
    """Landed cost calculation; domestic shipments resolve to zero duty plus standard VAT"""

    CALCULATION_METHOD = "DDP_PREFERRED"
    END_USE = "NOT_FOR_RESALE"
    TARIFF_RATE = "ZONOS_PREFERRED"

    def __init__(
        self,
        client: Optional[ZonosClient] = None,
        timeout_seconds: Optional[float] = None,
        standard_vat_rate: Optional[float] = None
    ):
        self._client = client or ZonosClient()
        self._timeout_seconds = timeout_seconds or settings.DUTY_TIMEOUT_SECONDS
        self._standard_vat_rate = settings.STANDARD_VAT_RATE if standard_vat_rate is None else standard_vat_rate

    def build_variables(
        self,
        hs_code: str,
        product_value: float,
        currency: str,
        origin_country: str,
        ship_to_country: str
    ) -> Dict[str, Any]:
        origin_address = get_country_address(origin_country)
        destination_address = get_country_address(ship_to_country)

        return {
            "parties": [
                {
                    "location": {
                        "countryCode": origin_country,
                        "administrativeAreaCode": origin_address["admin_code"],
                        "line1": origin_address["line1"],
                        "postalCode": origin_address["postal_code"],
                        "locality": origin_address["locality"],
                    },
                    "type": "ORIGIN",
                },
                {
                    "location": {
                        "countryCode": ship_to_country,
                        "administrativeAreaCode": destination_address["admin_code"],
                        "line1": destination_address["line1"],
                        "postalCode": destination_address["postal_code"],
                        "locality": destination_address["locality"],
                    },
                    "person": {
                        "email": "customer@example.com",
                        "firstName": "Test",
                        "lastName": "Customer",
                        "phone": "+33100000000",
                    },
                    "type": "DESTINATION",
                },
            ],
            "items": [
                {
                    "amount": product_value,
                    "currencyCode": currency,
                    "quantity": 1,
                    "countryOfOrigin": origin_country,
                    "hsCode": hs_code,
                    "description": f"Product classified as HS {hs_code}",
                }
            ],
            "landedCostConfig": {
                "calculationMethod": self.CALCULATION_METHOD,
                "endUse": self.END_USE,
                "tariffRate": self.TARIFF_RATE,
            },
        }

    async def calculate_duty(
        self,
        hs_code: str,
        product_value: float,
        currency: str,
        origin_country: str,
        ship_to_country: str,
        provider: Provider = Provider.STRUCTURED,
        code_source: Optional[Provider] = None
    ) -> DutyResult:
        """
        Calculate duties, taxes and fees for a single item

        Args:
            hs_code: HS code the calculation is based on
            product_value: Declared or estimated product value, must be positive
            currency: ISO 4217 currency of the product value
            origin_country: ISO alpha-2 origin country
            ship_to_country: ISO alpha-2 destination country
            provider: Provider slot the result is reported under
            code_source: Provider whose classification supplied the code

        Returns:
            DutyResult, error-populated with the bare product value as landed cost on failure
        """
        start_time = time.time()

        if is_domestic_shipment(origin_country, ship_to_country):
            logger.info(f"Domestic shipment {origin_country} -> {ship_to_country}: no customs duty")
            return self._domestic_result(
                hs_code, product_value, currency, ship_to_country, provider, code_source, elapsed_ms(start_time)
            )

        try:
            if product_value <= 0:
                raise ValueError("Product value must be positive")

            payload = await asyncio.wait_for(
                self._client.execute(
                    LANDED_COST_MUTATION,
                    self.build_variables(hs_code, product_value, currency, origin_country, ship_to_country)
                ),
                timeout=self._timeout_seconds
            )
            latency_ms = elapsed_ms(start_time)

            # Partial errors (e.g. carrier rating failures) can accompany valid landed cost data
            messages = graphql_error_messages(payload)
            if any(DOMESTIC_SHIPMENT_MESSAGE in message for message in messages):
                return self._domestic_result(
                    hs_code, product_value, currency, ship_to_country, provider, code_source, latency_ms
                )

            landed_costs = (payload.get("data") or {}).get("landedCostCalculateWorkflow") or []
            if not landed_costs:
                raise MalformedResponseError("; ".join(messages) if messages else "No landed cost result from Zonos")

            result = self._parse_landed_cost(
                landed_costs[0], hs_code, product_value, currency, provider, code_source, latency_ms
            )
            logger.info(f"Zonos duty for {hs_code}: duties {result.duties.amount:.2f}, "
                        f"taxes {result.vat.amount:.2f}, total {result.total_landed_cost:.2f} {currency}")
            return result

        except asyncio.TimeoutError:
            logger.error(f"Zonos duty calculation timed out after {self._timeout_seconds} seconds")
            error = f"Request timed out after {self._timeout_seconds:g}s"
        except httpx.HTTPError as e:
            error = describe_http_error(e)
            logger.error(f"Zonos duty calculation failed: {error}")
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(f"Zonos duty calculation failed: {error}")

        return DutyResult.failed(
            provider,
            hs_code,
            product_value,
            currency,
            error,
            latency_ms=elapsed_ms(start_time),
            code_source=code_source
        )

    def _domestic_result(
        self,
        hs_code: str,
        product_value: float,
        currency: str,
        ship_to_country: str,
        provider: Provider,
        code_source: Optional[Provider],
        latency_ms: float
    ) -> DutyResult:
        vat_amount = product_value * self._standard_vat_rate
        vat_rate = f"{self._standard_vat_rate * 100:g}%"
        union = customs_union_of(ship_to_country)
        vat_label = f"VAT (Intra-{union})" if union else "VAT (Domestic)"

        return DutyResult.from_breakdown(
            provider,
            hs_code,
            product_value,
            [BreakdownItem(type=vat_label, amount=vat_amount, rate=vat_rate)],
            currency,
            code_source=code_source,
            duties=DutyLine(amount=0.0, rate="0%", type="intra_eu" if union else "domestic"),
            vat=VatLine(amount=vat_amount, rate=vat_rate),
            latency_ms=latency_ms,
        )

    def _parse_landed_cost(
        self,
        landed_cost: Dict[str, Any],
        hs_code: str,
        product_value: float,
        currency: str,
        provider: Provider,
        code_source: Optional[Provider],
        latency_ms: float
    ) -> DutyResult:
        if not isinstance(landed_cost, dict):
            raise MalformedResponseError("Unexpected landed cost shape from Zonos")

        duties_total = self._sum_amounts(landed_cost.get("duties"))
        taxes_total = self._sum_amounts(landed_cost.get("taxes"))
        fees_total = self._sum_amounts(landed_cost.get("fees"))

        duty_rate = f"{duties_total / product_value * 100:.1f}%"
        vat_rate = f"{taxes_total / product_value * 100:.1f}%"

        extra_lines = []
        if duties_total > 0:
            extra_lines.append(BreakdownItem(type="Customs Duty", amount=duties_total, rate=duty_rate))
        if taxes_total > 0:
            extra_lines.append(BreakdownItem(type="VAT/Tax", amount=taxes_total, rate=vat_rate))
        if fees_total > 0:
            extra_lines.append(BreakdownItem(type="Fees", amount=fees_total))

        return DutyResult.from_breakdown(
            provider,
            hs_code,
            product_value,
            extra_lines,
            currency,
            code_source=code_source,
            duties=DutyLine(amount=duties_total, rate=duty_rate, type="customs_duty"),
            vat=VatLine(amount=taxes_total, rate=vat_rate),
            latency_ms=latency_ms,
        )

    @staticmethod
    def _sum_amounts(lines: Optional[List[Dict[str, Any]]]) -> float:
        if not lines:
            return 0.0
        try:
            return sum(float(line.get("amount") or 0) for line in lines)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedResponseError("Unexpected amount in Zonos landed cost lines") from e
