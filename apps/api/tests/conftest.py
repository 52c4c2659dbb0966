"""
Shared test configuration and builders
"""
import os

# Settings are read once at import time; pin them before dutysnap is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RESULT_STORE_BACKEND"] = "memory"
os.environ["REFERENCE_PROVIDER"] = "structured"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ZONOS_API_KEY"] = ""
os.environ["NODE_ENV"] = "development"

import pytest
from unittest.mock import AsyncMock

from dutysnap.schemas.classification import (
    BreakdownItem,
    ClassificationInput,
    ClassificationResult,
    DutyLine,
    DutyResult,
    Provider,
    VatLine,
)


def make_classification(provider, hs_code="6403999000", confidence=0.9, **fields):
    """Successful ClassificationResult for a provider"""
    fields.setdefault("description", "Footwear with outer soles of rubber")
    return ClassificationResult.from_code(provider, hs_code, confidence=confidence, **fields)


def make_duty(provider, hs_code="640399", product_value=250.0, duty_amount=20.0, vat_amount=54.0,
              currency="EUR", code_source=None):
    """Successful DutyResult with a customs duty and a VAT line"""
    return DutyResult.from_breakdown(
        provider,
        hs_code,
        product_value,
        [
            BreakdownItem(type="Customs Duty", amount=duty_amount, rate=f"{duty_amount / product_value * 100:.1f}%"),
            BreakdownItem(type="VAT/Tax", amount=vat_amount, rate=f"{vat_amount / product_value * 100:.1f}%"),
        ],
        currency,
        code_source=code_source or provider,
        duties=DutyLine(amount=duty_amount, rate=f"{duty_amount / product_value * 100:.1f}%", type="customs_duty"),
        vat=VatLine(amount=vat_amount, rate=f"{vat_amount / product_value * 100:.1f}%"),
    )


@pytest.fixture
def text_input():
    return ClassificationInput(
        product_name="Leather handbag",
        product_description="Women's genuine leather handbag with gold hardware",
        origin_country="IT",
        ship_to_country="FR",
    )


@pytest.fixture
def image_only_input():
    return ClassificationInput(
        image_base64="data:image/jpeg;base64,/9j/4AAQSkZJRg==",
        origin_country="CN",
        ship_to_country="FR",
    )


@pytest.fixture
def mock_reasoning_classifier():
    classifier = AsyncMock()
    classifier.provider = Provider.REASONING
    classifier.classify.return_value = make_classification(
        Provider.REASONING,
        "6403999000",
        0.9,
        product_identified="leather handbag",
        reasoning="Leather upper with rubber sole",
    )
    return classifier


@pytest.fixture
def mock_structured_classifier():
    classifier = AsyncMock()
    classifier.provider = Provider.STRUCTURED
    classifier.classify.return_value = make_classification(Provider.STRUCTURED, "6403999000", 0.85)
    return classifier


@pytest.fixture
def mock_duty_calculator():
    """Duty calculator echoing the requested slot, code and value"""
    calculator = AsyncMock()

    async def calculate(hs_code, product_value, currency, origin_country, ship_to_country,
                        provider=Provider.STRUCTURED, code_source=None):
        return make_duty(provider, hs_code, product_value, currency=currency, code_source=code_source)

    calculator.calculate_duty.side_effect = calculate
    return calculator


@pytest.fixture
def classification_factory():
    return make_classification


@pytest.fixture
def duty_factory():
    return make_duty
