"""
Pydantic models for provider classifications, duty calculations and comparison results
"""
import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Tolerance used when checking landed cost totals against their breakdown
TOTAL_TOLERANCE = 1e-6

HS_CODE_PATTERN = re.compile(r"^\d{6,}$")


class Provider(str, Enum):
    """Closed set of classification providers"""
    REASONING = "reasoning"
    STRUCTURED = "structured"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def normalize_hs_code(raw_code: Optional[str]) -> str:
    """Strip dots and whitespace from a provider HS code ("6403.99.9000" -> "64039990000")"""
    if not raw_code:
        return ""
    return re.sub(r"[\s.]", "", str(raw_code))


def pair_key(first: Provider, second: Provider) -> str:
    """Key used for provider pairs in match matrices and duty deltas"""
    return f"{first.value}_vs_{second.value}"


class ClassificationInput(BaseModel):
    """Product signal handed to a classification provider"""
    model_config = ConfigDict(frozen=True)

    image_base64: Optional[str] = Field(None, description="Inline image as data URL or bare base64")
    image_url: Optional[str] = Field(None, description="Remote image URL")
    product_name: Optional[str] = Field(None, description="Free-text product name")
    product_description: Optional[str] = Field(None, description="Free-text product description")
    origin_country: Optional[str] = Field(None, description="ISO 3166-1 alpha-2 origin country")
    ship_to_country: str = Field(..., description="ISO 3166-1 alpha-2 destination country")

    @model_validator(mode="after")
    def check_single_image_source(self):
        if self.image_base64 and self.image_url:
            raise ValueError("image_base64 and image_url are mutually exclusive")
        return self

    @property
    def has_signal(self) -> bool:
        return any([self.image_base64, self.image_url, self.product_name, self.product_description])

    @property
    def has_structured_signal(self) -> bool:
        """Whether the input carries anything a structured provider can consume"""
        return any([self.image_url, self.product_name, self.product_description])


class ClassificationResult(BaseModel):
    """Outcome of a single classification provider call"""
    model_config = ConfigDict(frozen=True)

    provider: Provider
    hs_code: str = ""
    hs_code6: str = ""
    hs_code8: Optional[str] = None
    description: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    product_identified: Optional[str] = None
    estimated_value: Optional[float] = None
    raw_response: Optional[Any] = None
    latency_ms: float = Field(0.0, ge=0.0)
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_code_nesting(self):
        if self.error:
            return self
        if not HS_CODE_PATTERN.match(self.hs_code):
            raise ValueError(f"HS code must contain at least 6 digits, got '{self.hs_code}'")
        if self.hs_code6 != self.hs_code[:6]:
            raise ValueError(f"hs_code6 '{self.hs_code6}' does not match code '{self.hs_code}'")
        if self.hs_code8 is not None and self.hs_code8 != self.hs_code[:8]:
            raise ValueError(f"hs_code8 '{self.hs_code8}' is not the first 8 digits of '{self.hs_code}'")
        if self.hs_code8 is not None and len(self.hs_code8) != 8:
            raise ValueError(f"hs_code8 '{self.hs_code8}' must have 8 digits")
        return self

    @property
    def succeeded(self) -> bool:
        return not self.error and bool(self.hs_code)

    @classmethod
    def from_code(cls, provider: Provider, raw_code: str, **fields) -> "ClassificationResult":
        """Build a result whose 6 and 8 digit fields are derived from the full code"""
        hs_code = normalize_hs_code(raw_code)
        return cls(
            provider=provider,
            hs_code=hs_code,
            hs_code6=hs_code[:6],
            hs_code8=hs_code[:8] if len(hs_code) >= 8 else None,
            **fields
        )

    @classmethod
    def failed(cls, provider: Provider, error: str, latency_ms: float = 0.0) -> "ClassificationResult":
        return cls(provider=provider, confidence=0.0, latency_ms=max(latency_ms, 0.0), error=error or "Unknown error")


class DutyLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float = 0.0
    rate: str = "0%"
    type: str = "duty"


class VatLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float = 0.0
    rate: str = "0%"


class BreakdownItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    amount: float
    rate: Optional[str] = None


PRODUCT_LINE = "Product"


class DutyResult(BaseModel):
    """Duty and tax calculation for one provider slot"""
    model_config = ConfigDict(frozen=True)

    provider: Provider
    hs_code: str
    code_source: Optional[Provider] = Field(None, description="Provider whose classification supplied the code")
    duties: DutyLine = Field(default_factory=DutyLine)
    vat: VatLine = Field(default_factory=VatLine)
    breakdown: List[BreakdownItem] = Field(default_factory=list)
    total_landed_cost: float
    currency: str
    latency_ms: float = Field(0.0, ge=0.0)
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_landed_cost(self):
        if self.error:
            return self
        if not self.breakdown or self.breakdown[0].type != PRODUCT_LINE:
            raise ValueError("Duty breakdown must start with the declared product value")
        expected = sum(item.amount for item in self.breakdown)
        if not math.isclose(self.total_landed_cost, expected, rel_tol=0.0, abs_tol=TOTAL_TOLERANCE):
            raise ValueError(
                f"Total landed cost {self.total_landed_cost} does not match breakdown sum {expected}"
            )
        return self

    @property
    def product_value(self) -> Optional[float]:
        if self.breakdown and self.breakdown[0].type == PRODUCT_LINE:
            return self.breakdown[0].amount
        return None

    @property
    def succeeded(self) -> bool:
        return not self.error

    @classmethod
    def from_breakdown(
        cls,
        provider: Provider,
        hs_code: str,
        product_value: float,
        extra_lines: List[BreakdownItem],
        currency: str,
        **fields
    ) -> "DutyResult":
        """Build a successful result whose total is product value plus every extra line"""
        breakdown = [BreakdownItem(type=PRODUCT_LINE, amount=product_value)] + list(extra_lines)
        return cls(
            provider=provider,
            hs_code=hs_code,
            breakdown=breakdown,
            total_landed_cost=product_value + sum(item.amount for item in extra_lines),
            currency=currency,
            **fields
        )

    @classmethod
    def failed(
        cls,
        provider: Provider,
        hs_code: str,
        product_value: float,
        currency: str,
        error: str,
        latency_ms: float = 0.0,
        code_source: Optional[Provider] = None
    ) -> "DutyResult":
        """Error result: no duty or tax assumed, landed cost is the bare product value"""
        return cls(
            provider=provider,
            hs_code=hs_code,
            code_source=code_source,
            breakdown=[BreakdownItem(type=PRODUCT_LINE, amount=product_value)],
            total_landed_cost=product_value,
            currency=currency,
            latency_ms=max(latency_ms, 0.0),
            error=error or "Unknown error"
        )


class ComparisonAnalysis(BaseModel):
    """Cross-provider agreement, scoring and notes"""
    model_config = ConfigDict(frozen=True)

    exact_match: Dict[str, Optional[bool]] = Field(default_factory=dict)
    family_match: Dict[str, Optional[bool]] = Field(default_factory=dict)
    confidence_scores: Dict[Provider, float] = Field(default_factory=dict)
    scores: Dict[Provider, float] = Field(default_factory=dict)
    reference_provider: Optional[Provider] = None
    duty_difference: Optional[Dict[str, float]] = None
    winner: Optional[str] = None
    notes: str = ""


class AggregateComparisonResult(BaseModel):
    """Complete comparison as stored and returned to callers"""
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    input: ClassificationInput
    providers: List[Provider]
    product_value: Optional[float] = None
    is_estimated_value: bool = False
    currency: str
    classifications: Dict[Provider, ClassificationResult] = Field(default_factory=dict)
    duty_calculations: Optional[Dict[Provider, DutyResult]] = None
    analysis: ComparisonAnalysis


class ComparisonStatistics(BaseModel):
    """Aggregate statistics across every stored comparison"""
    total: int = 0
    wins: Dict[Provider, int] = Field(default_factory=dict)
    ties: int = 0
    avg_confidence: Dict[Provider, float] = Field(default_factory=dict)
    hs6_match_rate: Dict[Provider, float] = Field(default_factory=dict)
    reference_provider: Provider = Provider.STRUCTURED
