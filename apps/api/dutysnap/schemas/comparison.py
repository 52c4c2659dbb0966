"""
Pydantic schemas for comparison and duty API endpoints
"""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.config import settings
from .classification import AggregateComparisonResult, ClassificationInput, Provider


def _normalize_country(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if len(value) != 2 or not value.isalpha():
        raise ValueError("Country code must be a 2-letter ISO 3166-1 code")
    return value.upper()


def _normalize_currency(value: str) -> str:
    if len(value) != 3 or not value.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code")
    return value.upper()


class ComparisonRequest(BaseModel):
    """Classification comparison request, validated before any provider call"""
    image_base64: Optional[str] = Field(
        None,
        description="Base64 encoded image (data:image/jpeg;base64,...)"
    )
    image_url: Optional[str] = Field(
        None,
        description="URL to product image",
        examples=["https://example.com/handbag.jpg"]
    )
    product_name: Optional[str] = Field(None, max_length=500, description="Product name/title")
    product_description: Optional[str] = Field(None, max_length=4000, description="Detailed product description")
    origin_country: Optional[str] = Field(None, description="ISO 2-letter origin country (e.g. US, CN)")
    ship_to_country: str = Field(
        default_factory=lambda: settings.DEFAULT_SHIP_TO_COUNTRY,
        description="ISO 2-letter destination country"
    )
    product_value: Optional[float] = Field(None, gt=0, description="Declared product value for duty calculation")
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, description="ISO 4217 currency code")
    providers: List[Provider] = Field(
        default_factory=lambda: [Provider.REASONING, Provider.STRUCTURED],
        description="Providers to compare"
    )
    calculate_duty: bool = Field(True, description="Whether to calculate duties for each classification")

    @field_validator("image_base64", "image_url", "product_name", "product_description")
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("image_url")
    def validate_image_url(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("image_url must be an http(s) URL")
        return v

    @field_validator("origin_country", "ship_to_country")
    def validate_country(cls, v):
        return _normalize_country(v)

    @field_validator("currency")
    def validate_currency(cls, v):
        return _normalize_currency(v)

    @field_validator("providers")
    def validate_providers(cls, v):
        if not v:
            raise ValueError("At least one provider must be requested")
        # Preserve declaration order, drop duplicates
        return [provider for provider in Provider if provider in v]

    @model_validator(mode="after")
    def check_signal(self):
        if not any([self.image_base64, self.image_url, self.product_name, self.product_description]):
            raise ValueError(
                "At least one of image_base64, image_url, product_name, or product_description is required"
            )
        if self.image_base64 and self.image_url:
            raise ValueError("image_base64 and image_url are mutually exclusive")
        return self

    def to_classification_input(self) -> ClassificationInput:
        return ClassificationInput(
            image_base64=self.image_base64,
            image_url=self.image_url,
            product_name=self.product_name,
            product_description=self.product_description,
            origin_country=self.origin_country,
            ship_to_country=self.ship_to_country,
        )


class ComparisonListResponse(BaseModel):
    """API response schema for listing comparisons"""
    results: List[AggregateComparisonResult] = Field(..., description="Comparisons, newest first")
    count: int = Field(..., description="Number of stored comparisons")


class DutyRequest(BaseModel):
    """Standalone duty calculation request"""
    hs_code: str = Field(..., min_length=6, description="HS code, at least 6 digits")
    product_value: float = Field(..., gt=0, description="Product value, must be positive")
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    origin_country: str = Field(default_factory=lambda: settings.DEFAULT_ORIGIN_COUNTRY)
    ship_to_country: str = Field(default_factory=lambda: settings.DEFAULT_SHIP_TO_COUNTRY)

    @field_validator("hs_code")
    def validate_hs_code(cls, v):
        digits = v.replace(".", "").replace(" ", "")
        if len(digits) < 6 or not digits.isdigit():
            raise ValueError("HS code must be at least 6 digits")
        return digits

    @field_validator("origin_country", "ship_to_country")
    def validate_country(cls, v):
        return _normalize_country(v)

    @field_validator("currency")
    def validate_currency(cls, v):
        return _normalize_currency(v)
