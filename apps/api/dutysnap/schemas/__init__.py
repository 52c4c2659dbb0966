"""
Pydantic schemas for request/response validation
"""
from .classification import (
    Provider,
    ClassificationInput,
    ClassificationResult,
    DutyLine,
    VatLine,
    BreakdownItem,
    DutyResult,
    ComparisonAnalysis,
    AggregateComparisonResult,
    ComparisonStatistics,
)
from .comparison import ComparisonRequest, ComparisonListResponse, DutyRequest

__all__ = [
    "Provider",
    "ClassificationInput",
    "ClassificationResult",
    "DutyLine",
    "VatLine",
    "BreakdownItem",
    "DutyResult",
    "ComparisonAnalysis",
    "AggregateComparisonResult",
    "ComparisonStatistics",
    "ComparisonRequest",
    "ComparisonListResponse",
    "DutyRequest",
]
