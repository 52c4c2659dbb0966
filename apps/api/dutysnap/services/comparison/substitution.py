"""
Pure helpers for structured-provider input substitution and product value resolution
"""
import math
from typing import Any, Optional, Tuple

from ...schemas.classification import ClassificationInput, ClassificationResult

ESTIMATED_VALUE_KEY = "estimated_value_eur"


def derive_substitute_input(
    original: ClassificationInput,
    reasoning_result: Optional[ClassificationResult]
) -> ClassificationInput:
    """
    Input for the structured provider

    When the original input carries no image URL, product name or description
    (only inline bytes or nothing), the reasoning provider's identified product
    and description replace them and inline bytes are dropped, since the
    structured provider cannot consume them. The original is returned unchanged
    otherwise and is never mutated.
    """
    if original.has_structured_signal:
        return original

    if reasoning_result is None or not reasoning_result.succeeded:
        return original.model_copy(update={"image_base64": None})

    return original.model_copy(update={
        "image_base64": None,
        "product_name": reasoning_result.product_identified or None,
        "product_description": reasoning_result.description or None,
    })


def parse_estimated_value(value: Any) -> Optional[float]:
    """Positive finite number from a numeric or numeric-string estimate, else None"""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").lstrip("€$").strip()
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        parsed = float(value)
    else:
        return None

    if math.isnan(parsed) or math.isinf(parsed) or parsed <= 0:
        return None
    return parsed


def resolve_product_value(
    explicit_value: Optional[float],
    reasoning_result: Optional[ClassificationResult]
) -> Tuple[Optional[float], bool]:
    """
    (value, is_estimated): the explicit value if positive, else the reasoning
    provider's estimate, else (None, False)
    """
    explicit = parse_estimated_value(explicit_value)
    if explicit is not None:
        return explicit, False

    if reasoning_result is None or reasoning_result.error:
        return None, False

    estimated = parse_estimated_value(reasoning_result.estimated_value)
    if estimated is None and isinstance(reasoning_result.raw_response, dict):
        estimated = parse_estimated_value(reasoning_result.raw_response.get(ESTIMATED_VALUE_KEY))

    if estimated is None:
        return None, False
    return estimated, True
