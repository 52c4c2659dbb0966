"""
HS code agreement between providers at full and family (6-digit) precision
"""
from itertools import combinations
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ...schemas.classification import ClassificationResult, Provider, pair_key


def exact_match(first: ClassificationResult, second: ClassificationResult) -> bool:
    return first.hs_code == second.hs_code


def family_match(first: ClassificationResult, second: ClassificationResult) -> bool:
    return first.hs_code6 == second.hs_code6


def _comparable(result: Optional[ClassificationResult]) -> bool:
    return result is not None and result.succeeded


def compare_pair(
    first: Optional[ClassificationResult],
    second: Optional[ClassificationResult]
) -> Tuple[Optional[bool], Optional[bool]]:
    """(exact, family) for two results; (None, None) when either side is absent or failed"""
    if not (_comparable(first) and _comparable(second)):
        return None, None
    return exact_match(first, second), family_match(first, second)


def provider_pairs(providers: Iterable[Provider]) -> Iterable[Tuple[Provider, Provider]]:
    """All unordered provider pairs, in declaration order"""
    ordered = [provider for provider in Provider if provider in set(providers)]
    return combinations(ordered, 2)


def build_match_matrix(
    providers: Iterable[Provider],
    classifications: Mapping[Provider, ClassificationResult]
) -> Tuple[Dict[str, Optional[bool]], Dict[str, Optional[bool]]]:
    """
    Build exact and family match matrices over every pair of requested providers

    Cells are None when no comparison was possible, which is distinct from False
    (compared and differ).
    """
    exact: Dict[str, Optional[bool]] = {}
    family: Dict[str, Optional[bool]] = {}

    for first, second in provider_pairs(providers):
        key = pair_key(first, second)
        exact[key], family[key] = compare_pair(classifications.get(first), classifications.get(second))

    return exact, family
