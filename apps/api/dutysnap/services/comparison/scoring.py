"""
Provider scoring against a reference classification and winner selection
"""
from typing import Dict, Iterable, Mapping, Optional

from ...schemas.classification import ClassificationResult, Provider
from .code_matcher import exact_match, family_match
from .constants import EXACT_MATCH_BONUS, FAMILY_MATCH_BONUS, TIE


def score(result: Optional[ClassificationResult], reference: Optional[ClassificationResult]) -> float:
    """
    Ranking score: match bonus against the reference plus the result's own confidence

    3 for an exact match, 2 for a family match, 0 otherwise. Missing or failed
    results score 0; a missing or failed reference gives no match bonus.
    """
    if result is None or not result.succeeded:
        return 0.0

    match_bonus = 0.0
    if reference is not None and reference.succeeded:
        if exact_match(result, reference):
            match_bonus = EXACT_MATCH_BONUS
        elif family_match(result, reference):
            match_bonus = FAMILY_MATCH_BONUS

    return match_bonus + (result.confidence or 0.0)


def score_providers(
    providers: Iterable[Provider],
    classifications: Mapping[Provider, ClassificationResult],
    reference_provider: Provider
) -> Dict[Provider, float]:
    """Score every requested provider, the reference included"""
    reference = classifications.get(reference_provider)
    return {
        provider: score(classifications.get(provider), reference)
        for provider in Provider
        if provider in set(providers)
    }


def determine_winner(scores: Mapping[Provider, float]) -> Optional[str]:
    """
    Provider with the strictly highest score, "tie" for equal positive leaders,
    None when every score is zero or fewer than two providers were scored
    """
    if len(scores) < 2:
        return None

    best = max(scores.values())
    if best <= 0:
        return None

    leaders = [provider for provider, value in scores.items() if value == best]
    if len(leaders) > 1:
        return TIE
    return leaders[0].value
