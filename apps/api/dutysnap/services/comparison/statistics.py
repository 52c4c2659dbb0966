"""
Aggregate statistics across stored comparisons
"""
from typing import Dict, Iterable

from ...schemas.classification import (
    AggregateComparisonResult,
    ComparisonStatistics,
    Provider,
    pair_key,
)
from .constants import TIE


def _family_match_key(provider: Provider, reference: Provider) -> str:
    ordered = [p for p in Provider if p in (provider, reference)]
    return pair_key(ordered[0], ordered[1])


def compute_statistics(
    results: Iterable[AggregateComparisonResult],
    reference_provider: Provider = Provider.STRUCTURED
) -> ComparisonStatistics:
    """
    Counts, win tallies, average confidence per provider and HS6 match rate
    of each provider against the reference provider
    """
    total = 0
    ties = 0
    wins: Dict[Provider, int] = {provider: 0 for provider in Provider}
    confidence_sums: Dict[Provider, float] = {provider: 0.0 for provider in Provider}
    confidence_counts: Dict[Provider, int] = {provider: 0 for provider in Provider}
    family_matches: Dict[Provider, int] = {}
    family_totals: Dict[Provider, int] = {}

    for result in results:
        total += 1
        winner = result.analysis.winner
        if winner == TIE:
            ties += 1
        elif winner is not None:
            wins[Provider(winner)] += 1

        for provider, classification in result.classifications.items():
            if classification.succeeded and classification.confidence:
                confidence_sums[provider] += classification.confidence
                confidence_counts[provider] += 1

        for provider in result.classifications:
            if provider == reference_provider or reference_provider not in result.classifications:
                continue
            match = result.analysis.family_match.get(_family_match_key(provider, reference_provider))
            family_totals[provider] = family_totals.get(provider, 0) + 1
            if match:
                family_matches[provider] = family_matches.get(provider, 0) + 1

    return ComparisonStatistics(
        total=total,
        wins=wins,
        ties=ties,
        avg_confidence={
            provider: (confidence_sums[provider] / confidence_counts[provider]) if confidence_counts[provider] else 0.0
            for provider in Provider
        },
        hs6_match_rate={
            provider: family_matches.get(provider, 0) / family_totals.get(provider, 1)
            for provider in Provider
            if provider != reference_provider
        },
        reference_provider=reference_provider,
    )
