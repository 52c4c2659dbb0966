"""
Rule-based analysis notes for a comparison

Output is advisory text for people; nothing downstream parses it.
"""
from itertools import combinations
from typing import Dict, List, Mapping, Optional

from ...schemas.classification import ClassificationResult, DutyResult, Provider, pair_key
from .constants import CONFIDENCE_GAP_THRESHOLD, SIGNIFICANT_DUTY_DIFFERENCE


class SummaryGenerator:
    """Compose deterministic notes from match, duty and confidence findings"""

    def __init__(
        self,
        significant_duty_difference: float = SIGNIFICANT_DUTY_DIFFERENCE,
        confidence_gap_threshold: float = CONFIDENCE_GAP_THRESHOLD
    ):
        self.significant_duty_difference = significant_duty_difference
        self.confidence_gap_threshold = confidence_gap_threshold

    def generate(
        self,
        providers: List[Provider],
        classifications: Mapping[Provider, ClassificationResult],
        exact_matches: Mapping[str, Optional[bool]],
        family_matches: Mapping[str, Optional[bool]],
        duty_difference: Optional[Dict[str, float]] = None,
        duty_calculations: Optional[Mapping[Provider, DutyResult]] = None,
        currency: str = "EUR",
        product_value: Optional[float] = None,
        is_estimated_value: bool = False,
        duty_requested: bool = True
    ) -> str:
        notes: List[str] = []
        notes.extend(self._availability_notes(providers, classifications))
        notes.extend(self._agreement_notes(providers, classifications, exact_matches, family_matches))
        notes.extend(self._value_notes(product_value, is_estimated_value, duty_requested, currency))
        notes.extend(self._duty_entry_notes(duty_calculations))
        notes.extend(self._duty_notes(duty_difference, currency))
        notes.extend(self._confidence_notes(providers, classifications))
        return " ".join(notes)

    def _availability_notes(
        self,
        providers: List[Provider],
        classifications: Mapping[Provider, ClassificationResult]
    ) -> List[str]:
        notes = []
        for provider in providers:
            result = classifications.get(provider)
            if result is None:
                notes.append(f"{provider.label} provider returned no classification.")
            elif result.error:
                notes.append(f"{provider.label} provider failed: {result.error}.")
        return notes

    def _agreement_notes(
        self,
        providers: List[Provider],
        classifications: Mapping[Provider, ClassificationResult],
        exact_matches: Mapping[str, Optional[bool]],
        family_matches: Mapping[str, Optional[bool]]
    ) -> List[str]:
        compared = [p for p in providers if classifications.get(p) is not None and classifications[p].succeeded]

        if len(compared) < 2:
            if len(providers) < 2:
                return []
            if compared:
                return [f"Only {compared[0].label} returned a usable HS code; no comparison possible."]
            return ["No provider returned a usable HS code."]

        keys = [pair_key(first, second) for first, second in combinations(compared, 2)]

        if all(exact_matches.get(key) for key in keys):
            if len(compared) < len(providers):
                return ["All successful providers returned the same HS code."]
            return ["All providers returned the same HS code."]
        if all(family_matches.get(key) for key in keys):
            return ["All providers agree on HS6 (first 6 digits), differ on full code."]

        matches = []
        for first, second in combinations(compared, 2):
            key = pair_key(first, second)
            if exact_matches.get(key):
                matches.append(f"{first.label} matches {second.label}")
            elif family_matches.get(key):
                matches.append(f"{first.label} matches {second.label} on HS6")
        if matches:
            return [". ".join(matches) + "."]
        return ["All providers returned different HS codes."]

    def _value_notes(
        self,
        product_value: Optional[float],
        is_estimated_value: bool,
        duty_requested: bool,
        currency: str
    ) -> List[str]:
        if not duty_requested:
            return []
        if product_value is None:
            return ["No product value available; duty calculation skipped."]
        if is_estimated_value:
            return [f"Duties use an AI-estimated value of {product_value:.2f} {currency}."]
        return []

    def _duty_entry_notes(self, duty_calculations: Optional[Mapping[Provider, DutyResult]]) -> List[str]:
        if not duty_calculations:
            return []
        notes = []
        for provider in Provider:
            duty = duty_calculations.get(provider)
            if duty is None:
                continue
            if duty.error:
                notes.append(f"{provider.label} duty calculation failed: {duty.error}.")
            elif duty.code_source is not None and duty.code_source != provider:
                notes.append(f"{provider.label} duty computed from the {duty.code_source.label} code.")
        return notes

    def _duty_notes(self, duty_difference: Optional[Dict[str, float]], currency: str) -> List[str]:
        if not duty_difference:
            return []
        max_difference = max(duty_difference.values())
        if max_difference > self.significant_duty_difference:
            return [f"Significant duty difference detected: up to {max_difference:.2f} {currency}."]
        if max_difference > 0:
            return [f"Minor duty difference: {max_difference:.2f} {currency}."]
        return ["Landed cost is identical across providers."]

    def _confidence_notes(
        self,
        providers: List[Provider],
        classifications: Mapping[Provider, ClassificationResult]
    ) -> List[str]:
        notes = []
        for first, second in combinations(providers, 2):
            first_result = classifications.get(first)
            second_result = classifications.get(second)
            if not (first_result and second_result and first_result.succeeded and second_result.succeeded):
                continue
            gap = first_result.confidence - second_result.confidence
            if abs(gap) > self.confidence_gap_threshold:
                higher = first if gap > 0 else second
                notes.append(f"{higher.label} has notably higher confidence.")
        return notes
