"""
Comparison services module

Classification comparison split into focused pieces:
- code_matcher: exact and HS6 family agreement between providers
- scoring: provider scores against the reference provider and winner selection
- substitution: structured provider input substitution and product value resolution
- SummaryGenerator: advisory notes
- ResultStore: in-memory and Redis storage for completed comparisons
- ComparisonOrchestrator: main coordinator
"""

from .constants import (
    EXACT_MATCH_BONUS, FAMILY_MATCH_BONUS, TIE,
    SIGNIFICANT_DUTY_DIFFERENCE, CONFIDENCE_GAP_THRESHOLD
)

from .code_matcher import build_match_matrix, compare_pair, exact_match, family_match
from .scoring import determine_winner, score, score_providers
from .substitution import derive_substitute_input, parse_estimated_value, resolve_product_value
from .summary_service import SummaryGenerator
from .result_store import ResultStore, InMemoryResultStore, RedisResultStore, create_result_store
from .statistics import compute_statistics
from .orchestrator import ComparisonOrchestrator, comparison_orchestrator, duty_differences

__all__ = [
    'EXACT_MATCH_BONUS', 'FAMILY_MATCH_BONUS', 'TIE',
    'SIGNIFICANT_DUTY_DIFFERENCE', 'CONFIDENCE_GAP_THRESHOLD',
    'build_match_matrix',
    'compare_pair',
    'exact_match',
    'family_match',
    'determine_winner',
    'score',
    'score_providers',
    'derive_substitute_input',
    'parse_estimated_value',
    'resolve_product_value',
    'SummaryGenerator',
    'ResultStore',
    'InMemoryResultStore',
    'RedisResultStore',
    'create_result_store',
    'compute_statistics',
    'ComparisonOrchestrator',
    'comparison_orchestrator',
    'duty_differences',
]
