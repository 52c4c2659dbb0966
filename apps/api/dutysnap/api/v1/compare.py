"""
Classification comparison API endpoints
"""
import time
import logging
from fastapi import APIRouter, HTTPException, Request, status

from dutysnap.middleware.rate_limit import compare_rate_limit, limiter
from dutysnap.schemas.classification import AggregateComparisonResult, ComparisonStatistics
from dutysnap.schemas.comparison import ComparisonListResponse, ComparisonRequest
from dutysnap.services.comparison.orchestrator import comparison_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AggregateComparisonResult)
@limiter.limit(compare_rate_limit)
async def compare_classifications(
    request: Request,
    comparison_request: ComparisonRequest
):
    """
    Classify a product with every requested provider and compare the results.

    Args:
        comparison_request: Product signal, countries, optional value and providers

    Returns:
        Stored comparison with classifications, duty calculations and analysis

    Raises:
        HTTPException: 500 if the comparison fails. Invalid bodies are rejected
            with 400 before this handler runs.
    """
    start_time = time.time()

    try:
        logger.info(f"Comparison request for providers {[p.value for p in comparison_request.providers]} "
                    f"(ship to {comparison_request.ship_to_country})")

        result = await comparison_orchestrator.run_comparison(comparison_request)

        processing_time = (time.time() - start_time) * 1000
        logger.info(f"Comparison {result.id} returned in {processing_time:.0f}ms")
        return result

    except Exception as e:
        logger.error(f"Comparison failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Comparison failed. Please try again later."
        )


@router.get("", response_model=ComparisonListResponse)
async def list_comparisons():
    """List stored comparisons, newest first"""
    try:
        results = await comparison_orchestrator.list_results()
        return ComparisonListResponse(results=results, count=len(results))

    except Exception as e:
        logger.error(f"Failed to list comparisons: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list comparisons"
        )


@router.get("/stats/summary", response_model=ComparisonStatistics)
async def get_comparison_statistics():
    """
    Aggregate statistics across stored comparisons: win counts, average
    confidence per provider and HS6 agreement with the reference provider.
    """
    try:
        return await comparison_orchestrator.get_statistics()

    except Exception as e:
        logger.error(f"Failed to compute comparison statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute comparison statistics"
        )


@router.get("/{comparison_id}", response_model=AggregateComparisonResult)
async def get_comparison(comparison_id: str):
    """Retrieve a stored comparison by id"""
    try:
        result = await comparison_orchestrator.get_result(comparison_id)
    except Exception as e:
        logger.error(f"Failed to load comparison {comparison_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load comparison"
        )

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comparison not found"
        )
    return result
