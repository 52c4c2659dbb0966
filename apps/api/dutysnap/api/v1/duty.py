"""
Standalone duty calculation API endpoint
"""
import logging
from fastapi import APIRouter, HTTPException, Request, status

from dutysnap.middleware.rate_limit import duty_rate_limit, limiter
from dutysnap.schemas.classification import DutyResult
from dutysnap.schemas.comparison import DutyRequest
from dutysnap.services.comparison.orchestrator import comparison_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=DutyResult)
@limiter.limit(duty_rate_limit)
async def calculate_duty(
    request: Request,
    duty_request: DutyRequest
):
    """
    Calculate landed cost for a known HS code.

    Returns 502 when the duty provider reports an error.
    """
    try:
        result = await comparison_orchestrator.duty_calculator.calculate_duty(
            hs_code=duty_request.hs_code,
            product_value=duty_request.product_value,
            currency=duty_request.currency,
            origin_country=duty_request.origin_country,
            ship_to_country=duty_request.ship_to_country,
        )
    except Exception as e:
        logger.error(f"Duty calculation failed for {duty_request.hs_code}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Duty calculation failed. Please try again later."
        )

    if result.error:
        logger.warning(f"Duty provider error for {duty_request.hs_code}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error
        )
    return result
