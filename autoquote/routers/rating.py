"""
Rating router: stateless premium calculation.
"""

from fastapi import APIRouter

from autoquote.schemas import RatingRequest, PremiumBreakdown
from autoquote.services.rating import calculate_premium_breakdown, build_premium

router = APIRouter()


@router.post("/rating/calculate", response_model=PremiumBreakdown)
async def calculate(request: RatingRequest):
    """
    Price a driver/vehicle/coverage combination without storing anything.

    ``progressive=false`` uses the finalizing variant: no multi-vehicle
    discount, and at least one vehicle is required.
    """
    breakdown = calculate_premium_breakdown(
        request.birth_date,
        request.additional_drivers,
        request.vehicles,
        request.coverages,
        progressive=request.progressive
    )
    premium = build_premium(breakdown["total"])

    return PremiumBreakdown(
        **breakdown,
        monthly=premium["monthly"],
        six_month=premium["six_month"]
    )
