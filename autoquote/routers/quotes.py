"""
Quotes router: one-shot and progressive quote creation, updates and retrieval.
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import logging

from autoquote.schemas import (
    CreateQuoteRequest,
    QuoteResponse,
    Driver,
    Coverages,
    UpdateDriversRequest,
    UpdateVehiclesRequest,
)
from autoquote.db import get_session
from autoquote.services import quotes as quote_service

logger = logging.getLogger("autoquote")

router = APIRouter()


@router.post("/quotes", response_model=QuoteResponse, status_code=201)
async def create_quote(
    request: CreateQuoteRequest,
    request_obj: Request,
    session: Session = Depends(get_session)
):
    """
    Create a quote.

    Omitting coverages starts an INCOMPLETE quote to be filled in with the
    PUT endpoints; including them prices the quote and returns it QUOTED.
    """
    request_id = getattr(request_obj.state, "request_id", "unknown")
    logger.info(
        f"Processing quote request | request_id={request_id} | "
        f"vehicles={len(request.vehicles) or int(request.vehicle is not None)} | "
        f"complete={request.coverages is not None}"
    )

    policy = quote_service.create_quote(request, session)
    return QuoteResponse(**quote_service.quote_to_dict(policy))


@router.get("/quotes/{quote_number}", response_model=QuoteResponse)
async def get_quote(quote_number: str, session: Session = Depends(get_session)):
    return QuoteResponse(**quote_service.get_quote(quote_number, session))


@router.put("/quotes/{quote_number}/driver", response_model=QuoteResponse)
async def update_driver(quote_number: str, driver: Driver, session: Session = Depends(get_session)):
    policy = quote_service.update_primary_driver(quote_number, driver, session)
    return QuoteResponse(**quote_service.quote_to_dict(policy))


@router.put("/quotes/{quote_number}/drivers", response_model=QuoteResponse)
async def update_drivers(
    quote_number: str,
    request: UpdateDriversRequest,
    session: Session = Depends(get_session)
):
    """Replace the additional drivers; duplicates of the primary driver are dropped."""
    policy = quote_service.update_additional_drivers(quote_number, request.additional_drivers, session)
    return QuoteResponse(**quote_service.quote_to_dict(policy))


@router.put("/quotes/{quote_number}/vehicles", response_model=QuoteResponse)
async def update_vehicles(
    quote_number: str,
    request: UpdateVehiclesRequest,
    session: Session = Depends(get_session)
):
    policy = quote_service.update_vehicles(quote_number, request.vehicles, session)
    return QuoteResponse(**quote_service.quote_to_dict(policy))


@router.put("/quotes/{quote_number}/coverage", response_model=QuoteResponse)
async def finalize_coverage(quote_number: str, coverages: Coverages, session: Session = Depends(get_session)):
    """Set coverages and finalize the quote (QUOTED)."""
    policy = quote_service.finalize_coverage(quote_number, coverages, session)
    return QuoteResponse(**quote_service.quote_to_dict(policy))
