"""
Policies router: binding, activation and policy retrieval.
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import logging

from autoquote.schemas import (
    BindRequest,
    BindResponse,
    ActivateResponse,
    PolicyResponse,
    PaymentSummary,
    DocumentSummary,
    EventSummary,
)
from autoquote.deps import (
    IDEMPOTENCY_HEADER,
    get_binding_service,
    check_idempotency_key,
    store_idempotency_response,
    generate_request_hash,
)
from autoquote.db import get_session
from autoquote.services.binding import BindingService
from autoquote.services.portal import get_policy_details

logger = logging.getLogger("autoquote")

router = APIRouter()


@router.post("/policies/bind", response_model=BindResponse)
async def bind_policy(
    request: BindRequest,
    request_obj: Request,
    service: BindingService = Depends(get_binding_service),
    session: Session = Depends(get_session)
):
    """
    Bind a QUOTED quote with payment.

    This endpoint:
    1. Replays the stored response for a repeated X-Idempotency-Key
       (422 when the key was used for a different request)
    2. Moves the quote to BINDING and runs the payment
    3. On approval records the payment and moves the policy to BOUND
    4. Generates documents and sends the confirmation (best-effort)

    A declined payment returns 402 and leaves the quote QUOTED.
    """
    request_id = getattr(request_obj.state, "request_id", "unknown")

    request_hash = generate_request_hash(request.model_dump(exclude={"card_number", "card_cvv", "account_number"}))
    cached_response = await check_idempotency_key(request_obj, session, request_hash)
    if cached_response:
        logger.info(f"Returning cached bind response | request_id={request_id}")
        return cached_response

    result = service.bind_quote(request.quote_number, request.payment_method, request.payment_details())

    response_data = BindResponse(
        **{key: value for key, value in result.items() if key not in ("payment", "documents")},
        payment=PaymentSummary.model_validate(result["payment"]),
        documents=[DocumentSummary.model_validate(d) for d in result["documents"]]
    )

    idempotency_key = request_obj.headers.get(IDEMPOTENCY_HEADER)
    if idempotency_key:
        store_idempotency_response(
            idempotency_key,
            request_obj.method,
            request_obj.url.path,
            request_hash,
            response_data.model_dump(mode="json"),
            session
        )

    return response_data


@router.post("/policies/{policy_number}/activate", response_model=ActivateResponse)
async def activate_policy(policy_number: str, service: BindingService = Depends(get_binding_service)):
    return ActivateResponse(**service.activate_policy(policy_number))


@router.get("/policies/{policy_number}", response_model=PolicyResponse)
async def get_policy(policy_number: str, session: Session = Depends(get_session)):
    """Policy with payments, documents and status history (newest event first)."""
    return to_policy_response(get_policy_details(policy_number, session))


def to_policy_response(details) -> PolicyResponse:
    return PolicyResponse(
        **{key: value for key, value in details.items() if key not in ("payments", "documents", "events")},
        payments=[PaymentSummary.model_validate(p) for p in details["payments"]],
        documents=[DocumentSummary.model_validate(d) for d in details["documents"]],
        events=[EventSummary.model_validate(e) for e in details["events"]]
    )
