"""
Signatures router: the signing ceremony before binding.
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
from typing import Optional

from autoquote.schemas import CreateSignatureRequest, SignatureResponse
from autoquote.db import get_session
from autoquote.services.signatures import create_signature, get_signature

router = APIRouter()


def client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/signatures", response_model=SignatureResponse, status_code=201)
async def sign_quote(request: CreateSignatureRequest, request_obj: Request, session: Session = Depends(get_session)):
    """
    Capture the applicant's signature on a QUOTED quote.

    One signature per quote (409 on a second one). The image must be PNG or
    JPEG and at most 1MB. The response omits the image data.
    """
    return SignatureResponse(**create_signature(
        request,
        session,
        ip_address=client_ip(request_obj),
        user_agent=request_obj.headers.get("User-Agent")
    ))


@router.get("/signatures/{quote_number}", response_model=SignatureResponse)
async def get_quote_signature(quote_number: str, session: Session = Depends(get_session)):
    return SignatureResponse(**get_signature(quote_number, session))
