"""
Portal router: policyholder views of bound policies, documents, and claims filing.
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from autoquote.schemas import (
    DashboardResponse,
    PolicyResponse,
    BillingResponse,
    DocumentSummary,
    EventSummary,
    ClaimResponse,
    FileClaimRequest,
    PaymentSummary,
    ClaimDocumentRequest,
    ClaimDocumentResponse,
)
from autoquote.db import get_session
from autoquote.routers.policies import to_policy_response
from autoquote.services import portal as portal_service
from autoquote.services.claims import file_claim, get_claim, add_claim_document, list_claim_documents

router = APIRouter()


@router.get("/portal/{policy_number}/dashboard", response_model=DashboardResponse)
async def get_dashboard(policy_number: str, session: Session = Depends(get_session)):
    dashboard = portal_service.get_dashboard(policy_number, session)
    dashboard["recent_events"] = [EventSummary.model_validate(e) for e in dashboard["recent_events"]]
    return DashboardResponse(**dashboard)


@router.get("/portal/{policy_number}/policy", response_model=PolicyResponse)
async def get_policy(policy_number: str, session: Session = Depends(get_session)):
    portal_service.get_portal_policy(policy_number, session)
    return to_policy_response(portal_service.get_policy_details(policy_number, session))


@router.get("/portal/{policy_number}/billing", response_model=BillingResponse)
async def get_billing(policy_number: str, session: Session = Depends(get_session)):
    billing = portal_service.get_billing(policy_number, session)
    billing["payments"] = [PaymentSummary.model_validate(p) for p in billing["payments"]]
    return BillingResponse(**billing)


@router.get("/portal/{policy_number}/documents", response_model=List[DocumentSummary])
async def list_documents(policy_number: str, session: Session = Depends(get_session)):
    return [DocumentSummary.model_validate(d) for d in portal_service.get_portal_documents(policy_number, session)]


@router.get("/portal/{policy_number}/documents/{document_number}", response_model=DocumentSummary)
async def get_document(policy_number: str, document_number: str, session: Session = Depends(get_session)):
    """Document metadata; storage_url is where the file is served from."""
    return DocumentSummary.model_validate(portal_service.get_portal_document(policy_number, document_number, session))


@router.get("/portal/{policy_number}/claims", response_model=List[ClaimResponse])
async def list_claims(policy_number: str, session: Session = Depends(get_session)):
    return [ClaimResponse(**claim) for claim in portal_service.get_portal_claims(policy_number, session)]


@router.post("/portal/{policy_number}/claims", response_model=ClaimResponse, status_code=201)
async def create_claim(policy_number: str, request: FileClaimRequest, session: Session = Depends(get_session)):
    """File a claim. Only BOUND and IN_FORCE policies accept claims (409 otherwise)."""
    return ClaimResponse(**file_claim(policy_number, request, session))


@router.get("/portal/{policy_number}/claims/{claim_number}", response_model=ClaimResponse)
async def get_claim_details(policy_number: str, claim_number: str, session: Session = Depends(get_session)):
    portal_service.get_portal_policy(policy_number, session)
    return ClaimResponse(**get_claim(policy_number, claim_number, session))


@router.post(
    "/portal/{policy_number}/claims/{claim_number}/documents",
    response_model=ClaimDocumentResponse,
    status_code=201
)
async def upload_claim_document(
    policy_number: str,
    claim_number: str,
    request: ClaimDocumentRequest,
    session: Session = Depends(get_session)
):
    """Attach a JPEG, PNG or PDF (up to 10MB) to a claim. Only metadata is recorded."""
    policy = portal_service.get_portal_policy(policy_number, session)
    return ClaimDocumentResponse.model_validate(add_claim_document(policy, claim_number, request, session))


@router.get("/portal/{policy_number}/claims/{claim_number}/documents", response_model=List[ClaimDocumentResponse])
async def get_claim_documents(policy_number: str, claim_number: str, session: Session = Depends(get_session)):
    policy = portal_service.get_portal_policy(policy_number, session)
    return [ClaimDocumentResponse.model_validate(d) for d in list_claim_documents(policy, claim_number, session)]
