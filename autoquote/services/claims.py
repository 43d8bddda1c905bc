"""
Claims service for filing and listing claims against bound policies.
"""

from typing import Dict, Any, List
import logging
import random
import string

from autoquote.errors import NotFoundError, ValidationError
from autoquote.models import Claim, ClaimDocument, Policy
from autoquote.schemas import FileClaimRequest, ClaimDocumentRequest
from autoquote.services.lifecycle import CLAIMABLE_STATUSES, require_status
from autoquote.services.store import PolicyStore

logger = logging.getLogger("autoquote")

CLAIM_DOCUMENT_TYPES = ("image/jpeg", "image/png", "application/pdf")
MAX_CLAIM_DOCUMENT_BYTES = 10 * 1024 * 1024


def generate_claim_number() -> str:
    return "CLM-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=8))


def claim_to_dict(claim: Claim, policy: Policy) -> Dict[str, Any]:
    return {
        "claim_number": claim.claim_number,
        "policy_number": policy.policy_number,
        "status": claim.status,
        "claim_type": claim.claim_type,
        "incident_date": claim.incident_date,
        "incident_location": claim.incident_location,
        "incident_description": claim.incident_description,
        "estimated_amount": claim.estimated_amount,
        "police_report_filed": claim.police_report_filed,
        "police_report_number": claim.police_report_number,
        "created_at": claim.created_at,
    }


def file_claim(policy_number: str, request: FileClaimRequest, db_session) -> Dict[str, Any]:
    """File a claim; only BOUND or IN_FORCE policies accept claims."""
    policy = PolicyStore(db_session).get_or_raise(policy_number, resource="Policy")
    require_status(policy.status, CLAIMABLE_STATUSES, "file claim")

    claim = Claim(
        policy_id=policy.id,
        claim_number=generate_claim_number(),
        status="SUBMITTED",
        **request.model_dump()
    )
    db_session.add(claim)
    db_session.commit()
    db_session.refresh(claim)

    logger.info(
        f"Claim filed | "
        f"policy_number={policy.policy_number} | "
        f"claim_number={claim.claim_number} | "
        f"claim_type={claim.claim_type}"
    )

    return claim_to_dict(claim, policy)


def list_claims(policy: Policy, db_session) -> List[Claim]:
    return db_session.query(Claim).filter(
        Claim.policy_id == policy.id
    ).order_by(Claim.created_at.desc(), Claim.id.desc()).all()


def find_claim(policy: Policy, claim_number: str, db_session) -> Claim:
    claim = db_session.query(Claim).filter(
        Claim.policy_id == policy.id,
        Claim.claim_number == claim_number.strip().upper()
    ).first()

    if not claim:
        raise NotFoundError("Claim", claim_number)
    return claim


def get_claim(policy_number: str, claim_number: str, db_session) -> Dict[str, Any]:
    policy = PolicyStore(db_session).get_or_raise(policy_number, resource="Policy")
    return claim_to_dict(find_claim(policy, claim_number, db_session), policy)


def add_claim_document(policy: Policy, claim_number: str, request: ClaimDocumentRequest, db_session) -> ClaimDocument:
    """
    Record an uploaded file against a claim. Only metadata is kept.

    Raises:
        NotFoundError: claim does not belong to the policy
        ValidationError: file type other than JPEG, PNG or PDF, or over 10MB
    """
    claim = find_claim(policy, claim_number, db_session)

    mime_type = request.mime_type.strip().lower()
    if mime_type not in CLAIM_DOCUMENT_TYPES:
        raise ValidationError("Invalid file type. Only JPEG, PNG, and PDF allowed.", field="mime_type")
    if request.file_size > MAX_CLAIM_DOCUMENT_BYTES:
        raise ValidationError("File size exceeds 10MB limit", field="file_size")

    document = ClaimDocument(
        claim_id=claim.id,
        document_number="CDOC-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=8)),
        filename=request.filename,
        mime_type=mime_type,
        file_size=request.file_size,
    )
    db_session.add(document)
    db_session.commit()
    db_session.refresh(document)

    logger.info(
        f"Claim document uploaded | "
        f"claim_number={claim.claim_number} | "
        f"document_number={document.document_number} | "
        f"mime_type={mime_type} | "
        f"file_size={document.file_size}"
    )
    return document


def list_claim_documents(policy: Policy, claim_number: str, db_session) -> List[ClaimDocument]:
    claim = find_claim(policy, claim_number, db_session)
    return db_session.query(ClaimDocument).filter(
        ClaimDocument.claim_id == claim.id
    ).order_by(ClaimDocument.id).all()
