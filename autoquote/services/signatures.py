"""
Signing ceremony: capture and look up the applicant's signature on a quote.
"""

from typing import Dict, Any, Optional
import logging

from sqlalchemy.exc import IntegrityError

from autoquote.errors import ValidationError, NotFoundError, DuplicateError
from autoquote.models import Policy, Signature
from autoquote.schemas import CreateSignatureRequest
from autoquote.services.lifecycle import SIGNABLE_STATUSES, require_status
from autoquote.services.store import PolicyStore

logger = logging.getLogger("autoquote")

SIGNATURE_FORMATS = ("PNG", "JPEG")

# Base64 length of a 1MB image
MAX_SIGNATURE_LENGTH = 1_400_000


def validate_signature(request: CreateSignatureRequest) -> str:
    """Check format and size; returns the normalized format."""
    signature_format = request.signature_format.strip().upper()
    if signature_format not in SIGNATURE_FORMATS:
        raise ValidationError("Signature format must be PNG or JPEG", field="signature_format")

    image_data = request.signature_image_data.strip()
    if not image_data:
        raise ValidationError("Signature image data is required", field="signature_image_data")
    if len(image_data) > MAX_SIGNATURE_LENGTH:
        raise ValidationError("Signature image exceeds 1MB limit", field="signature_image_data")

    return signature_format


def signature_to_dict(signature: Signature, policy: Policy, include_image: bool = False) -> Dict[str, Any]:
    return {
        "quote_number": policy.policy_number,
        "signer_email": signature.signer_email,
        "signature_format": signature.signature_format,
        "signature_date": signature.signature_date,
        "signature_image_data": signature.signature_image_data if include_image else None,
    }


def create_signature(
    request: CreateSignatureRequest,
    db_session,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None
) -> Dict[str, Any]:
    """
    Store the signature for a QUOTED quote.

    Raises:
        ValidationError: unsupported format, empty or oversized image
        NotFoundError: quote does not exist
        ConflictError: quote is not QUOTED
        DuplicateError: the quote already has a signature
    """
    signature_format = validate_signature(request)
    policy = PolicyStore(db_session).get_or_raise(request.quote_number)
    require_status(policy.status, SIGNABLE_STATUSES, "sign")

    existing = db_session.query(Signature).filter(Signature.policy_id == policy.id).first()
    if existing:
        raise DuplicateError("Signature", policy.policy_number)

    signature = Signature(
        policy_id=policy.id,
        signer_email=request.signer_email.strip().lower(),
        signature_image_data=request.signature_image_data.strip(),
        signature_format=signature_format,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db_session.add(signature)
    try:
        db_session.commit()
    except IntegrityError:
        # Concurrent signing of the same quote
        db_session.rollback()
        raise DuplicateError("Signature", policy.policy_number) from None
    db_session.refresh(signature)

    logger.info(
        f"Signature captured | "
        f"quote_number={policy.policy_number} | "
        f"format={signature.signature_format} | "
        f"ip_address={ip_address or 'unknown'}"
    )

    return signature_to_dict(signature, policy)


def get_signature(quote_number: str, db_session) -> Dict[str, Any]:
    """Signature for a quote, image included."""
    policy = PolicyStore(db_session).get_or_raise(quote_number)
    signature = db_session.query(Signature).filter(Signature.policy_id == policy.id).first()

    if not signature:
        raise NotFoundError("Signature", policy.policy_number)

    return signature_to_dict(signature, policy, include_image=True)
