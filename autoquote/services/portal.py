"""
Portal service: read-only views of a bound policy for the policyholder.
"""

from typing import Dict, Any, List

from autoquote.errors import NotFoundError
from autoquote.models import Document, Payment, Policy
from autoquote.services.claims import list_claims, claim_to_dict
from autoquote.services.documents import list_policy_documents
from autoquote.services.events import get_policy_events
from autoquote.services.lifecycle import PolicyStatus, PORTAL_STATUSES
from autoquote.services.snapshot import load_snapshot, snapshot_to_dict
from autoquote.services.store import PolicyStore

RECENT_EVENTS_LIMIT = 5
OPEN_CLAIM_STATUSES = {"SUBMITTED", "UNDER_REVIEW"}


def get_portal_policy(policy_number: str, db_session) -> Policy:
    """
    A policy is visible in the portal once it has been bound: its status is
    BOUND or later and it carries a completed payment. Anything else is
    reported as not found.
    """
    policy = PolicyStore(db_session).get(policy_number)
    if not policy or PolicyStatus(policy.status) not in PORTAL_STATUSES:
        raise NotFoundError("Policy", policy_number)

    paid = db_session.query(Payment).filter(
        Payment.policy_id == policy.id,
        Payment.payment_status == "COMPLETED"
    ).first()
    if not paid:
        raise NotFoundError("Policy", policy_number)

    return policy


def list_payments(policy_id: int, db_session) -> List[Payment]:
    return db_session.query(Payment).filter(
        Payment.policy_id == policy_id
    ).order_by(Payment.payment_date.desc()).all()


def get_dashboard(policy_number: str, db_session) -> Dict[str, Any]:
    policy = get_portal_policy(policy_number, db_session)
    snapshot = snapshot_to_dict(load_snapshot(policy.quote_snapshot))
    claims = list_claims(policy, db_session)

    return {
        "policy_number": policy.policy_number,
        "status": policy.status,
        "effective_date": policy.effective_date,
        "expiration_date": policy.expiration_date,
        "premium": snapshot["premium"],
        "driver": snapshot["driver"],
        "additional_drivers": snapshot["additionalDrivers"],
        "vehicles": snapshot["vehicles"],
        "document_count": len(list_policy_documents(policy.id, db_session)),
        "open_claims_count": sum(1 for c in claims if c.status in OPEN_CLAIM_STATUSES),
        "recent_events": get_policy_events(policy.id, db_session, limit=RECENT_EVENTS_LIMIT),
    }


def get_policy_details(policy_number: str, db_session) -> Dict[str, Any]:
    """Policy with its payments, documents and full event history."""
    policy = PolicyStore(db_session).get_or_raise(policy_number, resource="Policy")

    return {
        "policy_id": policy.id,
        "policy_number": policy.policy_number,
        "status": policy.status,
        "premium_amount": policy.premium_amount,
        "effective_date": policy.effective_date,
        "expiration_date": policy.expiration_date,
        "snapshot": snapshot_to_dict(load_snapshot(policy.quote_snapshot)),
        "payments": list_payments(policy.id, db_session),
        "documents": list_policy_documents(policy.id, db_session),
        "events": get_policy_events(policy.id, db_session),
    }


def get_billing(policy_number: str, db_session) -> Dict[str, Any]:
    policy = get_portal_policy(policy_number, db_session)
    snapshot = load_snapshot(policy.quote_snapshot)
    payments = list_payments(policy.id, db_session)

    return {
        "policy_number": policy.policy_number,
        "premium": snapshot.premium.model_dump(by_alias=True),
        "payments": payments,
        "total_paid": sum(p.amount for p in payments if p.payment_status == "COMPLETED"),
    }


def get_portal_documents(policy_number: str, db_session) -> List:
    policy = get_portal_policy(policy_number, db_session)
    return list_policy_documents(policy.id, db_session)


def get_portal_document(policy_number: str, document_number: str, db_session) -> Document:
    """One document of the policy; documents of other policies are not found."""
    policy = get_portal_policy(policy_number, db_session)
    document = db_session.query(Document).filter(
        Document.policy_id == policy.id,
        Document.document_number == document_number.strip().upper()
    ).first()

    if not document:
        raise NotFoundError("Document", document_number)
    return document


def get_portal_claims(policy_number: str, db_session) -> List[Dict[str, Any]]:
    policy = get_portal_policy(policy_number, db_session)
    return [claim_to_dict(claim, policy) for claim in list_claims(policy, db_session)]
