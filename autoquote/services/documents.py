"""
Document generator stub.

Creates the declarations page and ID card records for a newly bound
policy. Rendering is out of scope: each record points at a synthetic
storage URL.
"""

from typing import List
from datetime import datetime
import logging
import random
import string

logger = logging.getLogger("autoquote")

DOCUMENT_TYPES = [
    ("DECLARATIONS", "Declarations Page"),
    ("ID_CARD", "Insurance ID Card"),
]

STORAGE_BASE_URL = "https://documents.example.com/policies"


def generate_document_number() -> str:
    return "DOC-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=8))


def generate_policy_documents(policy_id: int, policy_number: str, db_session) -> List:
    """
    Generate the documents issued at binding.

    Args:
        policy_id: Policy ID
        policy_number: Human-facing policy number
        db_session: Database session

    Returns:
        List of Document records (declarations first, then ID card)
    """
    from autoquote.models import Document

    generated_at = datetime.utcnow()
    documents = []

    for document_type, title in DOCUMENT_TYPES:
        document_number = generate_document_number()
        document = Document(
            policy_id=policy_id,
            document_number=document_number,
            document_type=document_type,
            document_name=f"{title} - {policy_number}",
            version=1,
            document_status="READY",
            storage_url=f"{STORAGE_BASE_URL}/{policy_number}/{document_number}.pdf",
            generated_at=generated_at
        )
        db_session.add(document)
        documents.append(document)

    db_session.commit()
    for document in documents:
        db_session.refresh(document)

    logger.info(
        f"Documents generated | "
        f"policy_number={policy_number} | "
        f"documents={','.join(d.document_type for d in documents)}"
    )

    return documents


def list_policy_documents(policy_id: int, db_session) -> List:
    from autoquote.models import Document

    return db_session.query(Document).filter(
        Document.policy_id == policy_id
    ).order_by(Document.id).all()
