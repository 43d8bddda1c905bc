"""
SQLModel database models for the auto quote API.
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import date, datetime


class Policy(SQLModel, table=True):
    """One row per quote; the same row becomes the policy once bound."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_number: str = Field(unique=True, index=True)  # DZXXXXXXXX
    status: str = Field(index=True)
    premium_amount: int
    effective_date: date
    expiration_date: date
    quote_expires_at: Optional[datetime] = None
    quote_snapshot: str  # JSON string
    driver_email: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Payment(SQLModel, table=True):
    """Successful bind payment; tokenized details only."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_id: int = Field(foreign_key="policy.id", ondelete="CASCADE", index=True)
    payment_number: str = Field(unique=True)
    payment_method: str
    payment_status: str
    amount: int
    last_four_digits: Optional[str] = None
    card_brand: Optional[str] = None
    account_type: Optional[str] = None
    transaction_id: Optional[str] = None
    gateway_response: Optional[str] = None
    payment_date: datetime = Field(default_factory=datetime.utcnow)


class Document(SQLModel, table=True):
    """Generated policy artifact (declarations page, ID card)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_id: int = Field(foreign_key="policy.id", ondelete="CASCADE", index=True)
    document_number: str = Field(unique=True)
    document_type: str
    document_name: str
    version: int = 1
    document_status: str
    storage_url: Optional[str] = None
    mime_type: str = "application/pdf"
    generated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PolicyEvent(SQLModel, table=True):
    """Append-only status change log."""
    __tablename__ = "policy_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    policy_id: int = Field(foreign_key="policy.id", ondelete="CASCADE", index=True)
    event_type: str
    previous_status: Optional[str] = None
    new_status: str
    reason: Optional[str] = None
    event_date: datetime = Field(default_factory=datetime.utcnow)


class Claim(SQLModel, table=True):
    """Claim filed against a bound or in-force policy."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_id: int = Field(foreign_key="policy.id", ondelete="CASCADE", index=True)
    claim_number: str = Field(unique=True, index=True)
    status: str
    claim_type: Optional[str] = None
    incident_date: date
    incident_location: str
    incident_description: str
    estimated_amount: Optional[float] = None
    other_parties_involved: Optional[str] = None
    police_report_filed: bool = False
    police_report_number: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ClaimDocument(SQLModel, table=True):
    """Metadata of a file attached to a claim; the file itself is not stored."""
    __tablename__ = "claim_document"

    id: Optional[int] = Field(default=None, primary_key=True)
    claim_id: int = Field(foreign_key="claim.id", ondelete="CASCADE", index=True)
    document_number: str = Field(unique=True)
    filename: str
    mime_type: str
    file_size: int
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class Signature(SQLModel, table=True):
    """Signature captured in the signing ceremony; one per quote."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_id: int = Field(foreign_key="policy.id", ondelete="CASCADE", unique=True, index=True)
    signer_email: str
    signature_image_data: str  # base64 PNG or JPEG
    signature_format: str
    signature_date: datetime = Field(default_factory=datetime.utcnow)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class IdempotencyKey(SQLModel, table=True):
    """Idempotency key model for preventing duplicate requests."""
    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(unique=True, index=True)
    method: str
    path: str
    request_hash: str
    response_json: str  # JSON string
    created_at: datetime = Field(default_factory=datetime.utcnow)
