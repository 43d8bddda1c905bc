"""
Pydantic schemas for the quote snapshot and request/response validation.

Snapshot sections serialize with camelCase aliases (the stored CRM
document format) and accept either camelCase or snake_case on input.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import date, datetime


class SnapshotSection(BaseModel):
    """Immutable snapshot section with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# Snapshot sections
class Driver(SnapshotSection):
    """Primary named insured."""
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    birth_date: date
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    years_licensed: Optional[int] = Field(None, ge=0)
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    is_primary: bool = True


class AdditionalDriver(Driver):
    """Additional household driver."""
    relationship: Optional[str] = Field(None, description="spouse, child, parent, sibling, other")
    is_primary: bool = False


class Vehicle(SnapshotSection):
    year: int = Field(ge=1900, le=2100)
    make: str
    model: str
    vin: Optional[str] = None
    body_type: Optional[str] = None
    annual_mileage: Optional[int] = Field(None, ge=0)
    primary_driver_id: Optional[str] = None


class Address(SnapshotSection):
    address_line_1: str = Field(alias="addressLine1")
    address_line_2: Optional[str] = Field(None, alias="addressLine2")
    city: str
    state: str = Field(min_length=2, max_length=2)
    zip_code: str


class Coverages(SnapshotSection):
    """Coverage selections; limits and deductibles are tier keys for rating."""
    start_date: Optional[date] = None
    bodily_injury_limit: Optional[str] = Field(None, description="e.g. 100/300")
    property_damage_limit: Optional[str] = Field(None, description="e.g. 50000")
    collision: bool = False
    collision_deductible: Optional[int] = None
    comprehensive: bool = False
    comprehensive_deductible: Optional[int] = None
    uninsured_motorist: bool = False
    roadside_assistance: bool = False
    rental_reimbursement: bool = False
    rental_limit: Optional[int] = None

    @field_validator("bodily_injury_limit", "property_damage_limit", mode="before")
    @classmethod
    def _limit_as_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value


class Premium(SnapshotSection):
    total: int
    monthly: float
    six_month: int


class SnapshotMeta(SnapshotSection):
    created_at: datetime
    updated_at: datetime
    finalized_at: Optional[datetime] = None
    version: int = 1
    quote_number: str


class QuoteSnapshot(SnapshotSection):
    """Versioned, self-contained quote document."""
    driver: Driver
    additional_drivers: List[AdditionalDriver] = Field(default_factory=list)
    vehicle: Optional[Vehicle] = None  # mirrors vehicles[0]
    vehicles: List[Vehicle] = Field(default_factory=list)
    address: Optional[Address] = None
    coverages: Optional[Coverages] = None
    premium: Premium
    meta: SnapshotMeta


# Request schemas
class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateQuoteRequest(RequestModel):
    """Quote request; omit coverages to start a progressive (INCOMPLETE) quote."""
    driver: Driver
    address: Address
    vehicle: Optional[Vehicle] = Field(None, description="Legacy single vehicle")
    vehicles: List[Vehicle] = Field(default_factory=list)
    additional_drivers: List[AdditionalDriver] = Field(default_factory=list)
    coverages: Optional[Coverages] = None


class UpdateDriversRequest(RequestModel):
    additional_drivers: List[AdditionalDriver]


class UpdateVehiclesRequest(RequestModel):
    vehicles: List[Vehicle]


class RatingRequest(RequestModel):
    """Stateless premium calculation request."""
    birth_date: date
    additional_drivers: List[AdditionalDriver] = Field(default_factory=list)
    vehicles: List[Vehicle] = Field(default_factory=list)
    coverages: Optional[Coverages] = None
    progressive: bool = True


class BindRequest(RequestModel):
    """Bind a quote with payment details."""
    quote_number: str = Field(description="Quote number in DZXXXXXXXX format")
    payment_method: str = Field(description="credit_card or ach")
    card_number: Optional[str] = None
    card_expiry: Optional[str] = Field(None, description="MM/YY")
    card_cvv: Optional[str] = None
    routing_number: Optional[str] = None
    account_number: Optional[str] = None
    account_type: Optional[str] = Field(None, description="checking or savings")

    def payment_details(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"quote_number", "payment_method"}, exclude_none=True)


class FileClaimRequest(RequestModel):
    incident_date: date
    incident_location: str = Field(min_length=1, max_length=500)
    incident_description: str = Field(min_length=1, max_length=2000)
    claim_type: Optional[str] = Field(None, description="collision, comprehensive, liability, uninsured_motorist")
    estimated_amount: Optional[float] = Field(None, ge=0)
    other_parties_involved: Optional[str] = Field(None, max_length=1000)
    police_report_filed: bool = False
    police_report_number: Optional[str] = None


class ClaimDocumentRequest(RequestModel):
    """Metadata of a file attached to a claim."""
    filename: str = Field(min_length=1, max_length=255)
    mime_type: str = Field(description="image/jpeg, image/png or application/pdf")
    file_size: int = Field(gt=0, description="Size in bytes")


class CreateSignatureRequest(RequestModel):
    """Signature captured during the signing ceremony."""
    quote_number: str
    signer_email: str = Field(min_length=3)
    signature_image_data: str = Field(description="Base64 encoded image, data URL prefix allowed")
    signature_format: str = Field(description="PNG or JPEG")


# Response schemas
class ExpirationInfo(BaseModel):
    is_expired: bool
    days_old: int
    days_until_expiration: int
    expires_at: datetime
    message: str


class QuoteResponse(BaseModel):
    quote_number: str
    policy_id: int
    status: str
    premium: Dict[str, Any]
    effective_date: date
    expiration_date: date
    quote_expires_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    snapshot: Dict[str, Any]
    expiration: Optional[ExpirationInfo] = None


class PremiumBreakdown(BaseModel):
    """Rating factors behind a premium."""
    base: int
    vehicle_age: Optional[int]
    vehicle_factor: float
    multi_vehicle_discount: float
    driver_age: int
    driver_factor: float
    additional_drivers_factor: float
    coverage_factor: float
    total: int
    monthly: float
    six_month: int


class PaymentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_number: str
    payment_method: str
    payment_status: str
    amount: int
    last_four_digits: Optional[str]
    card_brand: Optional[str] = None
    account_type: Optional[str] = None
    transaction_id: Optional[str]
    payment_date: datetime


class DocumentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    document_number: str
    document_type: str
    document_name: str
    document_status: str
    storage_url: Optional[str]
    generated_at: Optional[datetime]


class EventSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_type: str
    previous_status: Optional[str]
    new_status: str
    reason: Optional[str]
    event_date: datetime


class BindResponse(BaseModel):
    policy_id: int
    policy_number: str
    status: str
    premium_amount: int
    effective_date: date
    expiration_date: date
    payment: PaymentSummary
    documents: List[DocumentSummary]


class ActivateResponse(BaseModel):
    policy_id: int
    policy_number: str
    status: str
    effective_date: date
    expiration_date: date


class PolicyResponse(BaseModel):
    policy_id: int
    policy_number: str
    status: str
    premium_amount: int
    effective_date: date
    expiration_date: date
    snapshot: Dict[str, Any]
    payments: List[PaymentSummary]
    documents: List[DocumentSummary]
    events: List[EventSummary]


class ClaimResponse(BaseModel):
    claim_number: str
    policy_number: str
    status: str
    claim_type: Optional[str]
    incident_date: date
    incident_location: str
    incident_description: str
    estimated_amount: Optional[float]
    police_report_filed: bool
    police_report_number: Optional[str]
    created_at: datetime


class DashboardResponse(BaseModel):
    policy_number: str
    status: str
    effective_date: date
    expiration_date: date
    premium: Dict[str, Any]
    driver: Dict[str, Any]
    additional_drivers: List[Dict[str, Any]]
    vehicles: List[Dict[str, Any]]
    document_count: int
    open_claims_count: int
    recent_events: List[EventSummary]


class BillingResponse(BaseModel):
    policy_number: str
    premium: Dict[str, Any]
    payments: List[PaymentSummary]
    total_paid: int


class ClaimDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    document_number: str
    filename: str
    mime_type: str
    file_size: int
    uploaded_at: datetime


class SignatureResponse(BaseModel):
    quote_number: str
    signer_email: str
    signature_format: str
    signature_date: datetime
    signature_image_data: Optional[str] = None
