from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


class ValidationStatus(str, enum.Enum):
    VALID = "valid"
    INCOMPLETE = "incomplete"
    NEEDS_REVIEW = "needs_review"
    FAILED = "failed"


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Platform(str, enum.Enum):
    AIRBNB = "airbnb"
    BOOKING = "booking"
    DIRECT = "direct"
    OTHER = "other"


class DocumentType(str, enum.Enum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    MIXED = "mixed"
    CONTROL = "control"
    UNKNOWN = "unknown"


AMOUNT_FIELDS: tuple[str, ...] = (
    "total_amount",
    "platform_fee",
    "cleaning_fee",
    "check_in_fee",
    "commission_fee",
    "team_payment",
    "net_amount",
)


@dataclass(frozen=True)
class ExtractedReservation:
    """Reservation fields recovered from one document.

    Amounts are decimal strings exactly as coerced from the source, so the
    validator can still flag values that do not parse.
    """

    property_name: str = ""
    guest_name: str = ""
    check_in_date: str = ""
    check_out_date: str = ""
    property_id: int | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    num_guests: int | None = None
    adults: int | None = None
    children: int | None = None
    total_amount: str | None = None
    platform_fee: str | None = None
    cleaning_fee: str | None = None
    check_in_fee: str | None = None
    commission_fee: str | None = None
    team_payment: str | None = None
    net_amount: str | None = None
    platform: Platform | None = None
    reference: str | None = None
    raw_text: str = ""
    validation_status: ValidationStatus | None = None


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    severity: Severity


@dataclass(frozen=True)
class ValidationResult:
    status: ValidationStatus
    is_valid: bool
    errors: tuple[ValidationIssue, ...]
    missing_fields: tuple[str, ...]
    warning_fields: tuple[str, ...]
    data_with_defaults: ExtractedReservation


@dataclass(frozen=True)
class DocumentClassification:
    type: DocumentType
    description: str
    strategy: str
    characteristics: tuple[str, ...] = ()


@dataclass(frozen=True)
class StructuredFields:
    data: dict[str, Any]
    source: str
    attempts: int = 0


@dataclass(frozen=True)
class PropertyDefaults:
    id: int
    name: str
    cleaning_cost: Decimal = Decimal("0")
    check_in_fee: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    team_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class PropertyMatch:
    property: PropertyDefaults
    score: float
    strategy: str


@dataclass(frozen=True)
class ReservationRecord:
    property_id: int | None
    property_name: str
    guest_name: str
    guest_email: str
    guest_phone: str
    check_in_date: str
    check_out_date: str
    num_guests: int
    total_amount: Decimal
    platform: Platform
    platform_fee: Decimal
    cleaning_fee: Decimal
    check_in_fee: Decimal
    commission_fee: Decimal
    team_payment: Decimal
    net_amount: Decimal
    status: str
    needs_review: bool
    reference: str | None = None
    notes: str = ""


@dataclass(frozen=True)
class ProcessingResult:
    success: bool
    message: str
    extracted_data: ExtractedReservation | None = None
    validation: ValidationResult | None = None
    property_id: int | None = None
    match_score: float | None = None
    classification: DocumentClassification | None = None
    record: ReservationRecord | None = None
    extraction_source: str | None = None
    reservation_id: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class TableRow:
    reference: str
    property_name: str
    guest_name: str | None = None
    check_in_date: str | None = None
    check_out_date: str | None = None
    adults: int | None = None
    children: int | None = None
    guest_phone: str | None = None
    guest_email: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class ProcessedReservation:
    extracted_data: ExtractedReservation
    validation: ValidationResult
    record: ReservationRecord
    property_id: int | None = None
    match_score: float | None = None
    missing: tuple[str, ...] = ()
    country: str | None = None


@dataclass(frozen=True)
class MultiReservationResult:
    success: bool
    document_type: DocumentType
    scenario: str
    reservations: tuple[ProcessedReservation, ...] = ()
    confidence: int = 0
    missing_data: tuple[str, ...] = ()
    requires_confirmation: bool = False
    errors: tuple[str, ...] = field(default_factory=tuple)
