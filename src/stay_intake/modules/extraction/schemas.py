from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from stay_intake.modules.extraction.records import (
    DocumentType,
    Platform,
    Severity,
    ValidationStatus,
)


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ExtractedReservationOut(_FromAttributes):
    property_name: str
    guest_name: str
    check_in_date: str
    check_out_date: str
    property_id: int | None
    guest_email: str | None
    guest_phone: str | None
    num_guests: int | None
    adults: int | None
    children: int | None
    total_amount: str | None
    platform_fee: str | None
    cleaning_fee: str | None
    check_in_fee: str | None
    commission_fee: str | None
    team_payment: str | None
    net_amount: str | None
    platform: Platform | None
    reference: str | None
    validation_status: ValidationStatus | None


class ValidationIssueOut(_FromAttributes):
    field: str
    message: str
    severity: Severity


class ValidationOut(_FromAttributes):
    status: ValidationStatus
    is_valid: bool
    errors: list[ValidationIssueOut]
    missing_fields: list[str]
    warning_fields: list[str]


class ClassificationOut(_FromAttributes):
    type: DocumentType
    description: str
    strategy: str
    characteristics: list[str]


class ReservationRecordOut(_FromAttributes):
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
    reference: str | None
    notes: str


class ProcessingResultOut(_FromAttributes):
    filename: str | None = None
    success: bool
    message: str
    error: str | None
    extracted_data: ExtractedReservationOut | None
    validation: ValidationOut | None
    property_id: int | None
    match_score: float | None
    classification: ClassificationOut | None
    record: ReservationRecordOut | None
    extraction_source: str | None
    reservation_id: int | None


class ProcessedReservationOut(_FromAttributes):
    extracted_data: ExtractedReservationOut
    validation: ValidationOut
    record: ReservationRecordOut
    property_id: int | None
    match_score: float | None
    missing: list[str]
    country: str | None


class MultiReservationResultOut(_FromAttributes):
    success: bool
    document_type: DocumentType
    scenario: str
    reservations: list[ProcessedReservationOut]
    confidence: int
    missing_data: list[str]
    requires_confirmation: bool
    errors: list[str]
