from __future__ import annotations

import re
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation

from stay_intake.modules.extraction.records import (
    AMOUNT_FIELDS,
    ExtractedReservation,
    Platform,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
)

REQUIRED_FIELDS: tuple[str, ...] = ("property_name", "guest_name", "check_in_date", "check_out_date")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_reservation(fields: ExtractedReservation) -> ValidationResult:
    issues: list[ValidationIssue] = []
    missing: list[str] = []

    for name in REQUIRED_FIELDS:
        if not str(getattr(fields, name) or "").strip():
            missing.append(name)
            issues.append(ValidationIssue(name, f"{name} is required", Severity.ERROR))

    check_in = _check_date(fields, "check_in_date", issues, missing)
    check_out = _check_date(fields, "check_out_date", issues, missing)
    if check_in and check_out and check_out <= check_in:
        issues.append(
            ValidationIssue(
                "check_out_date", "check_out_date must be after check_in_date", Severity.ERROR
            )
        )

    for name in AMOUNT_FIELDS:
        raw = getattr(fields, name)
        if raw is None:
            continue
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            issues.append(ValidationIssue(name, f"{name} is not a number: {raw!r}", Severity.WARNING))
            continue
        if not value.is_finite() or value < 0:
            issues.append(ValidationIssue(name, f"{name} must not be negative", Severity.WARNING))

    if not (fields.guest_email or "").strip() and not (fields.guest_phone or "").strip():
        issues.append(
            ValidationIssue("contact_info", "No guest email or phone found", Severity.WARNING)
        )

    return _build_result(fields, issues=issues, missing=missing)


def with_issue(result: ValidationResult, issue: ValidationIssue) -> ValidationResult:
    """Copy of `result` with one more issue and the status recomputed."""
    return _build_result(
        result.data_with_defaults,
        issues=[*result.errors, issue],
        missing=list(result.missing_fields),
    )


def _check_date(
    fields: ExtractedReservation,
    name: str,
    issues: list[ValidationIssue],
    missing: list[str],
) -> date | None:
    raw = str(getattr(fields, name) or "").strip()
    if not raw:
        return None
    parsed: date | None = None
    if _ISO_DATE_RE.match(raw):
        try:
            parsed = date.fromisoformat(raw)
        except ValueError:
            parsed = None
    if parsed is None:
        missing.append(name)
        issues.append(ValidationIssue(name, f"{name} must be a YYYY-MM-DD date", Severity.ERROR))
    return parsed


def _build_result(
    fields: ExtractedReservation,
    *,
    issues: list[ValidationIssue],
    missing: list[str],
) -> ValidationResult:
    if missing:
        status = ValidationStatus.INCOMPLETE
    elif issues:
        status = ValidationStatus.NEEDS_REVIEW
    else:
        status = ValidationStatus.VALID

    warning_fields = tuple(dict.fromkeys(i.field for i in issues if i.severity == Severity.WARNING))
    return ValidationResult(
        status=status,
        is_valid=status == ValidationStatus.VALID,
        errors=tuple(issues),
        missing_fields=tuple(dict.fromkeys(missing)),
        warning_fields=warning_fields,
        data_with_defaults=_with_defaults(fields, status),
    )


def _with_defaults(fields: ExtractedReservation, status: ValidationStatus) -> ExtractedReservation:
    adults = fields.adults or 0
    children = fields.children or 0
    amounts = {
        name: "0" if getattr(fields, name) is None else getattr(fields, name)
        for name in AMOUNT_FIELDS
    }
    return replace(
        fields,
        num_guests=fields.num_guests or (adults + children) or 1,
        adults=adults,
        children=children,
        platform=fields.platform or Platform.DIRECT,
        validation_status=status,
        **amounts,
    )
