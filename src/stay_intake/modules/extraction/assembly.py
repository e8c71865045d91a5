from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from stay_intake.core.config import settings
from stay_intake.modules.extraction.records import (
    ExtractedReservation,
    Platform,
    PropertyDefaults,
    ReservationRecord,
    ValidationStatus,
)

_CENTS = Decimal("0.01")
_UNITS = Decimal("1")
_ZERO = Decimal("0")


def assemble_reservation(
    fields: ExtractedReservation,
    matched_property: PropertyDefaults | None,
    *,
    status: ValidationStatus | None = None,
) -> ReservationRecord:
    """Turn extracted fields into a persistable record with fees filled in.

    Explicit amounts in `fields` always win; the rest comes from the matched
    property. Without a property those defaults are zero and the record is
    flagged for review.
    """
    status = status or fields.validation_status or ValidationStatus.INCOMPLETE
    platform = fields.platform or Platform.DIRECT
    total = _amount(fields.total_amount) or _ZERO

    prop_cleaning = matched_property.cleaning_cost if matched_property else _ZERO
    prop_check_in = matched_property.check_in_fee if matched_property else _ZERO
    prop_commission = matched_property.commission if matched_property else _ZERO
    prop_team = matched_property.team_payment if matched_property else _ZERO

    platform_fee = _explicit(fields.platform_fee, default=default_platform_fee(total, platform))
    cleaning_fee = _explicit(fields.cleaning_fee, default=Decimal(prop_cleaning))
    check_in_fee = _explicit(fields.check_in_fee, default=Decimal(prop_check_in))
    commission_fee = _explicit(
        fields.commission_fee,
        default=(total * Decimal(prop_commission) / 100).quantize(_CENTS, rounding=ROUND_HALF_UP),
    )
    team_payment = _explicit(fields.team_payment, default=Decimal(prop_team))
    net_amount = total - platform_fee - cleaning_fee - check_in_fee - commission_fee - team_payment

    notes: list[str] = []
    if matched_property is None:
        notes.append("Property not matched; property fees not applied")
    if status != ValidationStatus.VALID:
        notes.append(f"Validation status: {status.value}")

    adults = fields.adults or 0
    children = fields.children or 0
    return ReservationRecord(
        property_id=matched_property.id if matched_property else None,
        property_name=matched_property.name if matched_property else fields.property_name,
        guest_name=fields.guest_name,
        guest_email=fields.guest_email or "",
        guest_phone=fields.guest_phone or "",
        check_in_date=fields.check_in_date,
        check_out_date=fields.check_out_date,
        num_guests=fields.num_guests or (adults + children) or 1,
        total_amount=total,
        platform=platform,
        platform_fee=platform_fee,
        cleaning_fee=cleaning_fee,
        check_in_fee=check_in_fee,
        commission_fee=commission_fee,
        team_payment=team_payment,
        net_amount=net_amount.quantize(_CENTS, rounding=ROUND_HALF_UP),
        status="confirmed" if status == ValidationStatus.VALID else "pending",
        needs_review=matched_property is None or status != ValidationStatus.VALID,
        reference=fields.reference,
        notes="; ".join(notes),
    )


def default_platform_fee(total: Decimal, platform: Platform) -> Decimal:
    platforms = {p.lower() for p in settings.platform_fee_platforms}
    if platform.value not in platforms:
        return _ZERO
    return (total * Decimal(settings.platform_fee_rate)).quantize(_UNITS, rounding=ROUND_HALF_UP)


def _explicit(raw: str | None, *, default: Decimal) -> Decimal:
    value = _amount(raw)
    return default if value is None else value


def _amount(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None
