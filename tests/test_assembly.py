from __future__ import annotations

from decimal import Decimal

from stay_intake.modules.extraction.assembly import assemble_reservation
from stay_intake.modules.extraction.records import (
    ExtractedReservation,
    Platform,
    PropertyDefaults,
    ValidationStatus,
)

PROPERTY = PropertyDefaults(
    id=1,
    name="Almada Noronha 2",
    cleaning_cost=Decimal("45"),
    check_in_fee=Decimal("15"),
    commission=Decimal("10"),
    team_payment=Decimal("30"),
)


def _fields(**overrides) -> ExtractedReservation:
    base = {
        "property_name": "Almada Noronha 2",
        "guest_name": "João Silva",
        "check_in_date": "2024-06-01",
        "check_out_date": "2024-06-05",
        "total_amount": "1000",
        "platform": Platform.AIRBNB,
    }
    base.update(overrides)
    return ExtractedReservation(**base)


def test_platform_fee_defaults_to_ten_percent_for_airbnb():
    record = assemble_reservation(_fields(), PROPERTY, status=ValidationStatus.VALID)

    assert record.platform_fee == Decimal("100")
    assert record.cleaning_fee == Decimal("45")
    assert record.check_in_fee == Decimal("15")
    assert record.commission_fee == Decimal("100.00")
    assert record.team_payment == Decimal("30")
    assert record.net_amount == Decimal("710.00")
    assert record.status == "confirmed"
    assert record.needs_review is False
    assert record.property_id == 1


def test_platform_fee_rounds_half_up_to_units():
    record = assemble_reservation(
        _fields(total_amount="1005", platform=Platform.BOOKING), PROPERTY
    )
    assert record.platform_fee == Decimal("101")


def test_direct_bookings_pay_no_platform_fee():
    record = assemble_reservation(_fields(platform=Platform.DIRECT), PROPERTY)
    assert record.platform_fee == Decimal("0")


def test_explicit_amounts_win_over_property_defaults():
    record = assemble_reservation(
        _fields(platform_fee="80", cleaning_fee="0", commission_fee="12.5"),
        PROPERTY,
        status=ValidationStatus.VALID,
    )

    assert record.platform_fee == Decimal("80")
    assert record.cleaning_fee == Decimal("0")
    assert record.commission_fee == Decimal("12.5")
    assert record.net_amount == Decimal("862.50")


def test_unmatched_property_zeroes_defaults_and_flags_review():
    record = assemble_reservation(_fields(), None, status=ValidationStatus.VALID)

    assert record.property_id is None
    assert record.property_name == "Almada Noronha 2"
    assert record.platform_fee == Decimal("100")
    assert record.cleaning_fee == Decimal("0")
    assert record.commission_fee == Decimal("0")
    assert record.net_amount == Decimal("900.00")
    assert record.needs_review is True


def test_non_valid_status_keeps_record_pending():
    record = assemble_reservation(_fields(), PROPERTY, status=ValidationStatus.NEEDS_REVIEW)

    assert record.status == "pending"
    assert record.needs_review is True
