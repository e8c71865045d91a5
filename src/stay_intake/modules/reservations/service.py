from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from stay_intake.core.logging import get_logger, log_event
from stay_intake.modules.extraction.records import ReservationRecord, ValidationStatus
from stay_intake.modules.reservations.models import Reservation

logger = get_logger(__name__)


def create_reservation_from_record(
    session: Session,
    record: ReservationRecord,
    *,
    raw_text: str = "",
    validation_status: ValidationStatus = ValidationStatus.VALID,
) -> Reservation:
    """Persist an assembled record. The record must carry a matched property."""
    if record.property_id is None:
        raise ValueError("Cannot persist a reservation without a matched property")

    reservation = Reservation(
        property_id=record.property_id,
        guest_name=record.guest_name,
        guest_email=record.guest_email,
        guest_phone=record.guest_phone,
        check_in_date=date.fromisoformat(record.check_in_date),
        check_out_date=date.fromisoformat(record.check_out_date),
        num_guests=record.num_guests,
        total_amount=record.total_amount,
        platform=record.platform.value,
        platform_fee=record.platform_fee,
        cleaning_fee=record.cleaning_fee,
        check_in_fee=record.check_in_fee,
        commission_fee=record.commission_fee,
        team_payment=record.team_payment,
        net_amount=record.net_amount,
        status=record.status,
        validation_status=validation_status.value,
        needs_review=record.needs_review,
        reference=record.reference,
        notes=record.notes,
        raw_text=raw_text,
    )
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    log_event(
        logger,
        "reservation.created",
        reservation_id=reservation.id,
        property_id=reservation.property_id,
        status=reservation.status,
        needs_review=reservation.needs_review,
    )
    return reservation


def get_reservation(session: Session, *, reservation_id: int) -> Reservation | None:
    return session.scalar(select(Reservation).where(Reservation.id == reservation_id))
