from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stay_intake.core.models import Base, IntegerPrimaryKey, Timestamped


class Reservation(IntegerPrimaryKey, Timestamped, Base):
    __tablename__ = "reservations"

    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), index=True)
    guest_name: Mapped[str] = mapped_column(String(200))
    guest_email: Mapped[str] = mapped_column(String(200), default="")
    guest_phone: Mapped[str] = mapped_column(String(50), default="")
    check_in_date: Mapped[date] = mapped_column(Date)
    check_out_date: Mapped[date] = mapped_column(Date)
    num_guests: Mapped[int] = mapped_column(Integer, default=1)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    platform: Mapped[str] = mapped_column(String(20), default="direct")
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    check_in_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    commission_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    team_payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    net_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    validation_status: Mapped[str] = mapped_column(String(20))
    needs_review: Mapped[bool] = mapped_column(Boolean, default=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    notes: Mapped[str] = mapped_column(Text, default="")
    raw_text: Mapped[str] = mapped_column(Text, default="")

    property = relationship("Property")
