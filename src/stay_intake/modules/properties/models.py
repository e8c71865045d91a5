from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from stay_intake.core.models import Base, IntegerPrimaryKey, Timestamped


class Property(IntegerPrimaryKey, Timestamped, Base):
    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    cleaning_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    check_in_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    # Percentage of the reservation total.
    commission: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    team_payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
