from __future__ import annotations

from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from stay_intake.modules.extraction.records import PropertyDefaults
from stay_intake.modules.properties.models import Property


def list_properties(session: Session, *, include_inactive: bool = False) -> list[Property]:
    stmt = select(Property).order_by(Property.name)
    if not include_inactive:
        stmt = stmt.where(Property.active.is_(True))
    return list(session.scalars(stmt))


def list_property_defaults(session: Session) -> list[PropertyDefaults]:
    """Snapshot of the active catalog for matching and fee defaults."""
    return [to_property_defaults(p) for p in list_properties(session)]


def to_property_defaults(prop: Property) -> PropertyDefaults:
    return PropertyDefaults(
        id=prop.id,
        name=prop.name,
        cleaning_cost=Decimal(prop.cleaning_cost or 0),
        check_in_fee=Decimal(prop.check_in_fee or 0),
        commission=Decimal(prop.commission or 0),
        team_payment=Decimal(prop.team_payment or 0),
    )


def create_property(
    session: Session,
    *,
    name: str,
    cleaning_cost: Decimal = Decimal("0"),
    check_in_fee: Decimal = Decimal("0"),
    commission: Decimal = Decimal("0"),
    team_payment: Decimal = Decimal("0"),
    active: bool = True,
) -> Property:
    name_norm = " ".join((name or "").split())
    if not name_norm:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    if session.scalar(select(Property).where(Property.name == name_norm)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Property already exists")

    prop = Property(
        name=name_norm,
        cleaning_cost=cleaning_cost,
        check_in_fee=check_in_fee,
        commission=commission,
        team_payment=team_payment,
        active=active,
    )
    session.add(prop)
    session.commit()
    session.refresh(prop)
    return prop
