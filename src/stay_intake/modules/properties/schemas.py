from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class PropertyCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    cleaning_cost: Decimal = Field(default=Decimal("0"), ge=0)
    check_in_fee: Decimal = Field(default=Decimal("0"), ge=0)
    commission: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    team_payment: Decimal = Field(default=Decimal("0"), ge=0)
    active: bool = True


class PropertyOut(BaseModel):
    id: int
    name: str
    cleaning_cost: Decimal
    check_in_fee: Decimal
    commission: Decimal
    team_payment: Decimal
    active: bool
    created_at: datetime
