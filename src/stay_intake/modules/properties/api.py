from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stay_intake.core.db import db_session
from stay_intake.modules.properties.schemas import PropertyCreateIn, PropertyOut
from stay_intake.modules.properties.service import create_property, list_properties

router = APIRouter(tags=["properties"])


@router.get("/properties", response_model=list[PropertyOut])
def get_properties(
    include_inactive: bool = False,
    session: Session = Depends(db_session),
) -> list[PropertyOut]:
    props = list_properties(session, include_inactive=include_inactive)
    return [PropertyOut.model_validate(p, from_attributes=True) for p in props]


@router.post("/properties", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
def post_property(payload: PropertyCreateIn, session: Session = Depends(db_session)) -> PropertyOut:
    prop = create_property(session, **payload.model_dump())
    return PropertyOut.model_validate(prop, from_attributes=True)
