from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from stay_intake.core.db import engine
from stay_intake.modules.extraction.api import router as documents_router
from stay_intake.modules.properties.api import router as properties_router

router = APIRouter()

router.include_router(documents_router, prefix="/api")
router.include_router(properties_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/db")
def healthz_db() -> JSONResponse:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        return JSONResponse(status_code=503, content={"ok": False, "error": str(e)})
    return JSONResponse(status_code=200, content={"ok": True})
