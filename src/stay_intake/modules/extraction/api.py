from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from stay_intake.core.db import db_session
from stay_intake.core.logging import get_logger, log_event
from stay_intake.modules.extraction.schemas import MultiReservationResultOut, ProcessingResultOut
from stay_intake.modules.extraction.service import (
    process_multi_reservation_document,
    process_upload,
)
from stay_intake.modules.properties.service import list_property_defaults

router = APIRouter(tags=["documents"])
logger = get_logger(__name__)


@router.post("/documents/process", response_model=ProcessingResultOut)
async def process_document_upload(
    upload: UploadFile = File(...),
    session: Session = Depends(db_session),
) -> ProcessingResultOut:
    filename = upload.filename or "upload.bin"
    body = await upload.read()
    log_event(
        logger,
        "upload.received",
        filename=filename,
        content_type=upload.content_type,
        byte_size=len(body),
    )
    result = await run_in_threadpool(
        process_upload, session, body=body, filename=filename, content_type=upload.content_type
    )
    out = ProcessingResultOut.model_validate(result, from_attributes=True)
    return out.model_copy(update={"filename": filename})


@router.post("/documents/process/batch", response_model=list[ProcessingResultOut])
async def process_document_batch(
    uploads: list[UploadFile] = File(...),
    session: Session = Depends(db_session),
) -> list[ProcessingResultOut]:
    out: list[ProcessingResultOut] = []
    for upload in uploads:
        filename = upload.filename or "upload.bin"
        body = await upload.read()
        log_event(
            logger,
            "upload.received",
            filename=filename,
            content_type=upload.content_type,
            byte_size=len(body),
        )
        # Failures come back per file; process_upload does not raise.
        result = await run_in_threadpool(
            process_upload, session, body=body, filename=filename, content_type=upload.content_type
        )
        item = ProcessingResultOut.model_validate(result, from_attributes=True)
        out.append(item.model_copy(update={"filename": filename}))
    return out


@router.post("/documents/process/multi", response_model=MultiReservationResultOut)
async def process_multi_reservation_upload(
    upload: UploadFile = File(...),
    session: Session = Depends(db_session),
) -> MultiReservationResultOut:
    filename = upload.filename or "upload.bin"
    body = await upload.read()
    log_event(
        logger,
        "upload.received",
        filename=filename,
        content_type=upload.content_type,
        byte_size=len(body),
    )
    result = await run_in_threadpool(
        process_multi_reservation_document,
        body=body,
        filename=filename,
        content_type=upload.content_type,
        catalog=list_property_defaults(session),
    )
    return MultiReservationResultOut.model_validate(result, from_attributes=True)
