from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Iterable
from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stay_intake.core.config import settings
from stay_intake.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_document_context,
    set_document_context,
)
from stay_intake.modules.extraction.assembly import assemble_reservation
from stay_intake.modules.extraction.classifier import classify_document
from stay_intake.modules.extraction.errors import ExtractionError
from stay_intake.modules.extraction.fields import coerce_reservation_fields
from stay_intake.modules.extraction.manual import manual_extract
from stay_intake.modules.extraction.matching import match_property
from stay_intake.modules.extraction.models import CACHE_SCHEMA_VERSION, ExtractionAICache
from stay_intake.modules.extraction.records import (
    DocumentClassification,
    DocumentType,
    ExtractedReservation,
    MultiReservationResult,
    ProcessedReservation,
    ProcessingResult,
    PropertyDefaults,
    PropertyMatch,
    Severity,
    StructuredFields,
    TableRow,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
)
from stay_intake.modules.extraction.structured import extract_structured_fields
from stay_intake.modules.extraction.tables import parse_reservation_table, table_confidence
from stay_intake.modules.extraction.text import extract_text
from stay_intake.modules.extraction.validation import validate_reservation, with_issue
from stay_intake.modules.properties.service import list_property_defaults
from stay_intake.modules.reservations.service import create_reservation_from_record

logger = get_logger(__name__)


def process_document(
    *,
    body: bytes,
    filename: str,
    content_type: str | None = None,
    catalog: Iterable[PropertyDefaults],
    session: Session | None = None,
) -> ProcessingResult:
    """Run one uploaded document through the whole pipeline.

    Never raises: every failure comes back as ``success=False`` with an
    error code or message.
    """
    token = set_document_context(hashlib.sha256(body or b"").hexdigest()[:16])
    start = time.monotonic()
    log_event(
        logger,
        "extraction.start",
        filename=filename,
        content_type=content_type,
        byte_size=len(body or b""),
    )
    try:
        result = _run_pipeline(
            body=body,
            filename=filename,
            content_type=content_type,
            catalog=list(catalog),
            session=session,
        )
    except ExtractionError as e:
        log_event(
            logger,
            "extraction.finish",
            level=logging.WARNING,
            status="failed",
            error=e.code,
            reason=str(e),
            duration_ms=monotonic_ms(start),
        )
        return ProcessingResult(success=False, message=str(e), error=e.code)
    except Exception as e:
        log_exception(logger, "extraction.error", filename=filename, duration_ms=monotonic_ms(start))
        return ProcessingResult(
            success=False,
            message=f"Failed to process {filename}",
            error=str(e) or type(e).__name__,
        )
    else:
        log_event(
            logger,
            "extraction.finish",
            status=result.validation.status.value if result.validation else None,
            source=result.extraction_source,
            property_id=result.property_id,
            match_score=result.match_score,
            duration_ms=monotonic_ms(start),
        )
        return result
    finally:
        reset_document_context(token)


def process_upload(
    session: Session,
    *,
    body: bytes,
    filename: str,
    content_type: str | None = None,
) -> ProcessingResult:
    """Process against the current catalog and save complete, matched reservations."""
    catalog = list_property_defaults(session)
    result = process_document(
        body=body,
        filename=filename,
        content_type=content_type,
        catalog=catalog,
        session=session,
    )
    if not result.success:
        # A failed flush inside the pipeline leaves the transaction unusable.
        session.rollback()
        return result
    if not _should_persist(result):
        # Keeps any AI cache rows written during extraction.
        session.commit()
        return result

    try:
        reservation = create_reservation_from_record(
            session,
            result.record,
            raw_text=result.extracted_data.raw_text if result.extracted_data else "",
            validation_status=result.validation.status,
        )
    except Exception as e:
        session.rollback()
        log_exception(logger, "reservation.create.error", filename=filename)
        return replace(result, message=f"{result.message}; not saved", error=str(e))
    return replace(result, reservation_id=reservation.id)


def process_multi_reservation_document(
    *,
    body: bytes,
    filename: str,
    content_type: str | None = None,
    catalog: Iterable[PropertyDefaults],
) -> MultiReservationResult:
    """Check-in / check-out listings: validate, match and price every row."""
    start = time.monotonic()
    try:
        text = extract_text(body, filename=filename, content_type=content_type)
        classification = classify_document(text, filename)
        rows = parse_reservation_table(text)
        log_event(
            logger,
            "extraction.table.parsed",
            filename=filename,
            document_type=classification.type.value,
            rows=len(rows),
        )
        if not rows:
            return MultiReservationResult(
                success=False,
                document_type=classification.type,
                scenario=classification.description,
                errors=("No reservation rows found",),
            )

        properties = list(catalog)
        processed = [process_table_row(row, properties) for row in rows]
        confidence, missing, requires_confirmation = table_confidence(processed)
        log_event(
            logger,
            "extraction.table.finish",
            rows=len(processed),
            confidence=confidence,
            requires_confirmation=requires_confirmation,
            duration_ms=monotonic_ms(start),
        )
        return MultiReservationResult(
            success=True,
            document_type=classification.type,
            scenario=classification.description,
            reservations=tuple(processed),
            confidence=confidence,
            missing_data=missing,
            requires_confirmation=requires_confirmation,
        )
    except ExtractionError as e:
        return MultiReservationResult(
            success=False,
            document_type=DocumentType.UNKNOWN,
            scenario="Processing error",
            errors=(e.code,),
        )
    except Exception as e:
        log_exception(logger, "extraction.error", filename=filename, duration_ms=monotonic_ms(start))
        return MultiReservationResult(
            success=False,
            document_type=DocumentType.UNKNOWN,
            scenario="Processing error",
            errors=(str(e) or type(e).__name__,),
        )


def process_table_row(row: TableRow, catalog: list[PropertyDefaults]) -> ProcessedReservation:
    adults = row.adults or 0
    children = row.children or 0
    fields = ExtractedReservation(
        property_name=row.property_name,
        guest_name=row.guest_name or "",
        check_in_date=row.check_in_date or "",
        check_out_date=row.check_out_date or "",
        guest_email=row.guest_email,
        guest_phone=row.guest_phone,
        num_guests=(adults + children) or None,
        adults=row.adults,
        children=row.children,
        reference=row.reference,
    )
    validation, match = _validate_and_match(fields, catalog)
    record = assemble_reservation(
        fields, match.property if match else None, status=validation.status
    )

    missing: list[str] = []
    if match is None:
        missing.append("property")
    if not fields.guest_phone:
        missing.append("guest_phone")
    if not fields.guest_email:
        missing.append("guest_email")
    if not fields.total_amount:
        missing.append("total_amount")
    if not fields.check_in_date:
        missing.append("check_in_date")
    if not fields.check_out_date:
        missing.append("check_out_date")

    return ProcessedReservation(
        extracted_data=replace(
            validation.data_with_defaults, property_id=match.property.id if match else None
        ),
        validation=validation,
        record=record,
        property_id=match.property.id if match else None,
        match_score=match.score if match else None,
        missing=tuple(missing),
        country=row.country,
    )


def _run_pipeline(
    *,
    body: bytes,
    filename: str,
    content_type: str | None,
    catalog: list[PropertyDefaults],
    session: Session | None,
) -> ProcessingResult:
    text = extract_text(body, filename=filename, content_type=content_type)
    log_event(logger, "extraction.text", chars=len(text), lines=text.count("\n") + 1)

    classification = classify_document(text, filename)
    log_event(
        logger,
        "extraction.classified",
        document_type=classification.type.value,
        strategy=classification.strategy,
        characteristics=list(classification.characteristics),
    )

    structured = _extract_with_cache(text, classification=classification, session=session)
    if structured is None:
        structured = StructuredFields(data=manual_extract(text), source="manual")
        log_event(logger, "extraction.partial", keys=sorted(structured.data))
    fields = coerce_reservation_fields(structured.data, raw_text=text)

    validation, match = _validate_and_match(fields, catalog)
    record = assemble_reservation(
        fields, match.property if match else None, status=validation.status
    )
    return ProcessingResult(
        success=True,
        message=_summary_message(validation),
        extracted_data=replace(
            validation.data_with_defaults, property_id=match.property.id if match else None
        ),
        validation=validation,
        property_id=match.property.id if match else None,
        match_score=match.score if match else None,
        classification=classification,
        record=record,
        extraction_source=structured.source,
    )


def _validate_and_match(
    fields: ExtractedReservation, catalog: list[PropertyDefaults]
) -> tuple[ValidationResult, PropertyMatch | None]:
    validation = validate_reservation(fields)
    match = match_property(fields.property_name, catalog)
    log_event(
        logger,
        "extraction.property_match",
        property_name=fields.property_name or None,
        property_id=match.property.id if match else None,
        score=match.score if match else None,
        strategy=match.strategy if match else None,
    )
    if match is None:
        validation = with_issue(
            validation,
            ValidationIssue(
                "property_name",
                f"No catalog property matches {fields.property_name!r}",
                Severity.WARNING,
            ),
        )
    return validation, match


def _extract_with_cache(
    text: str,
    *,
    classification: DocumentClassification,
    session: Session | None,
) -> StructuredFields | None:
    if session is None:
        return extract_structured_fields(text, classification=classification)

    # The classification hint is part of the prompt.
    key = f"{classification.type.value}\n{text}"
    text_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()
    cached = get_cached_ai_fields(session, text_hash=text_hash)
    if cached is not None:
        log_event(logger, "extraction.ai.cache_hit", text_hash=text_hash)
        return StructuredFields(data=cached, source="ai")

    structured = extract_structured_fields(text, classification=classification)
    if structured is not None and structured.source == "ai":
        upsert_ai_cache(session, text_hash=text_hash, structured=structured)
    return structured


def get_cached_ai_fields(session: Session, *, text_hash: str) -> dict | None:
    cached = session.scalar(
        select(ExtractionAICache).where(ExtractionAICache.text_hash == text_hash)
    )
    if not cached:
        return None
    if cached.schema_version != CACHE_SCHEMA_VERSION or cached.model != settings.gemini_model:
        return None
    if not isinstance(cached.response_json, dict):
        return None
    return cached.response_json


def upsert_ai_cache(session: Session, *, text_hash: str, structured: StructuredFields) -> None:
    cached = session.scalar(
        select(ExtractionAICache).where(ExtractionAICache.text_hash == text_hash)
    )
    if not cached:
        candidate = ExtractionAICache(
            text_hash=text_hash,
            provider="gemini",
            model=settings.gemini_model,
            schema_version=CACHE_SCHEMA_VERSION,
            attempts=structured.attempts,
            response_json=structured.data,
        )
        try:
            with session.begin_nested():
                session.add(candidate)
                session.flush()
            return
        except IntegrityError:
            cached = session.scalar(
                select(ExtractionAICache).where(ExtractionAICache.text_hash == text_hash)
            )
            if not cached:
                return
    cached.provider = "gemini"
    cached.model = settings.gemini_model
    cached.schema_version = CACHE_SCHEMA_VERSION
    cached.attempts = structured.attempts
    cached.response_json = structured.data
    session.add(cached)
    session.flush()


def _should_persist(result: ProcessingResult) -> bool:
    return bool(
        result.success
        and result.record is not None
        and result.validation is not None
        and result.validation.status != ValidationStatus.INCOMPLETE
        and result.property_id is not None
    )


def _summary_message(validation: ValidationResult) -> str:
    if validation.status == ValidationStatus.VALID:
        return "Reservation extracted"
    if validation.status == ValidationStatus.INCOMPLETE:
        return "Reservation incomplete; missing " + ", ".join(validation.missing_fields)
    flagged = dict.fromkeys(issue.field for issue in validation.errors)
    return "Reservation extracted; review required (" + ", ".join(flagged) + ")"
