from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from stay_intake.core.config import settings
from stay_intake.modules.extraction.ai import GenerationResult
from stay_intake.modules.extraction.records import ValidationStatus

DOCUMENT = (
    "Reserva confirmada\n"
    "Almada Noronha 2\n"
    "João Silva\n"
    "joao@x.com\n"
    "+351912345678\n"
    "Check-in 01-06-2024 Check-out 05-06-2024\n"
    "Ref: A169-XYZ1\n"
    "2 Adultos\n"
)


def test_text_document_is_extracted_matched_and_priced(catalog):
    from stay_intake.modules.extraction.service import process_document

    result = process_document(
        body=DOCUMENT.encode("utf-8"),
        filename="reserva.txt",
        content_type="text/plain",
        catalog=catalog,
    )

    assert result.success is True
    assert result.error is None
    assert result.extraction_source == "manual"
    assert result.validation.status == ValidationStatus.VALID
    assert result.property_id == 1
    assert result.match_score == 100.0
    assert result.extracted_data.guest_name == "João Silva"
    assert result.extracted_data.check_in_date == "2024-06-01"
    assert result.extracted_data.num_guests == 2
    assert result.record.cleaning_fee == Decimal("45")
    assert result.record.status == "confirmed"


def test_short_text_fails_before_structured_extraction(monkeypatch, catalog):
    from stay_intake.modules.extraction import service

    calls: list[str] = []
    monkeypatch.setattr(
        service, "extract_structured_fields", lambda text, **_kw: calls.append(text)
    )

    result = service.process_document(
        body=b"Almada Noronha 2 ok.", filename="tiny.txt", catalog=catalog
    )

    assert result.success is False
    assert result.error == "INSUFFICIENT_TEXT"
    assert calls == []


def test_unmatched_property_needs_review(catalog):
    from stay_intake.modules.extraction.service import process_document

    body = DOCUMENT.replace("Almada Noronha 2", "Nazaré T2").encode("utf-8")
    result = process_document(body=body, filename="reserva.txt", catalog=catalog)

    assert result.success is True
    assert result.property_id is None
    assert result.validation.status == ValidationStatus.NEEDS_REVIEW
    assert "property_name" in result.validation.warning_fields
    assert result.record.needs_review is True
    assert "property_name" in result.message


def test_unexpected_errors_become_failed_results(monkeypatch, catalog):
    from stay_intake.modules.extraction import service

    def _boom(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(service, "classify_document", _boom)

    result = service.process_document(
        body=DOCUMENT.encode("utf-8"), filename="reserva.txt", catalog=catalog
    )

    assert result.success is False
    assert result.error == "boom"


def test_unsupported_and_bad_pdf_uploads_fail_softly(catalog):
    from stay_intake.modules.extraction.service import process_document

    binary = process_document(body=b"\x00\x01\x02\x03garbage", filename="blob.bin", catalog=catalog)
    fake_pdf = process_document(
        body=b"\x00\x01\x02\x03",
        filename="reserva.pdf",
        content_type="application/pdf",
        catalog=catalog,
    )

    assert (binary.success, binary.error) == (False, "UNSUPPORTED_FILE")
    assert (fake_pdf.success, fake_pdf.error) == (False, "UNSUPPORTED_FILE")


def test_process_upload_persists_matched_reservation():
    from stay_intake.core.db import SessionLocal, session_scope
    from stay_intake.modules.extraction.service import process_upload
    from stay_intake.modules.properties.service import create_property
    from stay_intake.modules.reservations.service import get_reservation

    with session_scope() as session:
        create_property(session, name="Almada Noronha 2", cleaning_cost=Decimal("45"))

    with SessionLocal() as session:
        result = process_upload(
            session, body=DOCUMENT.encode("utf-8"), filename="reserva.txt", content_type="text/plain"
        )
        assert result.success is True
        assert result.reservation_id is not None

        reservation = get_reservation(session, reservation_id=result.reservation_id)
        assert reservation is not None
        assert reservation.guest_name == "João Silva"
        assert reservation.check_in_date == date(2024, 6, 1)
        assert reservation.check_out_date == date(2024, 6, 5)
        assert reservation.cleaning_fee == Decimal("45")
        assert reservation.validation_status == "valid"
        assert reservation.reference == "A169-XYZ1"


def test_incomplete_documents_are_not_saved():
    from stay_intake.core.db import SessionLocal, session_scope
    from stay_intake.modules.extraction.service import process_upload
    from stay_intake.modules.properties.service import create_property
    from stay_intake.modules.reservations.models import Reservation

    with session_scope() as session:
        create_property(session, name="Almada Noronha 2")

    body = DOCUMENT.replace("Check-in 01-06-2024 Check-out 05-06-2024\n", "").encode("utf-8")
    with SessionLocal() as session:
        result = process_upload(session, body=body, filename="reserva.txt")

        assert result.success is True
        assert result.validation.status == ValidationStatus.INCOMPLETE
        assert result.reservation_id is None
        assert session.scalar(select(func.count()).select_from(Reservation)) == 0


def test_ai_result_is_cached_per_text(monkeypatch):
    from stay_intake.core.db import SessionLocal, session_scope
    from stay_intake.modules.extraction import ai
    from stay_intake.modules.extraction.models import ExtractionAICache
    from stay_intake.modules.extraction.service import process_upload
    from stay_intake.modules.properties.service import create_property

    monkeypatch.setattr(settings, "google_api_key", "test-key")
    payload = {
        "propertyName": "Almada Noronha 2",
        "guestName": "João Silva",
        "guestEmail": "joao@x.com",
        "checkInDate": "2024-06-01",
        "checkOutDate": "2024-06-05",
        "totalAmount": 500,
        "platform": "Airbnb",
    }
    calls: list[str] = []

    def _generate(prompt: str, **_kwargs) -> GenerationResult:
        calls.append(prompt)
        return GenerationResult(finish_reason="STOP", text=json.dumps(payload))

    monkeypatch.setattr(ai, "generate_content", _generate)

    with session_scope() as session:
        create_property(session, name="Almada Noronha 2")

    with SessionLocal() as session:
        first = process_upload(session, body=DOCUMENT.encode("utf-8"), filename="a.txt")
        second = process_upload(session, body=DOCUMENT.encode("utf-8"), filename="b.txt")

        assert len(calls) == 1
        assert first.extraction_source == "ai"
        assert second.extraction_source == "ai"
        assert second.record.platform_fee == Decimal("50")
        cached = session.scalar(select(ExtractionAICache))
        assert cached is not None
        assert cached.model == settings.gemini_model
        assert cached.response_json["guestName"] == "João Silva"


def test_failed_flush_does_not_break_the_next_upload(monkeypatch):
    from stay_intake.core.db import SessionLocal, session_scope
    from stay_intake.modules.extraction import ai, service
    from stay_intake.modules.properties.models import Property
    from stay_intake.modules.properties.service import create_property

    monkeypatch.setattr(settings, "google_api_key", "test-key")
    payload = {
        "propertyName": "Almada Noronha 2",
        "guestName": "João Silva",
        "guestEmail": "joao@x.com",
        "checkInDate": "2024-06-01",
        "checkOutDate": "2024-06-05",
    }
    monkeypatch.setattr(
        ai,
        "generate_content",
        lambda _prompt, **_kw: GenerationResult(finish_reason="STOP", text=json.dumps(payload)),
    )

    with session_scope() as session:
        create_property(session, name="Almada Noronha 2")

    real_upsert = service.upsert_ai_cache

    def _broken_upsert(session, **_kwargs):
        session.add(Property(name=None))
        session.flush()

    with SessionLocal() as session:
        monkeypatch.setattr(service, "upsert_ai_cache", _broken_upsert)
        failed = service.process_upload(session, body=DOCUMENT.encode("utf-8"), filename="a.txt")
        assert failed.success is False

        monkeypatch.setattr(service, "upsert_ai_cache", real_upsert)
        saved = service.process_upload(session, body=DOCUMENT.encode("utf-8"), filename="b.txt")
        assert saved.success is True
        assert saved.reservation_id is not None


def test_ai_cache_is_separate_per_document_type(monkeypatch):
    from stay_intake.core.db import SessionLocal
    from stay_intake.modules.extraction import ai
    from stay_intake.modules.extraction.models import ExtractionAICache
    from stay_intake.modules.extraction.service import process_upload

    monkeypatch.setattr(settings, "google_api_key", "test-key")
    payload = {
        "propertyName": "Almada Noronha 2",
        "guestName": "João Silva",
        "checkInDate": "2024-06-01",
        "checkOutDate": "2024-06-05",
    }
    prompts: list[str] = []

    def _generate(prompt: str, **_kwargs) -> GenerationResult:
        prompts.append(prompt)
        return GenerationResult(finish_reason="STOP", text=json.dumps(payload))

    monkeypatch.setattr(ai, "generate_content", _generate)

    with SessionLocal() as session:
        process_upload(session, body=DOCUMENT.encode("utf-8"), filename="reserva.txt")
        process_upload(session, body=DOCUMENT.encode("utf-8"), filename="arrivals.txt")
        process_upload(session, body=DOCUMENT.encode("utf-8"), filename="arrivals-copy.txt")

        assert len(prompts) == 2
        assert prompts[0] != prompts[1]
        assert session.scalar(select(func.count()).select_from(ExtractionAICache)) == 2
