from __future__ import annotations

from stay_intake.modules.extraction.classifier import classify_document
from stay_intake.modules.extraction.records import DocumentType


def test_checkin_and_checkout_together_are_mixed():
    result = classify_document("Entradas do dia\n...\nSaídas do dia", "lista.pdf")

    assert result.type == DocumentType.MIXED
    assert result.strategy == "table"
    assert "check-in" in result.characteristics
    assert "check-out" in result.characteristics


def test_filename_alone_can_classify():
    assert classify_document("A169-XYZ1 Almada", "Arrivals 2024-06.pdf").type == DocumentType.CHECKIN
    assert classify_document("A169-XYZ1 Almada", "departures.pdf").type == DocumentType.CHECKOUT


def test_control_documents():
    result = classify_document("Mapa de reservas - Aroeira I", "")

    assert result.type == DocumentType.CONTROL
    assert result.strategy == "control"
    assert "aroeira" in result.characteristics


def test_unrecognized_documents_fall_back_to_single():
    result = classify_document("Booking confirmation for your stay", "confirmation.pdf")

    assert result.type == DocumentType.UNKNOWN
    assert result.strategy == "single"
