from __future__ import annotations

from stay_intake.modules.extraction.manual import (
    extract_guest_name,
    extract_property_name,
    is_plausible_guest_name,
    manual_extract,
)

SCENARIO_TEXT = (
    "Almada Noronha 2\n"
    "João Silva\n"
    "joao@x.com\n"
    "+351912345678\n"
    "01-06-2024 05-06-2024\n"
    "Ref: A169-XYZ1"
)


def test_manual_extract_reads_single_reservation_sheet():
    out = manual_extract(SCENARIO_TEXT)

    assert out["propertyName"] == "Almada Noronha 2"
    assert out["guestName"] == "João Silva"
    assert out["guestEmail"] == "joao@x.com"
    assert out["guestPhone"] == "+351912345678"
    assert out["checkInDate"] == "2024-06-01"
    assert out["checkOutDate"] == "2024-06-05"
    assert out["reference"] == "A169-XYZ1"


def test_manual_extract_orders_dates_and_reads_adults():
    out = manual_extract("Aroeira II\nMaria Santos 2 Adultos\n10-08-2024 03-08-2024\n")

    assert out["checkInDate"] == "2024-08-03"
    assert out["checkOutDate"] == "2024-08-10"
    assert out["adults"] == 2
    assert out["numGuests"] == 2
    assert out["propertyName"] == "Aroeira II"


def test_manual_extract_returns_only_found_keys():
    assert manual_extract("nothing useful here") == {}


def test_repeated_name_before_phone_wins_for_control_sheets():
    text = "Controlo Aroeira\nPedro Almeida Pedro Almeida +351961234567\nOutro Nome Qualquer"
    assert extract_guest_name(text) == "Pedro Almeida"


def test_labelled_name_is_used_when_no_contact_follows():
    text = "Reserva confirmada\nNome: Beatriz Ferreira\n12-09-2024"
    assert extract_guest_name(text) == "Beatriz Ferreira"


def test_structural_words_are_never_guest_names():
    text = "Check In Report\nProperty Summary\nCasa Azul Grande\n"
    assert extract_guest_name(text) is None


def test_candidate_inside_property_name_is_rejected():
    assert not is_plausible_guest_name("Almada Noronha", property_name="Almada Noronha 2")
    assert is_plausible_guest_name("Rita Gomes Costa", property_name="Almada Noronha 2")


def test_name_length_and_token_bounds():
    assert not is_plausible_guest_name("Ana Sá")
    assert not is_plausible_guest_name("Ana Maria Sousa Lima Reis")
    assert is_plausible_guest_name("Ana Maria Sousa")


def test_property_name_line_breaks_are_collapsed():
    assert extract_property_name("São João\nBatista T3\nHóspede") == "São João Batista T3"
