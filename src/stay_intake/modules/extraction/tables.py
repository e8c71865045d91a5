"""Check-in / check-out listings: one reservation per reference row."""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime

from stay_intake.modules.extraction.records import ProcessedReservation, TableRow

_ROW_START_RE = re.compile(r"^([A-Z]\d{3}-[A-Z0-9]+)")
_DMY_RE = re.compile(r"^\d{2}-\d{2}-\d{4}$")
_HEADER_REFERENCE_RE = re.compile(r"Refer[êe]ncia|Reference", re.I)
_HEADER_PROPERTY_RE = re.compile(r"Alojamento|Property", re.I)

_GUEST_NAME_RE = re.compile(
    r"([A-ZÁÉÍÓÚÂÊÔÃÕÇ][a-záéíóúàâêôãõç]+ [A-ZÁÉÍÓÚÂÊÔÃÕÇ][a-záéíóúàâêôãõç]+)"
)
_PHONE_RE = re.compile(r"(\+\d{2,3}\s?\d{3,4}\s?\d{3,4}\s?\d{3,4})")
_EMAIL_RE = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")
_COUNTRY_RE = re.compile(
    r"(Portugal|Brasil|Espanha|França|Reino Unido|Bélgica|África do Sul|Alemanha|Itália)"
)

_MIN_ROW_CHARS = 10
_DETAIL_LINES = 4
_MAX_GUESTS = 20

REQUIRED_TABLE_FIELDS: tuple[str, ...] = (
    "reference",
    "property_name",
    "guest_name",
    "check_in_date",
    "check_out_date",
)
OPTIONAL_TABLE_FIELDS: tuple[str, ...] = ("guest_phone", "guest_email", "total_amount", "property_id")
CONFIRMATION_THRESHOLD = 80


def parse_reservation_table(text: str) -> list[TableRow]:
    lines = [ln.strip() for ln in (text or "").splitlines()]
    start = _section_start(lines)

    rows: list[TableRow] = []
    for i in range(start, len(lines)):
        line = lines[i]
        if len(line) < _MIN_ROW_CHARS or not _ROW_START_RE.match(line):
            continue
        row = parse_row_line(line)
        if row is None:
            continue
        for detail in lines[i + 1 : i + 1 + _DETAIL_LINES]:
            if not detail or _ROW_START_RE.match(detail):
                break
            row = _merge_detail_line(row, detail)
        rows.append(row)
    return rows


def parse_row_line(line: str) -> TableRow | None:
    parts = line.split()
    reference = parts[0]

    idx = 1
    property_words: list[str] = []
    while idx < len(parts) and not _DMY_RE.match(parts[idx]):
        property_words.append(parts[idx])
        idx += 1
    if not property_words:
        return None

    dates: list[str] = []
    counts: list[int] = []
    for part in parts[idx:]:
        if _DMY_RE.match(part):
            if len(dates) < 2:
                dates.append(_dmy_to_iso(part))
        elif part.isdigit() and int(part) <= _MAX_GUESTS and len(counts) < 2:
            counts.append(int(part))

    return TableRow(
        reference=reference,
        property_name=" ".join(property_words),
        check_in_date=dates[0] if dates else None,
        check_out_date=dates[1] if len(dates) > 1 else None,
        adults=counts[0] if counts else None,
        children=counts[1] if len(counts) > 1 else None,
    )


def table_confidence(reservations: list[ProcessedReservation]) -> tuple[int, tuple[str, ...], bool]:
    """(confidence %, missing labels, requires confirmation) over all rows."""
    total = 0
    filled = 0
    missing: dict[str, None] = {}
    for item in reservations:
        data = item.extracted_data
        values = {
            "reference": data.reference,
            "property_name": data.property_name,
            "guest_name": data.guest_name,
            "check_in_date": data.check_in_date,
            "check_out_date": data.check_out_date,
            "guest_phone": data.guest_phone,
            "guest_email": data.guest_email,
            "total_amount": data.total_amount,
            "property_id": item.property_id,
        }
        total += len(REQUIRED_TABLE_FIELDS) + len(OPTIONAL_TABLE_FIELDS)
        filled += sum(1 for name in REQUIRED_TABLE_FIELDS if values[name])
        filled += sum(
            1 for name in OPTIONAL_TABLE_FIELDS if values[name] and str(values[name]) != "0"
        )
        missing.update(dict.fromkeys(item.missing))

    confidence = round(filled / total * 100) if total else 0
    return confidence, tuple(missing), confidence < CONFIRMATION_THRESHOLD or bool(missing)


def _section_start(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if _HEADER_REFERENCE_RE.search(line) and _HEADER_PROPERTY_RE.search(line):
            return i + 1
    return 0


def _merge_detail_line(row: TableRow, line: str) -> TableRow:
    changes: dict[str, str] = {}
    if row.guest_name is None:
        for m in _GUEST_NAME_RE.finditer(line):
            if not _COUNTRY_RE.fullmatch(m.group(1)):
                changes["guest_name"] = m.group(1)
                break
    if m := _PHONE_RE.search(line):
        changes["guest_phone"] = m.group(1)
    if m := _EMAIL_RE.search(line):
        changes["guest_email"] = m.group(1)
    if m := _COUNTRY_RE.search(line):
        changes["country"] = m.group(1)
    return replace(row, **changes) if changes else row


def _dmy_to_iso(raw: str) -> str:
    try:
        return datetime.strptime(raw, "%d-%m-%Y").date().isoformat()
    except ValueError:
        return raw
