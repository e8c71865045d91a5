from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from stay_intake.modules.extraction.records import AMOUNT_FIELDS, ExtractedReservation, Platform

_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%d.%m.%Y", "%Y/%m/%d")
_DATE_PLACEHOLDERS = {"yyyy-mm-dd", "dd-mm-yyyy", "n/a", "null", "none"}


def coerce_reservation_fields(obj: dict[str, Any], *, raw_text: str = "") -> ExtractedReservation:
    """Build an ExtractedReservation from a loosely-shaped payload.

    Accepts camelCase (model output) and snake_case keys. Nothing in `obj` is
    trusted: wrong types are dropped, dates are normalized to ISO when they
    parse and kept verbatim otherwise so validation can report them.
    """
    data = obj if isinstance(obj, dict) else {}

    def pick(name: str) -> Any:
        camel = _camel(name)
        if data.get(camel) not in (None, ""):
            return data.get(camel)
        return data.get(name)

    amounts = {name: _coerce_amount(pick(name)) for name in AMOUNT_FIELDS}
    return ExtractedReservation(
        property_name=_coerce_str(pick("property_name")) or "",
        guest_name=_coerce_str(pick("guest_name")) or "",
        check_in_date=normalize_date(pick("check_in_date")),
        check_out_date=normalize_date(pick("check_out_date")),
        property_id=_coerce_int(pick("property_id")),
        guest_email=_coerce_str(pick("guest_email")),
        guest_phone=_coerce_str(pick("guest_phone")),
        num_guests=_coerce_int(pick("num_guests")) or None,
        adults=_coerce_int(pick("adults")) or None,
        children=_coerce_int(pick("children")),
        platform=normalize_platform(pick("platform")),
        reference=_coerce_str(pick("reference")),
        raw_text=raw_text or "",
        **amounts,
    )


def normalize_date(raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    s = _coerce_str(raw) or ""
    if s.lower() in _DATE_PLACEHOLDERS:
        return ""
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return s


def normalize_platform(raw: Any) -> Platform | None:
    s = (_coerce_str(raw) or "").lower()
    if not s:
        return None
    if "airbnb" in s:
        return Platform.AIRBNB
    if "booking" in s:
        return Platform.BOOKING
    if s in {"direct", "direto", "manual"}:
        return Platform.DIRECT
    return Platform.OTHER


def parse_decimal_amount(raw: str) -> Decimal | None:
    """Parse "1.234,50", "1,234.50", "€ 80" and friends; sign is kept."""
    s = str(raw or "").strip()
    if not s:
        return None
    s = s.replace("\u202f", " ").replace("\xa0", " ")
    negative = s.startswith("-") or s.endswith("-") or (s.startswith("(") and s.endswith(")"))
    s = re.sub(r"[^0-9,.' ]", "", s)
    s = s.replace(" ", "").replace("'", "")
    if not s or not any(ch.isdigit() for ch in s):
        return None

    if "," in s and "." in s:
        decimal_sep = "," if s.rfind(",") > s.rfind(".") else "."
        thousands_sep = "." if decimal_sep == "," else ","
        normalized = s.replace(thousands_sep, "").replace(decimal_sep, ".")
    elif "," in s or "." in s:
        sep = "," if "," in s else "."
        if s.count(sep) > 1:
            normalized = s.replace(sep, "")
        else:
            idx = s.rfind(sep)
            digits_after = len(s) - idx - 1
            if digits_after == 3 and len(s[:idx]) <= 3:
                normalized = s.replace(sep, "")
            else:
                normalized = s.replace(sep, ".")
    else:
        normalized = s

    try:
        value = Decimal(normalized)
    except InvalidOperation:
        return None
    return -value if negative else value


def _coerce_amount(raw: Any) -> str | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        try:
            return str(Decimal(str(raw)))
        except InvalidOperation:
            return None
    s = _coerce_str(raw)
    if not s:
        return None
    value = parse_decimal_amount(s)
    # Unparseable amounts are kept verbatim so validation can flag them.
    return str(value) if value is not None else s


def _coerce_str(raw: Any) -> str | None:
    if raw is None or isinstance(raw, (bool, dict, list)):
        return None
    s = str(raw).strip()
    return s or None


def _coerce_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        try:
            value = int(float(str(raw).strip()))
        except (OverflowError, ValueError):
            return None
    return value if value >= 0 else None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
