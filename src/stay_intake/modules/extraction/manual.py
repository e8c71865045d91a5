"""Regex fallback used when the model is unavailable or gives up."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from stay_intake.core.config import settings

_UPPER = "A-ZÁÉÍÓÚÀÈÌÒÙÂÊÎÔÛÃÕÇ"
_LOWER = "a-záéíóúàèìòùâêîôûãõç"
_WORD = f"[{_UPPER}][{_LOWER}]+"
_NAME = f"{_WORD}(?:[ \\t]+{_WORD}){{1,3}}"
_LONG_WORD = f"[{_UPPER}][{_LOWER}]{{2,}}"

_REPEATED_NAME_RE = re.compile(f"({_NAME})\\s+\\1\\s+[\\+\\d]")
_NAME_EMAIL_RES = (
    re.compile(f"({_NAME})[ \\t]*[:\\-]?\\s*[a-zA-Z0-9._%+-]+@"),
    re.compile(f"({_NAME})[ \\t]*\\n.*@"),
)
_NAME_PHONE_RES = (
    re.compile(f"({_NAME})[ \\t]*[:\\-]?\\s*[\\+\\d]{{8,}}"),
    re.compile(f"({_NAME})[ \\t]*\\n.*[\\+\\d]{{8,}}"),
)
_LABELLED_NAME_RES = (
    re.compile(
        f"(?i:Nome|Name|Guest|Hóspede|Cliente|Client|Titular|Responsável)[:\\s]+({_NAME})"
    ),
    re.compile(f"^[ \\t]*({_NAME})[ \\t]*$", re.M),
)
_NAME_WINDOW_RE = re.compile(f"^{_WORD}(?: {_WORD})*$")
_GENERAL_NAME_RE = re.compile(f"\\b({_LONG_WORD}[ \\t]+{_LONG_WORD}(?:[ \\t]+{_LONG_WORD})*)\\b")

_PROPERTY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"São\s+João\s*Batista\s+T\d", re.I),
    re.compile(r"Almada\s*Noronha\s+\d+", re.I),
    re.compile(r"Casa\s*dos\s*Barcos\s+T\d", re.I),
    re.compile(r"Peniche\s+\d+\s+K", re.I),
    re.compile(r"Peniche\s+[A-Z]+\s*\([^)]*\)", re.I),
    re.compile(r"Peniche\s+RC\s+[A-Z]", re.I),
    re.compile(r"Almada\s+[^\n]+", re.I),
    re.compile(r"Aroeira\s+[IVX]+", re.I),
    re.compile(r"Nazaré?\s+T\d", re.I),
    re.compile(r"EXCITING\s+LISBON\s+[^\n]+", re.I),
)

_EMAIL_RE = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")
_PHONE_RE = re.compile(r"(\+\d{1,3}\s?\d{8,})")
_DATE_RE = re.compile(r"\b(\d{2}-\d{2}-\d{4})\b")
_REFERENCE_RE = re.compile(r"\b([A-Z]\d{3}-[A-Z0-9]+)\b")
_ADULTS_RE = re.compile(r"(\d+)\s*(?:Adult|Adul)", re.I)


def manual_extract(text: str) -> dict[str, Any]:
    """Pull reservation fields out of raw text with fixed patterns.

    Returns camelCase keys, the same shape the model is asked for, and only
    the keys that were actually found.
    """
    t = text or ""
    out: dict[str, Any] = {}

    property_name = extract_property_name(t)
    if property_name:
        out["propertyName"] = property_name

    guest_name = extract_guest_name(t, property_name=property_name or "")
    if guest_name:
        out["guestName"] = guest_name

    if m := _EMAIL_RE.search(t):
        out["guestEmail"] = m.group(1)
    if m := _PHONE_RE.search(t):
        out["guestPhone"] = m.group(1)

    dates = [d for d in (_parse_dmy(raw) for raw in _DATE_RE.findall(t)[:2]) if d]
    if len(dates) == 2:
        check_in, check_out = sorted(dates)
        out["checkInDate"] = check_in.isoformat()
        out["checkOutDate"] = check_out.isoformat()
    elif len(dates) == 1:
        out["checkInDate"] = dates[0].isoformat()

    if m := _REFERENCE_RE.search(t):
        out["reference"] = m.group(1)

    if m := _ADULTS_RE.search(t):
        adults = int(m.group(1))
        if adults > 0:
            out["adults"] = adults
            out["numGuests"] = adults

    return out


def extract_property_name(text: str) -> str | None:
    for pattern in _PROPERTY_PATTERNS:
        m = pattern.search(text or "")
        if m:
            return re.sub(r"\s+", " ", m.group(0)).strip()
    return None


def extract_guest_name(text: str, *, property_name: str = "") -> str | None:
    for strategy in NAME_STRATEGIES:
        for candidate in strategy(text or ""):
            cleaned = re.sub(r"\s+", " ", candidate).strip()
            if is_plausible_guest_name(cleaned, property_name=property_name):
                return cleaned
    return None


def is_plausible_guest_name(candidate: str, *, property_name: str = "") -> bool:
    if len(candidate) < 8:
        return False
    if not 2 <= len(candidate.split()) <= 4:
        return False
    if _denylist_re().search(candidate):
        return False
    if property_name and candidate.lower() in property_name.lower():
        return False
    return True


def _repeated_name(text: str) -> list[str]:
    return [m.group(1) for m in _REPEATED_NAME_RE.finditer(text)]


def _name_before_email(text: str) -> list[str]:
    return [m.group(1) for pattern in _NAME_EMAIL_RES for m in pattern.finditer(text)]


def _name_before_phone(text: str) -> list[str]:
    return [m.group(1) for pattern in _NAME_PHONE_RES for m in pattern.finditer(text)]


def _labelled_name(text: str) -> list[str]:
    return [m.group(1) for pattern in _LABELLED_NAME_RES for m in pattern.finditer(text)]


def _frequent_name(text: str) -> list[str]:
    words = text.split()
    counts: Counter[str] = Counter()
    for size in range(2, 5):
        for i in range(len(words) - size + 1):
            candidate = " ".join(words[i : i + size])
            if _NAME_WINDOW_RE.match(candidate):
                counts[candidate] += 1
    return [name for name, count in counts.most_common() if count > 1]


def _general_name(text: str) -> list[str]:
    found = [m.group(1) for m in _GENERAL_NAME_RE.finditer(text)]
    # Two or three words first, longest first within each group.
    return sorted(found, key=lambda name: (not 2 <= len(name.split()) <= 3, -len(name)))


NAME_STRATEGIES: tuple[Callable[[str], list[str]], ...] = (
    _repeated_name,
    _name_before_email,
    _name_before_phone,
    _labelled_name,
    _frequent_name,
    _general_name,
)


def _denylist_re() -> re.Pattern[str]:
    words = [re.escape(w) for w in settings.name_denylist if w]
    if not words:
        return re.compile(r"(?!x)x")
    return re.compile(r"\b(?:" + "|".join(words) + r")\b", re.I)


def _parse_dmy(raw: str) -> date | None:
    try:
        return datetime.strptime(raw, "%d-%m-%Y").date()
    except ValueError:
        return None
