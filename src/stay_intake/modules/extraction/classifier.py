from __future__ import annotations

from stay_intake.modules.extraction.records import DocumentClassification, DocumentType

_CHECKIN_TOKENS = ("entradas", "arrivals", "check-ins")
_CHECKOUT_TOKENS = ("saídas", "saidas", "departures", "check-outs")
_CONTROL_TOKENS = ("controlo", "mapa de reservas", "control sheet")
_CONTROL_PROPERTY_TOKENS = ("aroeira",)

_CHARACTERISTICS: tuple[tuple[str, str], ...] = (
    ("entradas", "check-in"),
    ("saídas", "check-out"),
    ("controlo", "control"),
    ("aroeira", "aroeira"),
    ("exciting lisbon", "exciting-lisbon"),
    ("referência", "tabular"),
    ("alojamento", "multi-property"),
)

_DESCRIPTIONS = {
    DocumentType.CHECKIN: "Check-in list (arrivals), tabular",
    DocumentType.CHECKOUT: "Check-out list (departures), tabular",
    DocumentType.MIXED: "Check-in and check-out in the same document",
    DocumentType.CONTROL: "Property control file",
    DocumentType.UNKNOWN: "Unrecognized format",
}

_STRATEGIES = {
    DocumentType.CHECKIN: "table",
    DocumentType.CHECKOUT: "table",
    DocumentType.MIXED: "table",
    DocumentType.CONTROL: "control",
    DocumentType.UNKNOWN: "single",
}


def classify_document(text: str, filename: str = "") -> DocumentClassification:
    haystack = f"{filename or ''}\n{text or ''}".lower()

    has_checkin = _contains_any(haystack, _CHECKIN_TOKENS)
    has_checkout = _contains_any(haystack, _CHECKOUT_TOKENS)

    if has_checkin and has_checkout:
        doc_type = DocumentType.MIXED
    elif has_checkin:
        doc_type = DocumentType.CHECKIN
    elif has_checkout:
        doc_type = DocumentType.CHECKOUT
    elif _contains_any(haystack, _CONTROL_TOKENS + _CONTROL_PROPERTY_TOKENS):
        doc_type = DocumentType.CONTROL
    else:
        doc_type = DocumentType.UNKNOWN

    characteristics = tuple(label for token, label in _CHARACTERISTICS if token in haystack)
    return DocumentClassification(
        type=doc_type,
        description=_DESCRIPTIONS[doc_type],
        strategy=_STRATEGIES[doc_type],
        characteristics=characteristics,
    )


def _contains_any(haystack: str, tokens: tuple[str, ...]) -> bool:
    return any(token in haystack for token in tokens)
