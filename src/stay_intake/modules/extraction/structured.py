from __future__ import annotations

from typing import Any

from stay_intake.core.logging import get_logger, log_event
from stay_intake.modules.extraction import ai
from stay_intake.modules.extraction.errors import (
    ExtractionAIUnavailable,
    ExtractionTimeout,
    ExtractionTokenLimitError,
    JsonParseError,
)
from stay_intake.modules.extraction.fields import normalize_date
from stay_intake.modules.extraction.manual import manual_extract
from stay_intake.modules.extraction.records import DocumentClassification, StructuredFields

logger = get_logger(__name__)


def extract_structured_fields(
    text: str,
    *,
    classification: DocumentClassification | None = None,
    attempt: int = 1,
) -> StructuredFields | None:
    """Model first, regex fallback; None when neither finds a name and a date."""
    try:
        result = ai.extract_with_ai(text, classification=classification, attempt=attempt)
    except (ExtractionTokenLimitError, ExtractionTimeout, ExtractionAIUnavailable, JsonParseError) as e:
        log_event(logger, "extraction.manual_fallback", reason=e.code, error=str(e))
        manual = manual_extract(text)
        if has_minimum_fields(manual):
            return StructuredFields(data=manual, source="manual")
        return None

    if has_minimum_fields(result.data):
        return result

    merged = merge_fields(result.data, manual_extract(text))
    log_event(
        logger,
        "extraction.manual_fallback",
        reason="incomplete_ai_result",
        merged_keys=sorted(k for k in merged if k not in result.data or not _present(k, result.data[k])),
    )
    if has_minimum_fields(merged):
        return StructuredFields(data=merged, source="ai", attempts=result.attempts)
    return None


def has_minimum_fields(data: dict[str, Any]) -> bool:
    has_name = _present("guestName", data.get("guestName")) or _present(
        "propertyName", data.get("propertyName")
    )
    has_date = _present("checkInDate", data.get("checkInDate")) or _present(
        "checkOutDate", data.get("checkOutDate")
    )
    return bool(has_name and has_date)


def merge_fields(primary: dict[str, Any], fallback: dict[str, Any]) -> dict[str, Any]:
    """Values present in `primary` win; `fallback` only fills the gaps."""
    merged = dict(fallback)
    merged.update({k: v for k, v in primary.items() if _present(k, v)})
    return merged


def _present(key: str, value: Any) -> bool:
    if value is None or isinstance(value, (dict, list)):
        return False
    if isinstance(value, str):
        if not value.strip():
            return False
        if key.endswith("Date"):
            return bool(normalize_date(value))
    return True
