from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass
from typing import Any

import httpx

from stay_intake.core.config import settings
from stay_intake.core.logging import get_logger, log_event
from stay_intake.modules.extraction.errors import (
    ExtractionAIUnavailable,
    ExtractionTimeout,
    ExtractionTokenLimitError,
    JsonParseError,
)
from stay_intake.modules.extraction.json_repair import repair_json
from stay_intake.modules.extraction.records import DocumentClassification, StructuredFields

logger = get_logger(__name__)

FINISH_MAX_TOKENS = "MAX_TOKENS"

_RESPONSE_TEMPLATE = (
    '{"propertyName":"","guestName":"","guestEmail":"","guestPhone":"",'
    '"checkInDate":"YYYY-MM-DD","checkOutDate":"YYYY-MM-DD","numGuests":0,'
    '"adults":0,"children":0,"totalAmount":0,"platform":"","reference":""}'
)

_HEADER_LINE_MARKERS: tuple[tuple[str, ...], ...] = (
    ("Check-in", "Check-out", "Estado"),
    ("Alojamento", "Todos"),
    ("Edifício", "Não mostrar"),
)
_PHONE_RE = re.compile(r"\+?\d{9,}")
_DATE_RE = re.compile(r"\d{2}-\d{2}-\d{4}")
_REFERENCE_RE = re.compile(r"[A-Z]\d{3}-")
_NAME_RE = re.compile(r"[A-ZÁÉÍÓÚÂÊÔÃÕÇ][a-záéíóúâêôãõç]+\s+[A-ZÁÉÍÓÚÂÊÔÃÕÇ][a-záéíóúâêôãõç]+")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)


@dataclass(frozen=True)
class GenerationResult:
    finish_reason: str | None
    text: str | None


def extraction_ai_available() -> bool:
    return bool(settings.extraction_ai_enabled and settings.google_api_key)


def generate_content(
    prompt: str,
    *,
    max_output_tokens: int | None = None,
    inline_data: dict[str, str] | None = None,
) -> GenerationResult:
    """Single Gemini generateContent call.

    Timeouts surface as ExtractionTimeout; HTTP errors propagate to the caller.
    """
    if not extraction_ai_available():
        raise ExtractionAIUnavailable("Gemini extraction is disabled or not configured")

    parts: list[dict[str, Any]] = [{"text": prompt}]
    if inline_data:
        parts.append({"inline_data": inline_data})
    payload = {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "temperature": float(settings.extraction_ai_temperature),
            "maxOutputTokens": int(max_output_tokens or settings.extraction_ai_max_output_tokens),
        },
    }
    url = (
        settings.gemini_base_url.rstrip("/")
        + f"/models/{settings.gemini_model}:generateContent"
    )
    try:
        resp = httpx.post(
            url,
            headers={"x-goog-api-key": str(settings.google_api_key)},
            json=payload,
            timeout=float(settings.extraction_ai_timeout_seconds or 30.0),
            follow_redirects=True,
        )
    except httpx.TimeoutException as e:
        raise ExtractionTimeout(
            f"Gemini request timed out after {settings.extraction_ai_timeout_seconds}s"
        ) from e
    resp.raise_for_status()

    raw = resp.json()
    candidates = raw.get("candidates") if isinstance(raw, dict) else None
    first = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    texts = [
        str(p.get("text"))
        for p in (content.get("parts") or [])
        if isinstance(p, dict) and p.get("text")
    ]
    return GenerationResult(finish_reason=first.get("finishReason"), text="".join(texts) or None)


def transcribe_image(body: bytes, *, mime_type: str) -> str:
    """OCR an uploaded image through the model; "" when AI is not configured."""
    if not extraction_ai_available():
        return ""
    result = generate_content(
        "Transcribe all text visible in this image. Keep the original line breaks. "
        "Return only the text.",
        max_output_tokens=4096,
        inline_data={"mime_type": mime_type, "data": base64.b64encode(body).decode("ascii")},
    )
    log_event(logger, "extraction.ocr.done", mime_type=mime_type, finish_reason=result.finish_reason)
    return result.text or ""


def select_relevant_lines(text: str, *, max_lines: int = 50) -> str:
    """Keep only the lines likely to carry reservation fields."""
    tokens = [t for t in settings.known_property_tokens if t]
    out: list[str] = []
    seen: set[str] = set()
    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if len(line) < 3 or line in seen:
            continue
        if any(all(marker in line for marker in group) for group in _HEADER_LINE_MARKERS):
            continue
        if (
            "@" in line
            or _PHONE_RE.search(line)
            or _DATE_RE.search(line)
            or _REFERENCE_RE.search(line)
            or _NAME_RE.search(line)
            or any(token in line for token in tokens)
        ):
            seen.add(line)
            out.append(line)
            if len(out) >= max_lines:
                break
    return "\n".join(out)


def input_length_for_attempt(attempt: int) -> int:
    base = int(settings.extraction_base_text_length)
    floor = int(settings.extraction_min_text_length)
    return max(floor, base // max(1, attempt))


def build_prompt(text: str, classification: DocumentClassification | None = None) -> str:
    hint = f" ({classification.description})" if classification else ""
    return (
        f"Extract JSON from this reservation document{hint}:\n"
        f"{text}\n\n"
        "Return one JSON object only, no prose. Dates as YYYY-MM-DD. "
        "Use empty strings for anything not in the text:\n"
        f"{_RESPONSE_TEMPLATE}"
    )


def extract_with_ai(
    text: str,
    *,
    classification: DocumentClassification | None = None,
    attempt: int = 1,
) -> StructuredFields:
    """Ask the model for reservation fields, shrinking the input on MAX_TOKENS.

    Raises ExtractionTokenLimitError once every attempt hit the output limit.
    ExtractionTimeout, ExtractionAIUnavailable and JsonParseError propagate.
    """
    relevant = select_relevant_lines(text) or (text or "").strip()
    max_attempts = int(settings.extraction_ai_max_attempts)

    for current in range(max(1, attempt), max_attempts + 1):
        length = input_length_for_attempt(current)
        log_event(
            logger,
            "extraction.ai.attempt",
            attempt=current,
            input_chars=min(length, len(relevant)),
        )
        result = generate_content(build_prompt(relevant[:length], classification))

        if result.finish_reason == FINISH_MAX_TOKENS and not (result.text or "").strip():
            log_event(logger, "extraction.ai.max_tokens", attempt=current, input_chars=length)
            continue
        try:
            data = parse_model_json(result.text or "")
        except JsonParseError:
            if result.finish_reason == FINISH_MAX_TOKENS:
                log_event(logger, "extraction.ai.max_tokens", attempt=current, input_chars=length)
                continue
            raise
        return StructuredFields(data=data, source="ai", attempts=current)

    raise ExtractionTokenLimitError(max_attempts)


def parse_model_json(content: str) -> dict[str, Any]:
    c = _FENCE_RE.sub("", (content or "").strip()).strip()
    start = c.find("{")
    if start == -1:
        raise JsonParseError("Model output contains no JSON object")
    c = c[start:]

    obj: Any = None
    try:
        obj = json.loads(c)
    except ValueError:
        end = c.rfind("}")
        try:
            # Trailing prose after a complete object.
            obj = json.loads(c[: end + 1]) if end != -1 else None
        except ValueError:
            obj = None
        if obj is None:
            repaired = repair_json(c)
            log_event(logger, "extraction.ai.repair", chars=len(c), repaired_chars=len(repaired))
            try:
                obj = json.loads(repaired)
            except ValueError as e:
                raise JsonParseError(f"Model output is not valid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise JsonParseError("Model output is not a JSON object")
    return obj
