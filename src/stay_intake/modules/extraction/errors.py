from __future__ import annotations


class ExtractionError(Exception):
    """Base class for document-extraction failures."""

    code = "EXTRACTION_ERROR"


class InsufficientTextError(ExtractionError):
    code = "INSUFFICIENT_TEXT"

    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"Extracted text too short ({length} < {minimum} characters)")
        self.length = length
        self.minimum = minimum


class UnsupportedDocumentError(ExtractionError):
    code = "UNSUPPORTED_FILE"


# Internal signals: handled inside the structured extractor, never surfaced.


class ExtractionTokenLimitError(ExtractionError):
    code = "MAX_TOKENS"

    def __init__(self, attempt: int) -> None:
        super().__init__(f"Model hit the output token limit on attempt {attempt}")
        self.attempt = attempt


class ExtractionTimeout(ExtractionError):
    code = "EXTRACTION_TIMEOUT"


class ExtractionAIUnavailable(ExtractionError):
    code = "AI_UNAVAILABLE"


class JsonParseError(ExtractionError):
    code = "JSON_PARSE_FAILED"
