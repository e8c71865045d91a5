from __future__ import annotations

import pytest


def test_detect_file_kind_rejects_non_pdf_bytes_for_pdf_extension():
    from stay_intake.modules.extraction import text

    kind = text.detect_file_kind(
        filename="reserva.pdf",
        content_type="application/pdf",
        body=b"\x00\x01\x02\x03",
    )
    assert kind == "bad_pdf_upload"


def test_detect_file_kind_treats_text_bytes_as_text_even_when_named_pdf():
    from stay_intake.modules.extraction import text

    kind = text.detect_file_kind(
        filename="reserva.pdf",
        content_type="application/pdf",
        body=b"Almada Noronha 2\nCheck-in 01-06-2024\n",
    )
    assert kind == "text"


def test_detect_file_kind_recognizes_images():
    from stay_intake.modules.extraction import text

    kind = text.detect_file_kind(
        filename="scan.bin", content_type=None, body=b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
    )
    assert kind == "image"


def test_decode_text_bytes_detects_html_without_relying_on_filename():
    from stay_intake.modules.extraction import text

    out = text.decode_text_bytes(
        body=b"<html><body><p>Hello</p><p>Almada Noronha 2</p></body></html>",
        filename="reserva.pdf",
        content_type="application/pdf",
    )
    assert "Hello" in out
    assert "Almada Noronha 2" in out
    assert "<html" not in out.lower()


def test_extract_pdf_pages_uses_ocr_fallback(monkeypatch):
    from stay_intake.modules.extraction import text

    class _Page:
        def __init__(self, content: str) -> None:
            self._content = content

        def extract_text(self) -> str:
            return self._content

    class _Reader:
        def __init__(self, _stream) -> None:
            self.pages = [_Page(""), _Page("hello")]

    ocr_calls: list[object] = []

    def _ocr(page) -> str:
        ocr_calls.append(page)
        return "ocr text"

    monkeypatch.setattr(text, "PdfReader", _Reader)
    monkeypatch.setattr(text, "_ocr_pdf_page", _ocr)

    assert text.extract_pdf_pages(b"%PDF-1.4 stub") == ["ocr text", "hello"]
    assert len(ocr_calls) == 1


def test_extract_pdf_pages_keeps_empty_when_ocr_empty(monkeypatch):
    from stay_intake.modules.extraction import text

    class _Page:
        def extract_text(self) -> str:
            return ""

    class _Reader:
        def __init__(self, _stream) -> None:
            self.pages = [_Page()]

    monkeypatch.setattr(text, "PdfReader", _Reader)
    monkeypatch.setattr(text, "_ocr_pdf_page", lambda _page: "")

    assert text.extract_pdf_pages(b"%PDF-1.4 stub") == [""]


def test_image_upload_is_transcribed(monkeypatch):
    from stay_intake.modules.extraction import ai, text

    seen: dict = {}

    def _transcribe(body: bytes, *, mime_type: str) -> str:
        seen["mime_type"] = mime_type
        return "Almada Noronha 2\nJoão Silva\nCheck-in 01-06-2024 Check-out 05-06-2024\n"

    monkeypatch.setattr(ai, "transcribe_image", _transcribe)

    out = text.extract_text(b"\xff\xd8\xff\xe0" + b"\x00" * 32, filename="scan.jpg")
    assert out.startswith("Almada Noronha 2")
    assert seen["mime_type"] == "image/jpeg"


def test_short_text_raises_insufficient_text():
    from stay_intake.modules.extraction import text
    from stay_intake.modules.extraction.errors import InsufficientTextError

    with pytest.raises(InsufficientTextError) as exc:
        text.extract_text(b"only twenty chars!!", filename="a.txt")
    assert exc.value.code == "INSUFFICIENT_TEXT"


def test_normalize_text_replaces_special_spaces():
    from stay_intake.modules.extraction.text import normalize_text

    assert normalize_text("a b\xa0c\r\nd\re") == "a b c\nd\ne"


def test_local_ocr_text_skips_model_transcription(monkeypatch):
    from stay_intake.modules.extraction import ai, text

    calls: list[bytes] = []
    monkeypatch.setattr(text, "_open_image", lambda _body: object())
    monkeypatch.setattr(text, "_tesseract_image", lambda _image: "Aroeira I\nMary Smith")
    monkeypatch.setattr(
        ai, "transcribe_image", lambda body, **_kw: calls.append(body) or "unused"
    )

    assert text.ocr_image_bytes(b"\x89PNG\r\n\x1a\n", mime_type="image/png") == "Aroeira I\nMary Smith"
    assert calls == []
