from __future__ import annotations

import re
from io import BytesIO

from pypdf import PdfReader

from stay_intake.core.config import settings
from stay_intake.modules.extraction import ai
from stay_intake.modules.extraction.errors import InsufficientTextError, UnsupportedDocumentError

_IMAGE_MIME_BY_SIGNATURE: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)


def extract_text(body: bytes, *, filename: str, content_type: str | None = None) -> str:
    """Turn an uploaded PDF, image or text file into plain text.

    Raises InsufficientTextError when less than `min_document_text_chars`
    characters survive, which callers treat as an empty or corrupt document.
    """
    kind = detect_file_kind(filename=filename, content_type=content_type, body=body)
    if kind == "pdf":
        text = "\n".join(extract_pdf_pages(body))
    elif kind == "image":
        text = ocr_image_bytes(body, mime_type=_image_mime_type(body, content_type))
    elif kind == "text":
        text = decode_text_bytes(body=body, filename=filename, content_type=content_type)
    elif kind == "bad_pdf_upload":
        raise UnsupportedDocumentError("Bad upload: expected PDF header (%PDF)")
    else:
        raise UnsupportedDocumentError(f"Unsupported file type: {filename}")

    text = normalize_text(text)
    minimum = int(settings.min_document_text_chars)
    if len(text.strip()) < minimum:
        raise InsufficientTextError(len(text.strip()), minimum)
    return text


def normalize_text(text: str) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ")
    return t.replace("\r\n", "\n").replace("\r", "\n")


def extract_pdf_pages(body: bytes) -> list[str]:
    reader = PdfReader(BytesIO(body))
    pages: list[str] = []
    for page in reader.pages:
        text = page.extract_text() or ""
        if not text.strip():
            # Scanned page: transcribe its largest embedded image.
            text = _ocr_pdf_page(page) or text
        pages.append(text)
    return pages


def ocr_image_bytes(body: bytes, *, mime_type: str) -> str:
    """Local tesseract first; the model transcribes when that finds nothing."""
    text = _tesseract_image(_open_image(body))
    if text.strip():
        return text
    return ai.transcribe_image(body, mime_type=mime_type)


def _ocr_pdf_page(page) -> str:
    try:
        page_images = list(page.images)
    except Exception:
        return ""

    best_file = None
    best_image = None
    best_area = 0
    for image_file in page_images:
        try:
            image = image_file.image
            width = image.width
            height = image.height
        except Exception:
            continue
        area = width * height
        if area > best_area:
            best_area = area
            best_file = image_file
            best_image = image

    if best_file is None:
        return ""

    text = _tesseract_image(best_image)
    if text.strip() or not best_file.data:
        return text
    return ai.transcribe_image(best_file.data, mime_type=_image_mime_type(best_file.data, None))


def _open_image(body: bytes):
    try:
        from PIL import Image
    except Exception:
        return None

    try:
        return Image.open(BytesIO(body))
    except Exception:
        return None


def _tesseract_image(image) -> str:
    if image is None:
        return ""
    try:
        import pytesseract
    except Exception:
        return ""

    try:
        if image.mode not in {"RGB", "L"}:
            image = image.convert("RGB")
        return pytesseract.image_to_string(image, lang=settings.tesseract_lang) or ""
    except Exception:
        return ""


def detect_file_kind(*, filename: str, content_type: str | None, body: bytes) -> str:
    if _looks_like_pdf_bytes(body):
        return "pdf"
    if _looks_like_image_bytes(body):
        return "image"
    if _looks_like_text_bytes(body):
        return "text"

    # Never hand non-PDF bytes to PdfReader just because of the name.
    if filename.lower().endswith(".pdf") or (content_type or "").lower().endswith("/pdf"):
        return "bad_pdf_upload"

    return "unknown"


def decode_text_bytes(*, body: bytes, filename: str, content_type: str | None) -> str:
    ctype = (content_type or "").lower()
    is_html = ctype.startswith("text/html") or filename.lower().endswith((".html", ".htm"))
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        text = body.decode("latin-1", errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]
    if is_html or _looks_like_html(text):
        text = _html_to_text(text)
    return text


def _looks_like_pdf_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    if b.startswith(b"\xef\xbb\xbf"):
        b = b[3:].lstrip()
    return b.startswith(b"%PDF")


def _looks_like_image_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    return any(b.startswith(sig) for sig, _ in _IMAGE_MIME_BY_SIGNATURE) or (
        len(b) >= 12 and b.startswith(b"RIFF") and b[8:12] == b"WEBP"
    )


def _image_mime_type(body: bytes, content_type: str | None) -> str:
    b = body.lstrip()
    for sig, mime in _IMAGE_MIME_BY_SIGNATURE:
        if b.startswith(sig):
            return mime
    if b.startswith(b"RIFF"):
        return "image/webp"
    return content_type or "application/octet-stream"


def _looks_like_text_bytes(body: bytes) -> bool:
    if not body:
        return False
    sample = body[:4096]
    if b"\x00" in sample:
        return False
    stripped = sample.lstrip()
    if stripped.startswith(b"\xef\xbb\xbf"):
        stripped = stripped[3:]
    try:
        stripped.decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        # A multi-byte character cut at the sample boundary is still text.
        try:
            stripped[:-3].decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            return False

    nontext = 0
    for ch in stripped:
        if ch in {9, 10, 13}:
            continue
        if ch >= 32 and ch != 127:
            continue
        nontext += 1
    return (nontext / max(1, len(stripped))) <= 0.02


def _looks_like_html(text: str) -> bool:
    t = (text or "").lstrip().lower()
    if not t:
        return False
    if t.startswith("<!doctype html") or t.startswith("<html"):
        return True
    head = t[:2000]
    return bool(re.search(r"<(html|body|div|p|br|table|tr|td|span)(\s|>)", head, re.I))


def _html_to_text(html: str) -> str:
    from html import unescape

    html = re.sub(r"(?is)<(script|style).*?>.*?</\1>", "", html)
    html = re.sub(r"(?i)<br\s*/?>", "\n", html)
    html = re.sub(r"(?i)</(p|div|tr|li)\s*>", "\n", html)
    html = re.sub(r"(?s)<[^>]+>", "", html)
    html = unescape(html)
    lines = [re.sub(r"[ \t]+", " ", ln).strip() for ln in html.splitlines()]
    return "\n".join([ln for ln in lines if ln])
