import io
import logging
import os
import shutil
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass

import pytesseract
from django.conf import settings
from pdf2image import convert_from_bytes
from pypdf import PdfReader

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72

# Tesseract is CPU bound: at most one OCR run per process, extra callers skip.
_ocr_lock = threading.Lock()


@dataclass(frozen=True)
class OcrOutcome:
    text: str = ""
    skipped: bool = False
    pages: int = 0


def ocr_in_use() -> bool:
    return _ocr_lock.locked()


@contextmanager
def ocr_slot():
    """Try to take the process-wide OCR slot without waiting.

    Yields True when the slot was taken; it is released on exit, including
    when the body raises.
    """
    acquired = _ocr_lock.acquire(blocking=False)
    try:
        yield acquired
    finally:
        if acquired:
            _ocr_lock.release()


def missing_ocr_deps():
    missing = []
    if shutil.which(pytesseract.pytesseract.tesseract_cmd) is None:
        missing.append("tesseract-ocr")
    if shutil.which("pdftoppm") is None:
        missing.append("poppler-utils (pdftoppm)")
    return missing


def _count_pages(pdf_bytes: bytes) -> int:
    return len(PdfReader(io.BytesIO(pdf_bytes)).pages)


def _render_page(pdf_bytes: bytes, page_number: int, scale: float):
    images = convert_from_bytes(
        pdf_bytes,
        dpi=int(PDF_POINTS_PER_INCH * scale),
        first_page=page_number,
        last_page=page_number,
        timeout=settings.FATURAS_OCR_PAGE_TIMEOUT,
    )
    return images[0] if images else None


def _recognize(image_path: str) -> str:
    return pytesseract.image_to_string(
        image_path,
        lang=settings.FATURAS_OCR_LANG,
        config=settings.FATURAS_OCR_CONFIG,
        timeout=settings.FATURAS_OCR_PAGE_TIMEOUT,
    ) or ""


def _ocr_page(pdf_bytes: bytes, page_number: int) -> str:
    image = _render_page(pdf_bytes, page_number, settings.FATURAS_OCR_SCALE)
    if image is None:
        return ""
    with tempfile.NamedTemporaryFile(prefix=f"fatura_ocr_p{page_number}_", suffix=".jpg", delete=False) as tmp_file:
        tmp_path = tmp_file.name
    try:
        image.convert("RGB").save(tmp_path, "JPEG")
        return _recognize(tmp_path)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def extract_text_with_ocr(pdf_bytes: bytes, *, file_label: str = "-") -> OcrOutcome:
    with ocr_slot() as acquired:
        if not acquired:
            logger.info("ocr_skipped file=%s reason=in_use", file_label)
            return OcrOutcome(skipped=True)

        missing = missing_ocr_deps()
        if missing:
            logger.warning("ocr_unavailable file=%s missing=%s", file_label, ", ".join(missing))
            return OcrOutcome()

        try:
            total_pages = _count_pages(pdf_bytes)
        except Exception as exc:
            logger.warning("ocr_failed file=%s error=%s", file_label, exc)
            return OcrOutcome()

        max_pages = settings.FATURAS_OCR_MAX_PAGES
        if total_pages > max_pages:
            logger.info("ocr_page_cap file=%s pages=%s processing=%s", file_label, total_pages, max_pages)

        text_parts = []
        processed = 0
        for page_number in range(1, min(total_pages, max_pages) + 1):
            try:
                page_text = _ocr_page(pdf_bytes, page_number)
            except RuntimeError as exc:
                # pytesseract raises RuntimeError("Tesseract process timeout")
                reason = "timeout" if "timeout" in str(exc).lower() else "error"
                logger.warning(
                    "ocr_page_failed file=%s page=%s reason=%s error=%s", file_label, page_number, reason, exc
                )
                continue
            except Exception as exc:
                logger.warning(
                    "ocr_page_failed file=%s page=%s reason=error error=%s", file_label, page_number, exc
                )
                continue
            processed += 1
            if page_text.strip():
                text_parts.append(page_text)
                logger.info("ocr_page_done file=%s page=%s chars=%s", file_label, page_number, len(page_text))
            else:
                logger.info("ocr_page_empty file=%s page=%s", file_label, page_number)

        text = "\n".join(text_parts).strip()
        logger.info("ocr_done file=%s pages=%s chars=%s", file_label, processed, len(text))
        return OcrOutcome(text=text, pages=processed)
