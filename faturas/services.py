import io
import logging
import time
from decimal import Decimal
from itertools import islice

from django.conf import settings
from pypdf import PdfReader

from .extractors import extract_fields
from .ocr import extract_text_with_ocr
from .parsing import normalize_space
from .results import ExtractionResult, Provider

logger = logging.getLogger(__name__)

RESULT_TYPE = "FATURA_CONCESSIONARIA"
NOT_FOUND_MESSAGE = "Nao foi possivel extrair dados da fatura"
NOT_FOUND_OCR_MESSAGE = (
    "PDF escaneado detectado. OCR executado, mas nao foi possivel extrair todos os dados. "
    "Preencha manualmente."
)


def extract_text_from_pdf(pdf_bytes: bytes, max_pages: int | None = None, *, file_label: str = "-") -> str:
    if max_pages is None:
        max_pages = settings.FATURAS_MAX_TEXT_PAGES
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = list(islice(reader.pages, max_pages))
    except Exception as exc:
        logger.warning("pdf_text_extract_failed file=%s error=%s", file_label, exc)
        return ""

    text_parts = []
    for page_number, page in enumerate(pages, start=1):
        try:
            text_parts.append(page.extract_text() or "")
        except Exception as exc:
            logger.warning("pdf_page_text_failed file=%s page=%s error=%s", file_label, page_number, exc)
    return "\n".join(text_parts)


def extract_text_with_ocr_flag(pdf_bytes: bytes, *, file_label: str = "-") -> tuple[str, bool]:
    text = extract_text_from_pdf(pdf_bytes, file_label=file_label)
    cleaned = normalize_space(text)
    if len(cleaned) >= settings.FATURAS_MIN_TEXT_CHARS:
        return text, False

    logger.info(
        "ocr_fallback file=%s reason=weak_text chars=%s min_chars=%s",
        file_label,
        len(cleaned),
        settings.FATURAS_MIN_TEXT_CHARS,
    )
    outcome = extract_text_with_ocr(pdf_bytes, file_label=file_label)
    if outcome.skipped:
        return text, False
    if outcome.text.strip() and len(outcome.text.strip()) > len(cleaned):
        return outcome.text, True
    logger.info("ocr_discarded file=%s ocr_chars=%s pdf_chars=%s", file_label, len(outcome.text.strip()), len(cleaned))
    return text, False


def extract_invoice_data(pdf_bytes: bytes, *, file_label: str = "-") -> tuple[ExtractionResult | None, bool, Provider | None]:
    """Read a utility invoice PDF.

    Returns ``(result, ocr_used, provider)``; ``result`` is None when no
    amount and no consumption could be recovered, ``provider`` is None when
    the PDF produced no text at all.
    """
    started_at = time.monotonic()
    text, ocr_used = extract_text_with_ocr_flag(pdf_bytes, file_label=file_label)
    if not text.strip():
        logger.info("extract_invoice_done file=%s found=False reason=no_text ocr=%s", file_label, ocr_used)
        return None, ocr_used, None

    provider, result = extract_fields(text)
    if result is not None and result.is_empty():
        result = None
    elapsed_ms = int((time.monotonic() - started_at) * 1000)
    logger.info(
        "extract_invoice_done file=%s provider=%s found=%s ocr=%s duration_ms=%s",
        file_label,
        provider,
        result is not None,
        ocr_used,
        elapsed_ms,
    )
    return result, ocr_used, provider


def _as_number(value: Decimal | None):
    return float(value) if value is not None else None


def _as_iso(value):
    return value.isoformat() if value is not None else None


def build_response(result: ExtractionResult | None, ocr_used: bool, provider: Provider | None = None) -> dict:
    if result is None:
        return {
            "encontrado": False,
            "concessionaria": str(provider or Provider.DESCONHECIDA),
            "ocr": ocr_used,
            "message": NOT_FOUND_OCR_MESSAGE if ocr_used else NOT_FOUND_MESSAGE,
        }
    return {
        "encontrado": True,
        "valido": True,
        "tipo": RESULT_TYPE,
        "concessionaria": str(result.provider),
        "valor": _as_number(result.amount),
        "vencimento": _as_iso(result.due_date),
        "linhaDigitavel": result.payment_line,
        "banco": result.bank_code,
        "consumoKwh": _as_number(result.consumption_kwh),
        "dataEmissao": _as_iso(result.issue_date),
        "notaFiscal": result.invoice_number,
        "referencia": result.billing_period,
        "ocr": ocr_used,
    }
