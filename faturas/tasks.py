import logging
import os

from celery import shared_task
from django.conf import settings

from .services import build_response, extract_invoice_data

logger = logging.getLogger(__name__)


def _read_pdf(file_path: str) -> bytes:
    if not file_path.lower().endswith(".pdf"):
        raise ValueError("Suporta apenas PDF.")
    max_bytes = settings.FATURAS_MAX_FILE_SIZE_MB * 1024 * 1024
    size = os.path.getsize(file_path)
    if size > max_bytes:
        raise ValueError(f"Arquivo excede {settings.FATURAS_MAX_FILE_SIZE_MB} MB.")
    with open(file_path, "rb") as pdf_file:
        return pdf_file.read()


@shared_task(bind=True)
def extract_invoice_task(self, file_path):
    file_label = os.path.basename(file_path)
    task_id = getattr(self.request, "id", None) or "-"
    try:
        pdf_bytes = _read_pdf(file_path)
    except (OSError, ValueError):
        logger.exception("extract_invoice_failed file=%s task=%s", file_label, task_id)
        raise

    result, ocr_used, provider = extract_invoice_data(pdf_bytes, file_label=file_label)
    logger.info("extract_invoice_task_done file=%s task=%s found=%s", file_label, task_id, result is not None)
    return build_response(result, ocr_used, provider)
