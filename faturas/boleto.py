import logging
import re
from datetime import date, timedelta
from decimal import Decimal

from .checksum import modulo10, modulo11
from .parsing import only_digits
from .results import PaymentLineResult

logger = logging.getLogger(__name__)

LINE_LENGTH = 47
BARCODE_LENGTH = 44

# Due-date factor counts days from FACTOR_EPOCH. The 4-digit counter hit 9999
# on 2025-02-21 and restarted at 1000 on ROLLOVER_EPOCH.
FACTOR_EPOCH = date(1997, 10, 7)
ROLLOVER_EPOCH = date(2025, 2, 22)
ROLLOVER_RESTART = 1000
ROLLOVER_YEAR = 2020

LINE_DOTTED_RE = re.compile(r"[0-9]{5}\.[0-9]{5}\s+[0-9]{5}\.[0-9]{6}\s+[0-9]{5}\.[0-9]{6}\s+[0-9]\s+[0-9]{14}")
LINE_SPACED_RE = re.compile(r"[0-9]{10}\s+[0-9]{11}\s+[0-9]{11}\s+[0-9]\s+[0-9]{14}")
LINE_BARE_RE = re.compile(r"[0-9]{47}")

LINE_CANDIDATE_RES = (LINE_DOTTED_RE, LINE_SPACED_RE, LINE_BARE_RE)

# (label, body start, body end, check digit index) inside the 47 digits
LINE_FIELDS = (
    ("Campo 1", 0, 9, 9),
    ("Campo 2", 10, 20, 20),
    ("Campo 3", 21, 31, 31),
)
GENERAL_CHECK_INDEX = 32


def decode_due_date(
    factor: int,
    *,
    rollover_year: int = ROLLOVER_YEAR,
    epoch: date = FACTOR_EPOCH,
    rollover_epoch: date = ROLLOVER_EPOCH,
) -> date | None:
    """Translate a barcode due-date factor into a calendar date.

    Factor 0 means the slip carries no due date. Factors that land before
    ``rollover_year`` on the original epoch belong to the restarted counter
    and are counted from ``rollover_epoch`` (factor 1000 == rollover_epoch).
    """
    if factor <= 0:
        return None
    due_date = epoch + timedelta(days=factor)
    if due_date.year < rollover_year:
        due_date = rollover_epoch + timedelta(days=factor - ROLLOVER_RESTART)
    return due_date


def line_to_barcode(digits: str) -> str:
    return digits[0:4] + digits[32] + digits[33:47] + digits[4:9] + digits[10:20] + digits[21:31]


def validate_payment_line(value: str) -> PaymentLineResult:
    digits = only_digits(value)
    if len(digits) != LINE_LENGTH:
        return PaymentLineResult.invalid(
            f"Tamanho invalido: {len(digits)} digitos (esperado {LINE_LENGTH})"
        )

    errors = []
    for label, start, end, check_index in LINE_FIELDS:
        expected = modulo10(digits[start:end])
        found = int(digits[check_index])
        if expected != found:
            errors.append(f"{label}: DV esperado {expected}, encontrado {found}")

    barcode = line_to_barcode(digits)
    expected = modulo11(barcode[:4] + barcode[5:])
    found = int(digits[GENERAL_CHECK_INDEX])
    if expected != found:
        errors.append(f"DV geral: esperado {expected}, encontrado {found}")

    if errors:
        return PaymentLineResult.invalid("; ".join(errors))

    factor = int(barcode[5:9])
    amount = Decimal(int(barcode[9:19])).scaleb(-2)
    return PaymentLineResult(
        valid=True,
        bank_code=barcode[:3],
        amount=amount,
        due_date=decode_due_date(factor),
        digits=digits,
        barcode=barcode,
    )


def find_payment_line_candidates(text: str) -> list[str]:
    candidates = []
    for regex in LINE_CANDIDATE_RES:
        for match in regex.finditer(text or ""):
            digits = only_digits(match.group(0))
            if len(digits) == LINE_LENGTH:
                candidates.append(digits)
    return list(dict.fromkeys(candidates))


def find_valid_payment_line(text: str) -> PaymentLineResult | None:
    for candidate in find_payment_line_candidates(text):
        result = validate_payment_line(candidate)
        if result.valid:
            return result
        logger.debug("payment_line_rejected tail=%s reason=%s", candidate[-6:], result.reason)
    return None
