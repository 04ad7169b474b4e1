import pytest

from faturas import ocr
from faturas.checksum import modulo10, modulo11

# Itau line with the general check digit corrected to 3.
ITAU_LINE = "34191.79001 01043.510047 91020.150008 3 84410000017200"
ITAU_DIGITS = "34191790010104351004791020150008384410000017200"
# Factor 1500 belongs to the counter restarted on 2025-02-22.
BB_LINE = "00190.00009 02796.801005 00000.000174 6 15000000123456"
BB_DIGITS = "00190000090279680100500000000174615000000123456"
BRADESCO_LINE = "23793.38128 60007.599032 04801.010002 9 90000000202264"
SICREDI_NO_DUE_LINE = "74891.12008 00000.000000 00000.000018 1 00000000013155"


def build_payment_line(bank_currency: str, factor: int, amount_cents: int, free_field: str) -> str:
    """Assemble a 47 digit linha digitavel with correct check digits."""
    factor_amount = f"{factor:04d}{amount_cents:010d}"
    general = modulo11(bank_currency + factor_amount + free_field)
    field1 = bank_currency + free_field[:5]
    field2 = free_field[5:15]
    field3 = free_field[15:25]
    return (
        field1
        + str(modulo10(field1))
        + field2
        + str(modulo10(field2))
        + field3
        + str(modulo10(field3))
        + str(general)
        + factor_amount
    )


def format_dotted(digits: str) -> str:
    return (
        f"{digits[0:5]}.{digits[5:10]} {digits[10:15]}.{digits[15:21]} "
        f"{digits[21:26]}.{digits[26:32]} {digits[32]} {digits[33:47]}"
    )


def format_spaced(digits: str) -> str:
    return f"{digits[0:10]} {digits[10:21]} {digits[21:32]} {digits[32]} {digits[33:47]}"


@pytest.fixture
def ocr_ready(monkeypatch):
    """OCR dependencies reported as installed; pages rendered by the test."""
    monkeypatch.setattr(ocr, "missing_ocr_deps", lambda: [])
    monkeypatch.setattr(ocr, "_count_pages", lambda pdf_bytes: 1)
    return monkeypatch
