from datetime import date
from decimal import Decimal

import pytest

from faturas.boleto import (
    decode_due_date,
    find_payment_line_candidates,
    find_valid_payment_line,
    line_to_barcode,
    validate_payment_line,
)

from .conftest import (
    BB_DIGITS,
    BB_LINE,
    BRADESCO_LINE,
    ITAU_DIGITS,
    ITAU_LINE,
    SICREDI_NO_DUE_LINE,
    build_payment_line,
    format_dotted,
    format_spaced,
)


def test_validate_itau_line():
    result = validate_payment_line(ITAU_LINE)
    assert result.valid
    assert result.bank_code == "341"
    assert result.amount == Decimal("172.00")
    assert result.due_date == date(2020, 11, 16)
    assert result.digits == ITAU_DIGITS
    assert len(result.digits) == 47


def test_published_itau_line_fails_general_check_digit():
    result = validate_payment_line("34191.79001 01043.510047 91020.150008 1 84410000017200")
    assert not result.valid
    assert result.reason == "DV geral: esperado 3, encontrado 1"
    assert result.bank_code is None


def test_barcode_is_rebuilt_from_line():
    result = validate_payment_line(BRADESCO_LINE)
    assert result.valid
    assert result.barcode == "23799900000002022643381260007599030480101000"
    assert len(result.barcode) == 44
    assert result.amount == Decimal("2022.64")
    assert result.due_date == date(2022, 5, 29)


def test_rolled_over_factor_uses_second_epoch():
    result = validate_payment_line(BB_LINE)
    assert result.valid
    assert result.bank_code == "001"
    assert result.amount == Decimal("1234.56")
    assert result.due_date == date(2026, 7, 7)


def test_zero_factor_has_no_due_date():
    result = validate_payment_line(SICREDI_NO_DUE_LINE)
    assert result.valid
    assert result.bank_code == "748"
    assert result.due_date is None
    assert result.amount == Decimal("131.55")


@pytest.mark.parametrize("value", ["", "123", ITAU_DIGITS + "0", ITAU_DIGITS[:-1]])
def test_wrong_length_is_invalid(value):
    result = validate_payment_line(value)
    assert not result.valid
    assert result.reason.startswith("Tamanho invalido")


@pytest.mark.parametrize(
    "index, label",
    [(2, "Campo 1"), (9, "Campo 1"), (14, "Campo 2"), (20, "Campo 2"), (25, "Campo 3"), (31, "Campo 3")],
)
def test_single_digit_change_names_the_field(index, label):
    original = BB_DIGITS[index]
    replacement = "5" if original != "5" else "6"
    mutated = BB_DIGITS[:index] + replacement + BB_DIGITS[index + 1:]
    result = validate_payment_line(mutated)
    assert not result.valid
    assert label in result.reason


def test_every_mismatch_is_reported():
    digits = list(BB_DIGITS)
    for index in (9, 20, 31):
        digits[index] = str((int(digits[index]) + 1) % 10)
    result = validate_payment_line("".join(digits))
    assert not result.valid
    assert "Campo 1" in result.reason
    assert "Campo 2" in result.reason
    assert "Campo 3" in result.reason
    assert "DV geral" not in result.reason


def test_amount_change_breaks_general_check_digit():
    mutated = BB_DIGITS[:46] + "7"
    result = validate_payment_line(mutated)
    assert not result.valid
    assert result.reason.startswith("DV geral")


@pytest.mark.parametrize(
    "bank_currency, factor, cents, free_field",
    [
        ("0019", 9999, 1, "0000000000000000000000000"),
        ("3419", 1000, 99999, "1234567890123456789012345"),
        ("1049", 2500, 4200000, "9876543210987654321098765"),
        ("7489", 0, 13155, "1120000000000000000000001"),
    ],
)
def test_built_lines_round_trip(bank_currency, factor, cents, free_field):
    line = build_payment_line(bank_currency, factor, cents, free_field)
    result = validate_payment_line(line)
    assert result.valid
    assert result.digits == line
    assert result.bank_code == bank_currency[:3]
    assert result.amount == Decimal(cents) / 100
    assert line_to_barcode(line)[19:] == free_field


def test_decode_due_date_primary_epoch():
    assert decode_due_date(8441) == date(2020, 11, 16)
    assert decode_due_date(9999) == date(2025, 2, 21)


def test_decode_due_date_after_rollover():
    assert decode_due_date(1000) == date(2025, 2, 22)
    assert decode_due_date(1500) == date(2026, 7, 7)
    assert decode_due_date(1999) == date(2027, 11, 18)


@pytest.mark.parametrize("factor", [1000, 1001, 2000, 5000, 8000])
def test_decode_due_date_old_years_move_past_2025(factor):
    assert decode_due_date(factor).year >= 2025


def test_decode_due_date_zero_factor():
    assert decode_due_date(0) is None


def test_decode_due_date_threshold_is_configurable():
    assert decode_due_date(8000) == date(2044, 4, 23)
    assert decode_due_date(8000, rollover_year=2019) == date(2019, 9, 2)


def test_candidates_same_for_every_layout():
    dotted = find_payment_line_candidates(f"Linha digitavel: {format_dotted(BB_DIGITS)} fim")
    spaced = find_payment_line_candidates(f"Pague com {format_spaced(BB_DIGITS)}\n")
    bare = find_payment_line_candidates(f"codigo {BB_DIGITS} x")
    assert dotted == spaced == bare == [BB_DIGITS]


def test_candidates_deduplicated_in_first_seen_order():
    text = "\n".join([ITAU_LINE, BB_DIGITS, format_spaced(ITAU_DIGITS), BB_LINE])
    assert find_payment_line_candidates(text) == [ITAU_DIGITS, BB_DIGITS]


def test_candidates_ignore_other_digit_runs():
    text = "CNPJ 12345678000190 codigo de barras 8364000000123456789012345678901234567890123"
    assert find_payment_line_candidates(text) == []
    assert find_payment_line_candidates("") == []


def test_find_valid_payment_line_skips_invalid_candidates():
    text = "34191.79001 01043.510047 91020.150008 1 84410000017200\n" + BRADESCO_LINE
    result = find_valid_payment_line(text)
    assert result.valid
    assert result.bank_code == "237"


def test_find_valid_payment_line_none_when_nothing_validates():
    assert find_valid_payment_line("34191.79001 01043.510047 91020.150008 1 84410000017200") is None


def test_non_ascii_digits_are_not_payment_lines():
    fullwidth = "".join(chr(0xFF10 + int(digit)) for digit in BB_DIGITS)
    assert find_payment_line_candidates(f"Linha: {fullwidth}\n") == []
    assert find_valid_payment_line(fullwidth) is None
    result = validate_payment_line(fullwidth)
    assert not result.valid
    assert result.reason == "Tamanho invalido: 0 digitos (esperado 47)"
