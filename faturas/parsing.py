import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

MAX_AMOUNT = Decimal("10000000")

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "marco",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)

MONTH_NAME_PATTERN = "Janeiro|Fevereiro|Mar[çc]o|Abril|Maio|Junho|Julho|Agosto|Setembro|Outubro|Novembro|Dezembro"


def only_digits(value: str) -> str:
    return re.sub(r"[^0-9]", "", value or "")


def normalize_space(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def fold_text(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value or "")
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return stripped.replace("º", "o").replace("ª", "a").replace("°", "o")


def parse_amount_br(value: str) -> Decimal | None:
    """Parse "1.976,70" style tokens; only 0 < value < 10 million is accepted."""
    if not value:
        return None
    cleaned = value.strip().replace(".", "").replace(",", ".")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0 or amount >= MAX_AMOUNT:
        return None
    return amount


def parse_date_br(value: str) -> date | None:
    if not value:
        return None
    cleaned = value.strip().replace("-", "/").replace(".", "/")
    try:
        return datetime.strptime(cleaned, "%d/%m/%Y").date()
    except ValueError:
        return None


def month_from_name(name: str) -> int | None:
    folded = fold_text(name).strip().lower()
    if folded in MONTH_NAMES:
        return MONTH_NAMES.index(folded) + 1
    return None


def parse_month_year(month, year) -> str | None:
    try:
        month_value = int(month)
        year_value = int(year)
    except (TypeError, ValueError):
        return None
    if not 1 <= month_value <= 12:
        return None
    return f"{year_value:04d}-{month_value:02d}"
