from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal

from django.db.models import TextChoices


class Provider(TextChoices):
    ENERGISA = "ENERGISA", "Energisa"
    EQUATORIAL = "EQUATORIAL", "Equatorial"
    DESCONHECIDA = "DESCONHECIDA", "Desconhecida"


@dataclass(frozen=True)
class PaymentLineResult:
    valid: bool
    reason: str = ""
    bank_code: str | None = None
    amount: Decimal | None = None
    due_date: date | None = None
    digits: str | None = None
    barcode: str | None = None

    @classmethod
    def invalid(cls, reason: str) -> "PaymentLineResult":
        return cls(valid=False, reason=reason)


@dataclass
class ExtractionResult:
    provider: Provider
    amount: Decimal | None = None
    due_date: date | None = None
    payment_line: str | None = None
    bank_code: str | None = None
    consumption_kwh: Decimal | None = None
    issue_date: date | None = None
    invoice_number: str | None = None
    billing_period: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, field.name) is None for field in fields(self) if field.name != "provider")
