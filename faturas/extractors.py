import logging
import re
from decimal import Decimal

from .boleto import find_valid_payment_line
from .parsing import (
    MAX_AMOUNT,
    MONTH_NAME_PATTERN,
    fold_text,
    month_from_name,
    only_digits,
    parse_amount_br,
    parse_date_br,
    parse_month_year,
)
from .results import ExtractionResult, Provider

logger = logging.getLogger(__name__)

NUMBER = r"([\d.,]+)"
DATE = r"(\d{2}/\d{2}/\d{4})"

PROVIDER_KEYWORDS = (
    (Provider.ENERGISA, "energisa"),
    (Provider.EQUATORIAL, "equatorial"),
)


def first_match(extractors, text: str):
    for extractor in extractors:
        value = extractor(text)
        if value is not None:
            return value
    return None


def amount_after(pattern: str, flags: int = re.IGNORECASE):
    regex = re.compile(pattern, flags)

    def extract(text: str) -> Decimal | None:
        match = regex.search(text)
        if not match:
            return None
        return parse_amount_br(match.group(1))

    return extract


def date_after(pattern: str, flags: int = re.IGNORECASE):
    regex = re.compile(pattern, flags)

    def extract(text: str):
        match = regex.search(text)
        if not match:
            return None
        return parse_date_br(match.group(1))

    return extract


def period_after(pattern: str, flags: int = re.IGNORECASE):
    regex = re.compile(pattern, flags)

    def extract(text: str) -> str | None:
        match = regex.search(text)
        if not match:
            return None
        return parse_month_year(match.group(1), match.group(2))

    return extract


# --- consumption (kWh) ---

ENERGIA_ATIVA = amount_after(r"Energia\s+ativa\s+em\s+kWh\s+\d+\s+" + NUMBER)
# Last number on the "Ponta" reading line is the billed consumption.
TABELA_PONTA = amount_after(
    r"Ponta\s+[\d.,]+\s+[\d.,]+[\s\S]{0,200}?[\d.,]+\s+" + NUMBER + r"\s*$",
    re.MULTILINE,
)
CONSUMO_EM_KWH = amount_after(r"Consumo\s+em\s+kWh[\s\S]{0,20}?" + NUMBER)
CONSUMO_FATURADO = amount_after(r"CONSUMO\s+FATURADO[\s\S]{0,100}?" + NUMBER + r"\s*kWh")
TUSD_FORA_PONTA = amount_after(r"TUSD\s+Energia\s+Fora\s+Ponta\s*\(kWh\)\s*" + NUMBER)

CONSUMO_ATIVO_FP_RE = re.compile(r"Consumo\s+Ativo\s+FP[\s\S]{0,80}?" + NUMBER + r"\s*kWh", re.I)
CONSUMO_ATIVO_NP_RE = re.compile(r"Consumo\s+Ativo\s+(?:NP|P\b)[\s\S]{0,80}?" + NUMBER + r"\s*kWh", re.I)
KWH_RE = re.compile(NUMBER + r"\s*kWh", re.I)


def consumo_ativo_fp_np(text: str) -> Decimal | None:
    """Off-peak (FP) plus peak (NP/P) active consumption."""
    fp_match = CONSUMO_ATIVO_FP_RE.search(text)
    if not fp_match:
        return None
    total = parse_amount_br(fp_match.group(1)) or Decimal(0)
    np_match = CONSUMO_ATIVO_NP_RE.search(text)
    if np_match:
        total += parse_amount_br(np_match.group(1)) or Decimal(0)
    if total <= 0 or total >= MAX_AMOUNT:
        return None
    return total


def maior_kwh(text: str) -> Decimal | None:
    values = [parse_amount_br(match.group(1)) for match in KWH_RE.finditer(text)]
    values = [value for value in values if value is not None]
    if not values:
        return None
    return max(values)


# --- amount ---

TOTAL_DOIS_PONTOS = amount_after(r"TOTAL:\s*" + NUMBER)
PRIMEIRO_REAIS = amount_after(r"R\$\s*" + NUMBER)
TOTAL_A_PAGAR = amount_after(r"Total\s+a\s+Pagar[\s\S]{0,30}?R\$\s*" + NUMBER)
VALOR_COBRADO = amount_after(r"Valor\s+cobrado\s*\(R\$\)[:\s].*?" + NUMBER + r"\s*\n")
VALOR_DOCUMENTO = amount_after(r"VALOR\s+DOCUMENTO[\s\S]{0,30}?" + NUMBER)
VALOR_TOTAL = amount_after(r"VALOR\s+TOTAL[\s:]*R\$\s*" + NUMBER)
VALOR_A_PAGAR = amount_after(r"Valor\s+a\s+pagar[\s:]*R\$\s*" + NUMBER)
TOTAL_REAIS = amount_after(r"TOTAL[\s:]+R\$\s*" + NUMBER)

# --- due date ---

DATA_ANTES_REAIS = date_after(DATE + r"\s+R\$")
VENCIMENTO = date_after(r"Vencimento[\s:]+(\d{2}[/.]\d{2}[/.]\d{4})")
DATA_DE_VENCIMENTO = date_after(r"DATA\s+DE\s+VENCIMENTO[:\s]+" + DATE)
VENC_ABREVIADO = date_after(r"Venc\.?[:\s]+" + DATE)

# --- issue date, invoice number, billing period ---

# Some PDF text layers split words: "DAT A DE EMISSÃO", "NOT A FISCAL".
DATA_EMISSAO = date_after(r"DAT\s*A\s+DE\s+EMISS[ÃA]O[:\s]*" + DATE)
NOTA_FISCAL_RE = re.compile(r"NOT\s*A\s+FISCAL\s+N[º°o]?\.?:?\s*(\d[\d.]*)", re.I)


def nota_fiscal(text: str) -> str | None:
    match = NOTA_FISCAL_RE.search(text)
    if not match:
        return None
    return only_digits(match.group(1)) or None


COMPETENCIA = period_after(r"(?:Compet[êe]ncia|Conta\s+M[êe]s)[:\s]*(\d{2})/(\d{4})")
REFERENCIA = period_after(r"Refer[êe]ncia[:\s]*(\d{2})/(\d{4})")
MES_POR_EXTENSO_RE = re.compile(r"(" + fold_text(MONTH_NAME_PATTERN) + r")\s*/\s*(\d{4})", re.I)


def mes_por_extenso(text: str) -> str | None:
    match = MES_POR_EXTENSO_RE.search(fold_text(text))
    if not match:
        return None
    return parse_month_year(month_from_name(match.group(1)), match.group(2))


class InvoiceExtractor:
    """Best-effort invoice reader for one provider layout.

    Each ``*_extractors`` tuple is tried in order and the first value that
    parses wins. A valid linha digitavel overrides the text cascades for
    amount and due date.
    """

    provider = Provider.DESCONHECIDA
    consumption_extractors = ()
    amount_extractors = ()
    due_date_extractors = ()
    issue_date_extractors = (DATA_EMISSAO,)
    invoice_number_extractors = (nota_fiscal,)
    billing_period_extractors = (COMPETENCIA, mes_por_extenso, REFERENCIA)

    def extract(self, text: str) -> ExtractionResult | None:
        text = text or ""
        result = ExtractionResult(provider=self.provider)
        result.consumption_kwh = first_match(self.consumption_extractors, text)

        line = find_valid_payment_line(text)
        if line:
            result.payment_line = line.digits
            result.bank_code = line.bank_code
            result.due_date = line.due_date
            if line.amount:
                result.amount = line.amount
            logger.info(
                "payment_line_ok provider=%s bank=%s amount=%s due=%s tail=%s",
                self.provider,
                line.bank_code,
                line.amount,
                line.due_date,
                line.digits[-6:],
            )

        if result.amount is None:
            result.amount = first_match(self.amount_extractors, text)
        if result.due_date is None:
            result.due_date = first_match(self.due_date_extractors, text)

        result.issue_date = first_match(self.issue_date_extractors, text)
        result.invoice_number = first_match(self.invoice_number_extractors, text)
        result.billing_period = first_match(self.billing_period_extractors, text)

        if result.amount is None and result.consumption_kwh is None:
            logger.info("extract_missing provider=%s reason=no_amount_no_consumption", self.provider)
            return None
        return result


class EnergisaExtractor(InvoiceExtractor):
    provider = Provider.ENERGISA
    consumption_extractors = (ENERGIA_ATIVA, TABELA_PONTA, CONSUMO_EM_KWH, CONSUMO_FATURADO)
    amount_extractors = (TOTAL_DOIS_PONTOS, PRIMEIRO_REAIS)
    due_date_extractors = (DATA_ANTES_REAIS, VENCIMENTO)


class EquatorialExtractor(InvoiceExtractor):
    provider = Provider.EQUATORIAL
    consumption_extractors = (consumo_ativo_fp_np, TUSD_FORA_PONTA)
    amount_extractors = (TOTAL_A_PAGAR, VALOR_COBRADO, VALOR_DOCUMENTO)
    due_date_extractors = (VENCIMENTO, DATA_DE_VENCIMENTO)


class GenericExtractor(InvoiceExtractor):
    consumption_extractors = (
        ENERGIA_ATIVA,
        consumo_ativo_fp_np,
        CONSUMO_FATURADO,
        CONSUMO_EM_KWH,
        TUSD_FORA_PONTA,
        TABELA_PONTA,
        maior_kwh,
    )
    amount_extractors = (
        TOTAL_A_PAGAR,
        VALOR_COBRADO,
        VALOR_TOTAL,
        VALOR_A_PAGAR,
        TOTAL_REAIS,
        VALOR_DOCUMENTO,
        TOTAL_DOIS_PONTOS,
    )
    due_date_extractors = (VENCIMENTO, DATA_DE_VENCIMENTO, VENC_ABREVIADO)


PROVIDER_EXTRACTORS = {
    Provider.ENERGISA: EnergisaExtractor(),
    Provider.EQUATORIAL: EquatorialExtractor(),
    Provider.DESCONHECIDA: GenericExtractor(),
}


def detect_provider(text: str) -> Provider:
    folded = fold_text(text).lower()
    for provider, keyword in PROVIDER_KEYWORDS:
        if keyword in folded:
            return provider
    return Provider.DESCONHECIDA


def extract_fields(text: str) -> tuple[Provider, ExtractionResult | None]:
    provider = detect_provider(text)
    logger.info("provider_detected provider=%s", provider)
    return provider, PROVIDER_EXTRACTORS[provider].extract(text)
