"""
Utilidades de formatação para o documento e as respostas da API.
Inclui formatos de moeda e datas no estilo brasileiro.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

EM_DASH = "—"

MESES_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def format_brl(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formata um valor monetário em reais com exatamente 2 decimais.
    Usa vírgula como separador decimal e nenhum separador de milhar.

    Args:
        value: Valor a formatar (None conta como zero)

    Returns:
        String formatada

    Examples:
        format_brl(150) -> "R$ 150,00"
        format_brl(1500.5) -> "R$ 1500,50"
        format_brl(-20) -> "R$ -20,00"
    """
    if value is None or value == "":
        value = 0

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"Valor monetário inválido: {value!r}")

    return f"R$ {num:.2f}".replace(".", ",")


def format_fee_cell(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Célula de tabela para mensalidade/implementação: travessão quando zero.

    Examples:
        format_fee_cell(0) -> "—"
        format_fee_cell(99.9) -> "R$ 99,90"
    """
    if value is None or value == "":
        return EM_DASH
    try:
        if Decimal(str(value)) <= 0:
            return EM_DASH
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"Valor monetário inválido: {value!r}")
    return format_brl(value)


def parse_timestamp(value: Union[str, datetime, date, None]) -> datetime:
    """
    Converte um timestamp ISO 8601 (ou datetime) em datetime.

    Raises:
        ValueError: se o valor não puder ser interpretado.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Data inválida: {value!r}")

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    return datetime.fromisoformat(cleaned)


def date_br_long(value: Union[str, datetime, date, None]) -> str:
    """
    Formata uma data por extenso: "DD de <mês> de YYYY"

    Examples:
        date_br_long("2025-03-07T10:00:00Z") -> "07 de março de 2025"
    """
    parsed = parse_timestamp(value)
    return f"{parsed.day:02d} de {MESES_PT[parsed.month - 1]} de {parsed.year}"


def optional_text(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; empty strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
