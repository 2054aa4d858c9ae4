"""Number parsing utilities for Brazilian formats."""
import re
from decimal import Decimal, InvalidOperation

BR_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")
PLAIN_NUMBER_PATTERN = re.compile(r"^\d+(?:\.\d+)?$")


def parse_br_number(value) -> Decimal:
    """
    Parse a non-negative number typed by a user into Decimal.

    Accepts JSON numbers as-is, Brazilian strings (1.234,56 or 10,5) and
    plain dotted strings (10.5).

    Raises:
        ValueError: if the value is invalid, empty or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValueError('Formato inválido. Use 1.234,56')

    if isinstance(value, (int, float, Decimal)):
        decimal_value = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError('Formato inválido. Use 1.234,56')

        if PLAIN_NUMBER_PATTERN.match(cleaned):
            normalized = cleaned
        elif BR_NUMBER_PATTERN.match(cleaned):
            normalized = cleaned.replace('.', '').replace(',', '.')
        else:
            raise ValueError('Formato inválido. Use 1.234,56')

        try:
            decimal_value = Decimal(normalized)
        except (InvalidOperation, ValueError):
            raise ValueError('Formato inválido. Use 1.234,56')

    if not decimal_value.is_finite() or decimal_value < 0:
        raise ValueError('O valor não pode ser negativo')

    return decimal_value
