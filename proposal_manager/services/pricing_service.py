"""
Pricing engine for proposals.

Pure functions: no I/O, no rounding. Monetary values are Decimal; callers
round with quantize_money() right before persisting.
"""

import enum
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Mapping, Union

from proposal_manager.exceptions import ValidationError

CENT = Decimal('0.01')
HUNDRED = Decimal('100')

Number = Union[int, float, Decimal, str]


def to_decimal(value: Any) -> Decimal:
    """Convert a fee/discount value to Decimal. None and '' count as zero."""
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f'Valor numérico inválido: {value!r}')


def quantize_money(value: Number) -> Decimal:
    """Round to cents (half-up), as stored in Numeric(12, 2) columns."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class DiscountKind(enum.Enum):
    """How a discount value is interpreted."""
    PERCENTAGE = 'percentage'
    ABSOLUTE = 'absolute'


@dataclass(frozen=True)
class Discount:
    """
    Discount tagged union.

    The builder works in percentage; the persisted proposal and the rendered
    document work in absolute currency. Conversion happens once, in
    amount_for(), when totals are computed.
    """
    kind: DiscountKind
    value: Decimal

    def __post_init__(self):
        value = to_decimal(self.value)
        if value < 0:
            raise ValidationError('O desconto não pode ser negativo.')
        if self.kind is DiscountKind.PERCENTAGE and value > HUNDRED:
            raise ValidationError('O desconto percentual deve estar entre 0 e 100.')
        object.__setattr__(self, 'value', value)

    @classmethod
    def percentage(cls, value: Number) -> 'Discount':
        return cls(DiscountKind.PERCENTAGE, value)

    @classmethod
    def absolute(cls, value: Number) -> 'Discount':
        return cls(DiscountKind.ABSOLUTE, value)

    @classmethod
    def none(cls) -> 'Discount':
        return cls(DiscountKind.ABSOLUTE, Decimal('0'))

    def amount_for(self, subtotal: Decimal) -> Decimal:
        """Currency amount this discount removes from a pre-discount subtotal."""
        if self.kind is DiscountKind.PERCENTAGE:
            return subtotal * self.value / HUNDRED
        return self.value

    def to_dict(self):
        return {'kind': self.kind.value, 'value': self.value}


@dataclass(frozen=True)
class ProposalTotals:
    """Monetary summary of a set of line items."""
    monthly: Decimal
    setup: Decimal
    discount_amount: Decimal
    final: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.monthly + self.setup

    @property
    def is_negative(self) -> bool:
        return self.final < 0

    def to_dict(self):
        return {
            'monthly': self.monthly,
            'setup': self.setup,
            'discount_amount': self.discount_amount,
            'final': self.final,
        }


def _fee(item: Any, field: str) -> Decimal:
    if isinstance(item, Mapping):
        return to_decimal(item.get(field))
    return to_decimal(getattr(item, field, None))


def coerce_discount(discount: Union[Discount, Number, None]) -> Discount:
    """A bare number is the boundary representation: an absolute amount."""
    if discount is None:
        return Discount.none()
    if isinstance(discount, Discount):
        return discount
    return Discount.absolute(discount)


def compute_totals(items: Iterable[Any], discount: Union[Discount, Number, None] = None) -> ProposalTotals:
    """
    Aggregate line items into monthly/setup sums and apply a discount.

    Items may be mappings or objects exposing monthly_fee and setup_fee.
    The final value is NOT clamped at zero; callers validate before persisting.

    Examples:
        compute_totals([{'monthly_fee': 100, 'setup_fee': 0},
                        {'monthly_fee': 0, 'setup_fee': 50}], 20).final -> Decimal('130')
    """
    discount = coerce_discount(discount)

    monthly = Decimal('0')
    setup = Decimal('0')
    for item in items:
        monthly += _fee(item, 'monthly_fee')
        setup += _fee(item, 'setup_fee')

    discount_amount = discount.amount_for(monthly + setup)
    return ProposalTotals(
        monthly=monthly,
        setup=setup,
        discount_amount=discount_amount,
        final=monthly + setup - discount_amount,
    )
