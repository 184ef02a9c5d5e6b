"""
Money helpers shared by the transaction store and every report.

The balance sign depends on the ledger type, and ``signed_amount`` is the
only place that convention lives:

* bank and income ledgers grow with credits and shrink with debits
* expense ledgers grow with debits; a credit is a refund
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from ledgerbook.common.exceptions import ValidationError
from ledgerbook.models.ledger import LedgerType

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce a numeric value to a 2-place Decimal; None becomes 0.00."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}")


def signed_amount(ledger_type: LedgerType, debit: Optional[Number], credit: Optional[Number]) -> Decimal:
    debit = to_decimal(debit)
    credit = to_decimal(credit)
    if ledger_type == LedgerType.EXPENSE:
        return debit - credit
    if ledger_type in (LedgerType.INCOME, LedgerType.BANK):
        return credit - debit
    raise ValidationError(f"Unknown ledger type: {ledger_type!r}")


def require_positive(amount: Optional[Number], field: str = "amount") -> Decimal:
    value = to_decimal(amount)
    if value <= ZERO:
        raise ValidationError(f"{field.capitalize()} must be greater than 0")
    return value


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")
