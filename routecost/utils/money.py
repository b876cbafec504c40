# routecost/utils/money.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from routecost.config import MONEY_QUANTUM, HOURS_QUANTUM, TIME_QUANTUM, UNIT_COST_QUANTUM
from routecost.exceptions import ValidationError

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Converts user or database input to Decimal without passing through binary float."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"'{field_name}' must be numeric, got {value!r}.")
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"'{field_name}' must be numeric, got {value!r}.")
    if not result.is_finite():
        raise ValidationError(f"'{field_name}' must be a finite number, got {value!r}.")
    return result


def to_optional_decimal(value: Any, field_name: str = "value") -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, field_name)


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def round_hours(hours: Decimal) -> Decimal:
    return hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def round_time(value: Decimal) -> Decimal:
    return value.quantize(TIME_QUANTUM, rounding=ROUND_HALF_UP)


def round_unit_cost(amount: Decimal, quantity: int = 1) -> Decimal:
    """
    At least UNIT_COST_QUANTUM, finer for large batches: one more decimal per digit of
    quantity keeps unit_cost * quantity within half a cent of the total.
    """
    quantum = min(UNIT_COST_QUANTUM, MONEY_QUANTUM.scaleb(-len(str(abs(quantity)))))
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)
