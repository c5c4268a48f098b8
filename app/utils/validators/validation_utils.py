from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Type, TypeVar, Union
from app.core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)
Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")

# Column scales: quantities are Numeric(12, 3), money is Numeric(12, 2)
QUANTITY_STEP = Decimal("0.001")
MONEY_STEP = Decimal("0.01")

def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Coerce user or driver supplied numbers to Decimal without float noise."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result

def to_quantity(value: Number, field: str = "quantity") -> Decimal:
    """Decimal rounded to the stored quantity scale, so checks see what gets persisted."""
    return to_decimal(value, field).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)

def to_money(value: Number, field: str = "amount") -> Decimal:
    return to_decimal(value, field).quantize(MONEY_STEP, rounding=ROUND_HALF_UP)

def parse_enum(enum_cls: Type[E], value: Union[E, str], field: str) -> E:
    """Map a raw string onto an enum member, rejecting anything outside the taxonomy."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Unknown {field} '{value}'. Expected one of: {allowed}")

def as_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)
