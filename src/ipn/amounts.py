from decimal import ROUND_HALF_UP, Decimal, Inexact, InvalidOperation, localcontext

from src.ipn.exceptions import InvalidFieldError, MissingFieldError

MINOR_UNITS_PER_MAJOR = 100


def to_decimal(field: str, value: str | None) -> Decimal:
    """Parse a decimal amount string, raising a FieldError instead of defaulting."""
    if value is None:
        raise MissingFieldError(field)
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        raise InvalidFieldError(field, value, "not a decimal number") from None
    if not amount.is_finite():
        raise InvalidFieldError(field, value, "not a finite number")
    return amount


def to_minor_units(field: str, value: str | None) -> int:
    """Convert a decimal amount string to integer minor units (cents).

    Rounds half away from zero: "0.005" -> 1, "-0.005" -> -1. Amounts too
    large to scale exactly within the decimal context raise InvalidFieldError.
    """
    amount = to_decimal(field, value)
    try:
        with localcontext() as ctx:
            # scaling must not silently drop digits
            ctx.traps[Inexact] = True
            scaled = amount * MINOR_UNITS_PER_MAJOR
        return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (Inexact, InvalidOperation):
        raise InvalidFieldError(field, value, "amount out of range") from None
