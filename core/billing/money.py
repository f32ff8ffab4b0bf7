"""
Money and tax primitives.

All arithmetic uses Decimal. Values are never rounded here except by the
presentation helpers (round_money, to_wire, format_currency), so sums over
many line items do not accumulate rounding error.

Rates are percentages: 18 means 18%.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from core.errors import BillingValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value, field: str = "value") -> Decimal:
    """
    Coerce a user or wire value to a finite Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    approximation. Booleans, None, NaN and infinities are rejected.

    Raises:
        BillingValidationError: If the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        raise BillingValidationError.single(field, "must be a number")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip()) if isinstance(value, (str, float)) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise BillingValidationError.single(field, "must be a number")

    if not result.is_finite():
        raise BillingValidationError.single(field, "must be a finite number")
    return result


def non_negative(value, field: str) -> Decimal:
    """Coerce and require value >= 0."""
    result = to_decimal(value, field)
    if result < ZERO:
        raise BillingValidationError.single(field, "must not be negative")
    return result


def cents(value, field: str) -> Decimal:
    """
    Coerce an entered money amount that must already be in whole paise.

    More than 2 decimal places is rejected, never rounded.
    """
    result = to_decimal(value, field)
    if has_sub_cent(result):
        raise BillingValidationError.single(field, "must have at most 2 decimal places")
    return result


def has_sub_cent(value: Decimal) -> bool:
    try:
        return value != value.quantize(CENT)
    except InvalidOperation:
        # Too large to quantize; no fractional paise survive at that size
        return False


def positive_quantity(value, field: str = "quantity") -> int:
    """
    Require an integer quantity >= 1.

    Integral Decimals and floats (2.0) are accepted; fractional values and
    anything below 1 are rejected, never clamped.
    """
    if value is None or isinstance(value, bool):
        raise BillingValidationError.single(field, "must be a whole number")

    if isinstance(value, int):
        quantity = value
    else:
        number = to_decimal(value, field)
        if number != number.to_integral_value():
            raise BillingValidationError.single(field, "must be a whole number")
        quantity = int(number)

    if quantity < 1:
        raise BillingValidationError.single(field, "must be at least 1")
    return quantity


def line_amount(quantity, rate) -> Decimal:
    """Amount before tax: quantity * rate."""
    return positive_quantity(quantity) * non_negative(rate, "rate")


def line_tax(amount, tax_rate) -> Decimal:
    """Tax on an amount: amount * tax_rate / 100."""
    return non_negative(amount, "amount") * non_negative(tax_rate, "taxRate") / HUNDRED


def line_total(amount, tax) -> Decimal:
    """Amount plus tax."""
    return non_negative(amount, "amount") + non_negative(tax, "tax")


# =============================================================================
# PRESENTATION BOUNDARY
# =============================================================================


def round_money(value) -> Decimal:
    """Round to 2 decimal places, half up. Display and wire use only."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_wire(value) -> float:
    """Rounded JSON number for the backend."""
    return float(round_money(value))


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(value, symbol: str = "₹") -> str:
    """
    Format an amount the way the console displays it (en-IN grouping).

    format_currency(Decimal("123456.5")) -> "₹1,23,456.50"
    """
    rounded = round_money(value)
    sign = "-" if rounded < ZERO else ""
    whole, _, fraction = f"{abs(rounded):.2f}".partition(".")
    return f"{sign}{symbol}{_group_indian(whole)}.{fraction}"
