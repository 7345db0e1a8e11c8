from decimal import Decimal, InvalidOperation
from typing import Union

AmountInput = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
# 999 999 999 999.99; sums over many rows still fit a signed 64-bit integer
MAX_AMOUNT_CENTS = 99_999_999_999_999


def parse_amount(value: AmountInput) -> int:
    """Convert a submitted amount to integer cents.

    Accepts ints, Decimals, floats and numeric strings (``"1 234,50"`` style
    grouping is tolerated). Raises ``ValueError`` for anything that is not a
    finite number or that carries more precision than whole cents, so the
    stored value always equals the submitted one.
    """
    if isinstance(value, bool):
        raise ValueError("Invalid amount")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    else:
        clean = str(value).strip().replace("€", "").replace("$", "").replace(" ", "")
        clean = clean.replace(",", ".")
        if clean.count(".") > 1:
            parts = clean.split(".")
            clean = "".join(parts[:-1]) + "." + parts[-1]
        try:
            amount = Decimal(clean)
        except InvalidOperation as exc:
            raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if amount != quantized:
        raise ValueError("Amount cannot have more than two decimal places")
    cents = int(amount * 100)
    if abs(cents) > MAX_AMOUNT_CENTS:
        raise ValueError("Amount is too large")
    return cents


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(CENT)
