"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

# Arabic-Indic and Extended (Persian) digits, plus the Arabic separators.
_DIGITS = str.maketrans(
    "٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹٫٬",
    "01234567890123456789.,",
)
_CURRENCY = re.compile(r"(JOD|EGP|SAR|USD|ج\.م|ر\.س|د\.ا|[$€£])", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money amount into a Decimal with two places.

    Accepts Western or Arabic-Indic digits, thousands separators and a
    currency symbol or code:
    - "1500"
    - "1,500.50"
    - "١٥٠٠٫٥"
    - "250 JOD"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount rounded to two places

    Raises:
        ValueError: If the string is not a number
    """
    return _parse(amount_str).quantize(Decimal("0.01"))


def parse_quantity(quantity_str: str) -> Decimal:
    """Parse a stock quantity into a Decimal with three places."""
    return _parse(quantity_str).quantize(Decimal("0.001"))


def _parse(text: str) -> Decimal:
    if text is None or not str(text).strip():
        raise ValueError("Empty amount string")

    cleaned = str(text).strip().translate(_DIGITS)
    cleaned = _CURRENCY.sub("", cleaned)
    cleaned = cleaned.replace(",", "").replace(" ", "")

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{text}'")
