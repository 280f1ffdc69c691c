"""Normalization of individual cell values (amounts, currencies, payment methods, tags)."""

import re
from typing import List, Optional

from .config import PAYMENT_METHODS

CURRENCY_SYMBOLS = {"€": "EUR", "$": "USD", "£": "GBP", "¥": "JPY"}

PAYMENT_METHOD_VARIATIONS = {
    "CREDIT": "CREDIT_CARD",
    "CREDITCARD": "CREDIT_CARD",
    "DEBIT": "DEBIT_CARD",
    "DEBITCARD": "DEBIT_CARD",
    "TRANSFER": "BANK_TRANSFER",
    "WIRE": "BANK_TRANSFER",
    "SEPA": "BANK_TRANSFER",
    "CHEQUE": "CHECK",
    "WALLET": "DIGITAL_WALLET",
    "PAYPAL": "DIGITAL_WALLET",
    "VENMO": "DIGITAL_WALLET",
    "APPLE_PAY": "DIGITAL_WALLET",
    "GOOGLE_PAY": "DIGITAL_WALLET",
    "CRYPTO": "CRYPTOCURRENCY",
    "GIFTCARD": "GIFT_CARD",
}


def parse_amount(value: str) -> str:
    """
    Normalize an amount cell to a plain decimal string.

    Whichever of comma and dot appears rightmost is the decimal separator;
    the other one is a thousands separator and is dropped. Accounting style
    parentheses mark a negative amount.

    Examples:
        "1.234,56" -> "1234.56", "1,234.56" -> "1234.56", "(12.00)" -> "-12.00"
    """
    value = (value or "").strip()
    is_negative = False
    if value.startswith("(") and value.endswith(")"):
        is_negative = True
        value = value[1:-1]

    cleaned = re.sub(r"[^\d.,-]", "", value)
    if cleaned.startswith("-"):
        is_negative = True
        cleaned = cleaned[1:]

    if not re.search(r"\d", cleaned):
        return ""

    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")
    if last_comma > last_dot:
        integer_part, fraction = cleaned[:last_comma], cleaned[last_comma + 1:]
        cleaned = integer_part.replace(".", "").replace(",", "") + "." + fraction
    else:
        cleaned = cleaned.replace(",", "")

    return f"-{cleaned}" if is_negative else cleaned


def parse_currency(value: str) -> Optional[str]:
    """Upper-cased currency code; symbols are translated. Unknown codes are kept for validation to flag."""
    value = (value or "").strip()
    if not value:
        return None
    if value in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[value]
    return value.upper()


def parse_payment_method(value: str) -> str:
    """Map common spellings onto a supported payment method, OTHER when unknown."""
    if not value or not value.strip():
        return "OTHER"
    normalized = re.sub(r"[_\s-]+", "_", value.strip().upper())
    if normalized in PAYMENT_METHODS:
        return normalized
    return PAYMENT_METHOD_VARIATIONS.get(
        normalized, PAYMENT_METHOD_VARIATIONS.get(normalized.replace("_", ""), "OTHER")
    )


def parse_tag_names(value: str) -> List[str]:
    """Comma separated tag names, trimmed, empty and duplicate names dropped."""
    names: List[str] = []
    for name in (value or "").split(","):
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names
