"""
Locale-aware price normalization for Brazilian marketplace pages.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

# Thousands groups separated by "." and up to two decimals after ",".
PRICE_REGEX = re.compile(r"\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?|\d+(?:,\d{1,2})?")
CENTS = Decimal("0.01")


def parse_brl_price(raw: str | None) -> Decimal | None:
    """
    Convert text such as "R$ 1.234,56" to Decimal("1234.56").

    Returns None when the text carries no positive amount.
    """

    if not raw:
        return None
    text = raw.replace("R$", " ").replace("\xa0", " ")
    match = PRICE_REGEX.search(text)
    if match is None:
        return None

    normalized = match.group(0).replace(".", "").replace(",", ".")
    try:
        value = Decimal(normalized)
    except InvalidOperation:
        return None
    if value <= 0:
        return None
    return value.quantize(CENTS)


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()
