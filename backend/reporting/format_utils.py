"""Turkish formatting for report amounts and dates. Amounts never pass through float."""
from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable

_CENT = Decimal("0.01")
_DEFAULT_PREC = 28


def parse_amount(value: Any) -> Decimal:
    """Decimal-exact parse; anything unparseable (or NaN/Infinity) counts as zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return Decimal("0")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed


def is_valid_amount(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    text = str(value or "").strip()
    if not text:
        return False
    try:
        return Decimal(text).is_finite()
    except InvalidOperation:
        return False


def format_number_tr(value: Any, precision: int = 2) -> str:
    """1234567.891 -> '1.234.567,89' (dot thousands, comma decimals, half-up)."""
    amount = parse_amount(value)
    quant = Decimal(1).scaleb(-precision) if precision > 0 else Decimal(1)
    with localcontext() as ctx:
        # quantize needs every integer digit plus the decimals within precision
        ctx.prec = max(_DEFAULT_PREC, amount.adjusted() + max(0, precision) + 2)
        rounded = amount.quantize(quant, rounding=ROUND_HALF_UP)
        text = f"{abs(rounded):,.{max(0, precision)}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    if rounded < 0:
        return f"-{text}"
    return text


def decimal_sum(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of finite Decimals; precision is widened to hold every digit."""
    items = list(values)
    if not items:
        return Decimal("0")
    highest = max(v.adjusted() for v in items)
    lowest = min(v.as_tuple().exponent for v in items)
    total = Decimal("0")
    with localcontext() as ctx:
        ctx.prec = max(_DEFAULT_PREC, highest - lowest + len(str(len(items))) + 2)
        for v in items:
            total += v
    return total


def format_currency_tl(value: Any) -> str:
    return f"{format_number_tr(value, 2)} TL"


def format_percent_tr(value: Any, precision: int = 2) -> str:
    return f"%{format_number_tr(value, precision)}"


def format_date_tr(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return value.strftime("%d.%m.%Y")
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    text = str(value).strip()
    if not text:
        return "-"
    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            parsed = datetime.strptime(text[:10], fmt).date()
            return parsed.strftime("%d.%m.%Y")
        except ValueError:
            continue
    return text


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    return None
