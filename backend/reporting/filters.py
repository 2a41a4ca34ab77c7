"""Transaction list filtering for report exports, and the Turkish filter banner line."""
from __future__ import annotations

from typing import Sequence

from models import Transaction, TransactionFilter

from .format_utils import format_date_tr, parse_date


def _fold(text: str) -> str:
    # dotted capital I would casefold to "i" + combining dot
    return text.replace("İ", "i").casefold()


def _matches(t: Transaction, flt: TransactionFilter) -> bool:
    term = _fold((flt.search or "").strip())
    if term:
        haystacks = (_fold(t.description_text), _fold(t.project_name))
        if not any(term in h for h in haystacks):
            return False
    if flt.type is not None and t.type != flt.type:
        return False
    if flt.project_name and t.project_name != flt.project_name:
        return False
    if flt.date_from or flt.date_to:
        d = parse_date(t.date)
        if d is None:
            return False
        if flt.date_from and d < flt.date_from:
            return False
        if flt.date_to and d > flt.date_to:
            return False
    return True


def filter_transactions(
    transactions: Sequence[Transaction],
    flt: TransactionFilter | None,
) -> list[Transaction]:
    """Keep input order; no filter (or an inactive one) returns every row."""
    if flt is None or not flt.is_active:
        return list(transactions)
    return [t for t in transactions if _matches(t, flt)]


def describe_filter(flt: TransactionFilter | None) -> str | None:
    if flt is None or not flt.is_active:
        return None
    parts: list[str] = []
    if flt.type is not None:
        parts.append(f"Tür: {flt.type.value}")
    if flt.project_name:
        parts.append(f"Proje: {flt.project_name}")
    if flt.date_from and flt.date_to:
        parts.append(f"Tarih: {format_date_tr(flt.date_from)} - {format_date_tr(flt.date_to)}")
    elif flt.date_from:
        parts.append(f"Tarih: {format_date_tr(flt.date_from)} sonrası")
    elif flt.date_to:
        parts.append(f"Tarih: {format_date_tr(flt.date_to)} öncesi")
    term = (flt.search or "").strip()
    if term:
        parts.append(f'Arama: "{term}"')
    return " · ".join(parts)
