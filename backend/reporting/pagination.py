"""
Deterministic pagination for the printable income/expense report.

Rows are packed into fixed-height A4 pages using an estimated row height
(characters-per-line heuristic) so that pages can be planned before anything is
rendered. Column geometry is computed once for the whole dataset and shared by
every page. Totals are carried across page breaks with exact decimals.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from models import ReportLayout, Transaction, TransactionType

from .format_utils import decimal_sum, format_currency_tl, is_valid_amount, parse_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

COLUMN_ORDER = (
    "no",
    "date",
    "project",
    "type",
    "category",
    "sub_category",
    "description",
    "linked",
    "amount",
)

HEADER_LETTERHEAD = "letterhead"
HEADER_RUNNING = "running"


@dataclass(frozen=True)
class ColumnWidthPlan:
    widths: dict[str, int]
    total_width: int

    def __getitem__(self, column: str) -> int:
        return self.widths[column]

    @property
    def description_width(self) -> int:
        return self.widths["description"]

    def ordered(self) -> list[tuple[str, int]]:
        return [(name, self.widths[name]) for name in COLUMN_ORDER]


@dataclass(frozen=True)
class PageSlot:
    """Boundary of one page: transactions[start:stop]."""
    index: int
    start: int
    stop: int
    used_height: float
    available_height: float
    overflow: bool = False

    @property
    def size(self) -> int:
        return self.stop - self.start


@dataclass(frozen=True)
class ReportPage:
    index: int
    transactions: tuple[Transaction, ...]
    carryover_total: Decimal
    page_income_total: Decimal
    page_expense_total: Decimal
    start_row_number: int
    used_height: float
    available_height: float
    overflow: bool = False

    @property
    def page_number(self) -> int:
        return self.index + 1

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def header_variant(self) -> str:
        return HEADER_LETTERHEAD if self.is_first else HEADER_RUNNING

    @property
    def page_net(self) -> Decimal:
        return decimal_sum((self.page_income_total, self.page_expense_total.copy_negate()))

    @property
    def closing_total(self) -> Decimal:
        return decimal_sum((self.carryover_total, self.page_net))


@dataclass(frozen=True)
class ReportTotals:
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO

    @property
    def net_balance(self) -> Decimal:
        return decimal_sum((self.total_income, self.total_expense.copy_negate()))


@dataclass(frozen=True)
class PaginatedReport:
    pages: tuple[ReportPage, ...]
    totals: ReportTotals
    column_plan: ColumnWidthPlan
    layout: ReportLayout = field(repr=False)

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def is_last(self, page: ReportPage) -> bool:
        return page.index == len(self.pages) - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_pages": self.total_pages,
            "column_widths": dict(self.column_plan.ordered()),
            "content_width": self.column_plan.total_width,
            "pages": [
                {
                    "index": p.index,
                    "page_number": p.page_number,
                    "header_variant": p.header_variant,
                    "start_row_number": p.start_row_number,
                    "transaction_ids": [t.id for t in p.transactions],
                    "carryover_total": str(p.carryover_total),
                    "page_income_total": str(p.page_income_total),
                    "page_expense_total": str(p.page_expense_total),
                    "closing_total": str(p.closing_total),
                    "used_height": round(p.used_height, 2),
                    "available_height": round(p.available_height, 2),
                    "overflow": p.overflow,
                }
                for p in self.pages
            ],
            "totals": {
                "total_income": str(self.totals.total_income),
                "total_expense": str(self.totals.total_expense),
                "net_balance": str(self.totals.net_balance),
            },
        }


def estimate_row_height(description: str | None, description_width: float, layout: ReportLayout) -> float:
    """Estimated printed height of one row; wrapped description lines add line_height each."""
    length = len(description or "")
    chars_per_line = max(1, math.floor(description_width / layout.average_char_width_px))
    lines = max(1, math.ceil(length / chars_per_line))
    return layout.base_row_height_px + max(0, lines - 1) * layout.line_height_px


def _fit_width(max_chars: int, lo: int, hi: int, layout: ReportLayout) -> int:
    wanted = math.ceil(max_chars * layout.average_char_width_px + layout.cell_padding_px)
    return max(lo, min(hi, wanted))


def allocate_column_widths(transactions: Sequence[Transaction], layout: ReportLayout) -> ColumnWidthPlan:
    """
    One plan per report. Variable columns follow their longest value (clamped),
    description takes the remainder so every page has the same total width.
    """
    def longest(values) -> int:
        return max((len(v) for v in values), default=0)

    project_chars = longest(t.project_name for t in transactions)
    category_chars = longest(t.category for t in transactions)
    sub_category_chars = longest(t.sub_category for t in transactions)
    amount_chars = longest(format_currency_tl(t.amount) for t in transactions)

    widths = {
        "no": layout.no_width_px,
        "date": layout.date_width_px,
        "project": _fit_width(project_chars, layout.project_min_px, layout.project_max_px, layout),
        "type": layout.type_width_px,
        "category": _fit_width(category_chars, layout.category_min_px, layout.category_max_px, layout),
        "sub_category": _fit_width(
            sub_category_chars, layout.sub_category_min_px, layout.sub_category_max_px, layout
        ),
        "linked": layout.linked_width_px,
        "amount": _fit_width(amount_chars, layout.amount_min_px, layout.amount_max_px, layout),
    }
    total = layout.content_width_px
    widths["description"] = max(layout.description_min_px, total - sum(widths.values()))
    return ColumnWidthPlan(widths={name: widths[name] for name in COLUMN_ORDER}, total_width=total)


def pack_pages(
    transactions: Sequence[Transaction],
    column_plan: ColumnWidthPlan,
    layout: ReportLayout,
) -> list[PageSlot]:
    """
    Greedy, order-preserving page packing.

    A page always takes at least one row, even when that row alone is taller
    than the page, so packing terminates for any layout.
    """
    slots: list[PageSlot] = []
    heights = [
        estimate_row_height(t.description, column_plan.description_width, layout) for t in transactions
    ]
    cursor = 0
    total = len(heights)
    while cursor < total:
        index = len(slots)
        available = layout.available_height_px(is_first_page=index == 0)
        start = cursor
        used = 0.0
        while cursor < total and used + heights[cursor] <= available:
            used += heights[cursor]
            cursor += 1
        overflow = False
        if cursor == start:
            used = heights[cursor]
            cursor += 1
            overflow = True
        slots.append(
            PageSlot(
                index=index,
                start=start,
                stop=cursor,
                used_height=used,
                available_height=available,
                overflow=overflow,
            )
        )
    return slots


def signed_amount(transaction: Transaction) -> Decimal:
    amount = parse_amount(transaction.amount)
    return amount if transaction.type == TransactionType.INCOME else amount.copy_negate()


def _sum_by_type(transactions: Sequence[Transaction]) -> tuple[Decimal, Decimal]:
    income: list[Decimal] = []
    expense: list[Decimal] = []
    for t in transactions:
        amount = parse_amount(t.amount)
        if t.type == TransactionType.INCOME:
            income.append(amount)
        else:
            expense.append(amount)
    return decimal_sum(income), decimal_sum(expense)


def compute_totals(transactions: Sequence[Transaction]) -> ReportTotals:
    income, expense = _sum_by_type(transactions)
    return ReportTotals(total_income=income, total_expense=expense)


def aggregate_totals(
    transactions: Sequence[Transaction],
    slots: Sequence[PageSlot],
) -> tuple[list[ReportPage], ReportTotals]:
    """Per-page sums, carryover from earlier pages, and grand totals over the full list."""
    for t in transactions:
        if not is_valid_amount(t.amount):
            logger.warning("Unparseable amount %r on transaction %s; counted as 0", t.amount, t.id)

    pages: list[ReportPage] = []
    carryover = ZERO
    for slot in slots:
        rows = tuple(transactions[slot.start:slot.stop])
        income, expense = _sum_by_type(rows)
        pages.append(
            ReportPage(
                index=slot.index,
                transactions=rows,
                carryover_total=carryover,
                page_income_total=income,
                page_expense_total=expense,
                start_row_number=slot.start + 1,
                used_height=slot.used_height,
                available_height=slot.available_height,
                overflow=slot.overflow,
            )
        )
        carryover = pages[-1].closing_total
    return pages, compute_totals(transactions)


def paginate_transactions(
    transactions: Sequence[Transaction],
    layout: ReportLayout | None = None,
) -> PaginatedReport:
    active_layout = layout or ReportLayout()
    rows = list(transactions)
    plan = allocate_column_widths(rows, active_layout)
    slots = pack_pages(rows, plan, active_layout)
    pages, totals = aggregate_totals(rows, slots)
    return PaginatedReport(pages=tuple(pages), totals=totals, column_plan=plan, layout=active_layout)
