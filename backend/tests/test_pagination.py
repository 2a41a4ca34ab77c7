from __future__ import annotations

import logging
import random
from decimal import Decimal

from models import ReportLayout, Transaction, TransactionType
from reporting.pagination import (
    allocate_column_widths,
    aggregate_totals,
    compute_totals,
    estimate_row_height,
    pack_pages,
    paginate_transactions,
    signed_amount,
)


def _tx(i: int, amount: str = "100", kind: TransactionType = TransactionType.EXPENSE, description=None, **kw) -> Transaction:
    return Transaction(
        id=f"t{i}",
        date="2025-01-15",
        project_name=kw.get("project_name", "Ataşehir Konut Projesi"),
        type=kind,
        amount=amount,
        category=kw.get("category", "Kaba İnşaat"),
        sub_category=kw.get("sub_category", "Malzeme"),
        description=description,
        linked_document_id=kw.get("linked_document_id"),
    )


def _uniform_layout() -> ReportLayout:
    # 1px per mm; first and continuation pages both leave 310px for rows (17 rows of 18px).
    return ReportLayout(
        page_width_mm=700.0,
        page_height_mm=380.0,
        padding_vertical_mm=10.0,
        padding_horizontal_mm=12.0,
        first_page_header_mm=20.0,
        running_header_mm=10.0,
        footer_mm=10.0,
        table_header_mm=10.0,
        summary_row_mm=10.0,
        carryover_row_mm=10.0,
        px_per_mm=1.0,
        average_char_width_px=5.0,
    )


def _mixed_transactions(count: int, seed: int = 7) -> list[Transaction]:
    rng = random.Random(seed)
    rows = []
    for i in range(count):
        kind = TransactionType.INCOME if rng.random() < 0.3 else TransactionType.EXPENSE
        amount = f"{rng.randint(0, 2_000_000)}.{rng.randint(0, 99):02d}"
        description = None if rng.random() < 0.2 else "hakediş " * rng.randint(0, 60)
        rows.append(_tx(i, amount=amount, kind=kind, description=description))
    return rows


# --- Row height estimator ---
def test_row_height_single_line_for_empty_or_missing_description():
    layout = _uniform_layout()
    assert estimate_row_height(None, 100, layout) == layout.base_row_height_px
    assert estimate_row_height("", 100, layout) == layout.base_row_height_px
    assert estimate_row_height("x" * 20, 100, layout) == layout.base_row_height_px


def test_row_height_adds_line_height_per_wrapped_line():
    layout = _uniform_layout()
    # 100px / 5px per char = 20 chars per line
    assert estimate_row_height("x" * 21, 100, layout) == 18.0 + 12.0
    assert estimate_row_height("x" * 45, 100, layout) == 18.0 + 2 * 12.0


def test_row_height_monotonic_in_description_length():
    layout = ReportLayout()
    heights = [estimate_row_height("a" * n, 250, layout) for n in range(0, 600, 7)]
    assert heights == sorted(heights)
    assert min(heights) >= layout.base_row_height_px


def test_row_height_narrow_column_still_fits_one_char_per_line():
    layout = _uniform_layout()
    assert estimate_row_height("abc", 1, layout) == 18.0 + 2 * 12.0


# --- Column width allocator ---
def test_column_plan_total_is_constant_regardless_of_data():
    layout = ReportLayout()
    plans = [
        allocate_column_widths([], layout),
        allocate_column_widths([_tx(1)], layout),
        allocate_column_widths(
            [_tx(2, amount="987654321.99", project_name="P" * 200, category="C" * 200, sub_category="S" * 200)],
            layout,
        ),
    ]
    for plan in plans:
        assert sum(plan.widths.values()) == layout.content_width_px
        assert plan.total_width == layout.content_width_px
        assert plan.description_width >= layout.description_min_px


def test_column_plan_clamps_variable_columns():
    layout = ReportLayout()
    empty = allocate_column_widths([], layout)
    assert empty["project"] == layout.project_min_px
    assert empty["category"] == layout.category_min_px
    assert empty["sub_category"] == layout.sub_category_min_px
    assert empty["amount"] == layout.amount_min_px

    wide = allocate_column_widths([_tx(1, project_name="P" * 100, category="C" * 100)], layout)
    assert wide["project"] == layout.project_max_px
    assert wide["category"] == layout.category_max_px
    assert wide["description"] < empty["description"]


def test_column_plan_uses_longest_value_across_whole_dataset():
    layout = ReportLayout()
    longest = _tx(99, project_name="Orta uzunlukta proje")
    rows = [_tx(i, project_name="Kısa") for i in range(50)] + [longest]
    plan = allocate_column_widths(rows, layout)
    assert plan["project"] > layout.project_min_px
    assert plan["project"] == allocate_column_widths([longest], layout)["project"]
    assert list(dict(plan.ordered())) == [
        "no", "date", "project", "type", "category", "sub_category", "description", "linked", "amount",
    ]


# --- Page packer: scenarios ---
def test_empty_input_yields_no_pages():
    report = paginate_transactions([])
    assert report.pages == ()
    assert report.total_pages == 0
    assert report.totals.net_balance == 0


def test_few_rows_fit_on_single_page():
    rows = [_tx(1), _tx(2), _tx(3)]
    report = paginate_transactions(rows)
    assert report.total_pages == 1
    page = report.pages[0]
    assert list(page.transactions) == rows
    assert page.carryover_total == 0
    assert page.header_variant == "letterhead"


def test_forty_uniform_rows_split_17_17_6():
    layout = _uniform_layout()
    assert layout.available_height_px(True) == layout.available_height_px(False) == 310.0
    rows = [_tx(i, amount="10", kind=TransactionType.INCOME if i % 2 == 0 else TransactionType.EXPENSE) for i in range(40)]
    report = paginate_transactions(rows, layout)

    assert [len(p.transactions) for p in report.pages] == [17, 17, 6]
    first_net = sum((signed_amount(t) for t in rows[:17]), Decimal("0"))
    assert report.pages[1].carryover_total == first_net
    assert report.pages[1].start_row_number == 18
    assert report.pages[2].start_row_number == 35
    assert [p.header_variant for p in report.pages] == ["letterhead", "running", "running"]


def test_overlong_first_row_gets_its_own_page():
    rows = [_tx(0, description="uzun açıklama " * 2000), _tx(1), _tx(2)]
    report = paginate_transactions(rows)
    first = report.pages[0]
    assert [t.id for t in first.transactions] == ["t0"]
    assert first.overflow is True
    assert first.used_height > first.available_height
    assert report.pages[1].transactions[0].id == "t1"
    assert report.pages[1].overflow is False


def test_income_and_expense_page_totals():
    rows = [_tx(1, amount="1000", kind=TransactionType.INCOME), _tx(2, amount="400")]
    report = paginate_transactions(rows)
    assert report.total_pages == 1
    page = report.pages[0]
    assert page.page_income_total == Decimal("1000")
    assert page.page_expense_total == Decimal("400")
    assert page.closing_total == Decimal("600")
    assert report.totals.net_balance == Decimal("600")


def test_non_positive_available_height_still_terminates():
    layout = ReportLayout(first_page_header_mm=400.0, running_header_mm=400.0)
    assert layout.available_height_px(True) < 0
    rows = [_tx(i) for i in range(5)]
    slots = pack_pages(rows, allocate_column_widths(rows, layout), layout)
    assert [s.size for s in slots] == [1, 1, 1, 1, 1]
    assert all(s.overflow for s in slots)


# --- Page packer / aggregator: properties ---
def test_pages_reconstruct_input_in_order():
    rows = _mixed_transactions(230)
    report = paginate_transactions(rows)
    flattened = [t for p in report.pages for t in p.transactions]
    assert flattened == rows
    assert len({t.id for t in flattened}) == len(rows)


def test_pages_respect_available_height_except_forced_rows():
    rows = _mixed_transactions(230, seed=11)
    layout = ReportLayout()
    plan = allocate_column_widths(rows, layout)
    slots = pack_pages(rows, plan, layout)
    for slot in slots:
        if slot.overflow:
            assert slot.size == 1
            assert slot.used_height > slot.available_height
        else:
            assert slot.used_height <= slot.available_height
    # greedy: the first row of the next page would not have fit
    for slot, nxt in zip(slots, slots[1:]):
        next_height = estimate_row_height(rows[nxt.start].description, plan.description_width, layout)
        assert slot.used_height + next_height > slot.available_height


def test_carryover_chain_and_grand_total_reconcile():
    rows = _mixed_transactions(180, seed=3)
    report = paginate_transactions(rows)
    assert report.total_pages > 2
    assert report.pages[0].carryover_total == 0
    for prev, page in zip(report.pages, report.pages[1:]):
        assert page.carryover_total == prev.carryover_total + prev.page_income_total - prev.page_expense_total
    last = report.pages[-1]
    direct = compute_totals(rows)
    assert last.closing_total == direct.total_income - direct.total_expense
    assert report.totals == direct


def test_pagination_is_deterministic():
    rows = _mixed_transactions(120, seed=5)
    layout = ReportLayout()
    plan = allocate_column_widths(rows, layout)
    assert pack_pages(rows, plan, layout) == pack_pages(rows, plan, layout)
    assert paginate_transactions(rows, layout).to_dict() == paginate_transactions(rows, layout).to_dict()


def test_unparseable_amount_counts_as_zero(caplog):
    rows = [_tx(1, amount="abc", kind=TransactionType.INCOME), _tx(2, amount="250")]
    layout = ReportLayout()
    slots = pack_pages(rows, allocate_column_widths(rows, layout), layout)
    with caplog.at_level(logging.WARNING):
        pages, totals = aggregate_totals(rows, slots)
    assert pages[0].page_income_total == 0
    assert totals.total_expense == Decimal("250")
    assert totals.net_balance == Decimal("-250")
    assert any("t1" in r.getMessage() for r in caplog.records)


def test_decimal_amounts_do_not_drift():
    rows = [_tx(i, amount="0.10", kind=TransactionType.INCOME) for i in range(3)]
    report = paginate_transactions(rows)
    assert report.totals.total_income == Decimal("0.30")


def test_to_dict_is_json_ready():
    rows = [_tx(1, amount="1000", kind=TransactionType.INCOME), _tx(2, amount="400")]
    data = paginate_transactions(rows).to_dict()
    assert data["total_pages"] == 1
    assert data["pages"][0]["transaction_ids"] == ["t1", "t2"]
    assert data["pages"][0]["closing_total"] == "600"
    assert data["totals"] == {"total_income": "1000", "total_expense": "400", "net_balance": "600"}
    assert sum(data["column_widths"].values()) == data["content_width"]


def test_amounts_beyond_default_decimal_precision_paginate():
    huge = "1" + "0" * 27
    rows = [_tx(1, amount=huge, kind=TransactionType.INCOME), _tx(2, amount="1E+30"), _tx(3, amount="0.01")]
    report = paginate_transactions(rows)
    assert report.total_pages == 1
    assert report.column_plan["amount"] == report.layout.amount_max_px
    assert report.totals.total_income == Decimal(huge)
    assert report.totals.total_expense == Decimal("1000000000000000000000000000000.01")


def test_large_amount_totals_stay_exact_across_pages():
    layout = _uniform_layout()
    amount = "123456789012345678901234567890.01"
    rows = [
        _tx(i, amount=amount, kind=TransactionType.INCOME if i % 3 else TransactionType.EXPENSE)
        for i in range(40)
    ]
    report = paginate_transactions(rows, layout)
    assert report.total_pages == 3
    incomes = sum(1 for i in range(40) if i % 3)
    expenses = 40 - incomes
    assert report.totals.total_income == Decimal(f"{incomes * 12345678901234567890123456789001}E-2")
    assert report.totals.total_expense == Decimal(f"{expenses * 12345678901234567890123456789001}E-2")
    assert report.pages[-1].closing_total == report.totals.net_balance
