"""
Generate sample transaction report fixtures:
1) multi-page report with long descriptions (default company)
2) filtered single-project report with tax summary (sample company)

Usage:
  cd backend
  python3 scripts/generate_transactions_report_fixture.py
"""
from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from companies import get_company
from models import Transaction, TransactionFilter, TransactionReportRequest, TransactionType
from reporting.transactions_report import build_transactions_report_html, render_transactions_report_pdf


OUT_DIR = Path(__file__).resolve().parents[1] / "reports" / "fixtures"

_PROJECTS = ("Ataşehir Konut Projesi", "Fethiye Villa Projesi", "Kadıköy Ofis Bloğu")
_WORK_GROUPS = (
    ("Kaba İnşaat", "Malzeme"),
    ("İnce İşler", "İşçilik"),
    ("Genel Giderler ve Endirekt Giderler", "Paket"),
    ("Elektrik Tesisatı", "Malzeme"),
)


def _sample_transactions(count: int = 75) -> list[Transaction]:
    start = date(2025, 1, 2)
    rows = []
    for i in range(count):
        is_income = i % 5 == 0
        work_group, rate_group = _WORK_GROUPS[i % len(_WORK_GROUPS)]
        description = "Müşteri hakediş ödemesi" if is_income else f"{work_group} kalemi ödemesi"
        if i % 7 == 3:
            description += " - " + "teslim tutanağına göre kısmi ödeme, bakiye bir sonraki hakedişte " * 3
        rows.append(
            Transaction(
                id=f"trx-{i + 1:03d}",
                date=(start + timedelta(days=i)).isoformat(),
                project_name=_PROJECTS[i % len(_PROJECTS)],
                type=TransactionType.INCOME if is_income else TransactionType.EXPENSE,
                amount=f"{(i + 1) * 1250 + (250000 if is_income else 0)}.{i % 100:02d}",
                category=work_group,
                sub_category=rate_group,
                description=description,
                linked_document_id=f"hak-{i:03d}" if is_income else None,
            )
        )
    return rows


def _write_fixture(name: str, request: TransactionReportRequest, company_id: str) -> None:
    company = get_company(company_id)
    html = build_transactions_report_html(request, company)
    html_path = OUT_DIR / f"{name}.html"
    html_path.write_text(html, encoding="utf-8")

    try:
        pdf = render_transactions_report_pdf(request, company)
    except Exception as exc:  # pragma: no cover - local tooling fallback
        print(f"[fixture] {name}: PDF generation skipped ({exc})")
        return

    pdf_path = OUT_DIR / f"{name}.pdf"
    pdf_path.write_bytes(pdf)
    print(f"[fixture] wrote {pdf_path}")


def main() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    transactions = _sample_transactions()

    _write_fixture(
        "transactions-all",
        TransactionReportRequest(transactions=transactions),
        "default",
    )
    _write_fixture(
        "transactions-atasehir-tax",
        TransactionReportRequest(
            transactions=transactions,
            filters=TransactionFilter(project_name=_PROJECTS[0]),
            include_tax_summary=True,
        ),
        "sample",
    )
    print(f"[fixture] complete. Outputs in {OUT_DIR}")


if __name__ == "__main__":
    main()
