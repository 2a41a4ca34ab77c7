"""
Printable income/expense transaction report.

Pages are planned by reporting.pagination before any HTML exists; this module
only renders the planned pages into A4 sheets and converts them to PDF via
Playwright. A sheet is at least one page tall and grows instead of clipping
when a forced row or the closing totals run past the planned height. Header,
footer and fixed table rows are sized from the same ReportLayout the packer
used, so the estimate and the print agree.
"""
from __future__ import annotations

import html
import os
from dataclasses import dataclass
from datetime import date
from typing import Any

from engine.tax import tax_summary_for_transactions
from models import ReportLayout, Transaction, TransactionReportRequest, TransactionType
from models_company import CompanyProfile

from .filters import describe_filter, filter_transactions
from .format_utils import format_currency_tl, format_date_tr
from .pagination import COLUMN_ORDER, PaginatedReport, ReportPage, paginate_transactions

EMPTY_REPORT_MESSAGE = "Dışa aktarılacak işlem bulunamadı."
DEFAULT_PDF_TIMEOUT_MS = 30000

_COLUMN_LABELS = {
    "no": "No",
    "date": "Tarih",
    "project": "Proje",
    "type": "Tür",
    "category": "İş Grubu",
    "sub_category": "Rayiç Grubu",
    "description": "Açıklama",
    "linked": "Hak.",
    "amount": "Tutar",
}

_LABEL_COLSPAN = len(COLUMN_ORDER) - 1


@dataclass
class PreparedReport:
    """Filtered rows + page plan + banner text for one report request."""
    transactions: list[Transaction]
    paginated: PaginatedReport
    filter_info: str | None


def prepare_report(request: TransactionReportRequest) -> PreparedReport:
    rows = filter_transactions(request.transactions, request.filters)
    filter_info = request.filter_info or describe_filter(request.filters)
    return PreparedReport(
        transactions=rows,
        paginated=paginate_transactions(rows, request.layout),
        filter_info=filter_info,
    )


def _esc(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


def _letterhead(company: CompanyProfile, title: str, filter_info: str | None, report_date: date) -> str:
    logo = (
        f'<img class="company-logo" src="{_esc(company.logo_url)}" alt="{_esc(company.short_name)}" />'
        if company.logo_url
        else f'<div class="company-wordmark">{_esc(company.short_name)}</div>'
    )
    left = ['<p class="block-title">Firma Bilgileri</p>']
    if company.mersis_no:
        left.append(f"<p><strong>Mersis No:</strong> {_esc(company.mersis_no)}</p>")
    if company.tax_line:
        left.append(f"<p><strong>Vergi Dairesi:</strong> {_esc(company.tax_line)}</p>")
    if company.address:
        left.append(f"<p><strong>Adres:</strong> {_esc(company.address)}</p>")
    left.append(f'<p class="legal-name">{_esc(company.legal_name)}</p>')
    right = ['<p class="block-title">İletişim Bilgileri</p>']
    if company.email:
        right.append(f"<p><strong>E-mail:</strong> {_esc(company.email)}</p>")
    if company.phone:
        right.append(f"<p><strong>Tel:</strong> {_esc(company.phone)}</p>")
    right.append(
        f'<div class="report-date"><p><strong>Tarih:</strong> {report_date.strftime("%d/%m/%Y")}</p></div>'
    )
    banner = f'<p class="filter-info">{_esc(filter_info)}</p>' if filter_info else ""
    return f"""
    <header class="page-header letterhead">
      <div class="logo-row">{logo}</div>
      <div class="company-grid">
        <div>{''.join(left)}</div>
        <div class="right">{''.join(right)}</div>
      </div>
      <h2 class="document-title">{_esc(title)}</h2>
      {banner}
    </header>
    """


def _running_header(title: str, page: ReportPage, total_pages: int) -> str:
    return f"""
    <header class="page-header running">
      <span class="running-title">{_esc(title)}</span>
      <span>Sayfa {page.page_number} / {total_pages}</span>
    </header>
    """


def _colgroup(report: PaginatedReport) -> str:
    return "".join(f'<col style="width:{width}px"/>' for _, width in report.column_plan.ordered())


def _table_head() -> str:
    cells = "".join(f'<th class="col-{name}">{_esc(_COLUMN_LABELS[name])}</th>' for name in COLUMN_ORDER)
    return f"<thead><tr>{cells}</tr></thead>"


def _transaction_row(t: Transaction, row_number: int, striped: bool) -> str:
    type_class = "income" if t.type == TransactionType.INCOME else "expense"
    linked = '<span class="linked yes">✓</span>' if t.has_linked_document else '<span class="linked">-</span>'
    return (
        f'<tr class="{"striped" if striped else ""}">'
        f'<td class="col-no">{row_number}</td>'
        f'<td class="col-date">{_esc(format_date_tr(t.date))}</td>'
        f'<td class="col-project ellipsis">{_esc(t.project_name)}</td>'
        f'<td class="col-type {type_class}">{_esc(t.type.value)}</td>'
        f'<td class="col-category ellipsis small">{_esc(t.category)}</td>'
        f'<td class="col-sub_category ellipsis small">{_esc(t.sub_category)}</td>'
        f'<td class="col-description">{_esc(t.description or "-")}</td>'
        f'<td class="col-linked">{linked}</td>'
        f'<td class="col-amount num">{_esc(format_currency_tl(t.amount))}</td>'
        "</tr>"
    )


def _carryover_row(page: ReportPage) -> str:
    return (
        '<tr class="carryover-row">'
        f'<td colspan="{_LABEL_COLSPAN}" class="label">Bir Önceki Sayfadan Nakledilen Tutar:</td>'
        f'<td class="num">{_esc(format_currency_tl(page.carryover_total))}</td>'
        "</tr>"
    )


def _page_total_row(page: ReportPage) -> str:
    return (
        '<tr class="page-total-row">'
        f'<td colspan="{_LABEL_COLSPAN}" class="label">Toplam Tutar:</td>'
        f'<td class="num">{_esc(format_currency_tl(page.closing_total))}</td>'
        "</tr>"
    )


def _grand_totals_block(report: PaginatedReport) -> str:
    totals = report.totals
    net_class = "income" if totals.net_balance >= 0 else "expense"
    return f"""
    <section class="grand-totals">
      <div><div class="caption">Toplam Gelir</div><div class="value income">{_esc(format_currency_tl(totals.total_income))}</div></div>
      <div><div class="caption">Toplam Gider</div><div class="value expense">{_esc(format_currency_tl(totals.total_expense))}</div></div>
      <div><div class="caption">Net Bakiye</div><div class="value {net_class}">{_esc(format_currency_tl(totals.net_balance))}</div></div>
    </section>
    """


def _tax_summary_block(transactions: list[Transaction], is_company: bool) -> str:
    summary = tax_summary_for_transactions(transactions, is_company=is_company)
    rows = [
        ("Tahsil Edilen KDV", summary.kdv_collected),
        ("Ödenen KDV", summary.kdv_paid),
        ("Ödenecek Net KDV", summary.kdv_net_payable),
    ]
    if is_company:
        rows.append(("Kurumlar Vergisi (%25)", summary.corporate_tax))
    else:
        rows.append(("Gelir Vergisi", summary.income_tax))
    rows.extend(
        [
            ("Toplam Vergi Yükü", summary.total_tax_burden),
            ("Vergi Sonrası Net Kâr", summary.net_profit),
        ]
    )
    body = "".join(
        f'<tr><td>{_esc(label)}</td><td class="num">{_esc(format_currency_tl(value))}</td></tr>'
        for label, value in rows
    )
    return f"""
    <section class="tax-summary">
      <h3>Vergi Özeti</h3>
      <table class="tax-table"><tbody>{body}</tbody></table>
    </section>
    """


def _page_html(
    page: ReportPage,
    report: PaginatedReport,
    company: CompanyProfile,
    request: TransactionReportRequest,
    prepared: PreparedReport,
    report_date: date,
) -> str:
    title = request.document_title
    header = (
        _letterhead(company, title, prepared.filter_info, report_date)
        if page.is_first
        else _running_header(title, page, report.total_pages)
    )
    body_rows: list[str] = []
    if not page.is_first:
        body_rows.append(_carryover_row(page))
    for offset, t in enumerate(page.transactions):
        body_rows.append(_transaction_row(t, page.start_row_number + offset, striped=offset % 2 == 1))
    body_rows.append(_page_total_row(page))

    closing = ""
    if report.is_last(page):
        closing = _grand_totals_block(report)
        if request.include_tax_summary:
            closing += _tax_summary_block(prepared.transactions, request.is_company)

    footer_left = company.legal_name
    if company.footer_text:
        footer_left = f"{company.legal_name} | {company.footer_text}"
    return f"""
    <section class="pdf-page" data-page="{page.page_number}" data-header="{page.header_variant}">
      {header}
      <div class="page-content">
        <table class="transactions">
          <colgroup>{_colgroup(report)}</colgroup>
          {_table_head()}
          <tbody>{''.join(body_rows)}</tbody>
        </table>
        {closing}
      </div>
      <footer class="page-footer">
        <span>{_esc(footer_left)}</span>
        <span>Sayfa {page.page_number} / {report.total_pages}</span>
      </footer>
    </section>
    """


def _report_css(layout: ReportLayout, primary_color: str) -> str:
    row_px = layout.base_row_height_px
    return f"""
    @page {{
      size: {layout.page_width_mm:.1f}mm {layout.page_height_mm:.1f}mm;
      margin: 0;
    }}
    * {{ box-sizing: border-box; }}
    html, body {{
      margin: 0;
      padding: 0;
      font-family: Arial, Helvetica, sans-serif;
      color: #000;
      background: #fff;
      -webkit-print-color-adjust: exact;
      print-color-adjust: exact;
    }}
    .pdf-page {{
      width: {layout.page_width_mm:.1f}mm;
      min-height: {layout.page_height_mm:.1f}mm;
      padding: {layout.padding_vertical_mm:.1f}mm {layout.padding_horizontal_mm:.1f}mm;
      display: flex;
      flex-direction: column;
      break-after: page;
      page-break-after: always;
    }}
    .pdf-page:last-child {{ break-after: auto; page-break-after: auto; }}
    .page-header.letterhead {{ height: {layout.first_page_header_mm:.1f}mm; overflow: hidden; }}
    .page-header.running {{
      height: {layout.running_header_mm:.1f}mm;
      display: flex;
      justify-content: space-between;
      align-items: center;
      font-size: 8pt;
      border-bottom: 1px solid #333;
    }}
    .running-title {{ font-weight: bold; }}
    .logo-row {{ text-align: center; margin-bottom: 3mm; }}
    .company-logo {{ height: 60px; width: auto; }}
    .company-wordmark {{ font-size: 14pt; font-weight: bold; color: {primary_color}; }}
    .company-grid {{
      display: grid;
      grid-template-columns: 1fr 1fr;
      gap: 15px;
      padding-bottom: 3mm;
      border-bottom: 2px solid #000;
      font-size: 8pt;
    }}
    .company-grid p {{ margin: 1px 0; }}
    .company-grid .right {{ text-align: right; }}
    .block-title {{ font-weight: bold; font-size: 9pt; }}
    .legal-name {{ font-weight: 600; }}
    .report-date {{ margin-top: 3mm; padding-top: 2mm; border-top: 1px solid #ccc; }}
    .document-title {{ text-align: center; font-size: 11pt; margin: 3mm 0; text-transform: uppercase; }}
    .filter-info {{ text-align: center; font-size: 8pt; color: #666; margin: 0 0 2mm 0; }}
    .page-content {{ flex: 1; }}
    table.transactions {{
      width: {layout.content_width_px}px;
      border-collapse: collapse;
      table-layout: fixed;
      font-size: 9pt;
    }}
    table.transactions thead th {{
      height: {layout.table_header_mm:.1f}mm;
      background: #f5f5f5;
      border-bottom: 1px solid #999;
      padding: 0 2px;
      text-align: left;
    }}
    table.transactions td {{
      min-height: {row_px:.1f}px;
      padding: 3px 2px;
      line-height: {layout.line_height_px:.1f}px;
      border-bottom: 1px solid #eee;
      vertical-align: top;
    }}
    tr.striped td {{ background: #fafafa; }}
    td.ellipsis {{ overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }}
    td.small {{ font-size: 7pt; }}
    td.col-no, td.col-type, td.col-linked {{ text-align: center; }}
    td.col-date {{ white-space: nowrap; }}
    td.col-description {{ font-size: 8pt; word-wrap: break-word; }}
    td.num {{ text-align: right; font-family: monospace; white-space: nowrap; font-weight: 600; }}
    .income {{ color: #16a34a; font-weight: 600; }}
    .expense {{ color: #dc2626; font-weight: 600; }}
    .linked {{ color: #999; }}
    .linked.yes {{ color: #16a34a; font-weight: 600; }}
    tr.carryover-row td {{
      height: {layout.carryover_row_mm:.1f}mm;
      background: #e8f4e8;
      font-weight: bold;
      border-bottom: 2px solid #333;
    }}
    tr.page-total-row td {{
      height: {layout.summary_row_mm:.1f}mm;
      background: #f0f0f0;
      font-weight: bold;
      border-top: 2px solid #333;
      border-bottom: 2px solid #333;
    }}
    td.label {{ text-align: right; }}
    .grand-totals {{
      display: flex;
      justify-content: space-around;
      margin-top: 5mm;
      padding: 4mm;
      background: #f8f9fa;
      border: 1px solid #e0e0e0;
      border-radius: 4px;
      font-size: 9pt;
      text-align: center;
    }}
    .grand-totals .caption {{ color: #666; margin-bottom: 2px; }}
    .grand-totals .value {{ font-family: monospace; font-weight: bold; }}
    .tax-summary {{ margin-top: 4mm; font-size: 8pt; }}
    .tax-summary h3 {{ font-size: 9pt; margin: 0 0 2mm 0; }}
    .tax-table {{ width: 60%; border-collapse: collapse; }}
    .tax-table td {{ padding: 2px 4px; border-bottom: 1px solid #eee; }}
    .page-footer {{
      height: {layout.footer_mm:.1f}mm;
      padding-top: 3mm;
      border-top: 1px solid #ccc;
      display: flex;
      justify-content: space-between;
      font-size: 7pt;
      color: #666;
    }}
    .empty-report {{ padding: 20mm; text-align: center; font-size: 11pt; color: #666; }}
    """


def build_transactions_report_html(
    request: TransactionReportRequest,
    company: CompanyProfile,
    prepared: PreparedReport | None = None,
) -> str:
    prepared = prepared or prepare_report(request)
    report = prepared.paginated
    report_date = request.report_date or date.today()
    css = _report_css(request.layout, company.primary_color)

    if report.is_empty:
        body = f"""
        <section class="pdf-page" data-page="1">
          {_letterhead(company, request.document_title, prepared.filter_info, report_date)}
          <div class="page-content"><p class="empty-report">{_esc(EMPTY_REPORT_MESSAGE)}</p></div>
        </section>
        """
    else:
        body = "".join(
            _page_html(page, report, company, request, prepared, report_date) for page in report.pages
        )

    return f"""
<!doctype html>
<html lang="tr">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{_esc(request.document_title)}</title>
  <style>{css}</style>
</head>
<body>
  {body}
</body>
</html>
    """.strip()


def _pdf_timeout_ms() -> int:
    raw = (os.getenv("PDF_RENDER_TIMEOUT_MS") or "").strip()
    try:
        return max(1000, int(raw)) if raw else DEFAULT_PDF_TIMEOUT_MS
    except ValueError:
        return DEFAULT_PDF_TIMEOUT_MS


def render_transactions_report_pdf(
    request: TransactionReportRequest,
    company: CompanyProfile,
    prepared: PreparedReport | None = None,
) -> bytes:
    from playwright.sync_api import sync_playwright

    html_str = build_transactions_report_html(request, company, prepared=prepared)
    timeout = _pdf_timeout_ms()

    with sync_playwright() as p:
        browser = p.chromium.launch()
        try:
            page = browser.new_page()
            page.set_content(html_str, wait_until="load", timeout=timeout)
            page.emulate_media(media="print")
            pdf_bytes = page.pdf(
                format="A4",
                print_background=True,
                prefer_css_page_size=True,
                margin={"top": "0mm", "bottom": "0mm", "left": "0mm", "right": "0mm"},
            )
        finally:
            browser.close()
    return pdf_bytes
