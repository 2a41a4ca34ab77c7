from __future__ import annotations

import pytest
from pydantic import ValidationError

from models import DEFAULT_DOCUMENT_TITLE, ReportLayout, TransactionReportRequest


def test_default_layout_is_a4_with_taller_first_page_header():
    layout = ReportLayout()
    assert layout.page_width_mm == 210.0
    assert layout.page_height_mm == 297.0
    assert layout.available_height_px(True) < layout.available_height_px(False)
    assert layout.available_height_px(False) > 0


def test_continuation_pages_reserve_carryover_row():
    layout = ReportLayout(first_page_header_mm=10.0, running_header_mm=10.0, carryover_row_mm=5.0)
    diff = layout.available_height_px(True) - layout.available_height_px(False)
    assert diff == pytest.approx(layout.mm_to_px(5.0))


def test_layout_rejects_columns_wider_than_page():
    with pytest.raises(ValidationError):
        ReportLayout(page_width_mm=120.0)
    with pytest.raises(ValidationError):
        ReportLayout(project_min_px=200, project_max_px=100)


def test_layout_rejects_non_positive_page_size():
    with pytest.raises(ValidationError):
        ReportLayout(page_height_mm=0)


def test_layout_accepts_headers_that_leave_no_room_for_rows():
    layout = ReportLayout(running_header_mm=300.0)
    assert layout.available_height_px(False) < 0


def test_report_request_accepts_camel_case_and_blank_title():
    req = TransactionReportRequest.model_validate(
        {
            "transactions": [],
            "documentTitle": "  ",
            "filterInfo": "Tür: Gider",
            "companyId": "sample",
            "includeTaxSummary": True,
            "reportDate": "2025-05-01",
        }
    )
    assert req.document_title == DEFAULT_DOCUMENT_TITLE
    assert req.filter_info == "Tür: Gider"
    assert req.company_id == "sample"
    assert req.include_tax_summary is True
    assert req.report_date.isoformat() == "2025-05-01"
