from __future__ import annotations

import math
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_DOCUMENT_TITLE = "GELİR & GİDER İŞLEMLERİ RAPORU"


class TransactionType(str, Enum):
    INCOME = "Gelir"
    EXPENSE = "Gider"


class Transaction(BaseModel):
    """
    One income/expense record as handed over by the data layer.

    - amount: decimal string (never a float); parsed only when totals are built
    - description: nullable free text, the main driver of printed row height
    - linked_document_id: optional progress payment (hakediş) reference
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    date: str
    project_name: str = Field(default="", validation_alias=AliasChoices("project_name", "projectName"))
    type: TransactionType
    amount: str
    category: str = Field(default="", validation_alias=AliasChoices("category", "isGrubu"))
    sub_category: str = Field(default="", validation_alias=AliasChoices("sub_category", "subCategory", "rayicGrubu"))
    description: Optional[str] = None
    linked_document_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("linked_document_id", "linkedDocumentId", "progressPaymentId"),
    )

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_text(cls, v):
        """Accept numbers from loose clients but keep the decimal text form."""
        if isinstance(v, bool):
            raise ValueError("amount must be a decimal string")
        if isinstance(v, (int, Decimal)):
            return str(v)
        if isinstance(v, float):
            return repr(v)
        return v

    @field_validator("date", mode="before")
    @classmethod
    def date_as_text(cls, v):
        if isinstance(v, date):
            return v.isoformat()
        return v

    @field_validator("project_name", "category", "sub_category", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def description_text(self) -> str:
        return self.description or ""

    @property
    def has_linked_document(self) -> bool:
        return bool(self.linked_document_id)


class ReportLayout(BaseModel):
    """
    Physical layout of the printed transaction report.

    Vertical sizes are in millimeters and converted with px_per_mm; row and
    column metrics are already in CSS pixels. Defaults describe the A4 portrait
    report with the company letterhead on the first page.
    """

    model_config = ConfigDict(frozen=True)

    page_width_mm: float = Field(default=210.0, gt=0)
    page_height_mm: float = Field(default=297.0, gt=0)
    padding_vertical_mm: float = Field(default=10.0, ge=0)
    padding_horizontal_mm: float = Field(default=12.0, ge=0)
    first_page_header_mm: float = Field(default=62.0, ge=0)
    running_header_mm: float = Field(default=10.0, ge=0)
    footer_mm: float = Field(default=9.0, ge=0)
    table_header_mm: float = Field(default=7.0, ge=0)
    summary_row_mm: float = Field(default=7.0, ge=0)
    carryover_row_mm: float = Field(default=7.0, ge=0)
    px_per_mm: float = Field(default=96.0 / 25.4, gt=0)

    base_row_height_px: float = Field(default=18.0, gt=0)
    line_height_px: float = Field(default=12.0, gt=0)
    average_char_width_px: float = Field(default=5.2, gt=0)
    cell_padding_px: int = Field(default=8, ge=0)

    no_width_px: int = Field(default=20, gt=0)
    date_width_px: int = Field(default=58, gt=0)
    type_width_px: int = Field(default=32, gt=0)
    linked_width_px: int = Field(default=28, gt=0)
    project_min_px: int = Field(default=60, gt=0)
    project_max_px: int = Field(default=110, gt=0)
    category_min_px: int = Field(default=45, gt=0)
    category_max_px: int = Field(default=90, gt=0)
    sub_category_min_px: int = Field(default=45, gt=0)
    sub_category_max_px: int = Field(default=90, gt=0)
    amount_min_px: int = Field(default=70, gt=0)
    amount_max_px: int = Field(default=100, gt=0)
    description_min_px: int = Field(default=120, gt=0)

    @model_validator(mode="after")
    def validate_columns_fit(self):
        for name in ("project", "category", "sub_category", "amount"):
            lo = getattr(self, f"{name}_min_px")
            hi = getattr(self, f"{name}_max_px")
            if hi < lo:
                raise ValueError(f"{name}_max_px must be >= {name}_min_px")
        widest = (
            self.no_width_px
            + self.date_width_px
            + self.type_width_px
            + self.linked_width_px
            + self.project_max_px
            + self.category_max_px
            + self.sub_category_max_px
            + self.amount_max_px
            + self.description_min_px
        )
        if widest > self.content_width_px:
            raise ValueError(
                f"columns need up to {widest}px but the page content width is {self.content_width_px}px"
            )
        return self

    def mm_to_px(self, mm: float) -> float:
        return mm * self.px_per_mm

    @property
    def printable_height_px(self) -> float:
        return self.mm_to_px(self.page_height_mm - 2.0 * self.padding_vertical_mm)

    @property
    def content_width_px(self) -> int:
        return math.floor(self.mm_to_px(self.page_width_mm - 2.0 * self.padding_horizontal_mm))

    def available_height_px(self, is_first_page: bool) -> float:
        """Row space left on a page once header, footer and fixed table rows are reserved."""
        header = self.first_page_header_mm if is_first_page else self.running_header_mm
        reserved = header + self.footer_mm + self.table_header_mm + self.summary_row_mm
        if not is_first_page:
            reserved += self.carryover_row_mm
        return self.printable_height_px - self.mm_to_px(reserved)


class TransactionFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    search: Optional[str] = None
    type: Optional[TransactionType] = None
    project_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("project_name", "projectName"))
    date_from: Optional[date] = Field(default=None, validation_alias=AliasChoices("date_from", "dateFrom"))
    date_to: Optional[date] = Field(default=None, validation_alias=AliasChoices("date_to", "dateTo"))

    @field_validator("type", mode="before")
    @classmethod
    def all_means_no_filter(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "all"):
            return None
        return v

    @field_validator("project_name", mode="before")
    @classmethod
    def all_projects(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "all"):
            return None
        return v

    @field_validator("date_to")
    @classmethod
    def validate_range(cls, v: Optional[date], info):
        start = info.data.get("date_from")
        if v is not None and start is not None and v < start:
            raise ValueError("date_to must be on or after date_from")
        return v

    @property
    def is_active(self) -> bool:
        return any(
            (
                (self.search or "").strip(),
                self.type,
                self.project_name,
                self.date_from,
                self.date_to,
            )
        )


class TransactionReportRequest(BaseModel):
    """Body of the transaction report endpoints (pages, preview, PDF)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transactions: List[Transaction] = Field(default_factory=list)
    document_title: str = Field(
        default=DEFAULT_DOCUMENT_TITLE,
        validation_alias=AliasChoices("document_title", "documentTitle"),
    )
    filter_info: Optional[str] = Field(default=None, validation_alias=AliasChoices("filter_info", "filterInfo"))
    filters: Optional[TransactionFilter] = None
    layout: ReportLayout = Field(default_factory=ReportLayout)
    company_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("company_id", "companyId"))
    include_tax_summary: bool = Field(
        default=False,
        validation_alias=AliasChoices("include_tax_summary", "includeTaxSummary"),
    )
    is_company: bool = Field(default=True, validation_alias=AliasChoices("is_company", "isCompany"))
    report_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("report_date", "reportDate"))

    @field_validator("document_title", mode="before")
    @classmethod
    def default_title_when_blank(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_DOCUMENT_TITLE
        return v


class TaxSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transactions: List[Transaction] = Field(default_factory=list)
    is_company: bool = Field(default=True, validation_alias=AliasChoices("is_company", "isCompany"))
    kdv_rate: Decimal = Field(default=Decimal("20"), ge=0, validation_alias=AliasChoices("kdv_rate", "kdvRate"))
