"""Company letterhead used on the first page and in the footer of printed reports."""
from __future__ import annotations

from pydantic import BaseModel


class CompanyProfile(BaseModel):
    company_id: str
    legal_name: str
    short_name: str
    mersis_no: str | None = None
    tax_office: str | None = None
    tax_number: str | None = None
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    footer_text: str | None = None
    primary_color: str = "#111111"

    @property
    def tax_line(self) -> str | None:
        if self.tax_office and self.tax_number:
            return f"{self.tax_office} V.D. - {self.tax_number}"
        return self.tax_office or self.tax_number
