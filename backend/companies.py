"""In-repo company registry for report letterheads."""
from __future__ import annotations

import os

from models_company import CompanyProfile

COMPANIES: dict[str, CompanyProfile] = {
    "default": CompanyProfile(
        company_id="default",
        legal_name="Örnek Yapı Müh. İnş. Emlak Tur. ve Tic. Ltd. Şti.",
        short_name="ÖRNEK YAPI MÜHENDİSLİK",
        mersis_no="0000 0000 0000 0001",
        tax_office="Fethiye",
        tax_number="0000000000",
        address="Foça Mah. 967 Sok. No:30-5 Fethiye/MUĞLA",
        email="info@ornekyapi.com.tr",
        phone="0 252 000 00 00",
        logo_url=None,
        footer_text="İnşaat Proje Yönetim Sistemi",
        primary_color="#111111",
    ),
    "sample": CompanyProfile(
        company_id="sample",
        legal_name="Deneme İnşaat Taahhüt A.Ş.",
        short_name="DENEME İNŞAAT",
        mersis_no="0000 0000 0000 0002",
        tax_office="Kadıköy",
        tax_number="1111111111",
        address="Caferağa Mah. Moda Cad. No:1 Kadıköy/İSTANBUL",
        email="muhasebe@denemeinsaat.com.tr",
        phone="0 216 000 00 00",
        logo_url=None,
        footer_text=None,
        primary_color="#1e3a5f",
    ),
}


def default_company_id() -> str:
    return (os.getenv("DEFAULT_COMPANY_ID") or "default").strip() or "default"


def get_company(company_id: str | None) -> CompanyProfile | None:
    return COMPANIES.get(company_id or default_company_id())


def list_companies() -> list[CompanyProfile]:
    return list(COMPANIES.values())
