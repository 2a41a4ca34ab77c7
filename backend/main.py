from __future__ import annotations

import logging
import os
import re
import time
import unicodedata
import uuid
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so PDF/cache settings are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cache.disk_cache import get_cached_report_pdf, set_cached_report_pdf
from companies import get_company, list_companies
from engine.tax import tax_summary_for_transactions
from models import TaxSummaryRequest, TransactionReportRequest
from models_company import CompanyProfile
from reporting.transactions_report import (
    build_transactions_report_html,
    prepare_report,
    render_transactions_report_pdf,
)

VERSION = (os.getenv("VERSION") or os.getenv("RENDER_GIT_COMMIT") or "").strip() or "unknown"

_LOG = logging.getLogger("uvicorn.error")

app = FastAPI(title="Construction Finance Reports", version="0.1.0")

# CORS: use ALLOWED_ORIGINS env (comma-separated) if set, else local dev origins
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:5000",
        "http://127.0.0.1:5000",
        "http://localhost:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id", "X-Report-Pages"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)


@app.on_event("startup")
def startup_log() -> None:
    port = os.environ.get("PORT", "8010")
    host = os.environ.get("HOST", "127.0.0.1")
    _LOG.info("Report backend starting on http://%s:%s version=%s", host, port, VERSION)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


def _resolve_company(company_id: str | None) -> CompanyProfile:
    company = get_company(company_id)
    if company is None:
        raise HTTPException(status_code=400, detail=f"Unknown company_id: {company_id}")
    return company


def _pdf_filename(title: str) -> str:
    ascii_title = (
        unicodedata.normalize("NFKD", title.replace("ı", "i").replace("İ", "I"))
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^A-Za-z0-9]+", "-", ascii_title).strip("-").lower()
    return f"{slug or 'rapor'}.pdf"


@app.get("/health")
def health():
    return {"status": "ok", "version": VERSION}


@app.get("/companies")
def get_companies():
    return [c.model_dump() for c in list_companies()]


@app.post("/reports/transactions/pages")
def build_transaction_report_pages(req: TransactionReportRequest, request: Request):
    """Page plan only: row ids per page, carryover and totals as decimal strings."""
    prepared = prepare_report(req)
    _LOG.info(
        "REPORT_PAGES rid=%s transactions=%s pages=%s",
        _request_id(request),
        len(prepared.transactions),
        prepared.paginated.total_pages,
    )
    return {**prepared.paginated.to_dict(), "filter_info": prepared.filter_info}


@app.post("/reports/transactions/preview", response_class=HTMLResponse)
def build_transaction_report_preview(req: TransactionReportRequest, request: Request):
    """Return the printable report as HTML (no Playwright required)."""
    company = _resolve_company(req.company_id)
    prepared = prepare_report(req)
    html_str = build_transactions_report_html(req, company, prepared=prepared)
    _LOG.info(
        "REPORT_PREVIEW rid=%s transactions=%s pages=%s",
        _request_id(request),
        len(prepared.transactions),
        prepared.paginated.total_pages,
    )
    return HTMLResponse(html_str, headers={"X-Report-Pages": str(prepared.paginated.total_pages)})


@app.post("/reports/transactions")
def build_transaction_report_pdf(req: TransactionReportRequest, request: Request):
    """Render the report to PDF via Playwright. Cached by request content."""
    company = _resolve_company(req.company_id)
    rid = _request_id(request)
    # letterhead date is part of the cached document
    req = req.model_copy(update={"report_date": req.report_date or date.today()})
    payload = req.model_dump(mode="json")
    filename = _pdf_filename(req.document_title)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    cached = get_cached_report_pdf(payload, company.company_id)
    if cached is not None:
        _LOG.info("REPORT_PDF rid=%s cache=hit bytes=%s", rid, len(cached))
        return Response(content=cached, media_type="application/pdf", headers={**headers, "X-Cache": "HIT"})

    prepared = prepare_report(req)
    try:
        pdf_bytes = render_transactions_report_pdf(req, company, prepared=prepared)
    except ImportError:
        raise HTTPException(
            status_code=503,
            detail="Playwright is required for PDF. Install: pip install playwright && playwright install chromium. "
            "Use POST /reports/transactions/preview for HTML without Playwright.",
        )
    except Exception as e:
        _LOG.warning("REPORT_PDF_ERR rid=%s err=%s", rid, str(e)[:400])
        raise HTTPException(
            status_code=503,
            detail="PDF generation runtime unavailable. Use POST /reports/transactions/preview to get HTML instead.",
        ) from e

    set_cached_report_pdf(payload, company.company_id, pdf_bytes)
    _LOG.info(
        "REPORT_PDF rid=%s cache=miss transactions=%s pages=%s bytes=%s",
        rid,
        len(prepared.transactions),
        prepared.paginated.total_pages,
        len(pdf_bytes),
    )
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={**headers, "X-Cache": "MISS", "X-Report-Pages": str(prepared.paginated.total_pages)},
    )


@app.post("/tax/summary")
def build_tax_summary(req: TaxSummaryRequest):
    summary = tax_summary_for_transactions(req.transactions, is_company=req.is_company, kdv_rate=req.kdv_rate)
    return summary.to_dict()


def get_app() -> FastAPI:
    """
    Convenience accessor for ASGI servers.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8010")),
        reload=True,
    )
