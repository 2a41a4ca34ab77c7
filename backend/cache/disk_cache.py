"""
Content-hash disk cache for rendered transaction report PDFs.
Key = sha256(report_request_json + company_id) -> PDF bytes.
"""
from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

# Cache directory under backend/cache unless REPORT_CACHE_DIR is set
_CACHE_DIR = Path(__file__).resolve().parent


def report_pdf_cache_dir() -> Path:
    override = (os.getenv("REPORT_CACHE_DIR") or "").strip()
    if override:
        return Path(override)
    return _CACHE_DIR / "report_pdfs"


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def _report_pdf_key(request_payload: dict[str, Any], company_id: str) -> str:
    payload = json.dumps(
        {"report": request_payload, "company_id": company_id},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode()).hexdigest()


def get_cached_report_pdf(request_payload: dict[str, Any], company_id: str) -> bytes | None:
    """Return cached PDF bytes, or None."""
    cache_dir = report_pdf_cache_dir()
    _ensure_dir(cache_dir)
    path = cache_dir / f"{_report_pdf_key(request_payload, company_id)}.pdf"
    if not path.exists():
        return None
    try:
        return path.read_bytes()
    except OSError:
        return None


def set_cached_report_pdf(request_payload: dict[str, Any], company_id: str, pdf_bytes: bytes) -> None:
    """Store PDF bytes in cache."""
    cache_dir = report_pdf_cache_dir()
    _ensure_dir(cache_dir)
    path = cache_dir / f"{_report_pdf_key(request_payload, company_id)}.pdf"
    path.write_bytes(pdf_bytes)
