"""ShopAudit API: run audits over HTTP and serve the generated reports."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from shopaudit.core.runner import AuditOutcome, run_audit
from shopaudit.models.config import config_from_dict, load_config_file
from shopaudit.models.errors import ConfigError, SetupError, ShopAuditError

SERVICE_NAME = "ShopAudit Ecommerce Testing Tool"
VERSION = "1.0.0"

REPORTS_DIR = Path(os.getenv("SHOPAUDIT_REPORTS_DIR", "./reports"))
CONFIGS_DIR = Path(os.getenv("SHOPAUDIT_CONFIGS_DIR", "./configs"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(title="ShopAudit API", version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/reports", StaticFiles(directory=str(REPORTS_DIR), check_dir=False), name="reports")


class ViewportModel(BaseModel):
    width: int = 1920
    height: int = 1080


class CookieModel(BaseModel):
    name: str
    value: str
    domain: str | None = None
    path: str | None = None


class AuditRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field("", alias="baseUrl")
    product_urls: list[str] = Field(default_factory=list, alias="productUrls")
    timeout: int = 30000
    retry_attempts: int = Field(3, alias="retryAttempts")
    viewport: ViewportModel = Field(default_factory=ViewportModel)
    headless: bool = True
    custom_headers: dict[str, str] | None = Field(None, alias="customHeaders")
    cookies: list[CookieModel] = Field(default_factory=list)


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }


@app.get("/")
def root():
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "endpoints": {
            "health": "/health",
            "test": "/api/v1/test",
            "preset": "/api/v1/test/preset/{name}",
            "reports": "/api/v1/reports",
        },
        "usage": {
            "test": "POST /api/v1/test with config in body",
            "preset": "GET /api/v1/test/preset/{name} runs configs/{name}.yaml",
        },
    }


@app.post("/api/v1/test")
async def run_test(req: AuditRequest):
    try:
        config = config_from_dict(req.model_dump(by_alias=True))
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration: {e}")
    return await _run(config)


@app.get("/api/v1/test/preset/{name}")
async def run_preset(name: str):
    path = CONFIGS_DIR / f"{name}.yaml"
    if not name.replace("-", "").replace("_", "").isalnum() or not path.is_file():
        raise HTTPException(status_code=404, detail=f"Unknown preset: {name}")
    try:
        config = load_config_file(path)
    except ConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return await _run(config, website=name)


@app.get("/api/v1/reports")
def list_reports():
    files = [p for p in REPORTS_DIR.iterdir() if p.suffix in (".json", ".html")]
    reports = sorted(
        (
            {
                "name": p.name,
                "url": f"/reports/{p.name}",
                "type": p.suffix.lstrip("."),
                "size": p.stat().st_size,
            }
            for p in files
        ),
        key=lambda r: r["name"],
        reverse=True,
    )
    return {"reports": reports, "total": len(reports)}


async def _run(config, website: str | None = None) -> dict:
    try:
        outcome = await run_audit(config, output_dir=REPORTS_DIR, generate_report=True)
    except SetupError as e:
        logger.error("Browser initialization failed: %s", e)
        raise HTTPException(status_code=500, detail={
            "error": "Browser initialization failed",
            "message": str(e)[:500],
            "suggestion": "Check that Playwright browsers are installed (playwright install chromium).",
        })
    except ShopAuditError as e:
        logger.error("Test execution failed: %s", e)
        raise HTTPException(status_code=500, detail={
            "error": "Test execution failed",
            "message": str(e)[:500],
        })

    body = summarize_outcome(outcome)
    if website:
        body["website"] = website
    return body


def summarize_outcome(outcome: AuditOutcome) -> dict:
    """Condensed run summary returned instead of the full report body."""
    report = outcome.report
    reports = {}
    if outcome.report_paths:
        reports = {
            "json": f"/reports/{outcome.report_paths.json_path.name}",
            "html": f"/reports/{outcome.report_paths.html_path.name}",
        }
    return {
        "success": True,
        "results": {
            "totalTests": report.total_tests,
            "passedTests": report.passed_tests,
            "failedTests": report.failed_tests,
            "successRate": f"{report.success_rate * 100:.1f}%",
            "duration": f"{report.total_duration / 1000:.2f}s",
            "criticalIssues": report.summary.critical_issues,
            "warnings": report.summary.warnings,
        },
        "recommendations": report.summary.recommendations,
        "reports": reports,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 3000)))
