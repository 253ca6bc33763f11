"""
CampaignPulse Backend — FastAPI Application Entry Point

Configures the FastAPI application, includes all routers, sets up CORS,
logging and the database on startup.

Architecture:
    - FastAPI application with auto-generated OpenAPI docs at /docs
    - All routers mounted under /api
    - Logging configured and tables created in the lifespan handler
    - Unhandled errors are logged and returned as a plain 500

Usage:
    python -m uvicorn campaignpulse.main:app --host 127.0.0.1 --port 8050
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import init_db
from .logging_config import configure_logging
from .routers import products, campaigns, opex, scenarios, settings, export

logger = logging.getLogger("campaignpulse.main")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",    # Vite dev server
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _cors_origins() -> list[str]:
    raw = os.environ.get("CAMPAIGNPULSE_CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_CORS_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    - On startup: configure logging and create tables if they don't exist
    - On shutdown: nothing special needed
    """
    configure_logging()
    init_db()
    logger.info("CampaignPulse API started")
    yield


app = FastAPI(
    title="CampaignPulse Campaign Forecast API",
    description=(
        "REST API for seasonal sales campaign planning. "
        "Manages products, campaigns, OPEX and scenarios, and computes "
        "monthly forecasts, profitability and what-if scenario results."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products.router)   # /api/products
app.include_router(campaigns.router)  # /api/campaigns (inputs, forecast, profitability)
app.include_router(opex.router)       # /api/opex
app.include_router(scenarios.router)  # /api/scenarios
app.include_router(settings.router)   # /api/settings
app.include_router(export.router)     # /api/export


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
def root():
    """API information endpoint."""
    return {
        "name": "CampaignPulse API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "products": "/api/products",
            "campaigns": "/api/campaigns",
            "forecast": "/api/campaigns/{campaign_id}/forecast",
            "profitability": "/api/campaigns/{campaign_id}/profitability",
            "opex": "/api/opex",
            "scenarios": "/api/scenarios",
            "scenario_forecast": "/api/scenarios/{scenario_id}/forecast",
            "settings": "/api/settings/display",
            "export": "/api/export/campaigns/{campaign_id}",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
