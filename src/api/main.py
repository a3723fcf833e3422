"""
FILE: src/api/main.py
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.observability import setup_observability
from src.api.routers.cash import router as cash_router
from src.api.routers.nav import router as nav_router
from src.api.routers.oms import router as oms_router
from src.api.routers.reconciliation import router as reconciliation_router
from src.api.routers.rebalance import router as rebalance_router

app = FastAPI(
    title="Portfolio Operations Cockpit API",
    version="0.1.0",
    description=(
        "Deterministic computational core of a portfolio-operations cockpit.\n\n"
        "Every request carries a full snapshot; the service holds no domain state."
    ),
    openapi_tags=[
        {
            "name": "NAV Reconciliation",
            "description": "Custodian vs internal break detection, cause analysis and workflow.",
        },
        {
            "name": "Cash Ladder",
            "description": "Settlement-horizon cash ladder, projections and FX helpers.",
        },
        {
            "name": "Rebalance",
            "description": "Benchmark-relative trade list generation under cash constraints.",
        },
        {
            "name": "Shadow NAV",
            "description": "Shadow NAV card and NAV bridge attribution.",
        },
        {
            "name": "Order Management",
            "description": "Basket construction and basket-level order actions.",
        },
    ],
)

setup_observability(app)
logger = logging.getLogger(__name__)

app.include_router(reconciliation_router)
app.include_router(cash_router)
app.include_router(rebalance_router)
app.include_router(nav_router)
app.include_router(oms_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
    )


@app.get("/health", tags=["Health"])
def health() -> dict:
    return {"status": "ok"}


@app.get("/health/live", tags=["Health"])
def health_live() -> dict:
    return {"status": "live"}


@app.get("/health/ready", tags=["Health"])
def health_ready() -> dict:
    return {"status": "ready"}
