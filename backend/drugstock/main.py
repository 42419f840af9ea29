"""
Drug Stock API: store-room inventory for a primary health care unit.

- Drugs with derived stock status (expiry first, then quantity)
- Disbursement requests: PENDING -> APPROVED | REJECTED, stock moves only on approval
- Append-only stock ledger behind the audit trail
- Excel import/export, Groq-backed stock assistant

Role checks live in the services; the API only authenticates.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from drugstock.api.routes import (
    assistant,
    auth,
    dashboard,
    disbursements,
    drugs,
    reports,
    transactions,
    users,
)
from drugstock.core.config import settings
from drugstock.core.exceptions import DrugStockError, to_http_exception
from drugstock.core.logging import setup_logging
from drugstock.db.init_db import init_db

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Drug Stock API",
    description="Drug inventory, disbursement approvals and audit trail.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.exception_handler(DrugStockError)
async def drugstock_error_handler(request: Request, exc: DrugStockError):
    http_exc = to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(drugs.router, prefix="/drugs", tags=["drugs"])
app.include_router(disbursements.router, prefix="/disbursements", tags=["disbursements"])
app.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(assistant.router, prefix="/assistant", tags=["assistant"])


@app.get("/health")
def health():
    return {"status": "ok"}
