"""FastAPI application factory.

The store handle and validator are created once in the lifespan and hung
on ``app.state``; dependencies read them from there.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from bulletin_review.api.routes.audit import router as audit_router
from bulletin_review.api.routes.documents import router as documents_router
from bulletin_review.api.routes.health import router as health_router
from bulletin_review.api.routes.review import router as review_router
from bulletin_review.core.logging import setup_logging
from bulletin_review.core.settings import get_settings
from bulletin_review.db.session import init_store
from bulletin_review.extraction.validator import ExtractionValidator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    store = init_store(settings.database_url, timeout=settings.store_timeout_seconds)
    if settings.auto_create_schema:
        store.create_schema()
    app.state.store = store
    app.state.validator = ExtractionValidator(
        ceiling_minimum=settings.ceiling_minimum,
        low_confidence_threshold=settings.low_confidence_threshold,
    )
    yield
    store.dispose()


async def _store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc.__class__.__name__)
    return JSONResponse(status_code=500, content={"detail": "Internal storage error"})


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS: restrict origins in production at the reverse proxy
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SQLAlchemyError, _store_error_handler)

app.include_router(health_router)
app.include_router(documents_router)
app.include_router(review_router)
app.include_router(audit_router)
