from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware

from taskboard.config import settings
from taskboard.db import SessionLocal, create_schema
from taskboard.errors import NotFound, StoreUnavailable, ValidationError
from taskboard.gateway import BoardGateway
from taskboard.routers.board import router as board_router
from taskboard.routers.columns import router as columns_router
from taskboard.routers.seed import router as seed_router
from taskboard.routers.tasks import router as tasks_router

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
  title="Task Board API",
  version="0.1.0",
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


@app.exception_handler(NotFound)
async def _not_found_handler(_, exc: NotFound) -> JSONResponse:
  return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def _validation_error_handler(_, exc: ValidationError) -> JSONResponse:
  return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(StoreUnavailable)
async def _store_unavailable_handler(_, exc: StoreUnavailable) -> JSONResponse:
  # The cause is logged by the gateway; clients only need to re-fetch.
  return JSONResponse(status_code=503, content={"detail": "Store unavailable"})


app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_origin_regex=settings.cors_origin_regex,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(board_router)
app.include_router(columns_router)
app.include_router(tasks_router)
app.include_router(seed_router)


@app.middleware("http")
async def _security_headers_middleware(request, call_next):
  response = await call_next(request)
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  return response


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}


@app.on_event("startup")
async def _startup() -> None:
  if settings.auto_create_schema:
    await create_schema()
  if settings.seed_on_start:
    async with SessionLocal() as db:
      _, created = await BoardGateway(db).seed_defaults(settings.default_column_names())
    if created:
      logger.info("default columns created on startup")
