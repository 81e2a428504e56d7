from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from time import monotonic

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskboard.config import Settings, get_settings
from taskboard.db import Database
from taskboard.errors import Internal, TaskboardError, ValidationError
from taskboard.metrics import RuntimeMetrics
from taskboard.rate_limit import RateLimiter
from taskboard.routers.auth import router as auth_router
from taskboard.routers.boards import router as boards_router
from taskboard.routers.cards import router as cards_router
from taskboard.routers.lists import router as lists_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
  logging.basicConfig(
    level=getattr(logging, level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )


def create_app(settings: Settings | None = None) -> FastAPI:
  settings = settings or get_settings()
  configure_logging(settings.log_level)

  @asynccontextmanager
  async def lifespan(app: FastAPI):
    if settings.auto_create_schema:
      await app.state.db.create_all()
      logger.info("schema ensured on %s", app.state.db.engine.url.render_as_string(hide_password=True))
    yield
    await app.state.db.dispose()

  app = FastAPI(title="Taskboard API", version=settings.app_version, lifespan=lifespan)
  app.state.settings = settings
  app.state.db = Database.from_settings(settings)
  app.state.limiter = RateLimiter()
  app.state.metrics = RuntimeMetrics()

  @app.exception_handler(TaskboardError)
  async def _taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    request.app.state.metrics.observe_error(exc.code)
    return JSONResponse(status_code=exc.status_code, content={"detail": {"code": exc.code, "message": exc.message}})

  @app.exception_handler(SQLAlchemyError)
  async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # The request session is closed (and its transaction rolled back) by get_db.
    logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    request.app.state.metrics.observe_error(Internal.code)
    return JSONResponse(status_code=Internal.status_code, content={"detail": {"code": Internal.code, "message": "Storage failure"}})

  @app.exception_handler(RequestValidationError)
  async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request.app.state.metrics.observe_error(ValidationError.code)
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid')}" if where else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"detail": {"code": ValidationError.code, "message": message}})

  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  app.include_router(auth_router)
  app.include_router(boards_router)
  app.include_router(lists_router)
  app.include_router(cards_router)

  @app.middleware("http")
  async def _request_metrics_middleware(request: Request, call_next):
    start = monotonic()
    response = await call_next(request)
    elapsed_ms = (monotonic() - start) * 1000.0
    request.app.state.metrics.observe_request(response.status_code, elapsed_ms)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response

  @app.get("/health")
  async def health(request: Request) -> dict:
    return {"ok": True, **request.app.state.metrics.snapshot()}

  @app.get("/version")
  async def version() -> dict:
    return {"version": settings.app_version, "buildSha": settings.build_sha}

  return app


def run() -> None:
  import uvicorn

  uvicorn.run("taskboard.main:create_app", factory=True, host="0.0.0.0", port=8000)
