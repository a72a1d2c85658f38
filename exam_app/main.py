"""Exam App - FastAPI app entry point."""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exam_app.core.config import get_settings
from exam_app.core.logging_config import configure_logging
from exam_app.db.base import Base
from exam_app.db.session import engine
from exam_app.routers import admin, attempts, exams
from exam_app.schemas.attempt import ClientConfigSchema
from exam_app.services.errors import AttemptError

settings = get_settings()
configure_logging()
logger = logging.getLogger("request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # local/dev databases; production schemas come from Alembic
    if settings.create_tables_on_startup:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Exam attempts: state, versioned autosave and exactly-once submit",
    lifespan=lifespan,
)


@app.exception_handler(AttemptError)
async def attempt_error_handler(request: Request, exc: AttemptError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = req_id
    logger.info("request.start id=%s %s %s", req_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info("request.end id=%s %s %s", req_id, request.url.path, response.status_code)
    return response


app.include_router(exams.router)
app.include_router(attempts.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/client-config", response_model=ClientConfigSchema)
async def client_config():
    """Autosave cadence the exam page should use."""
    return ClientConfigSchema(
        autosave_interval_seconds=settings.autosave_interval_seconds,
        autosave_debounce_ms=settings.autosave_debounce_ms,
    )
