import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# .env is loaded from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from medichat.api.analyze import router as analyze_router
from medichat.api.history import router as history_router
from medichat.api.pages import router as pages_router
from medichat.api.session import router as session_router
from medichat.core.config import is_openai_configured, settings
from medichat.core.database import engine, init_db
from medichat.core.errors import AnalysisValidationError, CompletionError, StoreError
from medichat.core.rate_limit import limiter
from medichat.logging import setup_logging
from medichat.services.analyze import ping_openai
from medichat.services.inflight import RequestInFlight

setup_logging()
log = logging.getLogger("medichat")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info(
        "OpenAI key loaded: %s; record store: %s",
        "yes" if is_openai_configured() else "NO (add OPENAI_API_KEY=sk-... to .env)",
        settings.record_store,
    )
    yield


app = FastAPI(
    title="MediChat API",
    description="Preliminary health-information analyses with a per-user history",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s limit=%s", request.url.path, exc.detail)
    return _error_response(request, 429, "Too many requests. Please wait a minute and try again.")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if loc else None
    if first.get("type") == "missing":
        if field == "body":
            return "Request body is missing."
        return f"Missing field: {field}." if field else "A required field is missing."
    if field == "analysisType":
        return "Unknown analysis type."
    return first.get("msg") or "Invalid request."


def _jsonable_errors(errs) -> list[dict]:
    # ctx may hold the raised exception object
    return [{k: v for k, v in e.items() if k in ("type", "loc", "msg")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    rid = getattr(request.state, "request_id", None)
    body = {"error": _validation_error_message(exc), "status_code": 422, "detail": _jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(AnalysisValidationError)
def analysis_validation_handler(request: Request, exc: AnalysisValidationError) -> JSONResponse:
    return _error_response(request, 400, str(exc))


@app.exception_handler(CompletionError)
def completion_error_handler(request: Request, exc: CompletionError) -> JSONResponse:
    log.warning("Completion failed: path=%s status=%s %s", request.url.path, exc.status_code, exc)
    return _error_response(request, exc.status_code, str(exc))


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return _error_response(request, 503, str(exc))


@app.exception_handler(RequestInFlight)
def in_flight_handler(request: Request, exc: RequestInFlight) -> JSONResponse:
    return _error_response(request, 409, str(exc))


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc)
    path = (request.url.path or "").strip()
    if path.startswith("/analyze"):
        user_msg = "An error occurred during analysis."
    else:
        user_msg = "Unexpected server error."
    return _error_response(request, 500, user_msg)


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(pages_router)
app.include_router(session_router)
app.include_router(analyze_router)
app.include_router(history_router)


@app.get("/health")
def health():
    database_ok = True
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.warning("Health check database probe failed: %s", e)
        database_ok = False
    return {
        "status": "ok" if database_ok else "degraded",
        "openai_configured": is_openai_configured(),
        "record_store": settings.record_store,
        "database": "ok" if database_ok else "unavailable",
    }


@app.get("/health/ai")
def health_ai():
    """One-token OpenAI probe: {"ok", "latency_ms", "error"}."""
    ok, latency_ms, error = ping_openai()
    return {"ok": ok, "latency_ms": latency_ms, "error": error}
