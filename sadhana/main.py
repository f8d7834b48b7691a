from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sadhana.db.base import get_db
from sadhana.core.config import settings
from sadhana.core.logging import get_logger, setup_logging
from sadhana.routers import entities as entities_router
from sadhana.routers import submissions as submissions_router
from sadhana.routers import ranking as ranking_router
from sadhana.routers import stats as stats_router
from sadhana.core.errors import (
    SadhanaException,
    sadhana_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON or settings.is_production)
logger = get_logger(__name__)

app = FastAPI(
    title="Sadhana Score API",
    description=(
        "**Daily practice scoring and leaderboards**\n\n"
        "Scores each daily submission (meditation rounds, reading, listening, "
        "service), then aggregates per entity by day, ISO week, month and "
        "all-time for rankings, personal bests and improvement alerts.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(SadhanaException, sadhana_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(entities_router.router)
app.include_router(submissions_router.router)
app.include_router(ranking_router.router)
app.include_router(stats_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    Used by Railway / Render for liveness probes.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as exc:
        logger.warning("health_db_unreachable", error=str(exc))
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
