"""
FastAPI app entrypoint.

Notification backend for the student app and the admin dashboard.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from campusbell import __version__  # noqa: E402
from campusbell.api.routes import admin, notifications  # noqa: E402
from campusbell.config import settings  # noqa: E402
from campusbell.core.constants import NOTIFICATION_RETENTION_JOB_ID  # noqa: E402
from campusbell.scheduler.retention_job import run_notification_retention_job  # noqa: E402

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Scheduler: prune long-expired notifications once a day
_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _scheduler.add_job(
        run_notification_retention_job,
        "interval",
        hours=settings.retention_job_interval_hours,
        id=NOTIFICATION_RETENTION_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info("Notification backend ready (retention every %sh)", settings.retention_job_interval_hours)
    yield
    _scheduler.shutdown(wait=False)


app = FastAPI(title="Campusbell Notifications", version=__version__, lifespan=lifespan)

# CORS: admin dashboard dev origins + optional CORS_ORIGINS env (comma-separated) for production
_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8081",
    "http://127.0.0.1:8081",
]
_cors_extra = os.getenv("CORS_ORIGINS", "")
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications.router, tags=["notifications"])
app.include_router(admin.router, tags=["admin"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Campusbell API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
