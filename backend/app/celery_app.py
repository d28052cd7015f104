import logging

from celery import Celery

from app.config import broker_url, celery_always_eager, result_backend_url
from app.db import init_db

logger = logging.getLogger(__name__)

celery_app = Celery(
    "foundervoice",
    broker=broker_url(),
    backend=result_backend_url(),
    include=["app.tasks.session_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_always_eager=celery_always_eager(),
    imports=("app.tasks.session_tasks",),
)

try:
    init_db()
except Exception as exc:  # pragma: no cover - startup guard for local/dev race conditions
    logger.warning("Celery startup continuing without immediate DB init: %s", exc)
