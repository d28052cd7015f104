"""Celery task package."""

# Ensure task decorators are imported when package is loaded.
from app.tasks.session_tasks import generate_report_card_task, prefetch_market_context_task

__all__ = ["generate_report_card_task", "prefetch_market_context_task"]
