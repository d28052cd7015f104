import json
import logging

from app.celery_app import celery_app
from app.services.fact_lookup import fact_lookup
from app.services.report_card import generate_and_store_report
from app.services.session_store import session_store

LOGGER = logging.getLogger(__name__)


@celery_app.task(bind=True, name="sessions.generate_report_card")
def generate_report_card_task(self, session_id: str) -> dict:
    report_card = generate_and_store_report(session_id, store=session_store)
    return {
        "sessionId": session_id,
        "taskId": str(self.request.id),
        "overallScore": report_card.get("overallScore"),
        "isFallback": bool(report_card.get("isFallback")),
        "status": "completed",
    }


@celery_app.task(name="sessions.prefetch_market_context")
def prefetch_market_context_task(session_id: str, pitch_context: str) -> dict:
    try:
        market_context = fact_lookup.prefetch_market_context(pitch_context)
    except Exception as exc:  # pre-fetch is best effort
        LOGGER.warning("Market context pre-fetch failed for session %s: %s", session_id, exc)
        return {"sessionId": session_id, "success": False, "error": str(exc)}

    if not session_store.set_market_context(session_id, market_context):
        return {"sessionId": session_id, "success": False, "error": "Session not found"}
    return {
        "sessionId": session_id,
        "success": True,
        "contextsFound": len(json.loads(market_context)),
    }
