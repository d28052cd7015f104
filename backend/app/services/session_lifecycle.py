import logging
from datetime import datetime, timezone
from typing import Any, Callable

from app.services.errors import InterruptionNotFoundError, InvalidTransitionError, SessionNotFoundError
from app.services.report_card import generate_and_store_report
from app.services.trigger_evaluator import MAX_INTERRUPTIONS

LOGGER = logging.getLogger(__name__)

STATUS_UPLOADING = "uploading"
STATUS_PREPARING = "preparing"
STATUS_LIVE = "live"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

NON_TERMINAL_STATUSES = frozenset({STATUS_UPLOADING, STATUS_PREPARING, STATUS_LIVE})


class SessionLifecycleController:
    """Owns the pitch-session state machine.

    uploading -> preparing -> live -> completed, and failed from any
    non-terminal state. Every call is scoped to ``owner_id``; sessions owned
    by someone else look exactly like missing ones.
    """

    def __init__(
        self,
        store,
        scheduler,
        max_interruptions: int = MAX_INTERRUPTIONS,
        generate_report: Callable[..., dict[str, Any]] = generate_and_store_report,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._max_interruptions = max_interruptions
        self._generate_report = generate_report

    def create(
        self,
        owner_id: str,
        title: str,
        *,
        pitch_deck_ref: str | None = None,
        pitch_context_text: str | None = None,
        awaiting_deck_upload: bool = False,
    ) -> dict[str, Any]:
        title = (title or "").strip()
        if not title:
            raise ValueError("Session title must not be blank")
        pitch_context_text = (pitch_context_text or "").strip() or None
        session = self._store.create_session(
            user_id=owner_id,
            title=title,
            status=STATUS_UPLOADING if awaiting_deck_upload else STATUS_PREPARING,
            pitch_deck_ref=pitch_deck_ref,
            pitch_context_text=pitch_context_text,
        )
        if pitch_context_text:
            try:
                self._scheduler.schedule_market_prefetch(session["sessionId"], pitch_context_text)
            except Exception:  # pre-fetch must not block session creation
                LOGGER.warning("Could not schedule market pre-fetch for %s", session["sessionId"], exc_info=True)
        LOGGER.info("Created session %s for user %s (%s)", session["sessionId"], owner_id, session["status"])
        return session

    def get(self, owner_id: str, session_id: str) -> dict[str, Any]:
        session = self._store.get_session(session_id)
        if session is None or str(session["userId"]) != str(owner_id):
            raise SessionNotFoundError(session_id)
        return session

    def list_for_user(self, owner_id: str) -> list[dict[str, Any]]:
        return self._store.get_sessions_for_user(owner_id)

    def require_live(self, owner_id: str, session_id: str) -> dict[str, Any]:
        session = self.get(owner_id, session_id)
        if session["status"] != STATUS_LIVE:
            raise InvalidTransitionError(session_id, session["status"], STATUS_LIVE)
        return session

    def mark_deck_uploaded(self, owner_id: str, session_id: str, pitch_deck_ref: str) -> dict[str, Any]:
        self.get(owner_id, session_id)
        return self._store.transition_status(
            session_id,
            allowed_from={STATUS_UPLOADING},
            target=STATUS_PREPARING,
            pitch_deck_ref=pitch_deck_ref,
        )

    def start(self, owner_id: str, session_id: str) -> dict[str, Any]:
        self.get(owner_id, session_id)
        session = self._store.transition_status(
            session_id,
            allowed_from={STATUS_PREPARING},
            target=STATUS_LIVE,
            start_time=datetime.now(timezone.utc),
        )
        LOGGER.info("Session %s is live", session_id)
        return session

    def end(self, owner_id: str, session_id: str, transcript: str | None = None) -> dict[str, Any]:
        """Complete a live session and schedule its report.

        An empty or missing transcript still completes; the report step
        handles it.
        """
        self.get(owner_id, session_id)
        session = self._store.transition_status(
            session_id,
            allowed_from={STATUS_LIVE},
            target=STATUS_COMPLETED,
            end_time=datetime.now(timezone.utc),
            transcript=transcript,
        )
        self._schedule_report(session_id)
        LOGGER.info("Session %s completed", session_id)
        return session

    def fail(self, owner_id: str, session_id: str, reason: str) -> dict[str, Any]:
        self.get(owner_id, session_id)
        session = self._store.transition_status(
            session_id,
            allowed_from=NON_TERMINAL_STATUSES,
            target=STATUS_FAILED,
            failure_reason=reason,
        )
        LOGGER.warning("Session %s failed: %s", session_id, reason)
        return session

    def regenerate_report(self, owner_id: str, session_id: str) -> dict[str, Any]:
        session = self.get(owner_id, session_id)
        if session["status"] != STATUS_COMPLETED:
            raise InvalidTransitionError(session_id, session["status"], STATUS_COMPLETED)
        self._schedule_report(session_id)
        return session

    def list_interruptions(self, owner_id: str, session_id: str) -> list[dict[str, Any]]:
        self.get(owner_id, session_id)
        return self._store.list_interruptions(session_id)

    def get_interruption(self, owner_id: str, session_id: str, interruption_id: str) -> dict[str, Any]:
        self.get(owner_id, session_id)
        interruption = self._store.get_interruption(interruption_id)
        if interruption is None or interruption["sessionId"] != session_id:
            raise InterruptionNotFoundError(interruption_id)
        return interruption

    def submit_interruption(
        self,
        owner_id: str,
        session_id: str,
        *,
        trigger_type: str,
        founder_statement: str,
        vc_response: str,
    ) -> dict[str, Any]:
        self.require_live(owner_id, session_id)
        return self._store.add_interruption(
            session_id,
            trigger_type=trigger_type,
            founder_statement=founder_statement,
            vc_response=vc_response,
            max_interruptions=self._max_interruptions,
        )

    def set_reaction(self, owner_id: str, session_id: str, interruption_id: str, reaction: str) -> dict[str, Any]:
        self.get_interruption(owner_id, session_id, interruption_id)
        return self._store.set_interruption_reaction(interruption_id, reaction)

    def _schedule_report(self, session_id: str) -> None:
        # A completed session must always end up with a report card.
        try:
            self._scheduler.schedule_report_generation(session_id)
        except Exception:
            LOGGER.exception("Could not schedule report for %s; generating in-process", session_id)
            self._generate_report(session_id, store=self._store)
        else:
            LOGGER.info("Report generation scheduled for %s", session_id)
