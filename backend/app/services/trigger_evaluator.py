"""Live interruption policy for the hot seat.

``detect_trigger`` is the pure decision: given the cumulative transcript and
the number of interruptions already issued, pick at most one category.
``TriggerEvaluator`` wraps it with the side effects of a firing decision
(fact lookup, rebuttal synthesis, capped insert) and with per-snapshot
idempotence.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from app.services.ai_investor import synthesize_rebuttal
from app.services.errors import InterruptionLimitError, MissingCredentialError

LOGGER = logging.getLogger(__name__)

MAX_INTERRUPTIONS = 3
MIN_TRANSCRIPT_CHARS = 100
STATEMENT_EXCERPT_CHARS = 200

# Checked top to bottom; the first category with a matching phrase wins.
TRIGGER_PHRASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("reality_check", ("no competitors", "no competition", "first to market", "unique in the world")),
    ("math_check", ("hiring", "marketing spend", "runway", "burn rate")),
    ("bs_detector", ("proprietary ai", "our ai", "machine learning", "blockchain")),
)


@dataclass(frozen=True)
class TriggerDecision:
    fire: bool
    reason: str
    category: str | None = None
    matched_phrase: str | None = None


def detect_trigger(
    transcript: str,
    interruption_count: int,
    *,
    max_interruptions: int = MAX_INTERRUPTIONS,
    min_transcript_chars: int = MIN_TRANSCRIPT_CHARS,
    phrase_table: tuple[tuple[str, tuple[str, ...]], ...] = TRIGGER_PHRASES,
) -> TriggerDecision:
    if interruption_count >= max_interruptions:
        return TriggerDecision(fire=False, reason="Interruption limit reached")
    if len(transcript) < min_transcript_chars:
        return TriggerDecision(fire=False, reason="Waiting for more content")

    text = transcript.lower()
    for category, phrases in phrase_table:
        for phrase in phrases:
            if phrase in text:
                return TriggerDecision(fire=True, reason="Trigger phrase detected", category=category, matched_phrase=phrase)
    return TriggerDecision(fire=False, reason="No trigger phrase detected")


def statement_excerpt(transcript: str, limit: int = STATEMENT_EXCERPT_CHARS) -> str:
    return transcript[-limit:]


class TriggerEvaluator:
    def __init__(
        self,
        store,
        fact_lookup,
        synthesize: Callable[..., str | None] = synthesize_rebuttal,
        max_interruptions: int = MAX_INTERRUPTIONS,
    ) -> None:
        self._store = store
        self._fact_lookup = fact_lookup
        self._synthesize = synthesize
        self._max_interruptions = max_interruptions

    def evaluate(self, session_id: str, transcript: str) -> dict[str, Any]:
        """Evaluate one transcript chunk for a live session.

        Collaborator failures end in a no-trigger result. Missing credentials
        and unknown sessions propagate.
        """
        if not self._store.record_transcript_snapshot(session_id, transcript):
            return self._no_trigger(session_id, "Transcript unchanged since last evaluation")

        count = self._store.count_interruptions(session_id)
        decision = detect_trigger(transcript, count, max_interruptions=self._max_interruptions)
        if not decision.fire:
            LOGGER.debug("Session %s: no trigger (%s)", session_id, decision.reason)
            return self._no_trigger(session_id, decision.reason, count)

        category = str(decision.category)
        excerpt = statement_excerpt(transcript)
        LOGGER.info("Session %s: %s triggered by %r", session_id, category, decision.matched_phrase)
        try:
            fact_check = self._fact_lookup.tactical_fact_check(excerpt, category)
            facts = fact_check.get("facts") if fact_check.get("success") else None
            rebuttal = self._synthesize(category, excerpt, facts or None)
        except MissingCredentialError:
            # The snapshot stays retryable once the key is configured.
            self._store.forget_transcript_snapshot(session_id)
            raise
        except Exception:
            LOGGER.warning("Session %s: trigger evaluation failed", session_id, exc_info=True)
            return self._no_trigger(session_id, "Trigger evaluation failed", count)

        if not rebuttal:
            return self._no_trigger(session_id, "Rebuttal synthesis failed", count)

        try:
            interruption = self._store.add_interruption(
                session_id,
                trigger_type=category,
                founder_statement=excerpt,
                vc_response=rebuttal,
                max_interruptions=self._max_interruptions,
            )
        except InterruptionLimitError as exc:
            LOGGER.info("Session %s: interruption dropped (%s)", session_id, exc)
            return self._no_trigger(session_id, "Interruption limit reached")

        LOGGER.info("Session %s: interruption %d recorded", session_id, interruption["sequence"])
        return {
            "sessionId": session_id,
            "interrupted": True,
            "triggerType": category,
            "vcResponse": rebuttal,
            "interruption": interruption,
            "interruptionCount": interruption["sequence"],
            "reason": decision.reason,
        }

    def _no_trigger(self, session_id: str, reason: str, count: int | None = None) -> dict[str, Any]:
        if count is None:
            count = self._store.count_interruptions(session_id)
        return {
            "sessionId": session_id,
            "interrupted": False,
            "triggerType": None,
            "vcResponse": None,
            "interruption": None,
            "interruptionCount": count,
            "reason": reason,
        }
